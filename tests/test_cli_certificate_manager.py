from __future__ import annotations

import io
import json

import pytest

from capi.cli.main import main
from capi.errors import ServiceUnavailableError
from conftest import DOMAIN_CREATE, RECEIVE_CERT, UPDATE_CHALLENGE


class FakeCertificateManagerClient:
    calls: list[tuple] = []

    def __init__(self, **kwargs) -> None:  # noqa: ANN003
        self.kwargs = kwargs

    def create_domain(self, capability, request):  # noqa: ANN001
        self.calls.append(("create_domain", capability, request.to_wire()))
        return {"capabilities": {"deleteDomain": DOMAIN_CREATE}}

    def delete_domain(self, capability):  # noqa: ANN001
        self.calls.append(("delete_domain", capability))
        return None

    def delete_self(self, capability):  # noqa: ANN001
        raise ServiceUnavailableError(f"connect failed for {capability}")

    def query_domains(self, capability, query):  # noqa: ANN001
        self.calls.append(("query_domains", capability, query.to_wire()))
        return {"domains": [], "lastDomain": None}


@pytest.fixture
def fake_client(monkeypatch):
    FakeCertificateManagerClient.calls = []
    monkeypatch.setattr(
        "capi.cli.certificate_manager.CertificateManagerClient", FakeCertificateManagerClient
    )
    return FakeCertificateManagerClient


def _run(argv: list[str]) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    rc = main(argv, stdout=out, stderr=err)
    return rc, out.getvalue(), err.getvalue()


def test_create_domain_builds_subject_and_capabilities(fake_client) -> None:
    rc, out, err = _run(
        [
            "certificate-manager",
            "create-domain",
            "--capability",
            DOMAIN_CREATE,
            "--domain",
            "example.com",
            "--country",
            "US",
            "--state",
            "WA",
            "--locality",
            "Seattle",
            "--organization",
            "Example Inc.",
            "--receive-certificate-capability",
            RECEIVE_CERT,
            "--update-challenge-capability",
            UPDATE_CHALLENGE,
        ]
    )

    assert rc == 0, err
    assert "deleteDomain" in json.loads(out)["capabilities"]
    _, capability, payload = fake_client.calls[0]
    assert capability == DOMAIN_CREATE
    assert payload == {
        "domain": "example.com",
        "capabilities": {"receiveCertificate": RECEIVE_CERT, "updateChallenge": UPDATE_CHALLENGE},
        "subject": {
            "country": "US",
            "stateProvince": "WA",
            "locality": "Seattle",
            "organization": "Example Inc.",
        },
    }


def test_create_domain_rejects_malformed_receive_capability(fake_client) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run(
            [
                "certificate-manager",
                "create-domain",
                "--capability",
                DOMAIN_CREATE,
                "--domain",
                "example.com",
                "--country",
                "US",
                "--province",
                "WA",
                "--locality",
                "Seattle",
                "--organization",
                "Example Inc.",
                "--receive-certificate-capability",
                "not-a-capability",
                "--update-challenge-capability",
                UPDATE_CHALLENGE,
            ]
        )
    assert exc_info.value.code == 1
    assert fake_client.calls == []


@pytest.mark.parametrize("command", ["delete-domain", "deletedomain"])
def test_delete_domain_prints_nothing_on_success(fake_client, command) -> None:
    rc, out, err = _run(["certificate-manager", command, "--capability", DOMAIN_CREATE])
    assert rc == 0
    assert out == ""
    assert err == ""
    assert fake_client.calls == [("delete_domain", DOMAIN_CREATE)]


def test_delete_self_failure_redacts_capability(fake_client) -> None:
    rc, out, err = _run(["certificate-manager", "delete-self", "--capability", DOMAIN_CREATE])
    assert rc == 1
    assert out == ""
    assert err.startswith("FAILED\n")
    assert "createDomainToken12" not in err
    assert "(...ken12)" in err


def test_query_domains_without_saved_capability(fake_client) -> None:
    rc, _, err = _run(["certificate-manager", "query-domains", "--domain", "example.com"])
    assert rc == 1
    assert 'No certificate-manager "queryDomains" capability found for profile "default"' in err
    assert fake_client.calls == []
