from __future__ import annotations

import io
import json

import pytest

from capi.cli.main import main
from capi.cli.store import open_store
from capi.cli.config import load_cli_config
from capi.errors import ServiceRequestError
from conftest import MEMBRANE_CREATE, MEMBRANE_EXPORT, MEMBRANE_QUERY


class FakeMembraneClient:
    instances: list["FakeMembraneClient"] = []

    def __init__(self, **kwargs) -> None:  # noqa: ANN003
        self.kwargs = kwargs
        self.calls: list[tuple[str, str, dict]] = []
        FakeMembraneClient.instances.append(self)

    def create(self, capability, request):  # noqa: ANN001
        self.calls.append(("create", capability, request.to_wire()))
        return {"id": request.id, "capabilities": {"export": MEMBRANE_EXPORT}}

    def export(self, capability, request):  # noqa: ANN001
        self.calls.append(("export", capability, request.to_wire()))
        return {"capability": MEMBRANE_QUERY}

    def query(self, capability, query):  # noqa: ANN001
        self.calls.append(("query", capability, query.to_wire()))
        return [{"id": "m1"}]


@pytest.fixture
def fake_client(monkeypatch):
    FakeMembraneClient.instances = []
    monkeypatch.setattr("capi.cli.membrane.MembraneClient", FakeMembraneClient)
    return FakeMembraneClient


def _run(argv: list[str]) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    rc = main(argv, stdout=out, stderr=err)
    return rc, out.getvalue(), err.getvalue()


def test_create_with_explicit_capability_prints_json(fake_client) -> None:
    rc, out, err = _run(["membrane", "create", "--id", "m1", "--capability", MEMBRANE_CREATE])

    assert rc == 0
    assert err == ""
    assert json.loads(out)["id"] == "m1"
    client = fake_client.instances[0]
    assert client.calls == [("create", MEMBRANE_CREATE, {"id": "m1"})]
    assert client.kwargs["reject_unauthorized"] is True


def test_create_uses_saved_profile_capability(fake_client) -> None:
    open_store(load_cli_config()).configure(
        profile="work",
        service="membrane",
        settings={"region": "amzn-us-east-1"},
        capabilities={"create": MEMBRANE_CREATE},
    )

    rc, _, _ = _run(["membrane", "create", "--id", "m1", "--profile", "work", "--tls-self-signed"])

    assert rc == 0
    client = fake_client.instances[0]
    assert client.calls[0][1] == MEMBRANE_CREATE
    assert client.kwargs["reject_unauthorized"] is False


def test_missing_capability_fails_before_any_client_call(fake_client) -> None:
    rc, out, err = _run(["membrane", "query"])

    assert rc == 1
    assert out == ""
    assert err.startswith("FAILED\n")
    assert 'No membrane "query" capability found for profile "default"' in err
    assert fake_client.instances == []


def test_undecodable_credentials_file_counts_as_no_saved_state(fake_client, capi_home) -> None:
    capi_home.mkdir(parents=True)
    (capi_home / "credentials").write_bytes(b"profile: default\nmembrane: \xff\xfe\n")

    rc, out, err = _run(["membrane", "create", "--id", "m1"])

    assert rc == 1
    assert out == ""
    assert 'No membrane "create" capability found for profile "default"' in err
    assert fake_client.instances == []


def test_empty_membrane_id_fails_before_any_client_call(fake_client) -> None:
    rc, out, err = _run(["membrane", "create", "--id", "", "--capability", MEMBRANE_CREATE])

    assert rc == 1
    assert out == ""
    assert err.startswith("FAILED\n")
    assert fake_client.instances == []


def test_malformed_capability_flag_is_a_usage_error(fake_client) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run(["membrane", "create", "--id", "m1", "--capability", "https://nope"])
    assert exc_info.value.code == 1
    assert fake_client.instances == []


def test_query_limit_must_be_positive(fake_client) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run(["membrane", "query", "--capability", MEMBRANE_QUERY, "--limit", "0"])
    assert exc_info.value.code == 1


def test_query_passes_pagination_fields(fake_client) -> None:
    rc, out, _ = _run(
        ["membrane", "query", "--capability", MEMBRANE_QUERY, "--last-id", "m0", "--limit", "2"]
    )
    assert rc == 0
    assert json.loads(out) == [{"id": "m1"}]
    assert fake_client.instances[0].calls[0][2] == {"lastId": "m0", "limit": 2}


def test_export_uri_with_headers_and_aws4_signature(fake_client) -> None:
    rc, out, err = _run(
        [
            "membrane",
            "export",
            "--capability",
            MEMBRANE_EXPORT,
            "--uri",
            "https://upstream.example/hook",
            "--method",
            "POST",
            "--header",
            "X-Amz-Invocation-Type: Event",
            "--no-allow-query",
            "--aws4-hmac-sha256-aws-access-key-id",
            "AKIA",
            "--aws4-hmac-sha256-region",
            "us-east-1",
            "--aws4-hmac-sha256-service",
            "lambda",
            "--aws4-hmac-sha256-secret-access-key",
            "secret",
        ]
    )

    assert rc == 0, err
    assert json.loads(out) == {"capability": MEMBRANE_QUERY}
    _, capability, payload = fake_client.instances[0].calls[0]
    assert capability == MEMBRANE_EXPORT
    assert payload == {
        "uri": "https://upstream.example/hook",
        "method": "POST",
        "allowQuery": False,
        "headers": {"X-Amz-Invocation-Type": "Event"},
        "hmac": {
            "aws4-hmac-sha256": {
                "awsAccessKeyId": "AKIA",
                "region": "us-east-1",
                "service": "lambda",
                "secretAccessKey": "secret",
            }
        },
    }


def test_export_timeout_is_sent_as_whole_milliseconds(fake_client) -> None:
    rc, _, err = _run(
        [
            "membrane",
            "export",
            "--capability",
            MEMBRANE_EXPORT,
            "--uri",
            "https://u.example",
            "--timeout-ms",
            "1000",
        ]
    )

    assert rc == 0, err
    payload = fake_client.instances[0].calls[0][2]
    assert payload["timeoutMs"] == 1000
    assert isinstance(payload["timeoutMs"], int)


def test_export_fractional_timeout_is_a_usage_error(fake_client) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run(
            [
                "membrane",
                "export",
                "--capability",
                MEMBRANE_EXPORT,
                "--uri",
                "https://u.example",
                "--timeout-ms",
                "1.5",
            ]
        )
    assert exc_info.value.code == 1
    assert fake_client.instances == []


def test_export_existing_capability(fake_client) -> None:
    rc, _, _ = _run(
        ["membrane", "export", "--capability", MEMBRANE_EXPORT, "--capability-to-export", MEMBRANE_QUERY]
    )
    assert rc == 0
    assert fake_client.instances[0].calls[0][2] == {"capability": MEMBRANE_QUERY}


@pytest.mark.parametrize(
    "extra, message",
    [
        ([], "Need to specify one of: --capability-to-export, --uri"),
        (
            ["--capability-to-export", MEMBRANE_QUERY, "--uri", "https://u.example"],
            "--capability-to-export and --uri are mutually exclusive",
        ),
        (["--method", "GET"], "Missing dependent arguments: --method -> --uri"),
        (
            ["--uri", "https://u.example", "--cap1-hmac-sha512-key-id", "k1"],
            "--cap1-hmac-sha512-key-id -> --cap1-hmac-sha512-key",
        ),
        (
            [
                "--uri",
                "https://u.example",
                "--cap1-hmac-sha512-key",
                "a2V5",
                "--cap1-hmac-sha512-key-id",
                "k1",
                "--aws4-hmac-sha256-region",
                "us-east-1",
            ],
            "are mutually exclusive",
        ),
    ],
)
def test_export_flag_relations_fail_before_network(fake_client, extra, message) -> None:
    rc, out, err = _run(["membrane", "export", "--capability", MEMBRANE_EXPORT, *extra])
    assert rc == 1
    assert out == ""
    assert message in err
    assert fake_client.instances == []


def test_export_rejects_malformed_header(fake_client) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run(
            [
                "membrane",
                "export",
                "--capability",
                MEMBRANE_EXPORT,
                "--uri",
                "https://u.example",
                "--header",
                "no-colon-here",
            ]
        )
    assert exc_info.value.code == 1


def test_service_error_prints_failed_with_json(monkeypatch) -> None:
    class FailingClient(FakeMembraneClient):
        def create(self, capability, request):  # noqa: ANN001
            raise ServiceRequestError(
                "membrane exists", status_code=409, error_code="Conflict", body=None
            )

    monkeypatch.setattr("capi.cli.membrane.MembraneClient", FailingClient)

    rc, out, err = _run(["membrane", "create", "--id", "m1", "--capability", MEMBRANE_CREATE])

    assert rc == 1
    assert out == ""
    lines = err.splitlines()
    assert lines[0] == "FAILED"
    assert lines[1] == "membrane exists"
    payload = json.loads("\n".join(lines[2:]))
    assert payload["statusCode"] == 409
    assert payload["code"] == "Conflict"
