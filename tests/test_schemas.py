from __future__ import annotations

import pytest
from pydantic import ValidationError

from capi.schemas import (
    Aws4HmacSha256,
    Cap1HmacSha512,
    DomainQuery,
    EmailBody,
    EmailContent,
    EmailMessage,
    ExportRequest,
    ExportTls,
    HmacConfig,
    MembraneQuery,
    SendEmailRequest,
)
from conftest import MEMBRANE_QUERY


def test_query_wire_form_drops_unset_fields_and_uses_camel_case() -> None:
    assert MembraneQuery().to_wire() == {}
    assert MembraneQuery(id="m1", last_id="m0", limit=5).to_wire() == {
        "id": "m1",
        "lastId": "m0",
        "limit": 5,
    }
    assert DomainQuery(last_domain="example.com").to_wire() == {"lastDomain": "example.com"}


def test_query_limit_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        MembraneQuery(limit=0)


def test_export_request_for_uri_with_cap1_signature() -> None:
    request = ExportRequest(
        uri="https://upstream.example/path",
        method="POST",
        headers={"X-My": "Header"},
        hmac=HmacConfig(cap1_hmac_sha512=Cap1HmacSha512(key="c2VjcmV0", key_id="k1")),
        tls=ExportTls(),
    )
    assert request.to_wire() == {
        "uri": "https://upstream.example/path",
        "method": "POST",
        "headers": {"X-My": "Header"},
        "hmac": {"cap1-hmac-sha512": {"key": "c2VjcmV0", "keyId": "k1"}},
    }


def test_export_request_keeps_tls_when_any_field_set() -> None:
    request = ExportRequest(uri="https://upstream.example", tls=ExportTls(reject_unauthorized=False))
    assert request.to_wire()["tls"] == {"rejectUnauthorized": False}


def test_export_request_requires_exactly_one_target() -> None:
    with pytest.raises(ValidationError):
        ExportRequest()
    with pytest.raises(ValidationError):
        ExportRequest(capability=MEMBRANE_QUERY, uri="https://upstream.example")


def test_export_timeout_must_be_whole_non_negative_milliseconds() -> None:
    assert ExportRequest(uri="https://upstream.example", timeout_ms=250).to_wire()["timeoutMs"] == 250
    with pytest.raises(ValidationError):
        ExportRequest(uri="https://upstream.example", timeout_ms=1.5)
    with pytest.raises(ValidationError):
        ExportRequest(uri="https://upstream.example", timeout_ms=-1)


def test_hmac_config_rejects_two_schemes() -> None:
    with pytest.raises(ValidationError):
        HmacConfig(
            cap1_hmac_sha512=Cap1HmacSha512(key="a2V5", key_id="k"),
            aws4_hmac_sha256=Aws4HmacSha256(
                aws_access_key_id="AKIA",
                region="us-east-1",
                service="lambda",
                secret_access_key="secret",
            ),
        )


def test_send_email_requires_a_body_part() -> None:
    with pytest.raises(ValidationError, match="body-html-data, body-text-data"):
        EmailBody()
    with pytest.raises(ValidationError):
        EmailContent(data="")


def test_send_email_wire_form() -> None:
    request = SendEmailRequest(
        message=EmailMessage(
            body=EmailBody(text=EmailContent(data="hello", charset="UTF-8")),
            subject=EmailContent(data="hi"),
        ),
        source="noreply@example.com",
        reply_to_addresses=["a@example.com", "b@example.com"],
    )
    assert request.to_wire() == {
        "message": {
            "body": {"text": {"data": "hello", "charset": "UTF-8"}},
            "subject": {"data": "hi"},
        },
        "source": "noreply@example.com",
        "replyToAddresses": ["a@example.com", "b@example.com"],
    }
