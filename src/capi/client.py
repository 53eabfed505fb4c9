"""Clients for the capability services (membrane, certificate-manager, media)."""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from capi.capability_uri import parse_capability_uri
from capi.errors import ServiceRequestError, ServiceUnavailableError
from capi.schemas import (
    CreateDomainRequest,
    CreateEmailDomainIdentityRequest,
    CreateEmailRequest,
    CreateMembraneRequest,
    DomainQuery,
    ExportRequest,
    GetEmailCustomIdRequest,
    MembraneQuery,
    SendEmailRequest,
)

USER_AGENT = "capi"


class _TrustedCAAdapter(HTTPAdapter):
    def __init__(self, ssl_context: ssl.SSLContext, **kwargs) -> None:
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def cert_verify(self, conn, url, verify, cert):
        super().cert_verify(conn, url, verify, cert)
        # Only the configured CAs are trusted, not the default bundle.
        conn.ca_certs = None
        conn.ca_cert_dir = None


@dataclass
class ServiceClient:
    trusted_ca: Sequence[str] | None = None
    reject_unauthorized: bool = True
    timeout: float = 30.0

    def __post_init__(self) -> None:
        # Remote operations are not idempotent; never retry.
        retry = Retry(total=0, connect=0, read=0, status=0, raise_on_status=False)
        if self.trusted_ca:
            context = ssl.create_default_context(cadata="\n".join(self.trusted_ca))
            adapter: HTTPAdapter = _TrustedCAAdapter(context, max_retries=retry)
        else:
            adapter = HTTPAdapter(max_retries=retry)
        self._session = requests.Session()
        self._session.mount("https://", adapter)
        self._session.headers["User-Agent"] = USER_AGENT

    def _request(self, capability: str, *, json_payload: dict | None = None) -> object | None:
        capability_uri = parse_capability_uri(capability)
        headers = {
            "Authorization": f"Bearer {capability_uri.capability_token.serialize()}",
        }
        try:
            response = self._session.request(
                "POST",
                capability_uri.base_url,
                json=json_payload,
                headers=headers,
                timeout=self.timeout,
                verify=self.reject_unauthorized,
            )
        except requests.RequestException as exc:
            raise ServiceUnavailableError(str(exc)) from exc

        if response.status_code >= 400:
            body: object | None = None
            try:
                body = response.json()
            except ValueError:
                body = response.text or None
            message: str | None = None
            error_code: str | None = None
            if isinstance(body, dict):
                raw_message = body.get("message")
                message = raw_message if isinstance(raw_message, str) else None
                raw_code = body.get("error") or body.get("code")
                error_code = raw_code if isinstance(raw_code, str) else None
            raise ServiceRequestError(
                message or f"service request failed: {response.status_code}",
                status_code=response.status_code,
                error_code=error_code,
                body=body,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceUnavailableError(
                f"service returned non-JSON response: {response.status_code}"
            ) from exc


class MembraneClient(ServiceClient):
    def create(self, capability: str, request: CreateMembraneRequest) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def export(self, capability: str, request: ExportRequest) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def query(self, capability: str, query: MembraneQuery) -> object | None:
        return self._request(capability, json_payload=query.to_wire())


class CertificateManagerClient(ServiceClient):
    def create_domain(self, capability: str, request: CreateDomainRequest) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def delete_domain(self, capability: str) -> object | None:
        return self._request(capability)

    def delete_self(self, capability: str) -> object | None:
        return self._request(capability)

    def query_domains(self, capability: str, query: DomainQuery) -> object | None:
        return self._request(capability, json_payload=query.to_wire())


class MediaClient(ServiceClient):
    def create_email(self, capability: str, request: CreateEmailRequest) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def create_email_domain_identity(
        self, capability: str, request: CreateEmailDomainIdentityRequest
    ) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def delete_email(self, capability: str) -> object | None:
        return self._request(capability)

    def get_email_custom_id(
        self, capability: str, request: GetEmailCustomIdRequest
    ) -> object | None:
        return self._request(capability, json_payload=request.to_wire())

    def get_verification_status(self, capability: str) -> object | None:
        return self._request(capability)

    def query_email_domain_identities(self, capability: str, query: DomainQuery) -> object | None:
        return self._request(capability, json_payload=query.to_wire())

    def send_email(self, capability: str, request: SendEmailRequest) -> object | None:
        return self._request(capability, json_payload=request.to_wire())


__all__ = [
    "ServiceClient",
    "MembraneClient",
    "CertificateManagerClient",
    "MediaClient",
]
