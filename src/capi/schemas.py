"""Request bodies for capability services.

Optional fields left unset are dropped from the wire form, so every model is
serialized through ``to_wire()`` rather than ``model_dump()`` directly.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# Membrane


class CreateMembraneRequest(WireModel):
    id: str = Field(..., min_length=1)


class MembraneQuery(WireModel):
    id: Optional[str] = None
    last_id: Optional[str] = Field(default=None, alias="lastId")
    limit: Optional[int] = Field(default=None, gt=0)


class Cap1HmacSha512(WireModel):
    key: str
    key_id: str = Field(..., alias="keyId")


class Aws4HmacSha256(WireModel):
    aws_access_key_id: str = Field(..., alias="awsAccessKeyId")
    region: str
    service: str
    secret_access_key: str = Field(..., alias="secretAccessKey")


class HmacConfig(WireModel):
    cap1_hmac_sha512: Optional[Cap1HmacSha512] = Field(default=None, alias="cap1-hmac-sha512")
    aws4_hmac_sha256: Optional[Aws4HmacSha256] = Field(default=None, alias="aws4-hmac-sha256")

    @model_validator(mode="after")
    def _single_scheme(self) -> "HmacConfig":
        if self.cap1_hmac_sha512 is not None and self.aws4_hmac_sha256 is not None:
            raise ValueError("only one hmac scheme may be configured")
        return self


class ExportTls(WireModel):
    ca: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None
    reject_unauthorized: Optional[bool] = Field(default=None, alias="rejectUnauthorized")

    def is_empty(self) -> bool:
        return not any(
            value is not None for value in (self.ca, self.cert, self.key, self.reject_unauthorized)
        )


class ExportRequest(WireModel):
    capability: Optional[str] = None
    uri: Optional[str] = None
    allow_query: Optional[bool] = Field(default=None, alias="allowQuery")
    headers: Optional[Dict[str, str]] = None
    method: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs", ge=0)
    hmac: Optional[HmacConfig] = None
    tls: Optional[ExportTls] = None

    @model_validator(mode="after")
    def _target(self) -> "ExportRequest":
        if self.capability is None and self.uri is None:
            raise ValueError("one of capability or uri is required")
        if self.capability is not None and self.uri is not None:
            raise ValueError("capability and uri are mutually exclusive")
        if self.tls is not None and self.tls.is_empty():
            self.tls = None
        return self


# Certificate Manager


class DomainCapabilities(WireModel):
    receive_certificate: str = Field(..., alias="receiveCertificate")
    update_challenge: str = Field(..., alias="updateChallenge")


class DomainSubject(WireModel):
    country: str
    state_province: str = Field(..., alias="stateProvince")
    locality: str
    organization: str
    organizational_unit: Optional[str] = Field(default=None, alias="organizationalUnit")


class CreateDomainRequest(WireModel):
    domain: str
    capabilities: DomainCapabilities
    subject: DomainSubject


class DomainQuery(WireModel):
    domain: Optional[str] = None
    last_domain: Optional[str] = Field(default=None, alias="lastDomain")
    limit: Optional[int] = Field(default=None, gt=0)


# Media


class CreateEmailRequest(WireModel):
    custom_id: str = Field(..., alias="customId")
    derived_id: str = Field(..., alias="derivedId")
    email: str


class CreateEmailDomainIdentityRequest(WireModel):
    domain: str


class GetEmailCustomIdRequest(WireModel):
    derived_id: str = Field(..., alias="derivedId")


class EmailContent(WireModel):
    data: str = Field(..., min_length=1)
    charset: Optional[str] = None


class EmailBody(WireModel):
    html: Optional[EmailContent] = None
    text: Optional[EmailContent] = None

    @model_validator(mode="after")
    def _has_part(self) -> "EmailBody":
        if self.html is None and self.text is None:
            raise ValueError("Need to specify one of: body-html-data, body-text-data")
        return self


class EmailMessage(WireModel):
    body: EmailBody
    subject: EmailContent


class SendEmailRequest(WireModel):
    message: EmailMessage
    source: str
    reply_to_addresses: Optional[List[str]] = Field(default=None, alias="replyToAddresses")
    return_path: Optional[str] = Field(default=None, alias="returnPath")
