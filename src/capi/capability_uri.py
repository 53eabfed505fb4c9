"""Capability URI parsing and masking."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass

from capi.errors import CapabilityURIError

SCHEME = "cpblty"
PREVIEW_LENGTH = 5

_URI_RE = re.compile(
    r"^cpblty://(?P<authority>[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?(?::[0-9]{1,5})?)"
    r"/#(?P<version>CPBLTY[0-9]+)-(?P<token>[A-Za-z0-9_-]+)$"
)


@dataclass(frozen=True)
class CapabilityToken:
    version: str
    token: str

    def serialize(self) -> str:
        return f"{self.version}-{self.token}"


@dataclass(frozen=True)
class CapabilityURI:
    authority: str
    capability_token: CapabilityToken

    @property
    def base_url(self) -> str:
        return f"https://{self.authority}/"

    def serialize(self) -> str:
        return f"{SCHEME}://{self.authority}/#{self.capability_token.serialize()}"

    def __str__(self) -> str:
        return self.serialize()


def parse_capability_uri(value: str) -> CapabilityURI:
    if not isinstance(value, str):
        raise CapabilityURIError("capability must be a string")
    match = _URI_RE.match(value.strip())
    if match is None:
        raise CapabilityURIError("Failed parsing capability")

    token = match.group("token")
    try:
        base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    except ValueError as exc:
        raise CapabilityURIError("capability token must be base64url") from exc

    return CapabilityURI(
        authority=match.group("authority"),
        capability_token=CapabilityToken(version=match.group("version"), token=token),
    )


def is_capability_uri(value: str) -> bool:
    try:
        parse_capability_uri(value)
    except CapabilityURIError:
        return False
    return True


def secret_preview(value: str | None) -> str:
    """Mask a capability down to the tail of its serialized token."""
    if not value:
        return "(none)"
    try:
        capability_uri = parse_capability_uri(value)
    except CapabilityURIError:
        return "(invalid)"
    return f"(...{capability_uri.capability_token.serialize()[-PREVIEW_LENGTH:]})"
