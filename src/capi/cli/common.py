"""Shared argument types, output helpers and capability resolution for capi commands."""

from __future__ import annotations

import argparse
import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Mapping, Sequence

from botocore.exceptions import ClientError
from cryptography import x509

from capi.capability_uri import PREVIEW_LENGTH, is_capability_uri
from capi.cli.store import CredentialStore
from capi.client import ServiceClient
from capi.errors import CapabilityNotFoundError, CapiError

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

_SENSITIVE_FIELDS = (
    "secretAccessKey",
    "SecretAccessKey",
    "secret_access_key",
    "SessionToken",
    "cap1-hmac-sha512-key",
)
_TOKEN_RE = re.compile(r"#(CPBLTY[0-9]+-)([A-Za-z0-9_-]+)")


class FlagRelationError(ValueError):
    """Raised when parsed flags violate a declared conflict or dependency."""


@dataclass(frozen=True)
class FlagRelations:
    conflicts: Mapping[str, Sequence[str]] = field(default_factory=dict)
    implies: Mapping[str, Sequence[str]] = field(default_factory=dict)
    one_of: Sequence[Sequence[str]] = ()

    @staticmethod
    def _flag(dest: str) -> str:
        return "--" + dest.replace("_", "-")

    def check(self, args: argparse.Namespace) -> None:
        def present(dest: str) -> bool:
            return getattr(args, dest, None) is not None

        for dest, others in self.conflicts.items():
            if not present(dest):
                continue
            for other in others:
                if present(other):
                    raise FlagRelationError(
                        f"Arguments {self._flag(dest)} and {self._flag(other)} are mutually exclusive"
                    )
        for dest, required in self.implies.items():
            if not present(dest):
                continue
            missing = [self._flag(other) for other in required if not present(other)]
            if missing:
                raise FlagRelationError(
                    f"Missing dependent arguments: {self._flag(dest)} -> {', '.join(missing)}"
                )
        for group in self.one_of:
            if not any(present(dest) for dest in group):
                raise FlagRelationError(
                    "Need to specify one of: " + ", ".join(self._flag(dest) for dest in group)
                )


def capability_argument(label: str):
    def _parse(value: str) -> str:
        if not is_capability_uri(value):
            raise argparse.ArgumentTypeError(f"Failed parsing {label}")
        return value

    return _parse


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--limit must be greater than 0") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("--limit must be greater than 0")
    return parsed


def base64url_argument(value: str) -> str:
    try:
        base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (binascii.Error, ValueError) as exc:
        raise argparse.ArgumentTypeError("value must be base64url encoded") from exc
    return value


def trusted_ca_file(value: str) -> list[str]:
    path = Path(value).expanduser()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise argparse.ArgumentTypeError(f"invalid trusted CA file: {path}") from exc

    certificates = [payload] if isinstance(payload, str) else payload
    if not isinstance(certificates, list) or not certificates:
        raise argparse.ArgumentTypeError("trusted CA file must hold a PEM string or a list of them")
    for pem in certificates:
        if not isinstance(pem, str):
            raise argparse.ArgumentTypeError("trusted CA entries must be PEM strings")
        try:
            x509.load_pem_x509_certificate(pem.encode("utf-8"))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid certificate in trusted CA file: {path}") from exc
    return certificates


def add_service_options(parser: argparse.ArgumentParser, *, service: str) -> None:
    group = parser.add_argument_group(f"{service} options")
    group.add_argument(
        "--capability",
        type=capability_argument("capability"),
        default=None,
        help="Capability to use.",
    )
    group.add_argument("--profile", default="default", help="Capability profile to use.")
    group.add_argument(
        "--trustedCA-file-path",
        dest="trusted_ca",
        type=trusted_ca_file,
        default=None,
        help="File path to trusted Certificate Authorities in JSON format",
    )


def resolve_capability(args: argparse.Namespace, *, service: str, name: str, store: CredentialStore) -> str:
    if getattr(args, "capability", None):
        return args.capability
    saved = store.capability(args.profile, service, name)
    if saved:
        return saved
    raise CapabilityNotFoundError(service=service, name=name, profile=args.profile)


def build_client(client_cls: type[ServiceClient], args: argparse.Namespace) -> ServiceClient:
    return client_cls(
        trusted_ca=getattr(args, "trusted_ca", None),
        reject_unauthorized=not getattr(args, "tls_self_signed", False),
    )


def _json_default(value: object) -> object:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def to_json(value: object) -> str:
    return json.dumps(value, indent=2, default=_json_default)


def sanitize_error_text(value: str) -> str:
    redacted = _TOKEN_RE.sub(lambda m: f"#(...{(m.group(1) + m.group(2))[-PREVIEW_LENGTH:]})", value)
    for name in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf'("?{re.escape(name)}"?\s*[=:]\s*"?)([^",\s]+)',
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def error_payload(exc: BaseException) -> object:
    if isinstance(exc, CapiError):
        return exc.to_dict()
    if isinstance(exc, ClientError):
        return exc.response
    return {"name": type(exc).__name__, "message": str(exc)}


def print_result(stdout, result: object) -> int:
    print(to_json(result), file=stdout)
    return EXIT_SUCCESS


def print_failure(stderr, exc: BaseException) -> int:
    print("FAILED", file=stderr)
    print(sanitize_error_text(str(exc)), file=stderr)
    print(sanitize_error_text(to_json(error_payload(exc))), file=stderr)
    return EXIT_FAILURE


def print_error_json(stderr, exc: BaseException) -> None:
    print(sanitize_error_text(to_json(error_payload(exc))), file=stderr)
