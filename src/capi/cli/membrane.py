"""`capi membrane` commands."""

from __future__ import annotations

import argparse

from capi.cli.common import (
    FlagRelations,
    add_service_options,
    base64url_argument,
    build_client,
    capability_argument,
    positive_int,
    print_failure,
    print_result,
    resolve_capability,
)
from capi.cli.store import CredentialStore
from capi.client import MembraneClient
from capi.errors import CapiError
from capi.schemas import (
    Aws4HmacSha256,
    Cap1HmacSha512,
    CreateMembraneRequest,
    ExportRequest,
    ExportTls,
    HmacConfig,
    MembraneQuery,
)

SERVICE = "membrane"

CAP1_FLAGS = ("cap1_hmac_sha512_key", "cap1_hmac_sha512_key_id")
AWS4_FLAGS = (
    "aws4_hmac_sha256_aws_access_key_id",
    "aws4_hmac_sha256_region",
    "aws4_hmac_sha256_service",
    "aws4_hmac_sha256_secret_access_key",
)
UPSTREAM_FLAGS = (
    "allow_query",
    "header",
    "method",
    "timeout_ms",
    "tls_ca",
    "tls_cert",
    "tls_key",
    "tls_reject_unauthorized",
    *CAP1_FLAGS,
    *AWS4_FLAGS,
)


def _requires_uri_and_siblings(flags: tuple[str, ...]) -> dict[str, tuple[str, ...]]:
    return {flag: ("uri", *(other for other in flags if other != flag)) for flag in flags}


EXPORT_RELATIONS = FlagRelations(
    conflicts={
        "capability_to_export": ("uri", *UPSTREAM_FLAGS),
        **{flag: AWS4_FLAGS for flag in CAP1_FLAGS},
    },
    implies={
        **{flag: ("uri",) for flag in UPSTREAM_FLAGS},
        **_requires_uri_and_siblings(CAP1_FLAGS),
        **_requires_uri_and_siblings(AWS4_FLAGS),
    },
    one_of=(("capability_to_export", "uri"),),
)


def header_argument(value: str) -> tuple[str, str]:
    parts = [part.strip() for part in value.split(":")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f'Failed parsing header "{value}"')
    if not parts[0]:
        raise argparse.ArgumentTypeError(f'Header name must have non-zero length "{value}"')
    return parts[0], parts[1]


def add_parser(sub) -> None:
    membrane = sub.add_parser("membrane", help="Membrane Service operations.")
    membrane_sub = membrane.add_subparsers(dest="membrane_command", required=True)

    def leaf(name: str, help_text: str) -> argparse.ArgumentParser:
        parser = membrane_sub.add_parser(name, help=help_text)
        add_service_options(parser, service=SERVICE)
        parser.add_argument(
            "--tls-self-signed",
            action="store_true",
            help="Do not check Membrane Service TLS certificate validity",
        )
        return parser

    create = leaf("create", "Create membrane.")
    create.add_argument("--id", required=True, help="Membrane id.")
    create.set_defaults(handler=run_create)

    query = leaf("query", "Query membranes.")
    query.add_argument("--id", default=None, help="Membrane id to query for.")
    query.add_argument("--last-id", default=None, help="Id of the last membrane from previous query.")
    query.add_argument("--limit", type=positive_int, default=None, help="Limit number of results.")
    query.set_defaults(handler=run_query)

    export = leaf("export", "Export capability through membrane.")
    export.add_argument(
        "--capability-to-export",
        type=capability_argument("capability-to-export"),
        default=None,
        help="Existing capability to re-export through the membrane.",
    )
    export.add_argument("--uri", default=None, help="Fully qualified URI.")
    export.add_argument(
        "--allow-query",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Append requester's URI query string to requests.",
    )
    export.add_argument(
        "--header",
        type=header_argument,
        action="append",
        default=None,
        help='Header to include in requests. (ex: --header "X-My: Header")',
    )
    export.add_argument("--method", default=None, help="HTTP method to use in requests.")
    export.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Timeout in milliseconds to end idle connections.",
    )
    export.add_argument("--tls-ca", default=None, help="Override default trusted CA to provided CA.")
    export.add_argument(
        "--tls-cert",
        default=None,
        help="Client-side certificate to use when membrane makes a request.",
    )
    export.add_argument(
        "--tls-key",
        default=None,
        help="Client-side certificate private key to use when membrane makes a request.",
    )
    export.add_argument(
        "--tls-reject-unauthorized",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Whether membrane verifies the upstream server against the supplied CAs.",
    )
    hmac = export.add_argument_group("hmac signing")
    hmac.add_argument(
        "--cap1-hmac-sha512-key",
        type=base64url_argument,
        default=None,
        help="Base64url encoded secret key bytes for CAP1-HMAC-SHA512 signature.",
    )
    hmac.add_argument(
        "--cap1-hmac-sha512-key-id",
        default=None,
        help="Secret key id for CAP1-HMAC-SHA512 signature.",
    )
    hmac.add_argument(
        "--aws4-hmac-sha256-aws-access-key-id",
        default=None,
        help="AWS Access Key Id for AWS4-HMAC-SHA256 signature.",
    )
    hmac.add_argument(
        "--aws4-hmac-sha256-region",
        default=None,
        help="AWS region for AWS4-HMAC-SHA256 signature.",
    )
    hmac.add_argument(
        "--aws4-hmac-sha256-service",
        default=None,
        help="AWS service for AWS4-HMAC-SHA256 signature.",
    )
    hmac.add_argument(
        "--aws4-hmac-sha256-secret-access-key",
        default=None,
        help="AWS Secret Access Key for AWS4-HMAC-SHA256 signature.",
    )
    export.set_defaults(handler=run_export, flag_relations=EXPORT_RELATIONS)


def build_export_request(args: argparse.Namespace) -> ExportRequest:
    hmac: HmacConfig | None = None
    if args.cap1_hmac_sha512_key_id is not None:
        hmac = HmacConfig(
            cap1_hmac_sha512=Cap1HmacSha512(
                key=args.cap1_hmac_sha512_key,
                key_id=args.cap1_hmac_sha512_key_id,
            )
        )
    elif args.aws4_hmac_sha256_aws_access_key_id is not None:
        hmac = HmacConfig(
            aws4_hmac_sha256=Aws4HmacSha256(
                aws_access_key_id=args.aws4_hmac_sha256_aws_access_key_id,
                region=args.aws4_hmac_sha256_region,
                service=args.aws4_hmac_sha256_service,
                secret_access_key=args.aws4_hmac_sha256_secret_access_key,
            )
        )
    return ExportRequest(
        capability=args.capability_to_export,
        uri=args.uri,
        allow_query=args.allow_query,
        headers=dict(args.header) if args.header else None,
        method=args.method,
        timeout_ms=args.timeout_ms,
        hmac=hmac,
        tls=ExportTls(
            ca=args.tls_ca,
            cert=args.tls_cert,
            key=args.tls_key,
            reject_unauthorized=args.tls_reject_unauthorized,
        ),
    )


def run_create(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="create", store=store)
    request = CreateMembraneRequest(id=args.id)
    client = build_client(MembraneClient, args)
    try:
        response = client.create(capability, request)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)


def run_export(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="export", store=store)
    request = build_export_request(args)
    client = build_client(MembraneClient, args)
    try:
        response = client.export(capability, request)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)


def run_query(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="query", store=store)
    query = MembraneQuery(id=args.id, last_id=args.last_id, limit=args.limit)
    client = build_client(MembraneClient, args)
    try:
        response = client.query(capability, query)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)
