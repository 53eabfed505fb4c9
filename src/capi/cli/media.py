"""`capi media` commands."""

from __future__ import annotations

import argparse

from capi.cli.common import (
    FlagRelations,
    add_service_options,
    build_client,
    positive_int,
    print_failure,
    print_result,
    resolve_capability,
)
from capi.cli.store import CredentialStore
from capi.client import MediaClient
from capi.errors import CapiError
from capi.schemas import (
    CreateEmailDomainIdentityRequest,
    CreateEmailRequest,
    DomainQuery,
    EmailBody,
    EmailContent,
    EmailMessage,
    GetEmailCustomIdRequest,
    SendEmailRequest,
)

SERVICE = "media"

SEND_EMAIL_RELATIONS = FlagRelations(
    implies={
        "body_html_charset": ("body_html_data",),
        "body_text_charset": ("body_text_data",),
    },
    one_of=(("body_html_data", "body_text_data"),),
)


def add_parser(sub) -> None:
    media = sub.add_parser("media", help="Media Service operations.")
    media_sub = media.add_subparsers(dest="media_command", required=True)

    def leaf(name: str, help_text: str, **kwargs) -> argparse.ArgumentParser:
        parser = media_sub.add_parser(name, help=help_text, **kwargs)
        add_service_options(parser, service=SERVICE)
        return parser

    create_email = leaf("create-email", "Create email.", aliases=["createemail"])
    create_email.add_argument(
        "--custom-id",
        "--customId",
        dest="custom_id",
        required=True,
        help="Unique identifier for the email address that is not derived from the email.",
    )
    create_email.add_argument(
        "--derived-id",
        "--derivedId",
        dest="derived_id",
        required=True,
        help="Unique identifier for the email address that is derived from the email address.",
    )
    create_email.add_argument("--email", required=True, help="Email address.")
    create_email.set_defaults(handler=run_create_email)

    create_identity = leaf("create-email-domain-identity", "Create EmailDomainIdentity.")
    create_identity.add_argument("--domain", required=True, help="Email domain to send emails from.")
    create_identity.set_defaults(handler=run_create_email_domain_identity)

    delete_email = leaf("delete-email", "Delete email.")
    delete_email.set_defaults(handler=run_delete_email)

    custom_id = leaf("get-email-custom-id", "Get email customId.", aliases=["getemailcustomid"])
    custom_id.add_argument(
        "--derived-id",
        "--derivedId",
        dest="derived_id",
        required=True,
        help="Unique identifier for the email address that is derived from the email address.",
    )
    custom_id.set_defaults(handler=run_get_email_custom_id)

    verification = leaf(
        "get-verification-status",
        "Get verification status.",
        aliases=["getverificationstatus"],
    )
    verification.set_defaults(handler=run_get_verification_status)

    query = leaf(
        "query-email-domain-identities",
        "Query EmailDomainIdentities.",
        aliases=["queryemaildomainidentities"],
    )
    query.add_argument("--domain", default=None, help="Domain to query for.")
    query.add_argument("--last-domain", default=None, help="Last domain from previous query.")
    query.add_argument("--limit", type=positive_int, default=None, help="Limit number of results.")
    query.set_defaults(handler=run_query_email_domain_identities)

    send = leaf("send-email", "Send email.")
    send.add_argument("--body-html-charset", default=None, help="The character set of the HTML content.")
    send.add_argument(
        "--body-html-data",
        default=None,
        help="The actual content of the message, in HTML format.",
    )
    send.add_argument("--body-text-charset", default=None, help="The character set of the text content.")
    send.add_argument(
        "--body-text-data",
        default=None,
        help="The actual content of the message, in text format.",
    )
    send.add_argument("--subject-charset", default=None, help="The character set of the subject.")
    send.add_argument("--subject-data", required=True, help="The actual content of the subject.")
    send.add_argument(
        "--reply-to-addresses",
        nargs="+",
        default=None,
        help="The reply-to email address(es) for the message.",
    )
    send.add_argument(
        "--return-path",
        default=None,
        help="The email address that bounces and complaints will be forwarded to.",
    )
    send.add_argument("--source", required=True, help="The email address that is sending the email.")
    send.set_defaults(handler=run_send_email, flag_relations=SEND_EMAIL_RELATIONS)


def build_send_email_request(args: argparse.Namespace) -> SendEmailRequest:
    html = (
        EmailContent(data=args.body_html_data, charset=args.body_html_charset)
        if args.body_html_data is not None
        else None
    )
    text = (
        EmailContent(data=args.body_text_data, charset=args.body_text_charset)
        if args.body_text_data is not None
        else None
    )
    return SendEmailRequest(
        message=EmailMessage(
            body=EmailBody(html=html, text=text),
            subject=EmailContent(data=args.subject_data, charset=args.subject_charset),
        ),
        source=args.source,
        reply_to_addresses=args.reply_to_addresses,
        return_path=args.return_path,
    )


def _call(stdout, stderr, operation, *call_args) -> int:
    try:
        response = operation(*call_args)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)


def run_create_email(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="createEmail", store=store)
    request = CreateEmailRequest(custom_id=args.custom_id, derived_id=args.derived_id, email=args.email)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.create_email, capability, request)


def run_create_email_domain_identity(
    args: argparse.Namespace, *, store: CredentialStore, stdout, stderr
) -> int:
    capability = resolve_capability(
        args, service=SERVICE, name="createEmailDomainIdentity", store=store
    )
    request = CreateEmailDomainIdentityRequest(domain=args.domain)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.create_email_domain_identity, capability, request)


def run_delete_email(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="deleteEmail", store=store)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.delete_email, capability)


def run_get_email_custom_id(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="getEmailCustomId", store=store)
    request = GetEmailCustomIdRequest(derived_id=args.derived_id)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.get_email_custom_id, capability, request)


def run_get_verification_status(
    args: argparse.Namespace, *, store: CredentialStore, stdout, stderr
) -> int:
    capability = resolve_capability(args, service=SERVICE, name="getVerificationStatus", store=store)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.get_verification_status, capability)


def run_query_email_domain_identities(
    args: argparse.Namespace, *, store: CredentialStore, stdout, stderr
) -> int:
    capability = resolve_capability(
        args, service=SERVICE, name="queryEmailDomainIdentities", store=store
    )
    query = DomainQuery(domain=args.domain, last_domain=args.last_domain, limit=args.limit)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.query_email_domain_identities, capability, query)


def run_send_email(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="sendEmail", store=store)
    request = build_send_email_request(args)
    client = build_client(MediaClient, args)
    return _call(stdout, stderr, client.send_email, capability, request)
