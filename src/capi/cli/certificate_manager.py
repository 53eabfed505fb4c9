"""`capi certificate-manager` commands."""

from __future__ import annotations

import argparse

from capi.cli import aws_integration
from capi.cli.common import (
    EXIT_SUCCESS,
    add_service_options,
    build_client,
    capability_argument,
    positive_int,
    print_failure,
    print_result,
    resolve_capability,
)
from capi.cli.store import CredentialStore
from capi.client import CertificateManagerClient
from capi.errors import CapiError
from capi.schemas import CreateDomainRequest, DomainCapabilities, DomainQuery, DomainSubject

SERVICE = "certificate-manager"


def add_parser(sub) -> None:
    manager = sub.add_parser("certificate-manager", help="Certificate Manager Service operations.")
    manager_sub = manager.add_subparsers(dest="certificate_manager_command", required=True)

    def leaf(name: str, help_text: str, **kwargs) -> argparse.ArgumentParser:
        parser = manager_sub.add_parser(name, help=help_text, **kwargs)
        add_service_options(parser, service=SERVICE)
        return parser

    create_domain = leaf("create-domain", "Create domain.")
    create_domain.add_argument(
        "--country",
        required=True,
        help="The two-letter ISO country code of the country where the organization is located.",
    )
    create_domain.add_argument("--domain", required=True, help="Fully qualified domain name.")
    create_domain.add_argument(
        "--locality",
        required=True,
        help="The location of the organization, usually a city.",
    )
    create_domain.add_argument(
        "--organization",
        required=True,
        help="Usually the legal incorporated name of a company, including suffixes such as Inc.",
    )
    create_domain.add_argument("--organizational-unit", default=None, help="e.g. HR, Finance, IT.")
    create_domain.add_argument(
        "--province",
        "--state",
        dest="province",
        required=True,
        help="The state or province where the organization is located.",
    )
    create_domain.add_argument(
        "--receive-certificate-capability",
        type=capability_argument("receive-certificate-capability"),
        required=True,
        help="Capability the service will use to deliver the created certificate.",
    )
    create_domain.add_argument(
        "--update-challenge-capability",
        type=capability_argument("update-challenge-capability"),
        required=True,
        help="Capability the service will use to publish a domain ownership challenge.",
    )
    create_domain.set_defaults(handler=run_create_domain)

    delete_domain = leaf("delete-domain", "Delete domain.", aliases=["deletedomain"])
    delete_domain.set_defaults(handler=run_delete_domain)

    delete_self = leaf("delete-self", "Delete self.")
    delete_self.set_defaults(handler=run_delete_self)

    query_domains = leaf("query-domains", "Query domains.")
    query_domains.add_argument("--domain", default=None, help="Domain to query for.")
    query_domains.add_argument(
        "--last-domain",
        default=None,
        help="Last domain from previous query.",
    )
    query_domains.add_argument(
        "--limit",
        type=positive_int,
        default=None,
        help="Limit number of results.",
    )
    query_domains.set_defaults(handler=run_query_domains)

    config = manager_sub.add_parser("config", help="Certificate Manager integration configuration.")
    aws_integration.add_parser(config.add_subparsers(dest="config_command", required=True))


def run_create_domain(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="createDomain", store=store)
    request = CreateDomainRequest(
        domain=args.domain,
        capabilities=DomainCapabilities(
            receive_certificate=args.receive_certificate_capability,
            update_challenge=args.update_challenge_capability,
        ),
        subject=DomainSubject(
            country=args.country,
            state_province=args.province,
            locality=args.locality,
            organization=args.organization,
            organizational_unit=args.organizational_unit,
        ),
    )
    client = build_client(CertificateManagerClient, args)
    try:
        response = client.create_domain(capability, request)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)


def run_delete_domain(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="deleteDomain", store=store)
    client = build_client(CertificateManagerClient, args)
    try:
        client.delete_domain(capability)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return EXIT_SUCCESS


def run_delete_self(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="deleteSelf", store=store)
    client = build_client(CertificateManagerClient, args)
    try:
        response = client.delete_self(capability)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)


def run_query_domains(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    capability = resolve_capability(args, service=SERVICE, name="queryDomains", store=store)
    query = DomainQuery(domain=args.domain, last_domain=args.last_domain, limit=args.limit)
    client = build_client(CertificateManagerClient, args)
    try:
        response = client.query_domains(capability, query)
    except CapiError as exc:
        return print_failure(stderr, exc)
    return print_result(stdout, response)
