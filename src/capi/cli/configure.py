"""`capi config` and `capi profiles` commands."""

from __future__ import annotations

import argparse
from typing import Callable

import questionary

from capi.capability_uri import is_capability_uri, secret_preview
from capi.cli.common import EXIT_FAILURE, EXIT_SUCCESS, print_result
from capi.cli.config import (
    DEFAULT_REGION,
    SERVICE_CAPABILITIES,
    SERVICES,
    ConfigError,
    validate_region,
)
from capi.cli.store import CredentialStore


class PromptAborted(RuntimeError):
    """Raised when the user interrupts an interactive prompt."""


def prompt_text(
    message: str,
    *,
    default: str = "",
    validate: Callable[[str], bool | str] | None = None,
) -> str:
    answer = questionary.text(message, default=default, validate=validate).ask()
    if answer is None:
        raise PromptAborted("configuration aborted")
    return answer.strip()


def _region_validator(value: str) -> bool | str:
    try:
        validate_region(value)
    except ConfigError as exc:
        return str(exc)
    return True


def _capability_validator(service: str, name: str) -> Callable[[str], bool | str]:
    def _validate(value: str) -> bool | str:
        if not value.strip() or is_capability_uri(value.strip()):
            return True
        return f'Please enter your "{name}" capability for {service} service or skip by pressing enter'

    return _validate


def run_configure(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    saved_region = store.setting(args.profile, args.service, "region")
    try:
        region = prompt_text(
            "default region name:",
            default=str(saved_region or DEFAULT_REGION),
            validate=_region_validator,
        )
        capabilities: dict[str, str | None] = {}
        for name in SERVICE_CAPABILITIES[args.service]:
            preview = store.secret_preview(args.profile, args.service, name)
            capabilities[name] = (
                prompt_text(
                    f"{name} capability: {preview}",
                    validate=_capability_validator(args.service, name),
                )
                or None
            )
    except PromptAborted as exc:
        print(str(exc), file=stderr)
        return EXIT_FAILURE

    store.configure(
        profile=args.profile,
        service=args.service,
        settings={"region": validate_region(region)},
        capabilities=capabilities,
    )
    return EXIT_SUCCESS


def _capability_previews(section: dict) -> dict[str, str]:
    saved = section.get("capabilities") if isinstance(section, dict) else None
    if not isinstance(saved, dict):
        return {}
    return {name: secret_preview(value) for name, value in saved.items()}


def describe_profile(store: CredentialStore, profile: str, service: str | None = None) -> dict:
    """Merge one profile's settings with masked previews of its capabilities."""
    output: dict = {"profile": profile}
    saved_config = (store.load_config() or {}).get(profile) or {}
    saved_credentials = (store.load_credentials() or {}).get(profile) or {}

    services = [service] if service else [
        key for key in {**saved_config, **saved_credentials} if key != "profile"
    ]
    for name in services:
        section = saved_config.get(name)
        if isinstance(section, dict):
            output[name] = dict(section)
        if name in saved_credentials:
            output.setdefault(name, {})["capabilities"] = _capability_previews(
                saved_credentials[name]
            )
    return output


def run_list(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    return print_result(stdout, describe_profile(store, args.profile, args.service))


def run_profiles(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    for profile in store.profiles():
        print(profile, file=stdout)
    return EXIT_SUCCESS


def add_parser(sub) -> None:
    config = sub.add_parser("config", help="Capability CLI (capi) configuration.")
    config_sub = config.add_subparsers(dest="config_command", required=True)

    configure = config_sub.add_parser("configure", help="Configure Capability CLI (capi) service.")
    configure.add_argument(
        "--service",
        required=True,
        choices=SERVICES,
        help="Capability service to configure.",
    )
    configure.add_argument("--profile", default="default", help="Capability profile to use.")
    configure.set_defaults(handler=run_configure)

    listing = config_sub.add_parser("list", help="List configuration.")
    listing.add_argument(
        "--service",
        default=None,
        choices=SERVICES,
        help="Capability service to list configuration for.",
    )
    listing.add_argument("--profile", default="default", help="Capability profile to use.")
    listing.set_defaults(handler=run_list)

    profiles = sub.add_parser("profiles", help="List profiles.")
    profiles.set_defaults(handler=run_profiles)

