"""Command-line interface for capi."""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import NoReturn, Sequence

from pydantic import ValidationError

from capi.cli import certificate_manager, configure, media, membrane
from capi.cli.common import EXIT_FAILURE, FlagRelationError, print_failure
from capi.cli.config import ConfigError, load_cli_config
from capi.cli.store import open_store
from capi.errors import CapabilityNotFoundError


class CapiArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _cli_version() -> str:
    try:
        return pkg_version("capi")
    except PackageNotFoundError:
        return "0.0.0+local"


def _build_parser() -> CapiArgumentParser:
    parser = CapiArgumentParser(prog="capi", description="Capability CLI")
    parser.add_argument("--version", action="version", version=f"capi {_cli_version()}")

    sub = parser.add_subparsers(dest="command", required=True, parser_class=CapiArgumentParser)
    certificate_manager.add_parser(sub)
    configure.add_parser(sub)
    media.add_parser(sub)
    membrane.add_parser(sub)
    return parser


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    relations = getattr(args, "flag_relations", None)
    if relations is not None:
        try:
            relations.check(args)
        except FlagRelationError as exc:
            parser.print_usage(stderr)
            print(f"{parser.prog}: error: {exc}", file=stderr)
            return EXIT_FAILURE

    try:
        store = open_store(load_cli_config())
    except (ConfigError, OSError) as exc:
        print(f"config error: {exc}", file=stderr)
        return EXIT_FAILURE

    try:
        return args.handler(args, store=store, stdout=stdout, stderr=stderr)
    except (CapabilityNotFoundError, ValidationError) as exc:
        return print_failure(stderr, exc)


if __name__ == "__main__":
    raise SystemExit(main())
