"""Configuration constants and settings for the capi CLI."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

CAPI_HOME_ENV_VAR = "CAPI_HOME"
DEFAULT_PROFILE = "default"

SERVICES: tuple[str, ...] = ("certificate-manager", "media", "membrane")
REGIONS: tuple[str, ...] = ("amzn-us-east-1",)
DEFAULT_REGION = "amzn-us-east-1"

CONFIG_PROPERTIES: tuple[str, ...] = ("region",)
CONFIG_PATTERNS = {
    "region": re.compile(rf"^\s*({'|'.join(re.escape(r) for r in REGIONS)})\s*$"),
}

SERVICE_CAPABILITIES: dict[str, tuple[str, ...]] = {
    "certificate-manager": ("createDomain", "deleteDomain", "deleteSelf", "queryDomains"),
    "media": (
        "createEmail",
        "createEmailDomainIdentity",
        "deleteEmail",
        "getEmailCustomId",
        "getVerificationStatus",
        "queryEmailDomainIdentities",
        "sendEmail",
    ),
    "membrane": ("create", "deleteSelf", "export", "query"),
}


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


@dataclass(frozen=True)
class CLIConfig:
    directory: Path
    config_path: Path
    credentials_path: Path


def default_capability_dir() -> Path:
    override = os.getenv(CAPI_HOME_ENV_VAR)
    if override and override.strip():
        return Path(override.strip()).expanduser()
    return Path.home() / ".capability"


def load_cli_config(directory: str | Path | None = None) -> CLIConfig:
    root = Path(directory) if directory else default_capability_dir()
    if root.exists() and not root.is_dir():
        raise ConfigError(f"capability directory is not a directory: {root}")
    return CLIConfig(
        directory=root,
        config_path=root / "config",
        credentials_path=root / "credentials",
    )


def ensure_capability_dir(config: CLIConfig) -> Path:
    if not config.directory.exists():
        config.directory.mkdir(parents=True, mode=0o700)
    return config.directory


def validate_region(value: str) -> str:
    match = CONFIG_PATTERNS["region"].match(value)
    if match is None:
        raise ConfigError(f"Region must be one of: {','.join(REGIONS)}")
    return match.group(1)


def validate_capability_name(service: str, name: str) -> str:
    known = SERVICE_CAPABILITIES.get(service)
    if known is None:
        raise ConfigError(f"unknown service: {service}")
    if name not in known:
        raise ConfigError(f'unknown {service} capability "{name}"')
    return name
