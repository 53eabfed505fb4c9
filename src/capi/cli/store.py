"""Profile-keyed persistence for capi configuration and credentials.

Both files are YAML multi-document streams with one document per profile; a
document carries its own ``profile`` key. Reads take a shared lock and writes an
exclusive one on a sibling ``.lock`` file, so concurrent invocations never see a
half-written stream. A file that is missing or unreadable loads as ``None``.
"""

from __future__ import annotations

import copy
import fcntl
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Protocol

import yaml

from capi.capability_uri import secret_preview
from capi.cli.config import (
    CLIConfig,
    CONFIG_PROPERTIES,
    ensure_capability_dir,
    validate_capability_name,
)

ProfileDocuments = dict[str, dict]


class ProfileBackend(Protocol):
    def load(self) -> ProfileDocuments | None: ...

    def save(self, documents: Mapping[str, dict]) -> None: ...


@contextmanager
def _locked(path: Path, operation: int) -> Iterator[None]:
    lock_path = path.with_name(path.name + ".lock")
    fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
    try:
        fcntl.flock(fd, operation)
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


class YamlProfileFile:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> ProfileDocuments | None:
        try:
            if not self.path.is_file():
                return None
            with _locked(self.path, fcntl.LOCK_SH):
                raw = self.path.read_text(encoding="utf-8")
            documents: ProfileDocuments = {}
            for doc in yaml.safe_load_all(raw):
                if isinstance(doc, dict) and doc.get("profile"):
                    documents[str(doc["profile"])] = doc
            return documents
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            return None

    def save(self, documents: Mapping[str, dict]) -> None:
        payload = "---\n".join(
            yaml.safe_dump(documents[profile], default_flow_style=False, sort_keys=True)
            for profile in documents
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with _locked(self.path, fcntl.LOCK_EX):
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.chmod(self.path, 0o600)


class InMemoryProfileBackend:
    def __init__(self, documents: Mapping[str, dict] | None = None) -> None:
        self.documents: ProfileDocuments | None = (
            copy.deepcopy(dict(documents)) if documents is not None else None
        )
        self.saves = 0

    def load(self) -> ProfileDocuments | None:
        return copy.deepcopy(self.documents) if self.documents is not None else None

    def save(self, documents: Mapping[str, dict]) -> None:
        self.documents = copy.deepcopy(dict(documents))
        self.saves += 1


@dataclass
class CredentialStore:
    config: ProfileBackend
    credentials: ProfileBackend

    @classmethod
    def from_cli_config(cls, cli_config: CLIConfig) -> "CredentialStore":
        return cls(
            config=YamlProfileFile(cli_config.config_path),
            credentials=YamlProfileFile(cli_config.credentials_path),
        )

    @classmethod
    def in_memory(
        cls,
        *,
        config: Mapping[str, dict] | None = None,
        credentials: Mapping[str, dict] | None = None,
    ) -> "CredentialStore":
        return cls(
            config=InMemoryProfileBackend(config),
            credentials=InMemoryProfileBackend(credentials),
        )

    def load_config(self) -> ProfileDocuments | None:
        return self.config.load()

    def load_credentials(self) -> ProfileDocuments | None:
        return self.credentials.load()

    def setting(self, profile: str, service: str, name: str) -> object | None:
        saved = self.load_config() or {}
        section = (saved.get(profile) or {}).get(service)
        if not isinstance(section, dict):
            return None
        return section.get(name)

    def capability(self, profile: str, service: str, name: str) -> str | None:
        saved = self.load_credentials() or {}
        section = (saved.get(profile) or {}).get(service)
        if not isinstance(section, dict):
            return None
        capabilities = section.get("capabilities")
        if not isinstance(capabilities, dict):
            return None
        value = capabilities.get(name)
        return value if isinstance(value, str) and value else None

    def secret_preview(self, profile: str, service: str, name: str) -> str:
        return secret_preview(self.capability(profile, service, name))

    def profiles(self) -> list[str]:
        names: dict[str, None] = {}
        for documents in (self.load_config() or {}, self.load_credentials() or {}):
            for profile in documents:
                names.setdefault(profile, None)
        return list(names)

    def configure(
        self,
        *,
        profile: str,
        service: str,
        settings: Mapping[str, object],
        capabilities: Mapping[str, str | None],
    ) -> None:
        """Merge one service's settings and capabilities into a profile and save both files."""
        for name in capabilities:
            validate_capability_name(service, name)

        new_config = self.load_config() or {}
        profile_config = new_config.setdefault(profile, {})
        profile_config["profile"] = profile
        service_config = profile_config.setdefault(service, {})
        for prop in CONFIG_PROPERTIES:
            if prop in settings:
                service_config[prop] = settings[prop]

        new_credentials = self.load_credentials() or {}
        profile_credentials = new_credentials.setdefault(profile, {})
        profile_credentials["profile"] = profile
        service_credentials = profile_credentials.setdefault(service, {})
        saved_capabilities = service_credentials.setdefault("capabilities", {})
        for name, value in capabilities.items():
            if value:
                saved_capabilities[name] = value

        self.config.save(new_config)
        self.credentials.save(new_credentials)


def open_store(cli_config: CLIConfig) -> CredentialStore:
    ensure_capability_dir(cli_config)
    return CredentialStore.from_cli_config(cli_config)
