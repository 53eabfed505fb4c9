from __future__ import annotations

import stat

import pytest

from capi.cli.config import ConfigError, load_cli_config, validate_region
from capi.cli.store import CredentialStore, YamlProfileFile, open_store
from conftest import MEMBRANE_CREATE, MEMBRANE_EXPORT


def test_capi_home_env_var_selects_directory(capi_home) -> None:
    config = load_cli_config()
    assert config.directory == capi_home
    assert config.config_path == capi_home / "config"
    assert config.credentials_path == capi_home / "credentials"


def test_open_store_creates_private_directory(capi_home) -> None:
    open_store(load_cli_config())
    assert capi_home.is_dir()
    assert stat.S_IMODE(capi_home.stat().st_mode) == 0o700


def test_missing_and_corrupt_files_load_as_none(tmp_path) -> None:
    assert YamlProfileFile(tmp_path / "missing").load() is None

    corrupt = tmp_path / "corrupt"
    corrupt.write_text("profile: [unclosed\n", encoding="utf-8")
    assert YamlProfileFile(corrupt).load() is None

    undecodable = tmp_path / "undecodable"
    undecodable.write_bytes(b"profile: default\nmembrane: \xff\xfe\n")
    assert YamlProfileFile(undecodable).load() is None


def test_configure_round_trips_through_yaml_files(capi_home) -> None:
    store = open_store(load_cli_config())
    store.configure(
        profile="default",
        service="membrane",
        settings={"region": "amzn-us-east-1"},
        capabilities={"create": MEMBRANE_CREATE, "export": None},
    )
    store.configure(
        profile="work",
        service="membrane",
        settings={"region": "amzn-us-east-1"},
        capabilities={"export": MEMBRANE_EXPORT},
    )

    reopened = open_store(load_cli_config())
    assert reopened.capability("default", "membrane", "create") == MEMBRANE_CREATE
    assert reopened.capability("default", "membrane", "export") is None
    assert reopened.capability("work", "membrane", "export") == MEMBRANE_EXPORT
    assert reopened.setting("work", "membrane", "region") == "amzn-us-east-1"
    assert reopened.profiles() == ["default", "work"]

    credentials = capi_home / "credentials"
    assert stat.S_IMODE(credentials.stat().st_mode) == 0o600
    raw = credentials.read_text(encoding="utf-8")
    assert raw.count("profile:") == 2
    assert "---" in raw


def test_configure_keeps_previous_capabilities_when_blank() -> None:
    store = CredentialStore.in_memory(
        credentials={
            "default": {
                "profile": "default",
                "membrane": {"capabilities": {"create": MEMBRANE_CREATE}},
            }
        }
    )
    store.configure(
        profile="default",
        service="membrane",
        settings={"region": "amzn-us-east-1"},
        capabilities={"create": None, "export": MEMBRANE_EXPORT},
    )
    assert store.capability("default", "membrane", "create") == MEMBRANE_CREATE
    assert store.capability("default", "membrane", "export") == MEMBRANE_EXPORT
    assert store.secret_preview("default", "membrane", "query") == "(none)"


def test_configure_rejects_unknown_capability_names() -> None:
    store = CredentialStore.in_memory()
    with pytest.raises(ConfigError):
        store.configure(
            profile="default",
            service="membrane",
            settings={},
            capabilities={"createDomain": MEMBRANE_CREATE},
        )
    assert store.credentials.saves == 0


def test_validate_region() -> None:
    assert validate_region(" amzn-us-east-1 ") == "amzn-us-east-1"
    with pytest.raises(ConfigError, match="Region must be one of: amzn-us-east-1"):
        validate_region("us-east-1")
