"""Tests for config loading helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mongoreg import config as config_module
from mongoreg.config import AppConfig, DriverConfig, TargetConfig, load_config, save_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.toml")

    result = load_config()

    assert result == AppConfig()
    assert result.driver.name == "motor"


def test_load_config_reads_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
log_level = "debug"

[driver]
name = "memory"
ping = false
default_database = "inventory"
server_selection_timeout_ms = 1500

[[targets]]
name = "shop"
uri = "mongodb://localhost:27017/shop"
collections = ["orders", "customers"]

[[targets]]
name = "crm"
uri = "mongodb://localhost:27017/crm"
collections = { people = "contacts" }

[[targets]]
name = "bare"
uri = "mongodb://localhost:27017/bare"

[[targets]]
name = "missing-uri"
"""
    )

    result = load_config(config_path)

    assert result.log_level == "DEBUG"
    assert result.driver == DriverConfig(
        name="memory",
        ping=False,
        default_database="inventory",
        server_selection_timeout_ms=1500,
    )
    assert [target.name for target in result.targets] == ["shop", "crm", "bare"]
    assert result.target("shop").collections == ["orders", "customers"]
    assert result.target("crm").collections == {"people": "contacts"}
    assert result.target("bare").collections is None


def test_load_config_handles_toml_errors(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("log_level = [unterminated")

    result = load_config(config_path)

    assert result == AppConfig()


def test_target_lookup_errors_on_missing_name() -> None:
    config = AppConfig(targets=[TargetConfig(name="only", uri="mongodb://localhost/only")])

    with pytest.raises(ValueError, match="Target 'unknown' not found"):
        config.target("unknown")


def test_client_options_map_to_motor_keywords() -> None:
    assert DriverConfig().client_options() == {"serverSelectionTimeoutMS": 5000, "appname": "mongoreg"}
    assert DriverConfig(server_selection_timeout_ms=None, app_name=None).client_options() == {}


def test_target_config_validates_collections() -> None:
    with pytest.raises(ValidationError):
        TargetConfig(name="bad", uri="mongodb://localhost/bad", collections=42)


def test_save_config_round_trips(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "nested" / "config.toml"
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)
    config = AppConfig(
        log_level="INFO",
        driver=DriverConfig(name="memory", ping=False),
        targets=[
            TargetConfig(name="shop", uri="mongodb://localhost:27017/shop", collections=["orders"]),
            TargetConfig(name="crm", uri="mongodb://localhost:27017/crm", collections={"people": "contacts"}),
        ],
    )

    save_config(config)

    content = config_path.read_text()
    assert "[[targets]]" in content
    assert 'collections = { "people" = "contacts" }' in content
    assert load_config() == config


def test_with_target_replaces_existing_entry() -> None:
    config = AppConfig(targets=[TargetConfig(name="shop", uri="mongodb://old/shop")])

    updated = config.with_target(TargetConfig(name="shop", uri="mongodb://new/shop"))

    assert [target.uri for target in updated.targets] == ["mongodb://new/shop"]
    assert config.targets[0].uri == "mongodb://old/shop"
