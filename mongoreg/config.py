"""Configuration loading helpers."""

from __future__ import annotations

from pathlib import Path

import tomllib

from pydantic import BaseModel, Field

CONFIG_FILE = Path.home() / ".config" / "mongoreg" / "config.toml"


class DriverConfig(BaseModel):
    """Driver selection and the client options passed through to it."""

    name: str = "motor"
    ping: bool = True
    default_database: str = "test"
    server_selection_timeout_ms: int | None = 5000
    app_name: str | None = "mongoreg"

    def client_options(self) -> dict[str, object]:
        """Keyword arguments for ``AsyncIOMotorClient``."""

        options: dict[str, object] = {}
        if self.server_selection_timeout_ms is not None:
            options["serverSelectionTimeoutMS"] = self.server_selection_timeout_ms
        if self.app_name:
            options["appname"] = self.app_name
        return options


class TargetConfig(BaseModel):
    """A named connection string plus the collections to resolve for it."""

    name: str
    uri: str
    collections: list[str] | dict[str, str] | None = None


class AppConfig(BaseModel):
    """Shape of the configuration file."""

    log_level: str = "WARNING"
    driver: DriverConfig = Field(default_factory=DriverConfig)
    targets: list[TargetConfig] = Field(default_factory=list)

    def target(self, name: str) -> TargetConfig:
        for target in self.targets:
            if target.name == name:
                return target
        raise ValueError(f"Target '{name}' not found.")

    def with_target(self, target: TargetConfig) -> AppConfig:
        """Return a copy with ``target`` added, replacing any target of the same name."""

        targets = [entry for entry in self.targets if entry.name != target.name]
        targets.append(target)
        return self.model_copy(update={"targets": targets})


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()
    return AppConfig(**data)


def save_config(config: AppConfig, path: Path | None = None) -> None:
    """Persist configuration to disk."""

    target_path = path or CONFIG_FILE
    target_path.parent.mkdir(parents=True, exist_ok=True)
    driver = config.driver
    lines: list[str] = [
        f'log_level = "{config.log_level}"',
        "",
        "[driver]",
        f'name = "{driver.name}"',
        f"ping = {str(driver.ping).lower()}",
        f'default_database = "{driver.default_database}"',
    ]
    if driver.server_selection_timeout_ms is not None:
        lines.append(f"server_selection_timeout_ms = {driver.server_selection_timeout_ms}")
    if driver.app_name:
        lines.append(f'app_name = "{driver.app_name}"')
    for target in config.targets:
        lines.append("")
        lines.append("[[targets]]")
        lines.append(f'name = "{target.name}"')
        lines.append(f'uri = "{target.uri}"')
        if isinstance(target.collections, dict):
            pairs = ", ".join(f'"{alias}" = "{name}"' for alias, name in target.collections.items())
            lines.append(f"collections = {{ {pairs} }}")
        elif target.collections is not None:
            names = ", ".join(f'"{name}"' for name in target.collections)
            lines.append(f"collections = [{names}]")
    target_path.write_text("\n".join(lines) + "\n")


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    log_level = raw.get("log_level")
    if isinstance(log_level, str):
        data["log_level"] = log_level.upper()
    driver = raw.get("driver")
    if isinstance(driver, dict):
        parsed_driver: dict[str, object] = {}
        for key in ("name", "default_database", "app_name"):
            value = driver.get(key)
            if isinstance(value, str):
                parsed_driver[key] = value
        ping = driver.get("ping")
        if isinstance(ping, bool):
            parsed_driver["ping"] = ping
        timeout = driver.get("server_selection_timeout_ms")
        if isinstance(timeout, int) and not isinstance(timeout, bool):
            parsed_driver["server_selection_timeout_ms"] = timeout
        data["driver"] = DriverConfig(**parsed_driver)
    targets = raw.get("targets")
    if isinstance(targets, list):
        parsed_targets: list[TargetConfig] = []
        for target in targets:
            if not isinstance(target, dict):
                continue
            name = target.get("name")
            uri = target.get("uri")
            if not isinstance(name, str) or not isinstance(uri, str) or not uri:
                continue
            collections = target.get("collections")
            if isinstance(collections, list):
                collections = [str(item) for item in collections]
            elif isinstance(collections, dict):
                collections = {str(alias): str(item) for alias, item in collections.items()}
            else:
                collections = None
            parsed_targets.append(TargetConfig(name=name, uri=uri, collections=collections))
        data["targets"] = parsed_targets
    return data


__all__ = ["AppConfig", "CONFIG_FILE", "DriverConfig", "TargetConfig", "load_config", "save_config"]
