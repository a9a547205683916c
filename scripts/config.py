"""
Operator configuration.

A JSON file supplies organization/project defaults, per-view field lists
and extra field descriptors. Command-line flags override the file and
environment variables override built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fields import KINDS, WRAP_MODES

logger = logging.getLogger(__name__)

CONFIG_ENV = "AZBROWSE_CONFIG"
ORG_ENV = "AZURE_DEVOPS_ORG"
PROJECT_ENV = "AZURE_DEVOPS_PROJECT"
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "azbrowse" / "config.json"


class ConfigError(Exception):
    """The configuration file cannot be used."""


@dataclass(frozen=True)
class BrowserConfig:
    """Settings read from the config file."""

    organization: str | None = None
    project: str | None = None
    fields: dict[str, list[str]] = field(default_factory=dict)
    field_overrides: dict[str, dict[str, Any]] = field(default_factory=dict)
    wiql: str | None = None
    pr_status: str | None = None

    def fields_for(self, view: str) -> list[str]:
        return list(self.fields.get(view, []))


def _expect(value: Any, kind: type, key: str, path: Path) -> Any:
    if value is not None and not isinstance(value, kind):
        raise ConfigError(f"{path}: '{key}' must be a {kind.__name__}")
    return value


def _check_override(field_id: str, values: dict, path: Path) -> None:
    where = f"{path}: 'field_overrides.{field_id}"
    for key in ("label", "color", "kind", "delimiter", "wrap"):
        if key in values and not isinstance(values[key], str):
            raise ConfigError(f"{where}.{key}' must be a str")
    if "weight" in values:
        weight = values["weight"]
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not 0 < weight <= 1:
            raise ConfigError(f"{where}.weight' must be a number in (0, 1]")
    if values.get("kind", KINDS[0]) not in KINDS:
        raise ConfigError(f"{where}.kind' must be one of {', '.join(KINDS)}")
    if values.get("wrap", WRAP_MODES[0]) not in WRAP_MODES:
        raise ConfigError(f"{where}.wrap' must be one of {', '.join(WRAP_MODES)}")


def parse_config(data: Any, path: Path) -> BrowserConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")

    fields = _expect(data.get("fields"), dict, "fields", path) or {}
    for view, ids in fields.items():
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise ConfigError(f"{path}: 'fields.{view}' must be a list of field ids")

    overrides = _expect(data.get("field_overrides"), dict, "field_overrides", path) or {}
    for field_id, values in overrides.items():
        if not isinstance(values, dict):
            raise ConfigError(f"{path}: 'field_overrides.{field_id}' must be an object")
        _check_override(field_id, values, path)

    return BrowserConfig(
        organization=_expect(data.get("organization"), str, "organization", path),
        project=_expect(data.get("project"), str, "project", path),
        fields=fields,
        field_overrides=overrides,
        wiql=_expect(data.get("wiql"), str, "wiql", path),
        pr_status=_expect(data.get("pr_status"), str, "pr_status", path),
    )


def config_path(explicit: Path | None = None) -> tuple[Path, bool]:
    """Which config file to read, and whether the operator named it."""
    if explicit is not None:
        return explicit, True
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env).expanduser(), True
    return DEFAULT_CONFIG_FILE, False


def load_config(explicit: Path | None = None) -> BrowserConfig:
    """Load the config file; a missing default file means no settings."""
    path, required = config_path(explicit)
    if not path.exists():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        return BrowserConfig()

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from e
    except OSError as e:
        raise ConfigError(f"{path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return parse_config(data, path)


def resolve_org_project(
    config: BrowserConfig,
    org: str | None = None,
    project: str | None = None,
) -> tuple[str | None, str | None]:
    """Flags win, then environment, then the config file."""
    return (
        org or os.environ.get(ORG_ENV) or config.organization,
        project or os.environ.get(PROJECT_ENV) or config.project,
    )
