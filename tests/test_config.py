"""Tests for config.py - operator configuration."""

import json
import sys
from pathlib import Path

import pytest

# Add scripts to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

import config
from config import BrowserConfig, ConfigError, load_config, parse_config, resolve_org_project


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """No ambient config or environment leaks into the tests."""
    for name in (config.CONFIG_ENV, config.ORG_ENV, config.PROJECT_ENV):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "DEFAULT_CONFIG_FILE", tmp_path / "absent" / "config.json")


def write_config(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_default_is_empty(self) -> None:
        assert load_config() == BrowserConfig()

    def test_explicit_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "c.json", {
            "organization": "https://dev.azure.com/contoso",
            "project": "Web",
            "fields": {"prs": ["pullRequestId", "title"]},
            "field_overrides": {"title": {"weight": 0.8}},
            "pr_status": "all",
        })
        loaded = load_config(path)

        assert loaded.organization == "https://dev.azure.com/contoso"
        assert loaded.fields_for("prs") == ["pullRequestId", "title"]
        assert loaded.fields_for("tasks") == []
        assert loaded.field_overrides == {"title": {"weight": 0.8}}
        assert loaded.pr_status == "all"

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = write_config(tmp_path / "env.json", {"project": "FromEnv"})
        monkeypatch.setenv(config.CONFIG_ENV, str(path))
        assert load_config().project == "FromEnv"

    def test_missing_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(config.CONFIG_ENV, str(tmp_path / "gone.json"))
        with pytest.raises(ConfigError):
            load_config()

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="invalid JSON"):
            load_config(path)


class TestParseConfig:
    """Tests for parse_config validation."""

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(ConfigError):
            parse_config([], Path("c.json"))

    def test_field_list_type(self) -> None:
        with pytest.raises(ConfigError, match="fields.prs"):
            parse_config({"fields": {"prs": "title"}}, Path("c.json"))

    def test_override_type(self) -> None:
        with pytest.raises(ConfigError, match="field_overrides.title"):
            parse_config({"field_overrides": {"title": 1}}, Path("c.json"))

    def test_string_keys(self) -> None:
        with pytest.raises(ConfigError, match="'project' must be a str"):
            parse_config({"project": 3}, Path("c.json"))


class TestResolveOrgProject:
    """Tests for resolve_org_project precedence."""

    def test_flags_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(config.ORG_ENV, "env-org")
        cfg = BrowserConfig(organization="cfg-org", project="cfg-proj")
        assert resolve_org_project(cfg, "flag-org", None) == ("flag-org", "cfg-proj")

    def test_env_over_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(config.PROJECT_ENV, "env-proj")
        cfg = BrowserConfig(organization="cfg-org", project="cfg-proj")
        assert resolve_org_project(cfg) == ("cfg-org", "env-proj")

    def test_nothing_set(self) -> None:
        assert resolve_org_project(BrowserConfig()) == (None, None)


class TestFieldOverrides:
    """Tests for field_overrides value validation."""

    @pytest.mark.parametrize(
        "values",
        [
            {"weight": "wide"},
            {"weight": True},
            {"weight": 0},
            {"weight": 1.5},
            {"label": 3},
            {"color": ["red"]},
            {"delimiter": 5},
            {"kind": "date"},
            {"wrap": "columns"},
        ],
    )
    def test_bad_values_rejected(self, values: dict) -> None:
        with pytest.raises(ConfigError, match="field_overrides.title"):
            parse_config({"field_overrides": {"title": values}}, Path("c.json"))

    def test_valid_values(self) -> None:
        overrides = {
            "System.IterationPath": {"delimiter": "/", "weight": 1, "kind": "path"},
            "title": {"label": "Summary", "color": "green", "wrap": "chunk", "weight": 0.25},
        }
        loaded = parse_config({"field_overrides": overrides}, Path("c.json"))
        assert loaded.field_overrides == overrides

    def test_bad_file_fails_load(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "c.json", {"field_overrides": {"System.IterationPath": {"delimiter": 5}}})
        with pytest.raises(ConfigError, match="delimiter"):
            load_config(path)
