"""Tests for file/env/override config loading."""

import json
from datetime import timedelta

import pytest

from ConfigSpec import ConfigLoadError, ConfigParseError, load_config, read_config_file
from ConfigSpec.loader import apply_env_overrides, merge_overrides, section_at


class TestReadConfigFile:
    """Test read_config_file."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backoff:\n  max_interval: 30s\n", encoding="utf-8")
        assert read_config_file(path) == {"backoff": {"max_interval": "30s"}}

    def test_empty_yaml_is_empty_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("", encoding="utf-8")
        assert read_config_file(path) == {}

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"backoff": {"enabled": True}}), encoding="utf-8")
        assert read_config_file(str(path)) == {"backoff": {"enabled": True}}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="not found"):
            read_config_file(tmp_path / "absent.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("a = 1", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="Unsupported file format"):
            read_config_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backoff: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            read_config_file(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="mapping"):
            read_config_file(path)


class TestOverlays:
    """Env and programmatic overrides."""

    def test_env_overrides_nest_and_decode(self):
        env = {
            "APP_BACKOFF__MAX_INTERVAL": "30s",
            "APP_BACKOFF__ENABLED": "true",
            "OTHER_VALUE": "ignored",
        }
        data = apply_env_overrides({"backoff": {"initial_interval": "1s"}}, "APP_", env)
        assert data == {
            "backoff": {"initial_interval": "1s", "max_interval": "30s", "enabled": True}
        }

    def test_env_override_replaces_scalar_parent(self):
        data = apply_env_overrides({"backoff": "off"}, "APP_", {"APP_BACKOFF__ENABLED": "false"})
        assert data == {"backoff": {"enabled": False}}

    def test_merge_overrides_recurses(self):
        data = {"backoff": {"initial_interval": "1s", "max_interval": "2s"}}
        merged = merge_overrides(data, {"backoff": {"max_interval": "5s"}, "extra": 1})
        assert merged == {"backoff": {"initial_interval": "1s", "max_interval": "5s"}, "extra": 1}

    def test_merge_overrides_none(self):
        data = {"a": 1}
        assert merge_overrides(data, None) is data

    def test_section_at(self):
        data = {"output": {"retry": {"enabled": True}, "name": "x"}}
        assert section_at(data, ["output", "retry"]) == {"enabled": True}
        assert section_at(data, ["output", "absent"]) == {}
        with pytest.raises(ConfigLoadError):
            section_at(data, ["output", "name"])


class TestLoadConfig:
    """Test load_config precedence."""

    def test_file_env_override_precedence(self, tmp_path, toggled_spec):
        path = tmp_path / "config.yaml"
        path.write_text(
            "backoff:\n  enabled: false\n  initial_interval: 1s\n  max_interval: 20s\n",
            encoding="utf-8",
        )
        env = {"APP_BACKOFF__ENABLED": "true", "APP_BACKOFF__MAX_INTERVAL": "40s"}
        parsed = load_config(
            toggled_spec,
            path,
            env_prefix="APP_",
            env=env,
            overrides={"backoff": {"max_interval": "50s"}},
        )
        policy, enabled = parsed.field_backoff_toggled("backoff")
        assert enabled is True
        assert policy.initial_interval == timedelta(seconds=1)
        assert policy.max_interval == timedelta(seconds=50)

    def test_env_ignored_without_prefix(self, backoff_spec, monkeypatch):
        monkeypatch.setenv("APP_BACKOFF__MAX_INTERVAL", "bogus")
        parsed = load_config(backoff_spec)
        assert parsed.field_backoff("backoff").max_interval == timedelta(seconds=10)

    def test_env_from_process_environment(self, backoff_spec, monkeypatch):
        monkeypatch.setenv("CFGTEST_BACKOFF__MAX_INTERVAL", "25s")
        parsed = load_config(backoff_spec, env_prefix="CFGTEST_")
        assert parsed.field_backoff("backoff").max_interval == timedelta(seconds=25)

    def test_invalid_values_raise_parse_error(self, backoff_spec):
        with pytest.raises(ConfigParseError):
            load_config(backoff_spec, overrides={"backoff": {"max_interval": "soon"}})

    def test_lint_flag_passed_through(self, backoff_spec):
        overrides = {"backoff": {"max_elapsed_time": "0s"}}
        with pytest.raises(ConfigParseError):
            load_config(backoff_spec, overrides=overrides)
        parsed = load_config(backoff_spec, overrides=overrides, lint=False)
        assert parsed.field_backoff("backoff").unbounded
