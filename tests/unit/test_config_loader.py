"""Unit tests for the config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from contracts.config import Config
from runtime.config_loader import apply_env_overrides, load_config


SAMPLE_CONFIG = """\
app:
  name: test-app
  version: "1.2.3"

workflows:
  enabled:
    - simulator
    - project

session:
  enabled: true
  defaults:
    scheme: App
    project_path: App.xcodeproj

executor:
  timeout_seconds: 600

log_capture:
  retention_days: 1

audit:
  path: audit/xcodekit.jsonl
"""


class TestLoadConfig:
    def test_load_valid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "xcodekit.yaml"
        path.write_text(SAMPLE_CONFIG)
        config = load_config(str(path), environ={})
        assert config.app.name == "test-app"
        assert config.app.version == "1.2.3"
        assert config.workflows.enabled == ["simulator", "project"]
        assert config.session.defaults == {"scheme": "App", "project_path": "App.xcodeproj"}
        assert config.executor.timeout_seconds == 600
        assert config.log_capture.retention_days == 1
        assert config.audit.path == "audit/xcodekit.jsonl"

    def test_env_var_names_the_file(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("app:\n  name: from-env\n")
        config = load_config(environ={"XCODEKIT_CONFIG": str(path)})
        assert config.app.name == "from-env"

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"), environ={})

    def test_missing_default_file_uses_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={})
        assert config == Config()

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "xcodekit.yaml"
        path.write_text("")
        assert load_config(str(path), environ={}) == Config()

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "xcodekit.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(str(path), environ={})

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "xcodekit.yaml"
        path.write_text("executor:\n  timeout_seconds: -5\n")
        with pytest.raises(ValueError):
            load_config(str(path), environ={})


class TestEnvOverrides:
    def test_workflows(self) -> None:
        config = apply_env_overrides(Config(), {"XCODEKIT_ENABLED_WORKFLOWS": "simulator, device,"})
        assert config.workflows.enabled == ["simulator", "device"]

    def test_disable_session_defaults(self) -> None:
        assert not apply_env_overrides(Config(), {"XCODEKIT_DISABLE_SESSION_DEFAULTS": "yes"}).session.enabled
        assert apply_env_overrides(Config(), {"XCODEKIT_DISABLE_SESSION_DEFAULTS": "0"}).session.enabled

    def test_timeout(self) -> None:
        config = apply_env_overrides(Config(), {"XCODEKIT_COMMAND_TIMEOUT": "90"})
        assert config.executor.timeout_seconds == 90

    def test_bad_values_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        config = apply_env_overrides(
            Config(),
            {"XCODEKIT_COMMAND_TIMEOUT": "soon", "XCODEKIT_DEBUG": "maybe"},
        )
        assert config.executor.timeout_seconds is None
        assert config.debug is False
        assert "XCODEKIT_COMMAND_TIMEOUT" in caplog.text

    def test_debug(self) -> None:
        assert apply_env_overrides(Config(), {"XCODEKIT_DEBUG": "true"}).debug

    def test_original_is_not_modified(self) -> None:
        original = Config()
        apply_env_overrides(original, {"XCODEKIT_ENABLED_WORKFLOWS": "device"})
        assert original.workflows.enabled == []
