"""Unit tests for the xcodekit CLI."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.xcodekit import main
from contracts.audit import AuditEntry, AuditEvent
from runtime.audit.logger import JsonlAuditLogger


class TestValidate:
    def test_valid_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "xcodekit.yaml"
        path.write_text("app:\n  name: demo\nworkflows:\n  enabled: [simulator, watchface]\n")
        main(["validate", str(path)])
        out = capsys.readouterr().out
        assert "Config OK: demo v0.1.0" in out
        assert "Warning: workflow 'watchface' is not a known workflow" in out
        assert "Tools enabled:    11 of 33" in out

    def test_missing_config_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["validate", str(tmp_path / "nope.yaml")])
        assert excinfo.value.code == 1
        assert "config not found" in capsys.readouterr().err

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit):
            main([])


class TestLogs:
    def test_filters(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        log_path = tmp_path / "audit.jsonl"
        audit = JsonlAuditLogger(log_path)
        audit.log(AuditEntry(request_id="aaaa1111", event=AuditEvent.TOOL_CALL, tool="clean"))
        audit.log(AuditEntry(request_id="bbbb2222", event=AuditEvent.POLICY_BLOCK, tool="build_device"))

        main(["logs", str(log_path), "--event", "policy.block"])
        out = capsys.readouterr().out
        assert "build_device" in out
        assert "clean" not in out

        main(["logs", str(log_path), "--request-id", "aaaa1111", "--json"])
        assert '"tool": "clean"' in capsys.readouterr().out

    def test_unknown_event(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        log_path = tmp_path / "audit.jsonl"
        JsonlAuditLogger(log_path).log(AuditEntry(request_id="r", event=AuditEvent.TOOL_CALL))
        with pytest.raises(SystemExit):
            main(["logs", str(log_path), "--event", "request.start"])
        assert "Valid events:" in capsys.readouterr().err
