"""Unit tests for the Log Capture Session Manager."""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path

import pytest

from contracts.errors import CommandSpawnFailure, SessionNotFoundFailure, SessionSetupFailure
from contracts.execution import ExecutionResult
from runtime.executor import ScriptedExecutor
from runtime.log_capture import (
    DEVICE_LOG_PREFIX,
    SIMULATOR_LOG_PREFIX,
    CaptureState,
    CaptureTarget,
    LogCaptureManager,
    build_log_predicate,
    device_console_command,
    simulator_console_command,
    simulator_os_log_command,
)


# ── Helpers ──────────────────────────────────────────────────────────


class FakeProcess:
    """Stands in for an asyncio subprocess with streamed stdout/stderr."""

    def __init__(self) -> None:
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: int | None = None
        self.terminated = False
        self._exited = asyncio.Event()

    def emit(self, data: bytes, stream: str = "stdout") -> None:
        getattr(self, stream).feed_data(data)

    def exit(self, code: int) -> None:
        if self.returncode is not None:
            return
        self.returncode = code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    def terminate(self) -> None:
        self.terminated = True
        self.exit(-15)

    def kill(self) -> None:
        self.exit(-9)

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode


def _launched(proc: FakeProcess) -> ExecutionResult:
    return ExecutionResult(success=True, process=proc)


async def _settle() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


# ── Commands ─────────────────────────────────────────────────────────


class TestCommands:
    def test_predicates(self) -> None:
        assert build_log_predicate("com.example.App", "all") is None
        assert build_log_predicate("com.example.App") == 'subsystem == "com.example.App"'
        assert build_log_predicate("com.example.App", "swiftui") == (
            'subsystem == "com.example.App" OR subsystem == "com.apple.SwiftUI"'
        )
        assert build_log_predicate("com.example.App", ["com.example.Net", "com.example.App"]) == (
            'subsystem == "com.example.App" OR subsystem == "com.example.Net"'
        )

    def test_command_shapes(self) -> None:
        assert simulator_console_command("SIM", "com.example.App", ["-flag"]) == [
            "xcrun", "simctl", "launch", "--console-pty", "--terminate-running-process",
            "SIM", "com.example.App", "-flag",
        ]
        assert simulator_os_log_command("SIM", None) == [
            "xcrun", "simctl", "spawn", "SIM", "log", "stream", "--level=debug",
        ]
        assert device_console_command("DEV", "com.example.App")[-3:] == ["--device", "DEV", "com.example.App"]


# ── Lifecycle ────────────────────────────────────────────────────────


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_registers_and_captures_output(self, tmp_path: Path) -> None:
        proc = FakeProcess()
        executor = ScriptedExecutor([_launched(proc)])
        manager = LogCaptureManager(executor, temp_dir=tmp_path)

        session = await manager.start_simulator_capture("SIM-1", "com.example.App")
        assert session.state is CaptureState.CAPTURING
        assert manager.get(session.session_id) is session
        assert session.log_path.name == f"{SIMULATOR_LOG_PREFIX}{session.session_id}.log"
        assert executor.calls[0].context.detached
        assert executor.commands[0][-2:] == ["--predicate", 'subsystem == "com.example.App"']

        proc.emit(b"hello from the app\n")
        proc.emit(b"a warning\n", "stderr")
        await _settle()

        stopped, content = await manager.stop(session.session_id)
        assert stopped.state is CaptureState.ENDED
        assert proc.terminated
        assert "--- Log capture for bundle ID: com.example.App ---" in content
        assert "hello from the app" in content
        assert "a warning" in content
        assert "--- Log capture process exited with code -15 ---" in content
        assert len(manager) == 0
        assert session.log_path.exists()

    @pytest.mark.asyncio
    async def test_console_capture_launches_two_processes(self, tmp_path: Path) -> None:
        console, oslog = FakeProcess(), FakeProcess()
        executor = ScriptedExecutor([_launched(console), _launched(oslog)])
        manager = LogCaptureManager(executor, temp_dir=tmp_path)

        session = await manager.start_simulator_capture(
            "SIM-1", "com.example.App", capture_console=True, args=["-debug"], subsystem_filter="all"
        )
        assert executor.commands[0][:4] == ["xcrun", "simctl", "launch", "--console-pty"]
        assert executor.commands[0][-1] == "-debug"
        assert "--predicate" not in executor.commands[1]

        console.exit(0)
        await _settle()
        assert session.state is CaptureState.CAPTURING
        oslog.exit(0)
        await _settle()
        assert session.state is CaptureState.ENDED

        await manager.stop_all()
        assert len(manager) == 0

    @pytest.mark.asyncio
    async def test_natural_exit_keeps_session_until_stop(self, tmp_path: Path) -> None:
        proc = FakeProcess()
        manager = LogCaptureManager(ScriptedExecutor([_launched(proc)]), temp_dir=tmp_path)
        session = await manager.start_device_capture("DEV-1", "com.example.App")

        proc.emit(b"device output\n")
        proc.exit(0)
        await _settle()

        assert session.state is CaptureState.ENDED
        assert session.exit_codes == [0]
        assert manager.get(session.session_id) is session
        assert session.log_path.name.startswith(DEVICE_LOG_PREFIX)

        _, content = await manager.stop(session.session_id)
        assert "device output" in content
        assert "exited with code 0" in content
        assert not proc.terminated

    @pytest.mark.asyncio
    async def test_unsuccessful_launch_fails_without_registering(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor([ExecutionResult(success=False, error="Unable to find device")])
        manager = LogCaptureManager(executor, temp_dir=tmp_path)

        with pytest.raises(SessionSetupFailure) as excinfo:
            await manager.start_device_capture("DEV-1", "com.example.App")
        assert "Unable to find device" in excinfo.value.message
        assert len(manager) == 0

        (log_file,) = tmp_path.glob(f"{DEVICE_LOG_PREFIX}*.log")
        assert "--- Log capture failed: Unable to find device ---" in log_file.read_text()

    @pytest.mark.asyncio
    async def test_spawn_failure_stops_earlier_processes(self, tmp_path: Path) -> None:
        console = FakeProcess()
        executor = ScriptedExecutor([_launched(console), CommandSpawnFailure(["xcrun"], "No such file or directory")])
        manager = LogCaptureManager(executor, temp_dir=tmp_path)

        with pytest.raises(SessionSetupFailure, match="Could not run xcrun"):
            await manager.start_simulator_capture("SIM-1", "com.example.App", capture_console=True)
        assert console.terminated
        assert len(manager) == 0

    @pytest.mark.asyncio
    async def test_unknown_session(self, tmp_path: Path) -> None:
        manager = LogCaptureManager(ScriptedExecutor(), temp_dir=tmp_path)
        with pytest.raises(SessionNotFoundFailure):
            await manager.stop("nope")

    @pytest.mark.asyncio
    async def test_overlapping_stops(self, tmp_path: Path) -> None:
        proc = FakeProcess()
        manager = LogCaptureManager(ScriptedExecutor([_launched(proc)]), temp_dir=tmp_path)
        session = await manager.start_simulator_capture("SIM-1", "com.example.App")

        first, second = await asyncio.gather(
            manager.stop(session.session_id),
            manager.stop(session.session_id),
            return_exceptions=True,
        )
        stopped, content = first
        assert stopped is session
        assert "exited with code -15" in content
        assert isinstance(second, SessionNotFoundFailure)
        assert len(manager) == 0

    def test_describe(self, tmp_path: Path) -> None:
        manager = LogCaptureManager(ScriptedExecutor(), temp_dir=tmp_path)
        assert manager.active_sessions() == []
        assert CaptureTarget.DEVICE.prefix == DEVICE_LOG_PREFIX


# ── Retention ────────────────────────────────────────────────────────


class TestRetention:
    def test_only_files_past_the_window_are_removed(self, tmp_path: Path) -> None:
        now = time.time()
        manager = LogCaptureManager(ScriptedExecutor(), temp_dir=tmp_path, clock=lambda: now)
        window = manager.retention_seconds

        fresh = tmp_path / f"{SIMULATOR_LOG_PREFIX}fresh.log"
        stale = tmp_path / f"{SIMULATOR_LOG_PREFIX}stale.log"
        other = tmp_path / f"{DEVICE_LOG_PREFIX}stale.log"
        for path in (fresh, stale, other):
            path.write_text("x")
        os.utime(fresh, (now - window + 1, now - window + 1))
        os.utime(stale, (now - window - 1, now - window - 1))
        os.utime(other, (now - window - 1, now - window - 1))

        assert manager.clean_old_logs(SIMULATOR_LOG_PREFIX) == [stale]
        assert fresh.exists()
        assert not stale.exists()
        assert other.exists()

    def test_missing_directory_is_swallowed(self, tmp_path: Path) -> None:
        manager = LogCaptureManager(ScriptedExecutor(), temp_dir=tmp_path / "missing")
        assert manager.clean_old_logs(SIMULATOR_LOG_PREFIX) == []

    @pytest.mark.asyncio
    async def test_start_cleans_its_own_prefix(self, tmp_path: Path) -> None:
        now = time.time()
        old = tmp_path / f"{DEVICE_LOG_PREFIX}old.log"
        old.write_text("x")
        os.utime(old, (now - 10 * 86400, now - 10 * 86400))

        proc = FakeProcess()
        manager = LogCaptureManager(ScriptedExecutor([_launched(proc)]), temp_dir=tmp_path, clock=lambda: now)
        session = await manager.start_device_capture("DEV-1", "com.example.App")
        assert not old.exists()
        await manager.stop(session.session_id)
