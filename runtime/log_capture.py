"""Log Capture Session Manager.

Each capture session owns one or more detached subprocesses whose output
is appended to a log file under the temp directory.  Session lifecycle::

    starting -> capturing -> ended
    starting -> failed

A session enters the active map only once every launch succeeded, and
leaves it only through ``stop``.  A session whose processes exit on their
own stays in the map (state ``ended``) so its log can still be collected.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, Union

from contracts.errors import SessionNotFoundFailure, SessionSetupFailure, ToolFailure
from contracts.execution import CommandExecutor, ExecutionContext
from runtime.executor import terminate_process

logger = logging.getLogger(__name__)

SIMULATOR_LOG_PREFIX = "xcodekit_sim_log_"
DEVICE_LOG_PREFIX = "xcodekit_device_log_"
LOG_SUFFIX = ".log"
DEFAULT_RETENTION_DAYS = 3
_CHUNK_SIZE = 4096

SubsystemFilter = Union[str, Sequence[str]]


class CaptureState(str, Enum):
    STARTING = "starting"
    CAPTURING = "capturing"
    ENDED = "ended"
    FAILED = "failed"


class CaptureTarget(str, Enum):
    SIMULATOR = "simulator"
    DEVICE = "device"

    @property
    def prefix(self) -> str:
        return SIMULATOR_LOG_PREFIX if self is CaptureTarget.SIMULATOR else DEVICE_LOG_PREFIX


@dataclass
class LogCaptureSession:
    session_id: str
    target: CaptureTarget
    target_id: str
    bundle_id: str
    log_path: Path
    state: CaptureState = CaptureState.STARTING
    processes: list[Any] = field(default_factory=list)
    exit_codes: list[int | None] = field(default_factory=list)
    started_at: float = 0.0
    _tasks: list[asyncio.Task] = field(default_factory=list, repr=False)

    @property
    def ended(self) -> bool:
        return self.state in (CaptureState.ENDED, CaptureState.FAILED)

    def describe(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "target": self.target.value,
            "target_id": self.target_id,
            "bundle_id": self.bundle_id,
            "log_path": str(self.log_path),
            "state": self.state.value,
        }


def build_log_predicate(bundle_id: str, subsystem_filter: SubsystemFilter = "app") -> str | None:
    """``log stream --predicate`` for a subsystem filter.

    ``"all"`` means no predicate.  An explicit list always includes the
    app's own subsystem.
    """
    if subsystem_filter == "all":
        return None
    if subsystem_filter == "app":
        return f'subsystem == "{bundle_id}"'
    if subsystem_filter == "swiftui":
        return f'subsystem == "{bundle_id}" OR subsystem == "com.apple.SwiftUI"'
    if isinstance(subsystem_filter, str):
        subsystem_filter = [subsystem_filter]
    subsystems = list(dict.fromkeys([bundle_id, *subsystem_filter]))
    return " OR ".join(f'subsystem == "{s}"' for s in subsystems)


def simulator_console_command(simulator_id: str, bundle_id: str, args: Iterable[str] = ()) -> list[str]:
    return [
        "xcrun", "simctl", "launch", "--console-pty", "--terminate-running-process",
        simulator_id, bundle_id, *args,
    ]


def simulator_os_log_command(simulator_id: str, predicate: str | None) -> list[str]:
    command = ["xcrun", "simctl", "spawn", simulator_id, "log", "stream", "--level=debug"]
    if predicate:
        command += ["--predicate", predicate]
    return command


def device_console_command(device_id: str, bundle_id: str) -> list[str]:
    return [
        "xcrun", "devicectl", "device", "process", "launch",
        "--console", "--terminate-existing", "--device", device_id, bundle_id,
    ]


class LogCaptureManager:
    """Owns the active-session map and the capture log files."""

    def __init__(
        self,
        executor: CommandExecutor,
        temp_dir: str | Path | None = None,
        retention_days: float = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._executor = executor
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.retention_seconds = retention_days * 24 * 60 * 60
        self._clock = clock
        self._sessions: dict[str, LogCaptureSession] = {}

    # ── Queries ──────────────────────────────────────────────────────

    def get(self, session_id: str) -> LogCaptureSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundFailure(session_id)
        return session

    def active_sessions(self) -> list[LogCaptureSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    # ── Start ────────────────────────────────────────────────────────

    async def start_simulator_capture(
        self,
        simulator_id: str,
        bundle_id: str,
        capture_console: bool = False,
        args: Iterable[str] = (),
        subsystem_filter: SubsystemFilter = "app",
    ) -> LogCaptureSession:
        commands = []
        if capture_console:
            commands.append((simulator_console_command(simulator_id, bundle_id, args), "Console Log Capture"))
        predicate = build_log_predicate(bundle_id, subsystem_filter)
        commands.append((simulator_os_log_command(simulator_id, predicate), "OS Log Capture"))
        header = f"\n--- Log capture for bundle ID: {bundle_id} ---\n"
        return await self._start(CaptureTarget.SIMULATOR, simulator_id, bundle_id, header, commands)

    async def start_device_capture(self, device_id: str, bundle_id: str) -> LogCaptureSession:
        header = f"\n--- Device log capture for bundle ID: {bundle_id} on device: {device_id} ---\n"
        commands = [(device_console_command(device_id, bundle_id), "Device Log Capture")]
        return await self._start(CaptureTarget.DEVICE, device_id, bundle_id, header, commands)

    async def _start(
        self,
        target: CaptureTarget,
        target_id: str,
        bundle_id: str,
        header: str,
        commands: list[tuple[list[str], str]],
    ) -> LogCaptureSession:
        self.clean_old_logs(target.prefix)

        session_id = str(uuid.uuid4())
        log_path = self.temp_dir / f"{target.prefix}{session_id}{LOG_SUFFIX}"
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            log_path.write_text(header, encoding="utf-8")
        except OSError as exc:
            raise SessionSetupFailure(target.value, str(exc)) from exc

        session = LogCaptureSession(
            session_id=session_id,
            target=target,
            target_id=target_id,
            bundle_id=bundle_id,
            log_path=log_path,
            started_at=self._clock(),
        )

        for command, label in commands:
            try:
                result = await self._executor(command, label, False, ExecutionContext(detached=True))
            except ToolFailure as exc:
                await self._fail(session, exc.message)
                raise SessionSetupFailure(target.value, exc.message) from exc
            if not result.success or result.process is None:
                detail = result.error or f"{label} did not start"
                await self._fail(session, detail)
                raise SessionSetupFailure(target.value, detail)
            session.processes.append(result.process)

        for proc in session.processes:
            pumps = [
                asyncio.create_task(self._pump(stream, log_path))
                for stream in (getattr(proc, "stdout", None), getattr(proc, "stderr", None))
                if stream is not None
            ]
            session._tasks += pumps
            session._tasks.append(asyncio.create_task(self._watch(session, proc, pumps)))

        session.state = CaptureState.CAPTURING
        self._sessions[session_id] = session
        logger.info("Log capture started with session ID: %s (%s)", session_id, log_path)
        return session

    async def _fail(self, session: LogCaptureSession, detail: str) -> None:
        for proc in session.processes:
            try:
                await terminate_process(proc)
            except OSError as exc:
                logger.warning("Failed to stop log capture process during cleanup: %s", exc)
        session.state = CaptureState.FAILED
        self._append(session.log_path, f"\n--- Log capture failed: {detail} ---\n")
        logger.error("Failed to start %s log capture: %s", session.target.value, detail)

    # ── Output pipeline ──────────────────────────────────────────────

    def _append(self, path: Path, text: str | bytes) -> None:
        data = text.encode("utf-8") if isinstance(text, str) else text
        try:
            with open(path, "ab") as fh:
                fh.write(data)
        except OSError as exc:
            logger.warning("Could not write to log file %s: %s", path, exc)

    async def _pump(self, stream: Any, path: Path) -> None:
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                return
            self._append(path, chunk)

    async def _watch(self, session: LogCaptureSession, proc: Any, pumps: list[asyncio.Task]) -> None:
        code = await proc.wait()
        await asyncio.gather(*pumps, return_exceptions=True)
        session.exit_codes.append(code)
        self._append(session.log_path, f"\n--- Log capture process exited with code {code} ---\n")
        logger.info("A log capture process for session %s exited with code %s.", session.session_id, code)
        if len(session.exit_codes) == len(session.processes):
            session.state = CaptureState.ENDED

    # ── Stop ─────────────────────────────────────────────────────────

    async def stop(self, session_id: str) -> tuple[LogCaptureSession, str]:
        """Terminate the session's processes, drop it from the map and
        return it with the captured log content."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundFailure(session_id)
        logger.info("Attempting to stop log capture session: %s", session_id)
        for proc in session.processes:
            await terminate_process(proc)
        for outcome in await asyncio.gather(*session._tasks, return_exceptions=True):
            if isinstance(outcome, BaseException):
                logger.warning("Log capture task for %s ended with %r", session_id, outcome)
        session.state = CaptureState.ENDED

        try:
            content = session.log_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ToolFailure(f"Log file not found: {session.log_path}") from exc
        logger.info("Log capture session %s stopped. Log file retained at: %s", session_id, session.log_path)
        return session, content

    async def stop_all(self) -> None:
        while self._sessions:
            await self.stop(next(iter(self._sessions)))

    # ── Retention ────────────────────────────────────────────────────

    def clean_old_logs(self, prefix: str) -> list[Path]:
        """Delete ``<prefix>*.log`` files older than the retention window.

        Errors are logged and skipped.
        """
        deleted: list[Path] = []
        try:
            candidates = [
                p for p in self.temp_dir.iterdir()
                if p.name.startswith(prefix) and p.name.endswith(LOG_SUFFIX)
            ]
        except OSError as exc:
            logger.warning("Could not read temp dir for log cleanup: %s", exc)
            return deleted

        now = self._clock()
        for path in candidates:
            try:
                if now - path.stat().st_mtime > self.retention_seconds:
                    path.unlink()
                    deleted.append(path)
                    logger.info("Deleted old log file: %s", path)
            except OSError as exc:
                logger.warning("Error during log cleanup for %s: %s", path, exc)
        return deleted
