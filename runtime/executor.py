"""Command Executor — runs one subprocess invocation and returns a uniform result.

``SubprocessExecutor`` spawns real processes through asyncio.  ``ScriptedExecutor``
shares the same call signature and replays scripted results so every other
component can be exercised without touching the operating system.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Union

from contracts.errors import CommandSpawnFailure
from contracts.execution import ExecutionContext, ExecutionResult

logger = logging.getLogger(__name__)

_TERMINATE_GRACE_SECONDS = 2.0


async def terminate_process(proc: Any, grace: float = _TERMINATE_GRACE_SECONDS) -> int | None:
    """SIGTERM *proc*, escalating to SIGKILL after *grace* seconds.

    Returns the exit code.  Safe to call on a process that already exited.
    """
    if proc.returncode is not None:
        return proc.returncode
    with contextlib.suppress(ProcessLookupError):
        proc.terminate()
    try:
        return await asyncio.wait_for(proc.wait(), timeout=grace)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        return await proc.wait()


class SubprocessExecutor:
    """Production executor backed by ``asyncio.create_subprocess_exec``."""

    def __init__(self, default_timeout: float | None = None) -> None:
        self._default_timeout = default_timeout

    async def __call__(
        self,
        command: list[str],
        label: str = "",
        use_shell: bool = False,
        context: ExecutionContext | None = None,
    ) -> ExecutionResult:
        if not command:
            raise CommandSpawnFailure([], "empty command")

        ctx = context or ExecutionContext()
        timeout = ctx.timeout if ctx.timeout is not None else self._default_timeout
        name = label or command[0]
        # Arguments stay a vector; shell mode quotes each one before handing
        # the joined line to /bin/sh.
        display = shlex.join(command)
        argv = ["/bin/sh", "-c", display] if use_shell else list(command)
        env = {**os.environ, **ctx.env} if ctx.env else None

        logger.info("%s: executing %s", name, display)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=ctx.cwd,
                env=env,
            )
        except OSError as exc:
            reason = exc.strerror or str(exc)
            logger.error("%s: could not spawn %s: %s", name, command[0], reason)
            raise CommandSpawnFailure(list(command), reason) from exc

        if ctx.detached:
            logger.debug("%s: detached process pid=%s", name, proc.pid)
            return ExecutionResult(success=True, process=proc)

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            exit_code = await terminate_process(proc)
            message = f"{name} timed out after {timeout:g}s"
            logger.warning(message)
            return ExecutionResult(
                success=False,
                error=message,
                exit_code=exit_code,
                timed_out=True,
            )

        output = stdout.decode("utf-8", errors="replace")
        error = stderr.decode("utf-8", errors="replace")
        success = proc.returncode == 0
        if not success:
            logger.warning("%s: exited with code %s", name, proc.returncode)
        return ExecutionResult(
            success=success,
            output=output,
            error=error or None,
            exit_code=proc.returncode,
        )


# ── Scripted executor ────────────────────────────────────────────────


ScriptedResponse = Union[ExecutionResult, BaseException, Callable[[list[str]], ExecutionResult]]


@dataclass(frozen=True)
class RecordedCall:
    command: list[str]
    label: str
    use_shell: bool
    context: ExecutionContext | None


class ScriptedExecutor:
    """Replays scripted results (or raises scripted errors) in call order.

    Once the script is exhausted every further call gets *default*.  A
    callable entry receives the command and returns the result to use.
    """

    def __init__(
        self,
        responses: Iterable[ScriptedResponse] = (),
        default: ExecutionResult | None = None,
    ) -> None:
        self._responses: deque[ScriptedResponse] = deque(responses)
        self._default = default or ExecutionResult(success=True)
        self.calls: list[RecordedCall] = []

    def extend(self, responses: Iterable[ScriptedResponse]) -> None:
        """Queue more scripted responses after the current ones."""
        self._responses.extend(responses)

    async def __call__(
        self,
        command: list[str],
        label: str = "",
        use_shell: bool = False,
        context: ExecutionContext | None = None,
    ) -> ExecutionResult:
        self.calls.append(RecordedCall(list(command), label, use_shell, context))
        response = self._responses.popleft() if self._responses else self._default
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(list(command))
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def commands(self) -> list[list[str]]:
        return [call.command for call in self.calls]
