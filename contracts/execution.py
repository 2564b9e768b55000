"""Command execution contracts.

The Command Executor is the only component that talks to the operating
system.  Everything else receives one as an injected callable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class ExecutionContext:
    """Optional per-invocation settings for the Command Executor."""

    env: dict[str, str] | None = None
    cwd: str | None = None
    timeout: float | None = None
    # Return as soon as the process is spawned; the caller owns the handle.
    detached: bool = False


@dataclass(frozen=True)
class ExecutionResult:
    """Uniform outcome of one subprocess invocation."""

    success: bool
    output: str = ""
    error: str | None = None
    exit_code: int | None = None
    process: Any = None
    timed_out: bool = False


class CommandExecutor(Protocol):
    """Callable that runs one argument vector.

    Implementations return a result for non-zero exits and raise
    ``CommandSpawnFailure`` only when the process could not be started.
    """

    async def __call__(
        self,
        command: list[str],
        label: str = "",
        use_shell: bool = False,
        context: ExecutionContext | None = None,
    ) -> ExecutionResult:
        ...
