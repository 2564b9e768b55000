"""Failure taxonomy shared by the runtime core.

Failures are raised inside the core and converted into structured error
responses at the tool boundary, so callers never see a raw exception.
"""

from __future__ import annotations

from dataclasses import dataclass

from contracts.execution import ExecutionResult
from contracts.parameters import ParameterSource
from contracts.response import ContentFragment, ToolResponse


class ToolFailure(Exception):
    """Base class for every failure that becomes an error response."""

    label = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> ToolResponse:
        return ToolResponse(
            content=[ContentFragment(label=self.label, text=self.message)],
            is_error=True,
        )


class UnknownToolFailure(ToolFailure):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


# ── Parameter Resolver ───────────────────────────────────────────────


class ParameterFailure(ToolFailure):
    """Caller input was invalid; retrying with corrected input can succeed."""

    label = "validation"


@dataclass(frozen=True)
class FieldProblem:
    field: str
    expected: str


class ShapeValidationFailure(ParameterFailure):
    def __init__(self, problems: list[FieldProblem]) -> None:
        self.problems = problems
        lines = "\n".join(f"{p.field}: {p.expected}" for p in problems)
        super().__init__(f"Parameter validation failed\nDetails: Invalid parameters:\n{lines}")

    @property
    def fields(self) -> list[str]:
        return [p.field for p in self.problems]


class MissingRequiredFieldFailure(ParameterFailure):
    def __init__(
        self,
        fields: list[str],
        rule: str,
        detail: str | None = None,
        *,
        session_defaults_enabled: bool = True,
    ) -> None:
        self.fields = fields
        self.rule = rule
        names = ", ".join(fields)
        if detail is None:
            detail = f"Provide one of: {names}" if rule == "one_of" else f"Missing: {names}"
        if session_defaults_enabled:
            header = "Missing required session defaults"
            hint = (
                "Pass the value explicitly or remember it with "
                f"session_set_defaults({fields[0]}=...)."
            )
        else:
            header = "Missing required parameters"
            hint = "Pass the value explicitly."
        super().__init__(f"Parameter validation failed\n{header}\n{detail}\n{hint}")


class ConflictingFieldsFailure(ParameterFailure):
    def __init__(self, fields: tuple[str, str], sources: dict[str, ParameterSource]) -> None:
        self.fields = fields
        self.sources = sources
        first, second = fields
        described = (
            f"{first} ({sources[first].describe()}) and {second} ({sources[second].describe()})"
        )
        stored = self.from_session_defaults
        if stored:
            keys = ", ".join(repr(k) for k in stored)
            hint = (
                "Remove the stored value with "
                f"session_clear_defaults(keys=[{keys}]) or stop passing its partner."
            )
        else:
            hint = "Pass only one of them."
        super().__init__(
            "Parameter validation failed\n"
            f"Mutually exclusive parameters provided: {described}.\n{hint}"
        )

    @property
    def from_session_defaults(self) -> list[str]:
        return [f for f in self.fields if self.sources[f] is ParameterSource.SESSION_DEFAULT]


# ── Destination Resolver ─────────────────────────────────────────────


class SimulatorNotFoundFailure(ToolFailure):
    def __init__(self, name: str, platform: str | None = None) -> None:
        self.name = name
        self.platform = platform
        where = f" for {platform}" if platform else ""
        super().__init__(
            f"Simulator named '{name}' not found{where}. "
            "Use list_sims to see the available simulators."
        )


class SimulatorListFailure(ToolFailure):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to list simulators: {detail}")


# ── Command Executor ─────────────────────────────────────────────────


class CommandSpawnFailure(ToolFailure):
    """The binary could not be started at all (missing, not executable...)."""

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = command
        self.reason = reason
        binary = command[0] if command else "<empty command>"
        super().__init__(f"Could not run {binary}: {reason}")


# ── Output Interpreter ───────────────────────────────────────────────


class StepFailure(ToolFailure):
    """A pipeline step failed; later steps are skipped."""

    def __init__(
        self,
        step: str,
        detail: str,
        result: ExecutionResult | None = None,
        message: str | None = None,
    ) -> None:
        self.step = step
        self.detail = detail
        self.result = result
        super().__init__(message or f"Failed to {step}: {detail}")


class MissingIdentifierFailure(StepFailure):
    """A step succeeded but did not yield an identifier a later step needs."""

    def __init__(self, identifier: str, source: str, step: str = "read build settings") -> None:
        self.identifier = identifier
        self.source = source
        super().__init__(
            step,
            f"could not extract {identifier} from {source}",
            message=f"Could not extract {identifier} from {source}",
        )


# ── Log Capture Session Manager ──────────────────────────────────────


class SessionSetupFailure(ToolFailure):
    def __init__(self, target: str, detail: str) -> None:
        self.target = target
        self.detail = detail
        super().__init__(f"Failed to start {target} log capture: {detail}")


class SessionNotFoundFailure(ToolFailure):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Log capture session not found: {session_id}")


class DeviceListFailure(ToolFailure):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to list devices: {detail}")
