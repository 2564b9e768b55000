"""Tool SDK contracts.

Every XcodeKit tool implements BaseTool.  The runtime resolves arguments
against session defaults, checks policy, executes the tool, and logs the
result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from contracts.audit import AuditLogger
from contracts.config import Config
from contracts.execution import CommandExecutor
from contracts.parameters import RequirementRule, ResolvedParameters
from contracts.response import ToolResponse


# ── Data models ──────────────────────────────────────────────────────


class ToolDefinition(BaseModel):
    """Declarative description of a tool and its parameters."""

    name: str
    description: str
    workflow: str
    input_schema: dict[str, Any]   # JSON Schema
    requirements: list[RequirementRule] = []
    use_session_defaults: bool = True


# ── Context passed to every tool invocation ──────────────────────────


@dataclass
class ToolContext:
    """Runtime collaborators supplied to a tool's run() method."""

    request_id: str
    executor: CommandExecutor
    session_store: Any = None       # runtime.session_store.SessionStore
    destinations: Any = None        # runtime.destination.DestinationResolver
    log_capture: Any = None         # runtime.log_capture.LogCaptureManager
    audit: AuditLogger | None = None
    config: Config = field(default_factory=Config)


# ── Abstract base class ─────────────────────────────────────────────


class BaseTool(ABC):
    """Abstract base class that every XcodeKit tool must implement."""

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Return the tool's declarative schema."""
        ...

    @abstractmethod
    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        """Execute the tool. Called by the runtime after parameter resolution."""
        ...
