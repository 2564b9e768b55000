"""Audit trail contracts.

Every tool invocation writes a ``tool.call`` / ``tool.result`` pair sharing
one request id.  Workflow denials and log-capture sessions get their own
events so they can be queried without scanning tool results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditEvent(str, Enum):
    TOOL_CALL = "tool.call"
    TOOL_RESULT = "tool.result"
    POLICY_BLOCK = "policy.block"
    LOG_CAPTURE_START = "log_capture.start"
    LOG_CAPTURE_STOP = "log_capture.stop"


class AuditEntry(BaseModel):
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str
    event: AuditEvent
    app: str = ""
    tool: str = ""
    detail: dict[str, Any] = {}  # arguments, transport, is_error, session_id


class AuditLogger(ABC):
    """Append-only store of audit entries, queryable by request or event."""

    @abstractmethod
    def log(self, entry: AuditEntry) -> None: ...

    @abstractmethod
    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        """Entries sharing *request_id*, oldest first."""
        ...

    @abstractmethod
    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        """The newest *limit* entries of one event type, oldest first."""
        ...

    @abstractmethod
    def tail(self, n: int = 20) -> list[AuditEntry]: ...
