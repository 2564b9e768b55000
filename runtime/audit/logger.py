"""Append-only JSONL audit trail of tool calls and log-capture sessions."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from contracts.audit import AuditEntry, AuditEvent, AuditLogger

logger = logging.getLogger(__name__)


class JsonlAuditLogger(AuditLogger):
    """Thread-safe JSONL writer.  Unreadable lines are skipped on query."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: AuditEntry) -> None:
        record = entry.model_dump_json() + "\n"
        with self._lock, self.path.open("a", encoding="utf-8") as fh:
            fh.write(record)

    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        return [e for e in self._entries() if e.request_id == request_id]

    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        if limit <= 0:
            return []
        return [e for e in self._entries() if e.event == event][-limit:]

    def tail(self, n: int = 20) -> list[AuditEntry]:
        if n <= 0:
            return []
        return self._entries()[-n:]

    def _entries(self) -> list[AuditEntry]:
        if not self.path.exists():
            return []
        entries: list[AuditEntry] = []
        with self._lock, self.path.open("r", encoding="utf-8") as fh:
            for number, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as exc:
                    logger.warning("Skipping unreadable audit line %d in %s: %s", number, self.path, exc)
        return entries


class MemoryAuditLogger(AuditLogger):
    """Keeps entries in a list; used when no audit file is configured."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def log(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        return [e for e in self.entries if e.request_id == request_id]

    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        if limit <= 0:
            return []
        return [e for e in self.entries if e.event == event][-limit:]

    def tail(self, n: int = 20) -> list[AuditEntry]:
        if n <= 0:
            return []
        return self.entries[-n:]
