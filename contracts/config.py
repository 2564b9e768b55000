"""Runtime configuration (xcodekit.yaml) schema — Pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    name: str = "xcodekit"
    version: str = "0.1.0"


class WorkflowsConfig(BaseModel):
    enabled: list[str] = []   # empty = every workflow


class SessionConfig(BaseModel):
    enabled: bool = True
    defaults: dict[str, Any] = {}   # seeded into the Session Store at startup


class ExecutorConfig(BaseModel):
    timeout_seconds: float | None = Field(default=None, gt=0)


class LogCaptureConfig(BaseModel):
    temp_dir: str | None = None     # None = platform temp directory
    retention_days: float = Field(default=3, gt=0)


class AuditConfig(BaseModel):
    path: str | None = ".xcodekit/audit.jsonl"   # None = keep entries in memory


class Config(BaseModel):
    app: AppInfo = AppInfo()
    workflows: WorkflowsConfig = WorkflowsConfig()
    session: SessionConfig = SessionConfig()
    executor: ExecutorConfig = ExecutorConfig()
    log_capture: LogCaptureConfig = LogCaptureConfig()
    audit: AuditConfig = AuditConfig()
    debug: bool = False
