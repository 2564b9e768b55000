"""XcodeKit FastAPI runtime server."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from contracts.audit import AuditEntry, AuditEvent
from contracts.response import ToolResponse
from runtime.mcp_helpers import XcodeKitComponents, init_xcodekit

# ── Module-level state (set during lifespan) ─────────────────────────

_components: XcodeKitComponents | None = None
_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise components on startup; stop live log captures on shutdown."""
    global _components, _start_time  # noqa: PLW0603

    _start_time = time.time()
    if _components is None:
        _components = init_xcodekit()
    try:
        yield
    finally:
        await _components.log_capture.stop_all()


def set_components(components: XcodeKitComponents | None) -> None:
    """Install pre-built components (used by tests and embedding hosts)."""
    global _components  # noqa: PLW0603
    _components = components


def _require() -> XcodeKitComponents:
    if _components is None:
        raise HTTPException(status_code=503, detail="Runtime not initialised")
    return _components


app = FastAPI(title="XcodeKit Runtime", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Endpoints ────────────────────────────────────────────────────────


@app.get("/v1/xcodekit/health")
async def health() -> dict[str, Any]:
    c = _require()
    return {
        "status": "ok",
        "version": c.config.app.version,
        "uptime_seconds": round(time.time() - _start_time, 1) if _start_time else 0,
        "workflows": c.policy.enabled_workflows or ["*"],
        "session_defaults": sorted(c.session_store.get_defaults()),
        "log_capture_sessions": [s.describe() for s in c.log_capture.active_sessions()],
    }


@app.get("/v1/xcodekit/tools")
async def list_tools() -> list[dict[str, Any]]:
    c = _require()
    enabled = set(c.enabled_tools())
    return [t for t in c.registry.export_definitions() if t["name"] in enabled]


@app.post("/v1/xcodekit/tools/{name}")
async def call_tool(name: str, arguments: dict[str, Any] = Body(default_factory=dict)) -> ToolResponse:
    c = _require()
    return await c.invoker.invoke(name, arguments, transport="http")


@app.get("/v1/xcodekit/audit")
async def audit_tail(
    event: AuditEvent | None = Query(None),
    limit: int = Query(20, ge=1, le=1000),
) -> list[AuditEntry]:
    c = _require()
    if event is not None:
        return c.audit.query_by_event(event, limit=limit)
    return c.audit.tail(limit)


@app.get("/v1/xcodekit/audit/{request_id}")
async def audit_query(request_id: str) -> list[AuditEntry]:
    """Return audit entries for a given request_id."""
    return _require().audit.query_by_request(request_id)
