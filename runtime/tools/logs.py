"""Log capture tools for simulators and devices."""

from __future__ import annotations

from contracts.audit import AuditEvent
from contracts.errors import SessionNotFoundFailure
from contracts.parameters import ResolvedParameters
from contracts.response import NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.log_capture import CaptureTarget, LogCaptureSession
from runtime.responses import text_response
from runtime.tools.base import (
    BUNDLE_ID,
    DEVICE_ID,
    LAUNCH_ARGS,
    SIMULATOR_PROPERTIES,
    SIMULATOR_RULES,
    object_schema,
    record,
    resolve_simulator,
)

WORKFLOW = "logging"

SUBSYSTEM_FILTER = {
    "anyOf": [
        {"type": "string", "enum": ["app", "all", "swiftui"]},
        {"type": "array", "items": {"type": "string"}},
    ],
    "description": (
        "'app' (default) captures only the app's subsystem, 'all' captures everything, "
        "'swiftui' adds com.apple.SwiftUI, or pass a list of extra subsystems."
    ),
}
LOG_SESSION_ID = {"type": "string", "description": "Session ID returned by the start tool."}


def _started(stop_tool: str, session: LogCaptureSession, note: str = "") -> ToolResponse:
    text = (
        f"✅ Log capture started.\n\nSession ID: {session.session_id}\n"
        f"Log file: {session.log_path}"
    )
    if note:
        text += f"\n\n{note}"
    return text_response(
        text,
        next_steps=[
            NextStep(
                tool=stop_tool,
                label="Stop capture and collect the logs",
                params={"log_session_id": session.session_id},
            )
        ],
    )


async def _stop(ctx: ToolContext, tool: str, target: CaptureTarget, session_id: str) -> ToolResponse:
    manager = ctx.log_capture
    if manager.get(session_id).target is not target:
        raise SessionNotFoundFailure(session_id)
    session, content = await manager.stop(session_id)
    record(ctx, AuditEvent.LOG_CAPTURE_STOP, tool, session_id=session_id, exit_codes=session.exit_codes)
    return text_response(
        f"✅ Log capture session {session_id} stopped.\n\n--- Captured Logs ---\n{content}"
    )


class StartSimLogCapTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="start_sim_log_cap",
            description=(
                "Start capturing logs from an app on a simulator. Returns a session ID "
                "for stop_sim_log_cap."
            ),
            workflow=WORKFLOW,
            input_schema=object_schema(
                SIMULATOR_PROPERTIES,
                {
                    "bundle_id": BUNDLE_ID,
                    "capture_console": {
                        "type": "boolean",
                        "description": "Relaunch the app and capture its stdout/stderr too.",
                    },
                    "args": LAUNCH_ARGS,
                    "subsystem_filter": SUBSYSTEM_FILTER,
                },
                required=["bundle_id"],
            ),
            requirements=SIMULATOR_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        destination = await resolve_simulator(ctx, params)
        capture_console = params.get("capture_console", False)
        session = await ctx.log_capture.start_simulator_capture(
            destination.simulator_id,
            params["bundle_id"],
            capture_console=capture_console,
            args=params.get("args") or (),
            subsystem_filter=params.get("subsystem_filter", "app"),
        )
        record(ctx, AuditEvent.LOG_CAPTURE_START, "start_sim_log_cap", **session.describe())
        note = "The app was relaunched to capture console output." if capture_console else ""
        return _started("stop_sim_log_cap", session, note)


class StopSimLogCapTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="stop_sim_log_cap",
            description="Stop a simulator log capture session and return the captured logs.",
            workflow=WORKFLOW,
            input_schema=object_schema({"log_session_id": LOG_SESSION_ID}, required=["log_session_id"]),
            use_session_defaults=False,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        return await _stop(ctx, "stop_sim_log_cap", CaptureTarget.SIMULATOR, params["log_session_id"])


class StartDeviceLogCapTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="start_device_log_cap",
            description=(
                "Launch an app on a physical device with console output capture. Returns "
                "a session ID for stop_device_log_cap."
            ),
            workflow=WORKFLOW,
            input_schema=object_schema(
                {"device_id": DEVICE_ID, "bundle_id": BUNDLE_ID},
                required=["device_id", "bundle_id"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        session = await ctx.log_capture.start_device_capture(params["device_id"], params["bundle_id"])
        record(ctx, AuditEvent.LOG_CAPTURE_START, "start_device_log_cap", **session.describe())
        return _started(
            "stop_device_log_cap",
            session,
            "The app has been launched on the device with console output capture enabled.",
        )


class StopDeviceLogCapTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="stop_device_log_cap",
            description="Stop a device log capture session and return the captured logs.",
            workflow=WORKFLOW,
            input_schema=object_schema({"log_session_id": LOG_SESSION_ID}, required=["log_session_id"]),
            use_session_defaults=False,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        return await _stop(ctx, "stop_device_log_cap", CaptureTarget.DEVICE, params["log_session_id"])
