"""Shared schema fragments, requirement rules and helpers for XcodeKit tools."""

from __future__ import annotations

from typing import Any, Iterable

from contracts.audit import AuditEntry, AuditEvent
from contracts.destination import (
    DEVICE_PLATFORMS,
    SIMULATOR_PLATFORMS,
    Destination,
    DestinationSpec,
    Platform,
)
from contracts.parameters import ExclusivePair, OneOf, ResolvedParameters
from contracts.tool_sdk import ToolContext

# ── Schema fragments ─────────────────────────────────────────────────

PROJECT_PATH = {"type": "string", "description": "Path to the .xcodeproj file."}
WORKSPACE_PATH = {"type": "string", "description": "Path to the .xcworkspace file."}
SCHEME = {"type": "string", "description": "The scheme to use."}
CONFIGURATION = {"type": "string", "description": "Build configuration (Debug, Release, ...). Defaults to Debug."}
DERIVED_DATA_PATH = {"type": "string", "description": "Path where build products and intermediates go."}
EXTRA_ARGS = {"type": "array", "items": {"type": "string"}, "description": "Additional xcodebuild arguments."}
SIMULATOR_ID = {"type": "string", "description": "UUID of the simulator (from list_sims)."}
SIMULATOR_NAME = {"type": "string", "description": "Name of the simulator, e.g. 'iPhone 16'."}
USE_LATEST_OS = {"type": "boolean", "description": "Prefer the newest runtime when resolving a simulator name."}
SIMULATOR_PLATFORM = {"type": "string", "enum": SIMULATOR_PLATFORMS, "description": "Simulator platform."}
DEVICE_ID = {"type": "string", "description": "UDID of the device (from list_devices)."}
DEVICE_PLATFORM = {"type": "string", "enum": DEVICE_PLATFORMS, "description": "Device platform."}
BUNDLE_ID = {"type": "string", "description": "Bundle identifier of the app, e.g. com.example.MyApp."}
APP_PATH = {"type": "string", "description": "Path to the .app bundle."}
ARCH = {"type": "string", "enum": ["arm64", "x86_64"], "description": "Architecture to build for."}
LAUNCH_ARGS = {"type": "array", "items": {"type": "string"}, "description": "Arguments passed to the app."}
PROCESS_ID = {"type": "integer", "minimum": 1, "description": "Process ID of the running app."}
APP_NAME = {"type": "string", "description": "Name of the running macOS app, e.g. Calculator."}
ENV = {
    "type": "object",
    "additionalProperties": {"type": "string"},
    "description": "Environment variables for the process.",
}

BUILD_PROPERTIES: dict[str, Any] = {
    "project_path": PROJECT_PATH,
    "workspace_path": WORKSPACE_PATH,
    "scheme": SCHEME,
    "configuration": CONFIGURATION,
    "derived_data_path": DERIVED_DATA_PATH,
    "extra_args": EXTRA_ARGS,
}

SIMULATOR_PROPERTIES: dict[str, Any] = {
    "simulator_id": SIMULATOR_ID,
    "simulator_name": SIMULATOR_NAME,
    "use_latest_os": USE_LATEST_OS,
    "platform": SIMULATOR_PLATFORM,
}


def object_schema(*property_sets: dict[str, Any], required: Iterable[str] = ()) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for props in property_sets:
        properties.update(props)
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    required = list(required)
    if required:
        schema["required"] = required
    return schema


# ── Requirement rules ────────────────────────────────────────────────

PROJECT_RULES = [
    OneOf(
        fields=["project_path", "workspace_path"],
        message="Provide a project or workspace: project_path or workspace_path",
    ),
    ExclusivePair(first="project_path", second="workspace_path"),
]

SIMULATOR_RULES = [
    OneOf(
        fields=["simulator_id", "simulator_name"],
        message="Provide a simulator: simulator_id or simulator_name",
    ),
    ExclusivePair(first="simulator_id", second="simulator_name"),
]

# Pairs that session_set_defaults keeps exclusive in the store.
EXCLUSIVE_DEFAULTS = [
    ("project_path", "workspace_path"),
    ("simulator_id", "simulator_name"),
]


# ── Helpers ──────────────────────────────────────────────────────────


async def resolve_simulator(ctx: ToolContext, params: ResolvedParameters) -> Destination:
    spec = DestinationSpec(
        platform=Platform(params.get("platform", Platform.IOS_SIMULATOR.value)),
        simulator_id=params.get("simulator_id"),
        simulator_name=params.get("simulator_name"),
        use_latest_os=params.get("use_latest_os", True),
    )
    return await ctx.destinations.resolve(spec)


async def resolve_device(ctx: ToolContext, params: ResolvedParameters) -> Destination:
    spec = DestinationSpec(
        platform=Platform(params.get("platform", Platform.IOS.value)),
        device_id=params.get("device_id"),
    )
    return await ctx.destinations.resolve(spec)


def record(ctx: ToolContext, event: AuditEvent, tool: str, **detail: Any) -> None:
    if ctx.audit is None:
        return
    ctx.audit.log(
        AuditEntry(
            request_id=ctx.request_id,
            event=event,
            app=ctx.config.app.name,
            tool=tool,
            detail=detail,
        )
    )
