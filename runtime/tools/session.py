"""Session-default tools: remember, forget and show default parameter values."""

from __future__ import annotations

import json

from contracts.parameters import ExclusivePair, ResolvedParameters
from contracts.response import NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.responses import text_response
from runtime.tools.base import (
    ARCH,
    BUILD_PROPERTIES,
    BUNDLE_ID,
    DEVICE_ID,
    EXCLUSIVE_DEFAULTS,
    SIMULATOR_ID,
    SIMULATOR_NAME,
    USE_LATEST_OS,
    object_schema,
)

WORKFLOW = "session"

DEFAULTABLE_PROPERTIES = {
    **BUILD_PROPERTIES,
    "simulator_id": SIMULATOR_ID,
    "simulator_name": SIMULATOR_NAME,
    "use_latest_os": USE_LATEST_OS,
    "device_id": DEVICE_ID,
    "bundle_id": BUNDLE_ID,
    "arch": ARCH,
}


def _dump(defaults: dict) -> str:
    return json.dumps(defaults, indent=2, sort_keys=True) if defaults else "(none)"


class SessionSetDefaultsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="session_set_defaults",
            description=(
                "Remember default parameter values (project, scheme, simulator, device...) "
                "used by later tool calls when the argument is omitted."
            ),
            workflow=WORKFLOW,
            input_schema=object_schema(DEFAULTABLE_PROPERTIES),
            requirements=[ExclusivePair(first=a, second=b) for a, b in EXCLUSIVE_DEFAULTS],
            use_session_defaults=False,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        store = ctx.session_store
        updates = dict(params.values)
        if not updates:
            return text_response(
                "No defaults provided. Current defaults:\n" + _dump(store.get_defaults())
            )

        notes = []
        for first, second in EXCLUSIVE_DEFAULTS:
            for new, stored in ((first, second), (second, first)):
                if new in updates and stored in store:
                    store.clear([stored])
                    notes.append(f"Cleared {stored} because {new} was set.")
        store.set_defaults(updates)

        lines = ["✅ Session defaults updated.", "", _dump(store.get_defaults())]
        if notes:
            lines += [""] + notes
        return text_response(
            "\n".join(lines),
            next_steps=[NextStep(tool="session_show_defaults", label="Review stored defaults")],
        )


class SessionClearDefaultsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="session_clear_defaults",
            description="Forget all session defaults, or only the listed keys.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                {
                    "keys": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Keys to remove. Omit to clear everything.",
                    }
                }
            ),
            use_session_defaults=False,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        store = ctx.session_store
        keys = params.get("keys")
        if keys is None:
            store.clear()
            return text_response("✅ All session defaults cleared.")
        store.clear(keys)
        return text_response(
            f"✅ Cleared session defaults: {', '.join(keys) or '(none)'}\n\n"
            f"Remaining defaults:\n{_dump(store.get_defaults())}"
        )


class SessionShowDefaultsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="session_show_defaults",
            description="Show the current session defaults.",
            workflow=WORKFLOW,
            input_schema=object_schema({}),
            use_session_defaults=False,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        return text_response("Current session defaults:\n" + _dump(ctx.session_store.get_defaults()))
