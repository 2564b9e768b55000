"""Project discovery tools: schemes, build settings, clean."""

from __future__ import annotations

import logging

from contracts.parameters import ResolvedParameters
from contracts.response import ContentFragment, NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.build_output import interpret, render, require_success
from runtime.responses import text_response
from runtime.tools.base import (
    BUILD_PROPERTIES,
    PROJECT_PATH,
    PROJECT_RULES,
    WORKSPACE_PATH,
    object_schema,
)
from runtime.xcodebuild import (
    BuildRequest,
    build_command,
    list_schemes_command,
    run_xcodebuild,
    show_build_settings_command,
)

logger = logging.getLogger(__name__)

WORKFLOW = "project"


def parse_schemes(output: str) -> list[str]:
    """Scheme names from the ``Schemes:`` block of ``xcodebuild -list``."""
    schemes: list[str] = []
    in_block = False
    for line in (output or "").splitlines():
        stripped = line.strip()
        if stripped == "Schemes:":
            in_block = True
            continue
        if in_block:
            if not stripped or stripped.endswith(":"):
                break
            schemes.append(stripped)
    return schemes


class ListSchemesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="list_schemes",
            description="List the schemes of an Xcode project or workspace.",
            workflow=WORKFLOW,
            input_schema=object_schema({"project_path": PROJECT_PATH, "workspace_path": WORKSPACE_PATH}),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        command = list_schemes_command(params.get("project_path"), params.get("workspace_path"))
        result = require_success(await ctx.executor(command, "List Schemes"), "list schemes")
        schemes = parse_schemes(result.output)
        logger.info("Found %d scheme(s)", len(schemes))
        if not schemes:
            return text_response("No schemes found.")

        container = {
            k: params[k] for k in ("project_path", "workspace_path") if k in params
        }
        first = schemes[0]
        return text_response(
            "✅ Available schemes:\n" + "\n".join(f"- {s}" for s in schemes),
            next_steps=[
                NextStep(
                    tool="show_build_settings",
                    label="Inspect build settings",
                    params={**container, "scheme": first},
                    priority=1,
                ),
                NextStep(
                    tool="build_sim",
                    label="Build for a simulator",
                    params={**container, "scheme": first, "simulator_name": "iPhone 16"},
                    priority=2,
                ),
            ],
        )


class ShowBuildSettingsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="show_build_settings",
            description="Show xcodebuild build settings for a scheme.",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        result = await run_xcodebuild(
            ctx.executor, show_build_settings_command(request), "Show Build Settings"
        )
        require_success(result, "show build settings")
        return ToolResponse(
            content=[
                ContentFragment(label="summary", text=f"✅ Build settings for scheme {request.scheme}:"),
                ContentFragment(label="output", text=result.output.strip() or "(no output)"),
            ]
        )


class CleanTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="clean",
            description="Remove build products for a scheme (xcodebuild clean).",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        result = await run_xcodebuild(ctx.executor, build_command(request, "clean"), "Clean")
        return render(interpret([result], "clean", f"scheme {request.scheme}"))
