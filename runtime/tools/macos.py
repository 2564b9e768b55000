"""macOS tools."""

from __future__ import annotations

from contracts.destination import Destination, DestinationSpec, Platform
from contracts.parameters import OneOf, ResolvedParameters
from contracts.response import NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.build_output import extract_app_path, interpret, render, require_success
from runtime.responses import text_response
from runtime.tools.base import (
    APP_NAME,
    APP_PATH,
    ARCH,
    BUILD_PROPERTIES,
    ENV,
    LAUNCH_ARGS,
    PROCESS_ID,
    PROJECT_RULES,
    object_schema,
)
from runtime.xcodebuild import (
    BuildRequest,
    build_command,
    run_xcodebuild,
    runner_env,
    show_build_settings_command,
)

WORKFLOW = "macos"


async def _destination(ctx: ToolContext, params: ResolvedParameters) -> Destination:
    return await ctx.destinations.resolve(DestinationSpec(platform=Platform.MACOS, arch=params.get("arch")))


class BuildMacosTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="build_macos",
            description="Build a macOS app.",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, {"arch": ARCH}, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await _destination(ctx, params)
        result = await run_xcodebuild(
            ctx.executor, build_command(request, "build", destination.value), "macOS Build"
        )
        follow_up = request.as_params()
        if params.get("arch"):
            follow_up["arch"] = params["arch"]
        return render(
            interpret([result], "macOS build", f"scheme {request.scheme}"),
            next_steps=[
                NextStep(tool="get_macos_app_path", label="Get the built app path", params=follow_up)
            ],
        )


class RunMacosTestsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="test_macos",
            description="Run the scheme's tests on macOS.",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, {"arch": ARCH, "env": ENV}, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await _destination(ctx, params)
        result = await run_xcodebuild(
            ctx.executor,
            build_command(request, "test", destination.value),
            "macOS Test",
            env=runner_env(params.get("env")),
        )
        return render(interpret([result], "macOS test run", f"scheme {request.scheme}"))


class GetMacosAppPathTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="get_macos_app_path",
            description="Get the path of the built macOS app.",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, {"arch": ARCH}, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await _destination(ctx, params)
        settings = await run_xcodebuild(
            ctx.executor, show_build_settings_command(request, destination.value), "Get App Path"
        )
        require_success(settings, "get app path")
        app_path = extract_app_path(settings.output)
        return text_response(
            f"✅ App path for scheme {request.scheme}: {app_path}",
            next_steps=[NextStep(tool="launch_mac_app", label="Launch the app", params={"app_path": app_path})],
        )


class LaunchMacAppTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="launch_mac_app",
            description="Launch a macOS .app bundle.",
            workflow=WORKFLOW,
            input_schema=object_schema({"app_path": APP_PATH, "args": LAUNCH_ARGS}, required=["app_path"]),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        app_path = params["app_path"]
        command = ["open", app_path]
        if params.get("args"):
            command += ["--args", *params["args"]]
        require_success(await ctx.executor(command, "Launch macOS App"), "launch macOS app")
        return text_response(f"✅ Launched {app_path}.")


class StopMacAppTool(BaseTool):
    """Stops by process ID when given, otherwise by name with an AppleScript quit as fallback."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="stop_mac_app",
            description="Stop a running macOS app by process ID or by name.",
            workflow=WORKFLOW,
            input_schema=object_schema({"app_name": APP_NAME, "process_id": PROCESS_ID}),
            requirements=[
                OneOf(
                    fields=["process_id", "app_name"],
                    message="Provide an app to stop: process_id or app_name",
                )
            ],
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        pid = params.get("process_id")
        if pid is not None:
            require_success(await ctx.executor(["kill", str(pid)], "Stop macOS App"), "stop macOS app")
            return text_response(f"✅ Stopped process {pid}.")

        name = params["app_name"]
        result = await ctx.executor(["pkill", "-f", name], "Stop macOS App")
        if not result.success:
            result = await ctx.executor(
                ["osascript", "-e", f'tell application "{name}" to quit'], "Quit macOS App"
            )
        require_success(result, "stop macOS app")
        return text_response(f"✅ Stopped {name}.")
