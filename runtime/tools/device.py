"""Physical device tools: list, build, test, app path, install, launch, stop."""

from __future__ import annotations

from contracts.parameters import ResolvedParameters
from contracts.response import NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.build_output import extract_app_path, interpret, read_bundle_id, render, require_success
from runtime.devices import list_devices, render_device_list
from runtime.responses import text_response
from runtime.tools.base import (
    APP_PATH,
    BUILD_PROPERTIES,
    BUNDLE_ID,
    DEVICE_ID,
    DEVICE_PLATFORM,
    ENV,
    PROCESS_ID,
    PROJECT_RULES,
    object_schema,
    resolve_device,
)
from runtime.xcodebuild import (
    BuildRequest,
    build_command,
    run_xcodebuild,
    runner_env,
    show_build_settings_command,
)

WORKFLOW = "device"


class ListDevicesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="list_devices",
            description="List connected physical Apple devices with their UDIDs and connection state.",
            workflow=WORKFLOW,
            input_schema=object_schema({}),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        devices = await list_devices(ctx.executor, ctx.config.log_capture.temp_dir)
        available = [d for d in devices if d.available]
        steps = []
        if available:
            steps = [
                NextStep(
                    tool="session_set_defaults",
                    label="Remember this device",
                    params={"device_id": available[0].identifier},
                ),
                NextStep(
                    tool="build_device",
                    label="Build for it",
                    params={"device_id": available[0].identifier},
                    priority=2,
                ),
            ]
        return text_response(render_device_list(devices), next_steps=steps)


class BuildDeviceTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="build_device",
            description=(
                "Build an app for a physical device. Without device_id the generic "
                "platform destination is used."
            ),
            workflow=WORKFLOW,
            input_schema=object_schema(
                BUILD_PROPERTIES,
                {"device_id": DEVICE_ID, "platform": DEVICE_PLATFORM},
                required=["scheme"],
            ),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_device(ctx, params)
        result = await run_xcodebuild(
            ctx.executor, build_command(request, "build", destination.value), "Device Build"
        )
        steps = [
            NextStep(
                tool="get_device_app_path",
                label="Get the built app path",
                params={**request.as_params(), "platform": destination.platform.value},
            )
        ]
        return render(interpret([result], "device build", f"scheme {request.scheme}"), next_steps=steps)


class RunDeviceTestsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="test_device",
            description="Run the scheme's tests on a physical device.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                BUILD_PROPERTIES,
                {"device_id": DEVICE_ID, "platform": DEVICE_PLATFORM, "env": ENV},
                required=["scheme", "device_id"],
            ),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_device(ctx, params)
        result = await run_xcodebuild(
            ctx.executor,
            build_command(request, "test", destination.value),
            "Device Test",
            env=runner_env(params.get("env")),
        )
        return render(interpret([result], "device test run", f"scheme {request.scheme}"))


class GetDeviceAppPathTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="get_device_app_path",
            description="Get the path of the app built for a physical device platform.",
            workflow=WORKFLOW,
            input_schema=object_schema(BUILD_PROPERTIES, {"platform": DEVICE_PLATFORM}, required=["scheme"]),
            requirements=PROJECT_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_device(ctx, params)
        settings = await run_xcodebuild(
            ctx.executor, show_build_settings_command(request, destination.value), "Get App Path"
        )
        require_success(settings, "get app path")
        app_path = extract_app_path(settings.output)
        return text_response(
            f"✅ App path for scheme {request.scheme}: {app_path}",
            next_steps=[
                NextStep(tool="install_app_device", label="Install on a device", params={"app_path": app_path})
            ],
        )


class InstallAppDeviceTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="install_app_device",
            description="Install a built .app on a physical device.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                {"device_id": DEVICE_ID, "app_path": APP_PATH},
                required=["device_id", "app_path"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        device_id, app_path = params["device_id"], params["app_path"]
        result = await ctx.executor(
            ["xcrun", "devicectl", "device", "install", "app", "--device", device_id, app_path],
            "Install App on Device",
        )
        require_success(result, "install app on device")
        launch = {"device_id": device_id}
        bundle_id = read_bundle_id(app_path)
        if bundle_id:
            launch["bundle_id"] = bundle_id
        return text_response(
            f"✅ Installed {app_path} on device {device_id}.",
            next_steps=[NextStep(tool="launch_app_device", label="Launch the app", params=launch)],
        )


class LaunchAppDeviceTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="launch_app_device",
            description="Launch an installed app on a physical device.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                {"device_id": DEVICE_ID, "bundle_id": BUNDLE_ID},
                required=["device_id", "bundle_id"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        device_id, bundle_id = params["device_id"], params["bundle_id"]
        result = await ctx.executor(
            [
                "xcrun", "devicectl", "device", "process", "launch",
                "--terminate-existing", "--device", device_id, bundle_id,
            ],
            "Launch App on Device",
        )
        require_success(result, "launch app on device")
        return text_response(
            f"✅ Launched {bundle_id} on device {device_id}.",
            next_steps=[
                NextStep(
                    tool="start_device_log_cap",
                    label="Capture console output",
                    params={"device_id": device_id, "bundle_id": bundle_id},
                )
            ],
        )


class StopAppDeviceTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="stop_app_device",
            description="Terminate a running app on a physical device by process ID.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                {"device_id": DEVICE_ID, "process_id": PROCESS_ID},
                required=["device_id", "process_id"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        device_id, pid = params["device_id"], params["process_id"]
        result = await ctx.executor(
            [
                "xcrun", "devicectl", "device", "process", "terminate",
                "--device", device_id, "--pid", str(pid),
            ],
            "Stop App on Device",
        )
        require_success(result, "stop app on device")
        return text_response(f"✅ Stopped process {pid} on device {device_id}.")
