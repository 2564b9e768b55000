"""Simulator tools: list, build, build-and-run, test, app path, install, launch, stop."""

from __future__ import annotations

import logging

from contracts.parameters import ResolvedParameters
from contracts.response import ContentFragment, NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.build_output import (
    extract_app_path,
    extract_bundle_id,
    interpret,
    read_bundle_id,
    render,
    require_success,
)
from runtime.responses import text_response
from runtime.tools.base import (
    APP_PATH,
    BUILD_PROPERTIES,
    BUNDLE_ID,
    ENV,
    LAUNCH_ARGS,
    PROJECT_RULES,
    SIMULATOR_PROPERTIES,
    SIMULATOR_RULES,
    object_schema,
    resolve_simulator,
)
from runtime.xcodebuild import (
    BuildRequest,
    build_command,
    run_xcodebuild,
    runner_env,
    show_build_settings_command,
)

logger = logging.getLogger(__name__)

WORKFLOW = "simulator"


def boot_command(simulator_id: str) -> list[str]:
    return ["xcrun", "simctl", "boot", simulator_id]


def install_command(simulator_id: str, app_path: str) -> list[str]:
    return ["xcrun", "simctl", "install", simulator_id, app_path]


def terminate_command(simulator_id: str, bundle_id: str) -> list[str]:
    return ["xcrun", "simctl", "terminate", simulator_id, bundle_id]


def launch_command(simulator_id: str, bundle_id: str, args: list[str] | None = None) -> list[str]:
    return ["xcrun", "simctl", "launch", simulator_id, bundle_id, *(args or [])]


def _build_definition(name: str, description: str, extra: dict | None = None) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        workflow=WORKFLOW,
        input_schema=object_schema(BUILD_PROPERTIES, SIMULATOR_PROPERTIES, extra or {}, required=["scheme"]),
        requirements=PROJECT_RULES + SIMULATOR_RULES,
    )


class ListSimsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="list_sims",
            description="List available simulators grouped by runtime.",
            workflow=WORKFLOW,
            input_schema=object_schema({}),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        listing = await ctx.destinations.list_simulators()
        lines = ["Available simulators:"]
        first_udid = None
        for runtime, sims in listing.items():
            if not sims:
                continue
            lines.append(f"\n{runtime.rsplit('.', 1)[-1]}:")
            for sim in sims:
                first_udid = first_udid or sim.udid
                booted = " [Booted]" if sim.booted else ""
                lines.append(f"- {sim.name} ({sim.udid}){booted}")
        if first_udid is None:
            return text_response("No available simulators found.")
        return text_response(
            "\n".join(lines),
            next_steps=[
                NextStep(
                    tool="session_set_defaults",
                    label="Remember a simulator",
                    params={"simulator_id": first_udid},
                ),
                NextStep(
                    tool="build_sim",
                    label="Build for it",
                    params={"simulator_id": first_udid},
                    priority=2,
                ),
            ],
        )


class BuildSimTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return _build_definition("build_sim", "Build an app for a simulator.")

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_simulator(ctx, params)
        result = await run_xcodebuild(
            ctx.executor, build_command(request, "build", destination.value), "Simulator Build"
        )
        outcome = interpret([result], "simulator build", f"scheme {request.scheme}")
        target = {"simulator_id": destination.simulator_id}
        return render(
            outcome,
            next_steps=[
                NextStep(
                    tool="get_sim_app_path",
                    label="Get the built app path",
                    params={"scheme": request.scheme, **target},
                ),
                NextStep(
                    tool="build_run_sim",
                    label="Build, install and launch in one step",
                    params={"scheme": request.scheme, **target},
                    priority=2,
                ),
            ],
        )


class BuildRunSimTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return _build_definition(
            "build_run_sim",
            "Build an app, then install and launch it on a simulator.",
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_simulator(ctx, params)
        simulator_id = destination.simulator_id

        build = await run_xcodebuild(
            ctx.executor, build_command(request, "build", destination.value), "Simulator Build"
        )
        if not build.success:
            return render(interpret([build], "simulator build", f"scheme {request.scheme}"))

        settings = await run_xcodebuild(
            ctx.executor,
            show_build_settings_command(request, destination.value),
            "Get App Path",
        )
        require_success(settings, "read build settings")
        app_path = extract_app_path(settings.output)
        bundle_id = extract_bundle_id(settings.output)

        boot = await ctx.executor(boot_command(simulator_id), "Boot Simulator")
        if not boot.success and "Booted" not in (boot.error or ""):
            require_success(boot, "boot simulator")

        opened = await ctx.executor(["open", "-a", "Simulator"], "Open Simulator App")
        if not opened.success:
            logger.warning("Could not open the Simulator app: %s", opened.error)

        require_success(
            await ctx.executor(install_command(simulator_id, app_path), "Install App"),
            "install app",
        )
        require_success(
            await ctx.executor(launch_command(simulator_id, bundle_id), "Launch App"),
            "launch app",
        )

        return render(
            interpret([build], "build and run", f"scheme {request.scheme}"),
            next_steps=[
                NextStep(
                    tool="start_sim_log_cap",
                    label="Capture app logs",
                    params={"simulator_id": simulator_id, "bundle_id": bundle_id},
                ),
                NextStep(
                    tool="launch_app_sim",
                    label="Relaunch the app",
                    params={"simulator_id": simulator_id, "bundle_id": bundle_id},
                    priority=2,
                ),
            ],
            extra=[
                ContentFragment(
                    label="output",
                    text=(
                        f"App path: {app_path}\nBundle ID: {bundle_id}\n"
                        f"Launched on simulator {simulator_id}."
                    ),
                )
            ],
        )


class RunSimTestsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return _build_definition(
            "test_sim",
            "Run the scheme's tests on a simulator.",
            {"env": ENV},
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_simulator(ctx, params)
        result = await run_xcodebuild(
            ctx.executor,
            build_command(request, "test", destination.value),
            "Simulator Test",
            env=runner_env(params.get("env")),
        )
        return render(interpret([result], "test run", f"scheme {request.scheme}"))


class GetSimAppPathTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return _build_definition("get_sim_app_path", "Get the path of the app built for a simulator.")

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        request = BuildRequest.from_params(params)
        destination = await resolve_simulator(ctx, params)
        settings = await run_xcodebuild(
            ctx.executor,
            show_build_settings_command(request, destination.value),
            "Get App Path",
        )
        require_success(settings, "get app path")
        app_path = extract_app_path(settings.output)
        return text_response(
            f"✅ App path for scheme {request.scheme}: {app_path}",
            next_steps=[
                NextStep(
                    tool="install_app_sim",
                    label="Install the app",
                    params={"simulator_id": destination.simulator_id, "app_path": app_path},
                ),
            ],
        )


class InstallAppSimTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="install_app_sim",
            description="Install a built .app on a simulator.",
            workflow=WORKFLOW,
            input_schema=object_schema(SIMULATOR_PROPERTIES, {"app_path": APP_PATH}, required=["app_path"]),
            requirements=SIMULATOR_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        destination = await resolve_simulator(ctx, params)
        app_path = params["app_path"]
        require_success(
            await ctx.executor(install_command(destination.simulator_id, app_path), "Install App"),
            "install app",
        )
        launch = {"simulator_id": destination.simulator_id}
        bundle_id = read_bundle_id(app_path)
        if bundle_id:
            launch["bundle_id"] = bundle_id
        return text_response(
            f"✅ Installed {app_path} on simulator {destination.simulator_id}.",
            next_steps=[NextStep(tool="launch_app_sim", label="Launch the app", params=launch)],
        )


class LaunchAppSimTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="launch_app_sim",
            description="Launch an installed app on a simulator.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                SIMULATOR_PROPERTIES,
                {"bundle_id": BUNDLE_ID, "args": LAUNCH_ARGS},
                required=["bundle_id"],
            ),
            requirements=SIMULATOR_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        destination = await resolve_simulator(ctx, params)
        bundle_id = params["bundle_id"]
        result = await ctx.executor(
            launch_command(destination.simulator_id, bundle_id, params.get("args")), "Launch App"
        )
        require_success(result, "launch app")
        return text_response(
            f"✅ Launched {bundle_id} on simulator {destination.simulator_id}.",
            next_steps=[
                NextStep(
                    tool="start_sim_log_cap",
                    label="Capture app logs",
                    params={"simulator_id": destination.simulator_id, "bundle_id": bundle_id},
                ),
            ],
        )


class StopAppSimTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="stop_app_sim",
            description="Terminate a running app on a simulator.",
            workflow=WORKFLOW,
            input_schema=object_schema(SIMULATOR_PROPERTIES, {"bundle_id": BUNDLE_ID}, required=["bundle_id"]),
            requirements=SIMULATOR_RULES,
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        destination = await resolve_simulator(ctx, params)
        bundle_id = params["bundle_id"]
        require_success(
            await ctx.executor(terminate_command(destination.simulator_id, bundle_id), "Stop App"),
            "stop app",
        )
        return text_response(f"✅ Stopped {bundle_id} on simulator {destination.simulator_id}.")
