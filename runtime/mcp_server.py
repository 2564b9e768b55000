"""XcodeKit MCP server — exposes the tool catalog over stdio transport."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from runtime.mcp_helpers import XcodeKitComponents, init_xcodekit

# ── Initialisation ────────────────────────────────────────────────────

_components: XcodeKitComponents | None = None

mcp = FastMCP("xcodekit")


def _get_components() -> XcodeKitComponents:
    """Return initialised components, lazily loading on first access."""
    global _components  # noqa: PLW0603
    if _components is None:
        _components = init_xcodekit()
    return _components


def set_components(components: XcodeKitComponents | None) -> None:
    global _components  # noqa: PLW0603
    _components = components


async def _run_tool(tool_name: str, args: dict[str, Any]) -> str:
    """Invoke a tool and return the JSON-serialised ToolResponse.

    ``None`` arguments are dropped so omitted parameters fall back to
    session defaults.
    """
    c = _get_components()
    arguments = {k: v for k, v in args.items() if v is not None}
    response = await c.invoker.invoke(tool_name, arguments, transport="mcp")
    return response.model_dump_json()


# ── Session ───────────────────────────────────────────────────────────


@mcp.tool()
async def session_set_defaults(
    project_path: str | None = None,
    workspace_path: str | None = None,
    scheme: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    use_latest_os: bool | None = None,
    device_id: str | None = None,
    bundle_id: str | None = None,
    arch: str | None = None,
) -> str:
    """Remember default parameter values used when later calls omit them."""
    return await _run_tool("session_set_defaults", dict(locals()))


@mcp.tool()
async def session_clear_defaults(keys: list[str] | None = None) -> str:
    """Forget all session defaults, or only the listed keys."""
    return await _run_tool("session_clear_defaults", {"keys": keys})


@mcp.tool()
async def session_show_defaults() -> str:
    """Show the current session defaults."""
    return await _run_tool("session_show_defaults", {})


# ── Project ───────────────────────────────────────────────────────────


@mcp.tool()
async def list_schemes(project_path: str | None = None, workspace_path: str | None = None) -> str:
    """List the schemes of an Xcode project or workspace."""
    return await _run_tool("list_schemes", dict(locals()))


@mcp.tool()
async def show_build_settings(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Show xcodebuild build settings for a scheme."""
    return await _run_tool("show_build_settings", dict(locals()))


@mcp.tool()
async def clean(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Remove build products for a scheme."""
    return await _run_tool("clean", dict(locals()))


# ── Simulator ─────────────────────────────────────────────────────────


@mcp.tool()
async def list_sims() -> str:
    """List available simulators grouped by runtime."""
    return await _run_tool("list_sims", {})


@mcp.tool()
async def build_sim(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Build an app for a simulator."""
    return await _run_tool("build_sim", dict(locals()))


@mcp.tool()
async def build_run_sim(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Build an app, then install and launch it on a simulator."""
    return await _run_tool("build_run_sim", dict(locals()))


@mcp.tool()
async def test_sim(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Run the scheme's tests on a simulator."""
    return await _run_tool("test_sim", dict(locals()))


@mcp.tool()
async def get_sim_app_path(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Get the path of the app built for a simulator."""
    return await _run_tool("get_sim_app_path", dict(locals()))


@mcp.tool()
async def install_app_sim(
    app_path: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
) -> str:
    """Install a built .app on a simulator."""
    return await _run_tool("install_app_sim", dict(locals()))


@mcp.tool()
async def launch_app_sim(
    bundle_id: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    args: list[str] | None = None,
) -> str:
    """Launch an installed app on a simulator."""
    return await _run_tool("launch_app_sim", dict(locals()))


@mcp.tool()
async def stop_app_sim(
    bundle_id: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
) -> str:
    """Terminate a running app on a simulator."""
    return await _run_tool("stop_app_sim", dict(locals()))



# ── Device ────────────────────────────────────────────────────────────


@mcp.tool()
async def list_devices() -> str:
    """List connected physical Apple devices."""
    return await _run_tool("list_devices", {})


@mcp.tool()
async def build_device(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    device_id: str | None = None,
    platform: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Build an app for a physical device."""
    return await _run_tool("build_device", dict(locals()))


@mcp.tool()
async def test_device(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    device_id: str | None = None,
    platform: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Run the scheme's tests on a physical device."""
    return await _run_tool("test_device", dict(locals()))


@mcp.tool()
async def get_device_app_path(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    platform: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Get the path of the app built for a physical device platform."""
    return await _run_tool("get_device_app_path", dict(locals()))



@mcp.tool()
async def install_app_device(device_id: str | None = None, app_path: str | None = None) -> str:
    """Install a built .app on a physical device."""
    return await _run_tool("install_app_device", dict(locals()))


@mcp.tool()
async def launch_app_device(device_id: str | None = None, bundle_id: str | None = None) -> str:
    """Launch an installed app on a physical device."""
    return await _run_tool("launch_app_device", dict(locals()))


@mcp.tool()
async def stop_app_device(device_id: str | None = None, process_id: int | None = None) -> str:
    """Terminate a running app on a physical device by process ID."""
    return await _run_tool("stop_app_device", dict(locals()))



# ── macOS ─────────────────────────────────────────────────────────────


@mcp.tool()
async def build_macos(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    arch: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Build a macOS app."""
    return await _run_tool("build_macos", dict(locals()))


@mcp.tool()
async def test_macos(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    arch: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Run the scheme's tests on macOS."""
    return await _run_tool("test_macos", dict(locals()))


@mcp.tool()
async def get_macos_app_path(
    scheme: str | None = None,
    project_path: str | None = None,
    workspace_path: str | None = None,
    arch: str | None = None,
    configuration: str | None = None,
    derived_data_path: str | None = None,
    extra_args: list[str] | None = None,
) -> str:
    """Get the path of the built macOS app."""
    return await _run_tool("get_macos_app_path", dict(locals()))



@mcp.tool()
async def launch_mac_app(app_path: str, args: list[str] | None = None) -> str:
    """Launch a macOS .app bundle."""
    return await _run_tool("launch_mac_app", dict(locals()))


@mcp.tool()
async def stop_mac_app(app_name: str | None = None, process_id: int | None = None) -> str:
    """Stop a running macOS app by process ID or by name."""
    return await _run_tool("stop_mac_app", dict(locals()))


# ── Swift Package ─────────────────────────────────────────────────────


@mcp.tool()
async def swift_package_build(
    package_path: str,
    configuration: str | None = None,
    parse_as_library: bool | None = None,
    target_name: str | None = None,
    architectures: list[str] | None = None,
) -> str:
    """Build a Swift package."""
    return await _run_tool("swift_package_build", dict(locals()))


@mcp.tool()
async def swift_package_test(
    package_path: str,
    configuration: str | None = None,
    parse_as_library: bool | None = None,
    test_product: str | None = None,
    filter: str | None = None,
    parallel: bool | None = None,
    show_codecov: bool | None = None,
) -> str:
    """Run a Swift package's tests."""
    return await _run_tool("swift_package_test", dict(locals()))


@mcp.tool()
async def swift_package_run(
    package_path: str,
    configuration: str | None = None,
    parse_as_library: bool | None = None,
    executable_name: str | None = None,
    arguments: list[str] | None = None,
    timeout: float | None = None,
) -> str:
    """Build and run an executable product of a Swift package."""
    return await _run_tool("swift_package_run", dict(locals()))



# ── Logging ───────────────────────────────────────────────────────────


@mcp.tool()
async def start_sim_log_cap(
    bundle_id: str | None = None,
    simulator_id: str | None = None,
    simulator_name: str | None = None,
    platform: str | None = None,
    use_latest_os: bool | None = None,
    capture_console: bool | None = None,
    args: list[str] | None = None,
    subsystem_filter: str | list[str] | None = None,
) -> str:
    """Start capturing logs from an app on a simulator; returns a session ID."""
    return await _run_tool("start_sim_log_cap", dict(locals()))


@mcp.tool()
async def stop_sim_log_cap(log_session_id: str) -> str:
    """Stop a simulator log capture session and return the captured logs."""
    return await _run_tool("stop_sim_log_cap", {"log_session_id": log_session_id})


@mcp.tool()
async def start_device_log_cap(device_id: str | None = None, bundle_id: str | None = None) -> str:
    """Launch an app on a device with console capture; returns a session ID."""
    return await _run_tool("start_device_log_cap", dict(locals()))


@mcp.tool()
async def stop_device_log_cap(log_session_id: str) -> str:
    """Stop a device log capture session and return the captured logs."""
    return await _run_tool("stop_device_log_cap", {"log_session_id": log_session_id})


# ── Entry point ───────────────────────────────────────────────────────

if __name__ == "__main__":
    mcp.run(transport="stdio")
