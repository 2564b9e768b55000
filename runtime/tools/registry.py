"""Tool registry — register, look up and export XcodeKit tools."""

from __future__ import annotations

from typing import Any

from contracts.tool_sdk import BaseTool, ToolDefinition


class ToolRegistry:
    """In-memory registry of available tools."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance.  Overwrites if the name already exists."""
        self._tools[tool.definition().name] = tool

    def get(self, name: str) -> BaseTool:
        """Return a registered tool by name, or raise ``KeyError``."""
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def list_tools(self, workflow: str | None = None) -> list[str]:
        """Sorted tool names, optionally limited to one workflow."""
        return sorted(
            name for name, tool in self._tools.items()
            if workflow is None or tool.definition().workflow == workflow
        )

    def definitions(self) -> list[ToolDefinition]:
        return [self._tools[name].definition() for name in sorted(self._tools)]

    def workflows(self) -> list[str]:
        return sorted({d.workflow for d in self.definitions()})

    def export_definitions(self) -> list[dict[str, Any]]:
        """Name, description, workflow and input schema of every tool."""
        return [
            {
                "name": d.name,
                "description": d.description,
                "workflow": d.workflow,
                "input_schema": d.input_schema,
            }
            for d in self.definitions()
        ]


def create_default_registry() -> ToolRegistry:
    """Create a registry pre-loaded with all built-in tools."""
    from runtime.tools import device, logs, macos, project, session, simulator, swift_package

    registry = ToolRegistry()
    for tool in (
        session.SessionSetDefaultsTool(),
        session.SessionClearDefaultsTool(),
        session.SessionShowDefaultsTool(),
        project.ListSchemesTool(),
        project.ShowBuildSettingsTool(),
        project.CleanTool(),
        simulator.ListSimsTool(),
        simulator.BuildSimTool(),
        simulator.BuildRunSimTool(),
        simulator.RunSimTestsTool(),
        simulator.GetSimAppPathTool(),
        simulator.InstallAppSimTool(),
        simulator.LaunchAppSimTool(),
        simulator.StopAppSimTool(),
        device.ListDevicesTool(),
        device.BuildDeviceTool(),
        device.RunDeviceTestsTool(),
        device.GetDeviceAppPathTool(),
        device.InstallAppDeviceTool(),
        device.LaunchAppDeviceTool(),
        device.StopAppDeviceTool(),
        macos.BuildMacosTool(),
        macos.RunMacosTestsTool(),
        macos.GetMacosAppPathTool(),
        macos.LaunchMacAppTool(),
        macos.StopMacAppTool(),
        swift_package.SwiftPackageBuildTool(),
        swift_package.SwiftPackageTestTool(),
        swift_package.SwiftPackageRunTool(),
        logs.StartSimLogCapTool(),
        logs.StopSimLogCapTool(),
        logs.StartDeviceLogCapTool(),
        logs.StopDeviceLogCapTool(),
    ):
        registry.register(tool)
    return registry
