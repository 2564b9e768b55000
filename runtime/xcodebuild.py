"""xcodebuild command construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from contracts.execution import CommandExecutor, ExecutionContext, ExecutionResult

DEFAULT_CONFIGURATION = "Debug"


@dataclass(frozen=True)
class BuildRequest:
    scheme: str
    project_path: str | None = None
    workspace_path: str | None = None
    configuration: str = DEFAULT_CONFIGURATION
    derived_data_path: str | None = None
    extra_args: tuple[str, ...] = ()

    @classmethod
    def from_params(cls, params: Any) -> "BuildRequest":
        """Build from ResolvedParameters (or any mapping with ``get``)."""
        return cls(
            scheme=params.get("scheme"),
            project_path=params.get("project_path"),
            workspace_path=params.get("workspace_path"),
            configuration=params.get("configuration") or DEFAULT_CONFIGURATION,
            derived_data_path=params.get("derived_data_path"),
            extra_args=tuple(params.get("extra_args") or ()),
        )

    def as_params(self) -> dict[str, str]:
        """Scheme and container, for suggesting a follow-up call on the same target."""
        params = {"scheme": self.scheme}
        if self.workspace_path:
            params["workspace_path"] = self.workspace_path
        elif self.project_path:
            params["project_path"] = self.project_path
        return params

    def container_args(self) -> list[str]:
        if self.workspace_path:
            return ["-workspace", self.workspace_path]
        if self.project_path:
            return ["-project", self.project_path]
        return []


def build_command(
    request: BuildRequest,
    action: str = "build",
    destination: str | None = None,
) -> list[str]:
    """``xcodebuild [-workspace W | -project P] -scheme S -configuration C
    -skipMacroValidation [-destination D] [-derivedDataPath X] [extra...] <action>``"""
    command = ["xcodebuild", *request.container_args()]
    command += ["-scheme", request.scheme, "-configuration", request.configuration]
    command.append("-skipMacroValidation")
    if destination:
        command += ["-destination", destination]
    if request.derived_data_path:
        command += ["-derivedDataPath", request.derived_data_path]
    command += list(request.extra_args)
    command.append(action)
    return command


def show_build_settings_command(request: BuildRequest, destination: str | None = None) -> list[str]:
    command = ["xcodebuild", "-showBuildSettings", *request.container_args()]
    command += ["-scheme", request.scheme, "-configuration", request.configuration]
    if destination:
        command += ["-destination", destination]
    if request.derived_data_path:
        command += ["-derivedDataPath", request.derived_data_path]
    return command


def list_schemes_command(project_path: str | None, workspace_path: str | None) -> list[str]:
    request = BuildRequest(scheme="", project_path=project_path, workspace_path=workspace_path)
    return ["xcodebuild", "-list", *request.container_args()]


def runner_env(env: Mapping[str, str] | None) -> dict[str, str]:
    """Prefix keys with ``TEST_RUNNER_`` so xcodebuild forwards them to the test host."""
    return {
        (key if key.startswith("TEST_RUNNER_") else f"TEST_RUNNER_{key}"): str(value)
        for key, value in (env or {}).items()
    }


async def run_xcodebuild(
    executor: CommandExecutor,
    command: list[str],
    label: str,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> ExecutionResult:
    context = ExecutionContext(env=dict(env) if env else None, timeout=timeout)
    return await executor(command, label, False, context)
