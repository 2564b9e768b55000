"""Swift Package Manager tools: build, test and run a package with ``swift``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from contracts.execution import ExecutionContext
from contracts.parameters import ResolvedParameters
from contracts.response import ContentFragment, NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from runtime.build_output import BuildOutcome, interpret, render
from runtime.responses import fragment
from runtime.tools.base import ARCH, object_schema

WORKFLOW = "swift_package"

DEFAULT_RUN_TIMEOUT = 30
MAX_RUN_TIMEOUT = 300

PACKAGE_PROPERTIES: dict[str, Any] = {
    "package_path": {"type": "string", "description": "Path to the directory containing Package.swift."},
    "configuration": {
        "type": "string",
        "enum": ["debug", "release"],
        "description": "Build configuration. Defaults to debug.",
    },
    "parse_as_library": {"type": "boolean", "description": "Pass -parse-as-library for @main support."},
}


def _base_command(action: str, params: ResolvedParameters) -> list[str]:
    command = ["swift", action, "--package-path", str(Path(params["package_path"]).resolve())]
    if params.get("configuration") == "release":
        command += ["-c", "release"]
    return command


def _library_flag(params: ResolvedParameters) -> list[str]:
    return ["-Xswiftc", "-parse-as-library"] if params.get("parse_as_library") else []


def package_build_command(params: ResolvedParameters) -> list[str]:
    command = _base_command("build", params)
    if params.get("target_name"):
        command += ["--target", params["target_name"]]
    for arch in params.get("architectures") or ():
        command += ["--arch", arch]
    return command + _library_flag(params)


def package_test_command(params: ResolvedParameters) -> list[str]:
    command = _base_command("test", params)
    if params.get("test_product"):
        command += ["--test-product", params["test_product"]]
    if params.get("filter"):
        command += ["--filter", params["filter"]]
    if params.get("parallel") is False:
        command.append("--no-parallel")
    if params.get("show_codecov"):
        command.append("--show-code-coverage")
    return command + _library_flag(params)


def package_run_command(params: ResolvedParameters) -> list[str]:
    command = _base_command("run", params) + _library_flag(params)
    if params.get("executable_name"):
        command.append(params["executable_name"])
    if params.get("arguments"):
        command += ["--", *params["arguments"]]
    return command


def _output(outcome: BuildOutcome) -> list[ContentFragment]:
    return [fragment(outcome.output)] if outcome.output else []


class SwiftPackageBuildTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="swift_package_build",
            description="Build a Swift package.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                PACKAGE_PROPERTIES,
                {
                    "target_name": {"type": "string", "description": "Build only this target."},
                    "architectures": {"type": "array", "items": ARCH, "description": "Architectures to build."},
                },
                required=["package_path"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        result = await ctx.executor(package_build_command(params), "Swift Package Build")
        outcome = interpret([result], "swift package build")
        package = {"package_path": params["package_path"]}
        return render(
            outcome,
            extra=_output(outcome),
            next_steps=[
                NextStep(tool="swift_package_test", label="Run the package tests", params=package),
                NextStep(tool="swift_package_run", label="Run an executable", params=package, priority=2),
            ],
        )


class SwiftPackageTestTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="swift_package_test",
            description="Run a Swift package's tests.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                PACKAGE_PROPERTIES,
                {
                    "test_product": {"type": "string", "description": "Test product to run."},
                    "filter": {"type": "string", "description": "Only run tests matching this regular expression."},
                    "parallel": {"type": "boolean", "description": "Run tests in parallel. Defaults to true."},
                    "show_codecov": {"type": "boolean", "description": "Collect code coverage."},
                },
                required=["package_path"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        result = await ctx.executor(package_test_command(params), "Swift Package Test")
        outcome = interpret([result], "swift package test run")
        return render(
            outcome,
            extra=_output(outcome),
            next_steps=[
                NextStep(
                    tool="swift_package_run",
                    label="Run an executable",
                    params={"package_path": params["package_path"]},
                )
            ],
        )


class SwiftPackageRunTool(BaseTool):
    """Runs in the foreground; the process is terminated once *timeout* seconds pass."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="swift_package_run",
            description="Build and run an executable product of a Swift package.",
            workflow=WORKFLOW,
            input_schema=object_schema(
                PACKAGE_PROPERTIES,
                {
                    "executable_name": {"type": "string", "description": "Executable product to run."},
                    "arguments": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Arguments passed to the executable.",
                    },
                    "timeout": {
                        "type": "number",
                        "exclusiveMinimum": 0,
                        "maximum": MAX_RUN_TIMEOUT,
                        "description": f"Seconds before the process is stopped. Defaults to {DEFAULT_RUN_TIMEOUT}.",
                    },
                },
                required=["package_path"],
            ),
        )

    async def run(self, ctx: ToolContext, params: ResolvedParameters) -> ToolResponse:
        timeout = params.get("timeout") or DEFAULT_RUN_TIMEOUT
        result = await ctx.executor(
            package_run_command(params), "Swift Package Run", False, ExecutionContext(timeout=timeout)
        )
        outcome = interpret([result], "swift package run")
        return render(outcome, extra=_output(outcome))
