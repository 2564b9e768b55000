"""Shared contracts — source of truth for all XcodeKit interfaces."""

from contracts.config import Config, AppInfo, WorkflowsConfig, SessionConfig, LogCaptureConfig
from contracts.destination import Destination, DestinationSpec, Platform, SimulatorDescriptor
from contracts.errors import (
    CommandSpawnFailure,
    ConflictingFieldsFailure,
    DeviceListFailure,
    MissingIdentifierFailure,
    MissingRequiredFieldFailure,
    SessionNotFoundFailure,
    SessionSetupFailure,
    ShapeValidationFailure,
    SimulatorListFailure,
    SimulatorNotFoundFailure,
    StepFailure,
    ToolFailure,
)
from contracts.execution import CommandExecutor, ExecutionContext, ExecutionResult
from contracts.parameters import AllOf, ExclusivePair, OneOf, ParameterSource, ResolvedParameters
from contracts.response import ContentFragment, NextStep, ToolResponse
from contracts.tool_sdk import BaseTool, ToolContext, ToolDefinition
from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.policy import PolicyDecision, PolicyEngine, PolicyVerdict

__all__ = [
    # config
    "Config",
    "AppInfo",
    "WorkflowsConfig",
    "SessionConfig",
    "LogCaptureConfig",
    # destination
    "Destination",
    "DestinationSpec",
    "Platform",
    "SimulatorDescriptor",
    # errors
    "CommandSpawnFailure",
    "ConflictingFieldsFailure",
    "DeviceListFailure",
    "MissingIdentifierFailure",
    "MissingRequiredFieldFailure",
    "SessionNotFoundFailure",
    "SessionSetupFailure",
    "ShapeValidationFailure",
    "SimulatorListFailure",
    "SimulatorNotFoundFailure",
    "StepFailure",
    "ToolFailure",
    # execution
    "CommandExecutor",
    "ExecutionContext",
    "ExecutionResult",
    # parameters
    "AllOf",
    "ExclusivePair",
    "OneOf",
    "ParameterSource",
    "ResolvedParameters",
    # response
    "ContentFragment",
    "NextStep",
    "ToolResponse",
    # tool sdk
    "BaseTool",
    "ToolContext",
    "ToolDefinition",
    # audit
    "AuditEntry",
    "AuditEvent",
    "AuditLogger",
    # policy
    "PolicyDecision",
    "PolicyEngine",
    "PolicyVerdict",
]
