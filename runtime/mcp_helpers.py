"""Shared initialisation logic for the XcodeKit HTTP and MCP servers."""

from __future__ import annotations

import logging

from contracts.audit import AuditLogger
from contracts.config import Config
from contracts.execution import CommandExecutor
from runtime.audit.logger import JsonlAuditLogger, MemoryAuditLogger
from runtime.config_loader import load_config
from runtime.destination import DestinationResolver
from runtime.executor import SubprocessExecutor
from runtime.log_capture import LogCaptureManager
from runtime.policy import WorkflowPolicyEngine
from runtime.resolver import ParameterResolver
from runtime.session_store import SessionStore
from runtime.tool_invoker import ToolInvoker
from runtime.tools.registry import ToolRegistry, create_default_registry

logger = logging.getLogger(__name__)


class XcodeKitComponents:
    """Container for initialised XcodeKit components."""

    def __init__(
        self,
        config: Config,
        policy: WorkflowPolicyEngine,
        registry: ToolRegistry,
        audit: AuditLogger,
        session_store: SessionStore,
        log_capture: LogCaptureManager,
        invoker: ToolInvoker,
    ) -> None:
        self.config = config
        self.policy = policy
        self.registry = registry
        self.audit = audit
        self.session_store = session_store
        self.log_capture = log_capture
        self.invoker = invoker

    def enabled_tools(self) -> list[str]:
        return [
            d.name for d in self.registry.definitions()
            if self.policy.workflow_enabled(d.workflow)
        ]


def build_components(config: Config, executor: CommandExecutor | None = None) -> XcodeKitComponents:
    """Wire every component for *config*.  *executor* replaces the real one in tests."""
    executor = executor or SubprocessExecutor(default_timeout=config.executor.timeout_seconds)
    policy = WorkflowPolicyEngine(config)
    registry = create_default_registry()
    audit: AuditLogger = JsonlAuditLogger(config.audit.path) if config.audit.path else MemoryAuditLogger()

    session_store = SessionStore(config.session.defaults if config.session.enabled else None)
    resolver = ParameterResolver(session_store, use_session_defaults=config.session.enabled)
    destinations = DestinationResolver(executor)
    log_capture = LogCaptureManager(
        executor,
        temp_dir=config.log_capture.temp_dir,
        retention_days=config.log_capture.retention_days,
    )
    invoker = ToolInvoker(
        registry=registry,
        policy=policy,
        resolver=resolver,
        executor=executor,
        audit=audit,
        config=config,
        session_store=session_store,
        destinations=destinations,
        log_capture=log_capture,
    )
    logger.info(
        "XcodeKit %s ready: workflows=%s session_defaults=%s",
        config.app.version,
        policy.enabled_workflows or "all",
        "on" if config.session.enabled else "off",
    )
    return XcodeKitComponents(
        config=config,
        policy=policy,
        registry=registry,
        audit=audit,
        session_store=session_store,
        log_capture=log_capture,
        invoker=invoker,
    )


def init_xcodekit(config_path: str | None = None) -> XcodeKitComponents:
    """Load the config (``$XCODEKIT_CONFIG`` or ./xcodekit.yaml) and build components."""
    return build_components(load_config(config_path))
