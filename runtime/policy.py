"""Workflow policy: which tools are exposed for the loaded configuration."""

from __future__ import annotations

from contracts.config import Config
from contracts.policy import PolicyDecision, PolicyEngine, PolicyVerdict
from contracts.tool_sdk import ToolDefinition

ALWAYS_ENABLED_WORKFLOWS = frozenset({"session"})


class WorkflowPolicyEngine(PolicyEngine):
    """Allows a tool when its workflow is enabled.

    An empty ``workflows.enabled`` list enables everything.  The session
    workflow cannot be disabled.
    """

    def __init__(self, config: Config | None = None) -> None:
        self._enabled: frozenset[str] = frozenset()
        if config is not None:
            self.load_config(config)

    def load_config(self, config: Config) -> None:
        self._enabled = frozenset(w.strip() for w in config.workflows.enabled if w.strip())

    @property
    def enabled_workflows(self) -> list[str]:
        return sorted(self._enabled)

    def workflow_enabled(self, workflow: str) -> bool:
        return not self._enabled or workflow in self._enabled or workflow in ALWAYS_ENABLED_WORKFLOWS

    def check_tool(self, definition: ToolDefinition) -> PolicyDecision:
        if definition.workflow in ALWAYS_ENABLED_WORKFLOWS:
            return PolicyDecision(
                verdict=PolicyVerdict.ALLOW,
                rule="workflows.always",
                reason=f"Workflow '{definition.workflow}' is always enabled",
            )
        if not self._enabled:
            return PolicyDecision(
                verdict=PolicyVerdict.ALLOW,
                rule="workflows.all",
                reason="No workflow filter configured",
            )
        if definition.workflow in self._enabled:
            return PolicyDecision(
                verdict=PolicyVerdict.ALLOW,
                rule="workflows.enabled",
                reason=f"Workflow '{definition.workflow}' is enabled",
            )
        return PolicyDecision(
            verdict=PolicyVerdict.DENY,
            rule="workflows.enabled",
            reason=(
                f"Tool '{definition.name}' belongs to workflow '{definition.workflow}', "
                "which is not enabled"
            ),
        )
