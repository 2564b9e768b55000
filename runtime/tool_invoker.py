"""Tool invoker — the single boundary every transport calls through.

lookup -> policy -> audit ``tool.call`` -> parameter resolution -> run ->
audit ``tool.result``.  Failures of any kind come back as error responses.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.config import Config
from contracts.errors import ToolFailure, UnknownToolFailure
from contracts.execution import CommandExecutor
from contracts.policy import PolicyEngine, PolicyVerdict
from contracts.response import ToolResponse
from contracts.tool_sdk import ToolContext
from runtime.resolver import ParameterResolver
from runtime.responses import error_response
from runtime.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Arguments whose values stay out of the audit trail; only their keys are kept.
REDACTED_MAPPINGS = frozenset({"env"})


def audit_arguments(args: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: sorted(value) if key in REDACTED_MAPPINGS and isinstance(value, Mapping) else value
        for key, value in args.items()
    }


class ToolInvoker:
    def __init__(
        self,
        registry: ToolRegistry,
        policy: PolicyEngine,
        resolver: ParameterResolver,
        executor: CommandExecutor,
        audit: AuditLogger,
        config: Config,
        session_store: Any = None,
        destinations: Any = None,
        log_capture: Any = None,
    ) -> None:
        self.registry = registry
        self.policy = policy
        self.resolver = resolver
        self.executor = executor
        self.audit = audit
        self.config = config
        self.session_store = session_store
        self.destinations = destinations
        self.log_capture = log_capture

    def _log(self, request_id: str, event: AuditEvent, tool: str, **detail: Any) -> None:
        self.audit.log(
            AuditEntry(
                request_id=request_id,
                event=event,
                app=self.config.app.name,
                tool=tool,
                detail=detail,
            )
        )

    def context(self, request_id: str) -> ToolContext:
        return ToolContext(
            request_id=request_id,
            executor=self.executor,
            session_store=self.session_store,
            destinations=self.destinations,
            log_capture=self.log_capture,
            audit=self.audit,
            config=self.config,
        )

    async def invoke(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        *,
        request_id: str | None = None,
        transport: str = "direct",
    ) -> ToolResponse:
        request_id = request_id or str(uuid.uuid4())
        args = dict(arguments or {})

        try:
            tool = self.registry.get(name)
        except KeyError:
            logger.warning("Unknown tool requested: %s", name)
            return UnknownToolFailure(name).to_response()
        definition = tool.definition()

        decision = self.policy.check_tool(definition)
        if decision.verdict == PolicyVerdict.DENY:
            self._log(
                request_id, AuditEvent.POLICY_BLOCK, name,
                rule=decision.rule, reason=decision.reason, transport=transport,
            )
            return error_response(f"Policy denied: {decision.reason}", label="policy")

        self._log(request_id, AuditEvent.TOOL_CALL, name, arguments=audit_arguments(args), transport=transport)
        logger.info("Invoking %s (request %s)", name, request_id)

        try:
            params = self.resolver.resolve(definition, args)
            response = await tool.run(self.context(request_id), params)
        except ToolFailure as exc:
            logger.info("%s failed: %s", name, exc.message.splitlines()[0])
            response = exc.to_response()
        except Exception as exc:
            logger.exception("Unexpected error in %s", name)
            response = error_response(f"Error executing {name}: {exc}")

        self._log(
            request_id, AuditEvent.TOOL_RESULT, name,
            is_error=response.is_error, transport=transport,
        )
        return response
