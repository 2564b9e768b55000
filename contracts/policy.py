"""Policy engine contracts.

The policy engine decides which tools are exposed, based on the
workflows enabled in the runtime configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel

from contracts.config import Config
from contracts.tool_sdk import ToolDefinition


class PolicyVerdict(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class PolicyDecision(BaseModel):
    verdict: PolicyVerdict
    rule: str = ""      # which rule triggered the decision
    reason: str = ""    # human-readable explanation


class PolicyEngine(ABC):
    """Interface that the runtime policy engine must implement."""

    @abstractmethod
    def load_config(self, config: Config) -> None:
        """Load or reload policy rules from a parsed configuration."""
        ...

    @abstractmethod
    def check_tool(self, definition: ToolDefinition) -> PolicyDecision:
        """Is this tool enabled?"""
        ...
