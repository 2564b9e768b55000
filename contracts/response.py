"""Tool response contracts.

Every tool returns an ordered list of labelled text fragments, an error
flag, and optional suggested follow-up invocations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ContentFragment(BaseModel):
    """One labelled piece of a tool response."""

    type: str = "text"
    label: str = "output"   # e.g. "summary", "stderr", "warning", "next_steps"
    text: str


class NextStep(BaseModel):
    """A suggested follow-up tool invocation (advisory only)."""

    tool: str
    label: str = ""
    params: dict[str, Any] = {}
    priority: int = 1   # lower runs first


class ToolResponse(BaseModel):
    content: list[ContentFragment] = Field(default_factory=list)
    is_error: bool = False
    next_steps: list[NextStep] = Field(default_factory=list)

    def text(self) -> str:
        """Join all fragment texts, in order, separated by blank lines."""
        return "\n\n".join(fragment.text for fragment in self.content)

    def fragments(self, label: str) -> list[ContentFragment]:
        return [fragment for fragment in self.content if fragment.label == label]
