"""Small builders for ToolResponse objects."""

from __future__ import annotations

from typing import Any, Iterable

from contracts.response import ContentFragment, NextStep, ToolResponse


def fragment(text: str, label: str = "output") -> ContentFragment:
    return ContentFragment(label=label, text=text)


def text_response(text: str, label: str = "output", next_steps: Iterable[NextStep] = ()) -> ToolResponse:
    steps = list(next_steps)
    content = [fragment(text, label)]
    if steps:
        content.append(fragment(render_next_steps(steps), "next_steps"))
    return ToolResponse(content=content, next_steps=steps)


def error_response(text: str, label: str = "error") -> ToolResponse:
    return ToolResponse(content=[fragment(text, label)], is_error=True)


def format_call(tool: str, params: dict[str, Any]) -> str:
    """``launch_app_sim(simulator_id='X', bundle_id='Y')``"""
    args = ", ".join(f"{key}={value!r}" for key, value in params.items())
    return f"{tool}({args})"


def render_next_steps(steps: Iterable[NextStep]) -> str:
    ordered = sorted(steps, key=lambda s: s.priority)
    lines = ["Next steps:"]
    for number, step in enumerate(ordered, start=1):
        call = format_call(step.tool, step.params)
        lines.append(f"{number}. {step.label}: {call}" if step.label else f"{number}. {call}")
    return "\n".join(lines)
