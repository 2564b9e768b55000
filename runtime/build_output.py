"""Build/Test Output Interpreter.

Turns the ExecutionResults of a build, test or run sequence into a
BuildOutcome and renders that outcome as a ToolResponse.  Diagnostics are
recognised by the compiler's ``warning:`` / ``error:`` markers, matched
case-insensitively anywhere in the line.
"""

from __future__ import annotations

import logging
import plistlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence
from xml.parsers.expat import ExpatError

from contracts.errors import MissingIdentifierFailure, StepFailure
from contracts.execution import ExecutionResult
from contracts.response import ContentFragment, NextStep, ToolResponse
from runtime.responses import render_next_steps

logger = logging.getLogger(__name__)

_WARNING = re.compile(r"warning:", re.IGNORECASE)
_ERROR = re.compile(r"error:", re.IGNORECASE)
_SETTING = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*?)\s*$")


def classify_line(line: str) -> str | None:
    """Return ``"warning"``, ``"error"`` or None for an output line."""
    if _WARNING.search(line):
        return "warning"
    if _ERROR.search(line):
        return "error"
    return None


@dataclass(frozen=True)
class BuildOutcome:
    success: bool
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    summary: str = ""
    stderr: str = ""
    output: str = ""


def interpret(
    results: Sequence[ExecutionResult],
    action: str = "build",
    subject: str = "",
) -> BuildOutcome:
    """Fold one or more step results into a single BuildOutcome.

    Overall success requires every step to have succeeded.  An empty
    sequence is a failure because nothing ran.
    """
    warnings: list[str] = []
    errors: list[str] = []
    stderr_parts: list[str] = []
    stdout_parts: list[str] = []

    for result in results:
        if result.output:
            stdout_parts.append(result.output)
        if result.error:
            stderr_parts.append(result.error)
        for line in f"{result.output}\n{result.error or ''}".splitlines():
            kind = classify_line(line)
            if kind == "warning":
                warnings.append(line.strip())
            elif kind == "error":
                errors.append(line.strip())

    success = bool(results) and all(r.success for r in results)
    name = f"{action} for {subject}" if subject else action
    name = name[:1].upper() + name[1:]
    if success:
        summary = f"✅ {name} succeeded."
    elif any(r.timed_out for r in results):
        summary = f"❌ {name} timed out."
    else:
        summary = f"❌ {name} failed."

    outcome = BuildOutcome(
        success=success,
        warnings=tuple(warnings),
        errors=tuple(errors),
        summary=summary,
        stderr="\n".join(stderr_parts).strip(),
        output="\n".join(stdout_parts).strip(),
    )
    logger.debug(
        "%s: success=%s warnings=%d errors=%d",
        name, success, len(outcome.warnings), len(outcome.errors),
    )
    return outcome


def render(
    outcome: BuildOutcome,
    next_steps: Iterable[NextStep] = (),
    extra: Iterable[ContentFragment] = (),
) -> ToolResponse:
    """Render *outcome*; stderr leads on failure and next steps trail on success."""
    content: list[ContentFragment] = []
    if not outcome.success and outcome.stderr:
        content.append(ContentFragment(label="stderr", text=f"Error output:\n{outcome.stderr}"))
    content.extend(ContentFragment(label="warning", text=f"⚠️ Warning: {w}") for w in outcome.warnings)
    content.extend(ContentFragment(label="error", text=f"❌ Error: {e}") for e in outcome.errors)
    content.extend(extra)
    content.append(ContentFragment(label="summary", text=outcome.summary))

    steps = list(next_steps) if outcome.success else []
    if steps:
        content.append(ContentFragment(label="next_steps", text=render_next_steps(steps)))
    return ToolResponse(content=content, is_error=not outcome.success, next_steps=steps)


def require_success(result: ExecutionResult, step: str) -> ExecutionResult:
    """Raise StepFailure unless *result* succeeded, so later steps are skipped."""
    if result.success:
        return result
    detail = (result.error or "").strip() or (result.output or "").strip()
    if not detail:
        detail = f"exit code {result.exit_code}" if result.exit_code is not None else "unknown error"
    raise StepFailure(step, detail, result)


# ── Build settings ───────────────────────────────────────────────────


def parse_build_settings(output: str) -> dict[str, str]:
    """``KEY = value`` lines of ``xcodebuild -showBuildSettings``; first target wins."""
    settings: dict[str, str] = {}
    for line in (output or "").splitlines():
        match = _SETTING.match(line)
        if match and match.group(1) not in settings:
            settings[match.group(1)] = match.group(2)
    return settings


def extract_setting(output: str, key: str, identifier: str) -> str:
    value = parse_build_settings(output).get(key, "")
    if not value:
        raise MissingIdentifierFailure(identifier, "build settings")
    return value


def extract_app_path(output: str) -> str:
    """App bundle path from CODESIGNING_FOLDER_PATH, falling back to
    BUILT_PRODUCTS_DIR/FULL_PRODUCT_NAME."""
    settings = parse_build_settings(output)
    path = settings.get("CODESIGNING_FOLDER_PATH", "")
    if path.endswith(".app"):
        return path
    products = settings.get("BUILT_PRODUCTS_DIR")
    name = settings.get("FULL_PRODUCT_NAME")
    if products and name:
        return f"{products}/{name}"
    raise MissingIdentifierFailure("app path", "build settings")


def extract_bundle_id(output: str) -> str:
    return extract_setting(output, "PRODUCT_BUNDLE_IDENTIFIER", "bundle identifier")


def read_bundle_id(app_path: str) -> str | None:
    """CFBundleIdentifier from an app bundle's Info.plist.

    iOS-style bundles keep the plist at the top level, macOS bundles under
    ``Contents/``.  Returns None when neither can be read.
    """
    bundle = Path(app_path)
    for plist in (bundle / "Info.plist", bundle / "Contents" / "Info.plist"):
        try:
            with plist.open("rb") as fh:
                data = plistlib.load(fh)
        except (OSError, ValueError, ExpatError) as exc:
            logger.debug("Could not read %s: %s", plist, exc)
            continue
        value = data.get("CFBundleIdentifier") if isinstance(data, dict) else None
        if isinstance(value, str) and value:
            return value
    return None
