"""Parameter Resolver — merge explicit arguments over session defaults and validate.

Resolution order:

1. merge: every schema property missing from the call is filled from the
   Session Store (mapping-valued properties are merged key by key);
2. shape: the merged mapping is checked against the tool's JSON Schema;
3. rules: requirement rules run in declared order and the first failure
   wins.  A top-level ``required`` list in the schema is treated as a
   leading all-of rule so it gets the same session-aware reporting.

Values that still need a cross-system lookup (a simulator *name*, say)
are left alone; the Destination Resolver handles those.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from contracts.errors import (
    ConflictingFieldsFailure,
    FieldProblem,
    MissingRequiredFieldFailure,
    ShapeValidationFailure,
)
from contracts.parameters import (
    AllOf,
    ExclusivePair,
    OneOf,
    ParameterSource,
    RequirementRule,
    ResolvedParameters,
)
from contracts.tool_sdk import ToolDefinition
from runtime.session_store import SessionStore

logger = logging.getLogger(__name__)


class ParameterResolver:
    """Resolves tool arguments against a Session Store."""

    def __init__(
        self,
        session_store: SessionStore | None = None,
        *,
        use_session_defaults: bool = True,
    ) -> None:
        self._store = session_store
        self._use_session_defaults = use_session_defaults

    def resolve(
        self, definition: ToolDefinition, arguments: Mapping[str, Any]
    ) -> ResolvedParameters:
        consult_store = (
            self._use_session_defaults
            and definition.use_session_defaults
            and self._store is not None
        )
        defaults = self._store.get_defaults() if consult_store else {}
        return resolve_parameters(
            definition.input_schema,
            arguments,
            defaults,
            definition.requirements,
            session_defaults_enabled=self._use_session_defaults,
        )


def resolve_parameters(
    schema: Mapping[str, Any],
    arguments: Mapping[str, Any],
    defaults: Mapping[str, Any] | None = None,
    requirements: Sequence[RequirementRule] = (),
    *,
    session_defaults_enabled: bool = True,
) -> ResolvedParameters:
    """Produce ResolvedParameters or raise a ParameterFailure."""
    values, sources = merge_arguments(schema, arguments, defaults or {})
    check_shape(schema, values)

    rules: list[RequirementRule] = []
    required = list(schema.get("required", []))
    if required:
        rules.append(AllOf(fields=required))
    rules.extend(requirements)
    for rule in rules:
        check_rule(rule, values, sources, session_defaults_enabled=session_defaults_enabled)

    logger.debug(
        "Resolved parameters: explicit=%s defaults=%s",
        sorted(k for k, s in sources.items() if s is ParameterSource.EXPLICIT),
        sorted(k for k, s in sources.items() if s is ParameterSource.SESSION_DEFAULT),
    )
    return ResolvedParameters(values=values, sources=sources)


def merge_arguments(
    schema: Mapping[str, Any],
    arguments: Mapping[str, Any],
    defaults: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, ParameterSource]]:
    """Overlay explicit arguments on session defaults.

    An explicit ``None`` counts as "not provided".  Only properties the
    schema declares are taken from the defaults.
    """
    properties = schema.get("properties", {})
    values = {k: v for k, v in arguments.items() if v is not None}
    sources = {k: ParameterSource.EXPLICIT for k in values}

    for name, default in defaults.items():
        if name not in properties or default is None:
            continue
        if name not in values:
            values[name] = default
            sources[name] = ParameterSource.SESSION_DEFAULT
        elif isinstance(default, dict) and isinstance(values[name], dict):
            values[name] = {**default, **values[name]}

    return values, sources


def check_shape(schema: Mapping[str, Any], values: Mapping[str, Any]) -> None:
    """Raise ShapeValidationFailure listing every field that has the wrong shape."""
    shape_schema = {k: v for k, v in schema.items() if k != "required"}
    validator = Draft202012Validator(shape_schema)
    errors = sorted(validator.iter_errors(dict(values)), key=lambda e: list(e.absolute_path))
    if errors:
        raise ShapeValidationFailure([_describe(e) for e in errors])


def check_rule(
    rule: RequirementRule,
    values: Mapping[str, Any],
    sources: Mapping[str, ParameterSource],
    *,
    session_defaults_enabled: bool = True,
) -> None:
    if isinstance(rule, AllOf):
        missing = [f for f in rule.fields if f not in values]
        if missing:
            raise MissingRequiredFieldFailure(
                missing,
                rule.kind,
                rule.message,
                session_defaults_enabled=session_defaults_enabled,
            )
    elif isinstance(rule, OneOf):
        if not any(f in values for f in rule.fields):
            raise MissingRequiredFieldFailure(
                list(rule.fields),
                rule.kind,
                rule.message,
                session_defaults_enabled=session_defaults_enabled,
            )
    elif isinstance(rule, ExclusivePair):
        if rule.first in values and rule.second in values:
            raise ConflictingFieldsFailure(
                (rule.first, rule.second),
                {rule.first: sources[rule.first], rule.second: sources[rule.second]},
            )


def _describe(error: ValidationError) -> FieldProblem:
    field = ".".join(str(p) for p in error.absolute_path)
    if error.validator == "additionalProperties" and isinstance(error.instance, dict):
        declared = set(error.schema.get("properties", {}))
        return FieldProblem(
            field=_join(sorted(set(error.instance) - declared)) or field or "<root>",
            expected="unexpected parameter",
        )
    if error.validator == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            expected = " or ".join(expected)
        return FieldProblem(field=field or "<root>", expected=f"expected {expected}")
    if error.validator == "enum":
        options = _join(str(v) for v in error.validator_value)
        return FieldProblem(field=field or "<root>", expected=f"expected one of {options}")
    return FieldProblem(field=field or "<root>", expected=error.message)


def _join(items: Iterable[str]) -> str:
    return ", ".join(items)
