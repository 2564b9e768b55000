"""Parameter resolution contracts.

Tools declare a JSON Schema for their arguments plus an ordered list of
requirement rules.  Rules are evaluated after session defaults are merged
in, so a value can satisfy a rule whether it was passed explicitly or
remembered from an earlier ``session_set_defaults`` call.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class ParameterSource(str, Enum):
    EXPLICIT = "explicit"
    SESSION_DEFAULT = "session_default"

    def describe(self) -> str:
        return "explicit argument" if self is ParameterSource.EXPLICIT else "session default"


# ── Requirement rules ────────────────────────────────────────────────


class AllOf(BaseModel):
    """Every named field must be present."""

    kind: Literal["all_of"] = "all_of"
    fields: list[str]
    message: str | None = None


class OneOf(BaseModel):
    """At least one of the named fields must be present."""

    kind: Literal["one_of"] = "one_of"
    fields: list[str]
    message: str | None = None


class ExclusivePair(BaseModel):
    """The two named fields must never both be present."""

    kind: Literal["exclusive_pair"] = "exclusive_pair"
    first: str
    second: str

    @property
    def fields(self) -> list[str]:
        return [self.first, self.second]


RequirementRule = Annotated[Union[AllOf, OneOf, ExclusivePair], Field(discriminator="kind")]


# ── Resolution result ────────────────────────────────────────────────


class ResolvedParameters(BaseModel):
    """Explicit arguments merged over session defaults, fully validated."""

    values: dict[str, Any] = {}
    sources: dict[str, ParameterSource] = {}

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def keys(self) -> list[str]:
        return list(self.values)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def source_of(self, key: str) -> ParameterSource | None:
        return self.sources.get(key)
