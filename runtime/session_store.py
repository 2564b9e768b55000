"""Session Store — process-wide default parameter values.

No validation happens here; the Parameter Resolver owns that.  Create one
store per process (or per test) and pass it to whoever needs it.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Mapping


class SessionStore:
    """Mutable mapping of parameter name to remembered value."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._defaults: dict[str, Any] = {}
        if initial:
            self.set_defaults(initial)

    def set_defaults(self, values: Mapping[str, Any]) -> None:
        """Merge *values* over the current defaults (new values win).

        A ``None`` value removes that key.
        """
        for key, value in values.items():
            if value is None:
                self._defaults.pop(key, None)
            else:
                self._defaults[key] = copy.deepcopy(value)

    def get_defaults(self) -> dict[str, Any]:
        """Return a snapshot of the current defaults (never None)."""
        return copy.deepcopy(self._defaults)

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._defaults.get(key, default))

    def clear(self, keys: Iterable[str] | None = None) -> None:
        """Reset to empty, or drop only *keys* when given."""
        if keys is None:
            self._defaults.clear()
            return
        for key in keys:
            self._defaults.pop(key, None)

    def __len__(self) -> int:
        return len(self._defaults)

    def __contains__(self, key: object) -> bool:
        return key in self._defaults
