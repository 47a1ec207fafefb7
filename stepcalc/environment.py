"""
Variable bindings for a calculator session.
"""

from __future__ import annotations

import re
from typing import Iterator, Mapping

from .core.errors import UndefinedVariableError

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Environment:
    """
    Case-insensitive mapping of variable names to numbers.

    An environment belongs to one session and outlives individual
    evaluations; only the caller (and summation, which restores what it
    touches) mutates it.
    """

    def __init__(self, bindings: Mapping[str, float] | None = None):
        self._values: dict[str, float] = {}
        for name, value in (bindings or {}).items():
            self.bind(name, value)

    def bind(self, name: str, value: float) -> None:
        """Bind ``name`` to ``value``, replacing any previous binding."""
        if not _NAME_PATTERN.match(name):
            raise ValueError(f"Invalid variable name: {name!r}")
        self._values[name.lower()] = float(value)

    def unbind(self, name: str) -> None:
        """Remove a binding if present."""
        self._values.pop(name.lower(), None)

    def clear(self) -> None:
        self._values.clear()

    def get(self, name: str) -> float:
        """
        Look up a variable.

        Raises:
            UndefinedVariableError: If ``name`` is not bound
        """
        try:
            return self._values[name.lower()]
        except KeyError:
            raise UndefinedVariableError(name) from None

    def lookup(self, name: str) -> float | None:
        """Return the binding for ``name``, or None."""
        return self._values.get(name.lower())

    def as_dict(self) -> dict[str, float]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Environment({self._values!r})"
