"""
Database whitelist and the gate that enforces it.

The whitelist is built once from configuration and injected into the gate;
nothing mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from core.results import ValidationResult


@dataclass(frozen=True)
class Whitelist:
    """Ordered, lower-cased, de-duplicated set of permitted database names."""

    names: Tuple[str, ...] = ()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "Whitelist":
        seen = []
        for name in names:
            cleaned = (name or "").strip().lower()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return cls(names=tuple(seen))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.names

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(self.names)


class AccessGate:
    """Rejects any target database that is not whitelisted. Fails closed."""

    def __init__(self, whitelist: Whitelist):
        self._whitelist = whitelist

    @property
    def allowed_databases(self) -> Tuple[str, ...]:
        return self._whitelist.names

    def authorize_database(self, name: Any) -> ValidationResult:
        if len(self._whitelist) == 0:
            return ValidationResult.fail("No databases are configured in the whitelist")

        if not isinstance(name, str) or not name:
            return ValidationResult.fail("Database name is required")

        if name not in self._whitelist:
            return ValidationResult.fail(
                f"Database '{name}' is not allowed. "
                f"Allowed databases: {', '.join(self._whitelist.names)}"
            )

        return ValidationResult.ok()
