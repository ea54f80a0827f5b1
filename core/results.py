"""
Result containers shared by the validators and the execution facade.

Validators never raise for bad input: they return a ValidationResult and
callers branch on it. ExecutionResult is what the facade hands back to the
HTTP layer once a statement has run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class ValidationResult:
    """Tagged outcome of a validation step."""

    valid: bool
    reason: Optional[str] = None

    def __post_init__(self):
        if self.valid and self.reason is not None:
            raise ValueError("A valid result cannot carry a reason")
        if not self.valid and not self.reason:
            raise ValueError("An invalid result must carry a reason")

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)


Row = Dict[str, Any]


@dataclass(frozen=True)
class ExecutionResult:
    """Rows returned by a single gateway operation plus per-operation details."""

    rows: Tuple[Row, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def count(self) -> int:
        return len(self.rows)

    @classmethod
    def from_rows(cls, rows: Sequence[Row], **details: Any) -> "ExecutionResult":
        return cls(rows=tuple(rows), details=details)
