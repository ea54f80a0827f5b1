"""
Lexical validation for caller-supplied object names.

Identifiers end up inside bracket-quoted SQL fragments (``[table]``,
``USE [database]``) rather than bound parameters, so each kind is held to a
strict character class with no exceptions.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict

from core.results import ValidationResult


class IdentifierKind(str, Enum):
    DATABASE = "database"
    TABLE = "table"
    STORED_PROCEDURE = "storedProcedure"


_PATTERNS: Dict[IdentifierKind, re.Pattern] = {
    IdentifierKind.DATABASE: re.compile(r"[A-Za-z_][A-Za-z0-9_-]*"),
    # Whitespace allowed for legacy multi-word table names
    IdentifierKind.TABLE: re.compile(r"[A-Za-z_][A-Za-z0-9_\s]*"),
    # 128 characters is the engine's identifier limit
    IdentifierKind.STORED_PROCEDURE: re.compile(r"[A-Za-z_][A-Za-z0-9_]{0,127}"),
}

_LABELS: Dict[IdentifierKind, str] = {
    IdentifierKind.DATABASE: "Database",
    IdentifierKind.TABLE: "Table",
    IdentifierKind.STORED_PROCEDURE: "Stored procedure",
}


def validate_identifier(kind: IdentifierKind, raw: Any) -> ValidationResult:
    """
    Check ``raw`` against the grammar for ``kind``.

    Args:
        kind: which grammar to apply
        raw: untrusted value from the request

    Returns:
        ValidationResult, never raises for bad input
    """
    kind = IdentifierKind(kind)
    label = _LABELS[kind]

    if not isinstance(raw, str) or not raw:
        return ValidationResult.fail(f"{label} name is required")

    if _PATTERNS[kind].fullmatch(raw) is None:
        return ValidationResult.fail(f"Invalid {label.lower()} name format")

    return ValidationResult.ok()


def validate_database_name(name: Any) -> ValidationResult:
    return validate_identifier(IdentifierKind.DATABASE, name)


def validate_table_name(name: Any) -> ValidationResult:
    return validate_identifier(IdentifierKind.TABLE, name)


def validate_procedure_name(name: Any) -> ValidationResult:
    return validate_identifier(IdentifierKind.STORED_PROCEDURE, name)


def validate_parameter_name(name: Any) -> ValidationResult:
    """Stored-procedure parameter names use the procedure grammar, '@' optional."""
    if isinstance(name, str) and name.startswith("@"):
        name = name[1:]
    result = validate_procedure_name(name)
    if not result:
        return ValidationResult.fail(f"Invalid parameter name: {name!r}")
    return result
