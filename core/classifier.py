"""
Static accept/reject decision for ad-hoc SQL statements.

This is a blocklist, not a parser. A statement is accepted when it starts
with SELECT and matches none of the rules in the active rule table. The
table is a plain value so it can be replaced without touching callers.

Known gap: encoded keywords and engine-specific obfuscation are not
detected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from core.results import ValidationResult


BLOCKED_KEYWORDS: Tuple[str, ...] = (
    # DDL / DML
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "MERGE",
    # privileges
    "GRANT",
    "REVOKE",
    "DENY",
    # execution
    "EXEC",
    "EXECUTE",
)

# System and extended procedure prefixes, matched at the start of a token
BLOCKED_PREFIXES: Tuple[str, ...] = ("SP_", "XP_")


@dataclass(frozen=True)
class BlockRule:
    """One rejecting pattern and the reason reported when it matches."""

    name: str
    pattern: re.Pattern
    reason: str

    def matches(self, statement: str) -> bool:
        return self.pattern.search(statement) is not None


def keyword_rule(keyword: str) -> BlockRule:
    return BlockRule(
        name=f"keyword:{keyword}",
        pattern=re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE),
        reason=f"Dangerous keyword detected: {keyword}",
    )


def prefix_rule(prefix: str) -> BlockRule:
    return BlockRule(
        name=f"prefix:{prefix}",
        pattern=re.compile(rf"\b{re.escape(prefix)}", re.IGNORECASE),
        reason=f"Dangerous keyword detected: {prefix}",
    )


def _pattern_rule(name: str, regex: str, reason: str, flags: int = re.IGNORECASE) -> BlockRule:
    return BlockRule(name=name, pattern=re.compile(regex, flags), reason=reason)


# Any statement text after a semicolon. Runs before the keyword rules so a
# piggybacked "; DROP ..." is reported as stacking rather than as DROP.
STACKED_QUERY_RULE = _pattern_rule(
    "stacked-query", r";\s*\S", "Stacked queries are not allowed"
)

STRUCTURAL_RULES: Tuple[BlockRule, ...] = (
    _pattern_rule("line-comment", r"--", "SQL comments (--) are not allowed", 0),
    _pattern_rule("block-comment", r"/\*", "Multi-line comments are not allowed", 0),
    _pattern_rule("union-all-select", r"\bUNION\s+ALL\s+SELECT\b", "UNION ALL injection detected"),
    _pattern_rule("union-select", r"\bUNION\s+SELECT\b", "UNION injection detected"),
    _pattern_rule("into-outfile", r"\bINTO\s+OUTFILE\b", "File operations are not allowed"),
    _pattern_rule("into-dumpfile", r"\bINTO\s+DUMPFILE\b", "File operations are not allowed"),
    _pattern_rule("load-file", r"LOAD_FILE", "File operations are not allowed"),
)


@dataclass(frozen=True)
class StatementRules:
    """Ordered rule table applied after the leading-verb check."""

    rules: Tuple[BlockRule, ...]
    leading_verb: str = "SELECT"

    @classmethod
    def build(
        cls,
        keywords: Iterable[str] = BLOCKED_KEYWORDS,
        prefixes: Iterable[str] = BLOCKED_PREFIXES,
        structural: Iterable[BlockRule] = STRUCTURAL_RULES,
    ) -> "StatementRules":
        rules = [STACKED_QUERY_RULE]
        rules.extend(keyword_rule(k) for k in keywords)
        rules.extend(prefix_rule(p) for p in prefixes)
        rules.extend(structural)
        return cls(rules=tuple(rules))

    def first_match(self, statement: str) -> Optional[BlockRule]:
        for rule in self.rules:
            if rule.matches(statement):
                return rule
        return None


DEFAULT_RULES = StatementRules.build()


def normalize(statement: str) -> str:
    """Trimmed, upper-cased copy used for matching only."""
    return statement.strip().upper()


def classify(statement: Any, rules: StatementRules = DEFAULT_RULES) -> ValidationResult:
    """
    Decide whether a raw ad-hoc statement may be forwarded to the engine.

    The original string is what gets executed; only a normalized copy is
    inspected for the leading verb.
    """
    if not isinstance(statement, str) or not statement.strip():
        return ValidationResult.fail("Query is required and must be a string")

    if not normalize(statement).startswith(rules.leading_verb):
        return ValidationResult.fail(f"Only {rules.leading_verb} queries are allowed")

    rule = rules.first_match(statement)
    if rule is not None:
        return ValidationResult.fail(rule.reason)

    return ValidationResult.ok()
