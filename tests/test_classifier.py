"""Tests for the ad-hoc statement classifier."""

import pytest

from core.classifier import (
    BLOCKED_KEYWORDS,
    DEFAULT_RULES,
    StatementRules,
    classify,
    keyword_rule,
)


class TestLeadingVerb:

    @pytest.mark.parametrize(
        "statement",
        [
            "DELETE FROM Orders",
            "WITH cte AS (SELECT 1 AS x) SELECT * FROM cte",
            "  update Orders SET x = 1",
            "EXEC sp_who",
        ],
    )
    def test_rejects_non_select(self, statement):
        result = classify(statement)
        assert not result.valid
        assert result.reason == "Only SELECT queries are allowed"

    def test_accepts_lowercase_and_leading_whitespace(self):
        assert classify("\n   select id from Orders").valid

    @pytest.mark.parametrize("statement", [None, "", "   ", 123])
    def test_rejects_missing_statement(self, statement):
        result = classify(statement)
        assert not result.valid
        assert result.reason == "Query is required and must be a string"


class TestBlockedKeywords:

    @pytest.mark.parametrize("keyword", BLOCKED_KEYWORDS)
    def test_rejects_each_keyword_as_a_word(self, keyword):
        result = classify(f"SELECT * FROM Orders WHERE x IN ({keyword})")
        assert not result.valid
        assert result.reason == f"Dangerous keyword detected: {keyword}"

    def test_keyword_matching_is_case_insensitive(self):
        result = classify("SELECT * FROM Orders WHERE InSeRt = 1")
        assert not result.valid
        assert "INSERT" in result.reason

    def test_keyword_adjacent_to_punctuation_is_caught(self):
        assert not classify("SELECT a,DELETE FROM Orders").valid
        assert not classify("SELECT (drop) FROM Orders").valid

    @pytest.mark.parametrize(
        "statement",
        [
            "SELECT INSERTED_AT FROM Orders",
            "SELECT updated_by, created FROM Orders",
            "SELECT executed_on, dropped_flag FROM Audit",
            "SELECT * FROM merged_orders",
        ],
    )
    def test_keywords_inside_longer_identifiers_are_allowed(self, statement):
        assert classify(statement).valid

    @pytest.mark.parametrize("statement", ["SELECT * FROM sp_helpdb", "SELECT xp_cmdshell('dir')"])
    def test_rejects_system_procedure_prefixes(self, statement):
        result = classify(statement)
        assert not result.valid
        assert result.reason.startswith("Dangerous keyword detected")

    def test_prefix_inside_identifier_is_allowed(self):
        assert classify("SELECT wasp_count FROM Hives").valid


class TestStructuralPatterns:

    def test_stacked_query_with_drop_reports_stacking(self):
        result = classify("SELECT * FROM Orders; DROP TABLE Orders")
        assert not result.valid
        assert result.reason == "Stacked queries are not allowed"

    def test_stacked_select(self):
        assert classify("SELECT 1; SELECT 2").reason == "Stacked queries are not allowed"

    def test_single_trailing_semicolon_is_allowed(self):
        assert classify("SELECT * FROM Orders;").valid

    def test_line_comment(self):
        assert classify("SELECT * FROM Orders -- hidden").reason == "SQL comments (--) are not allowed"

    def test_block_comment(self):
        assert classify("SELECT /* x */ * FROM Orders").reason == "Multi-line comments are not allowed"

    def test_union_select(self):
        result = classify("SELECT name FROM Users UNION SELECT password FROM Secrets")
        assert result.reason == "UNION injection detected"

    def test_union_all_select(self):
        result = classify("SELECT name FROM Users union   all select password FROM Secrets")
        assert result.reason == "UNION ALL injection detected"

    @pytest.mark.parametrize(
        "statement",
        [
            "SELECT * INTO OUTFILE '/tmp/out' FROM Orders",
            "SELECT * INTO dumpfile '/tmp/out' FROM Orders",
            "SELECT LOAD_FILE('/etc/passwd')",
        ],
    )
    def test_file_operations(self, statement):
        assert classify(statement).reason == "File operations are not allowed"

    def test_plain_select_is_accepted(self):
        result = classify("SELECT o.id, c.name FROM Orders o JOIN Customers c ON c.id = o.customer_id")
        assert result.valid
        assert result.reason is None


class TestRuleTable:

    def test_default_rules_are_ordered_with_stacking_first(self):
        assert DEFAULT_RULES.rules[0].name == "stacked-query"

    def test_custom_rule_table_can_be_supplied(self):
        rules = StatementRules(rules=(keyword_rule("WAITFOR"),))
        assert not classify("SELECT 1 WAITFOR DELAY '00:00:05'", rules).valid
        assert classify("SELECT * FROM Orders; DROP TABLE Orders", rules).valid
