"""
Unit tests for condition operators and value coercion.
"""

import pytest
from structlog.testing import capture_logs

from ecr_rules.app.fhirpath.values import stringify, strict_equals, to_number
from ecr_rules.app.rules.models import Operator
from ecr_rules.app.rules.operators import OPERATOR_TABLE, evaluate


NON_EXISTS_OPERATORS = [op.value for op in Operator if op is not Operator.EXISTS]


class TestOperatorTable:
    """Test cases for operator dispatch."""

    def test_table_covers_every_operator(self):
        """Test that every operator has an implementation."""
        assert set(OPERATOR_TABLE) == set(Operator)

    def test_accepts_enum_members(self):
        """Test dispatch with Operator members instead of names."""
        assert evaluate("U07.1", Operator.EQUALS, "U07.1") is True

    def test_unknown_operator_fails_closed(self):
        """Test that an unknown operator is False and logged, never raised."""
        with capture_logs() as logs:
            assert evaluate("U07.1", "approximately", "U07.1") is False

        assert any(
            entry["event"] == "Unknown condition operator" and entry["log_level"] == "warning"
            for entry in logs
        )

    def test_operator_names_are_case_sensitive(self):
        """Test that operator names must be lower case."""
        assert evaluate("U07.1", "EQUALS", "U07.1") is False


class TestEquality:
    """Test cases for equals and not_equals."""

    @pytest.mark.parametrize("value", ["U07.1", 5, 2.5, True, False, "", 0])
    def test_reflexive(self, value):
        """Test x equals x and x is not not_equals x."""
        assert evaluate(value, "equals", value) is True
        assert evaluate(value, "not_equals", value) is False

    @pytest.mark.parametrize("actual, expected", [
        ("1", 1),
        (True, 1),
        (False, 0),
        ("true", True),
        (["U07.1"], "U07.1"),
    ])
    def test_no_cross_type_coercion(self, actual, expected):
        """Test strict equality across types."""
        assert evaluate(actual, "equals", expected) is False
        assert evaluate(actual, "not_equals", expected) is True

    def test_int_and_float_compare_numerically(self):
        """Test 1 == 1.0."""
        assert evaluate(1, "equals", 1.0) is True

    def test_case_sensitive(self):
        """Test equals does not fold case."""
        assert evaluate("covid-19", "equals", "COVID-19") is False


class TestMissingValues:
    """Test cases for absent extracted values."""

    @pytest.mark.parametrize("operator", NON_EXISTS_OPERATORS)
    def test_none_is_false_for_every_comparison(self, operator):
        """Test that None never satisfies a comparison."""
        assert evaluate(None, operator, "anything") is False

    def test_exists(self):
        """Test exists checks presence only."""
        assert evaluate(None, "exists", None) is False
        assert evaluate("", "exists", None) is True
        assert evaluate(0, "exists", "ignored") is True
        assert evaluate([], "exists", None) is True


class TestStringOperators:
    """Test cases for contains, in and matches."""

    def test_contains_is_case_insensitive(self):
        """Test contains folds case."""
        assert evaluate("COVID-19", "contains", "covid") is True
        assert evaluate("Influenza", "contains", "covid") is False

    def test_contains_on_list(self):
        """Test contains against a multi-valued extraction."""
        assert evaluate(["Detected", "Positive"], "contains", "positive") is True

    def test_contains_numbers(self):
        """Test contains stringifies numbers."""
        assert evaluate(94500, "contains", 45) is True

    def test_in_comma_separated(self):
        """Test in with a comma-separated option string."""
        assert evaluate("J06.9", "in", "U07.1, J06.9") is True
        assert evaluate("A00", "in", "U07.1, J06.9") is False

    def test_in_list(self):
        """Test in with a list uses strict membership."""
        assert evaluate("A01", "in", ["A01", "B02"]) is True
        assert evaluate(1, "in", ["1", "2"]) is False
        assert evaluate(1, "in", [1, 2]) is True

    def test_in_stringifies_numbers(self):
        """Test in with a number against an option string."""
        assert evaluate(3.0, "in", "1,2,3") is True

    def test_matches(self):
        """Test matches is a case-insensitive search."""
        assert evaluate("U07.1", "matches", r"^U07\.") is True
        assert evaluate("covid-19", "matches", "COVID") is True
        assert evaluate("J06.9", "matches", r"^U07") is False

    def test_matches_bad_pattern_fails_closed(self):
        """Test that an invalid regex evaluates to False."""
        assert evaluate("U07.1", "matches", "(") is False


class TestNumericOperators:
    """Test cases for greater and less."""

    def test_string_numbers(self):
        """Test numeric coercion of strings."""
        assert evaluate("5", "greater", "3") is True
        assert evaluate("5", "less", "3") is False
        assert evaluate(2, "less", "10") is True

    def test_non_numeric_fails_closed(self):
        """Test that a non-numeric side evaluates to False."""
        assert evaluate("abc", "greater", "3") is False
        assert evaluate("abc", "less", "3") is False
        assert evaluate(5, "greater", "three") is False
        assert evaluate("inf", "greater", "3") is False
        assert evaluate("infinity", "greater", "3") is False
        assert evaluate("1_000", "greater", "3") is False
        assert evaluate("nan", "less", "3") is False
        assert evaluate("0x10", "greater", "3") is False

    def test_numeric_strings(self):
        """Test that JSON-style numeric text is compared as a number."""
        assert evaluate(" 7.5 ", "greater", "7") is True
        assert evaluate("1e3", "greater", 999) is True
        assert evaluate("-.5", "less", 0) is True
        assert evaluate("Infinity", "greater", "3") is True

    def test_single_item_list(self):
        """Test that a single extracted value in a list is compared."""
        assert evaluate([7], "greater", 5) is True
        assert evaluate([7, 8], "greater", 5) is False

    def test_equal_values(self):
        """Test strictness of the comparisons."""
        assert evaluate(5, "greater", 5) is False
        assert evaluate(5, "less", 5) is False


class TestValueCoercion:
    """Test cases for stringify and to_number."""

    @pytest.mark.parametrize("value, expected", [
        (True, "true"),
        (False, "false"),
        (3.0, "3"),
        (2.5, "2.5"),
        (7, "7"),
        ("text", "text"),
        ([1, "a", None], "1,a,"),
        (None, "null"),
    ])
    def test_stringify(self, value, expected):
        """Test JSON-style rendering."""
        assert stringify(value) == expected

    @pytest.mark.parametrize("value, expected", [
        ("42", 42.0),
        (" 1.5 ", 1.5),
        ("", 0.0),
        ([], 0.0),
        (["4"], 4.0),
        (True, 1.0),
        ("abc", None),
        (float("nan"), None),
        ({"value": 1}, None),
        (None, None),
    ])
    def test_to_number(self, value, expected):
        """Test numeric coercion."""
        assert to_number(value) == expected

    def test_strict_equals(self):
        """Test strict equality helper."""
        assert strict_equals("a", "a") is True
        assert strict_equals(True, True) is True
        assert strict_equals(True, 1) is False
        assert strict_equals(None, None) is True
