"""
Unit tests for condition evaluation and loose value coercion.
"""

import pytest

from conversion.condition import Evaluator, evaluate, evaluate_bool, parse
from conversion.condition.coercion import (
    is_numeric,
    loose_compare,
    loose_equals,
    strict_equals,
    to_bool,
    to_number,
    to_string,
)
from conversion.condition.parser import Call, Literal
from conversion.converters import RowContext
from conversion.errors import EvaluationError


def run(code, row=None, variables=None):
    return evaluate(parse(code), RowContext.build(row, variables))


class TestToBool:
    """Test truthiness."""

    @pytest.mark.parametrize("value", [None, False, 0, 0.0, "", "0", []])
    def test_falsy(self, value):
        """Test falsy values."""
        assert to_bool(value) is False

    @pytest.mark.parametrize("value", [True, 1, -1, 0.1, "a", "0.0", " ", ["x"]])
    def test_truthy(self, value):
        """Test truthy values."""
        assert to_bool(value) is True


class TestToString:
    """Test string conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            (False, ""),
            (True, "1"),
            (10, "10"),
            (1.0, "1"),
            (0.1, "0.1"),
            (-2.5, "-2.5"),
            (["a"], "Array"),
            ("abc", "abc"),
        ],
    )
    def test_to_string(self, value, expected):
        """Test scalar string forms."""
        assert to_string(value) == expected


class TestNumbers:
    """Test numeric detection and conversion."""

    @pytest.mark.parametrize("value", [1, 1.5, "12", " 12", "-3", "+4", "1.5", ".5", "1e3"])
    def test_numeric(self, value):
        """Test numeric values and strings."""
        assert is_numeric(value)

    @pytest.mark.parametrize("value", ["", "abc", "12abc", "1,5", None, True, []])
    def test_not_numeric(self, value):
        """Test non-numeric values."""
        assert not is_numeric(value)

    def test_to_number(self):
        """Test conversion keeps integers integral."""
        assert to_number("12") == 12
        assert isinstance(to_number("12"), int)
        assert to_number("1.5") == 1.5
        assert to_number("1e2") == 100.0
        assert to_number(None) == 0
        assert to_number(True) == 1

    def test_to_number_rejects_text(self):
        """Test that non-numeric text fails."""
        with pytest.raises(ValueError):
            to_number("abc")


class TestLooseCompare:
    """Test loose comparison rules."""

    @pytest.mark.parametrize(
        "left,right",
        [
            ("5", 5),
            ("10", "1e1"),
            ("1", "01"),
            (None, ""),
            (None, 0),
            (None, False),
            (True, "yes"),
            (False, "0"),
            (1.0, 1),
            ("abc", "abc"),
            (["a", 1], ["a", "1"]),
        ],
    )
    def test_equal(self, left, right):
        """Test loosely equal pairs."""
        assert loose_equals(left, right)
        assert loose_equals(right, left)

    @pytest.mark.parametrize(
        "left,right",
        [
            ("abc", "ABC"),
            ("abc", 0),
            ("1", "1a"),
            (None, "a"),
            (True, 0),
        ],
    )
    def test_not_equal(self, left, right):
        """Test loosely different pairs."""
        assert not loose_equals(left, right)

    def test_numeric_strings_compare_as_numbers(self):
        """Test that "10" > "9" numerically."""
        assert loose_compare("10", "9") == 1
        assert loose_compare("5", 30) == -1

    def test_text_compares_as_text(self):
        """Test lexicographic comparison for text."""
        assert loose_compare("apple", "banana") == -1
        assert loose_compare("b", "a") == 1

    def test_strict_equals(self):
        """Test type-sensitive equality."""
        assert strict_equals("1", "1")
        assert not strict_equals("1", 1)
        assert not strict_equals(1, 1.0)
        assert not strict_equals(0, False)
        assert strict_equals(None, None)


class TestEvaluator:
    """Test expression evaluation."""

    def test_lookup(self):
        """Test column and variable lookups."""
        assert run("return row_data['a'];", {"a": "x"}) == "x"
        assert run("return vars['v'];", {}, {"v": 3}) == 3

    def test_missing_column(self):
        """Test that a missing column fails the row."""
        with pytest.raises(EvaluationError, match='column "missing" is not defined'):
            run("return row_data['missing'] == 1;", {"a": 1})

    def test_missing_variable(self):
        """Test that a missing variable fails the row."""
        with pytest.raises(EvaluationError, match='variable "flag" is not defined'):
            run("return vars['flag'] == 'yes';")

    def test_missing_namespace(self):
        """Test a context without namespaces."""
        with pytest.raises(EvaluationError):
            evaluate(parse("return row_data['a'];"), {})

    def test_null_column_is_defined(self):
        """Test that a None value is not a missing column."""
        assert run("return is_null(row_data['a']);", {"a": None}) is True

    def test_comparisons(self):
        """Test loose and strict operators."""
        row = {"n": "5"}
        assert run("return row_data['n'] > 3;", row) is True
        assert run("return row_data['n'] == 5;", row) is True
        assert run("return row_data['n'] === 5;", row) is False
        assert run("return row_data['n'] === '5';", row) is True
        assert run("return row_data['n'] !== '5';", row) is False
        assert run("return row_data['n'] <> 5;", row) is False
        assert run("return row_data['n'] <= 5;", row) is True

    def test_logical_operators(self):
        """Test boolean connectives."""
        assert run("return 1 && 'a';") is True
        assert run("return 0 || '0';") is False
        assert run("return true xor true;") is False
        assert run("return true xor false;") is True
        assert run("return !'';") is True

    def test_short_circuit_and(self):
        """Test that the right side is not evaluated when the left is false."""
        assert run("return row_data['a'] == 1 && row_data['missing'] == 2;", {"a": 2}) is False

    def test_short_circuit_or(self):
        """Test that the right side is not evaluated when the left is true."""
        assert run("return row_data['a'] == 1 || row_data['missing'] == 2;", {"a": 1}) is True

    def test_function_call(self):
        """Test calling whitelisted functions."""
        assert run("return strtolower(row_data['e']);", {"e": "A@B.C"}) == "a@b.c"
        assert run("return implode(',', ['a', 'b']);") == "a,b"

    def test_function_failure(self):
        """Test that function errors become evaluation errors."""
        with pytest.raises(EvaluationError, match='Function "str_repeat" failed'):
            run("return str_repeat('a', -1);")

    def test_evaluate_bool(self):
        """Test truthiness of results."""
        assert evaluate_bool(parse("return '0';"), {}) is False
        assert evaluate_bool(parse("return 'x';"), {}) is True

    def test_custom_function_table(self):
        """Test evaluator with its own functions."""
        evaluator = Evaluator({"strtolower": lambda value: "patched"})
        assert evaluator.evaluate(Call("strtolower", (Literal("A"),)), {}) == "patched"

    def test_context_is_not_modified(self):
        """Test that evaluation only reads the context."""
        context = RowContext.build({"a": "1"}, {"v": "x"})
        evaluate(parse("return row_data['a'] == 1 && vars['v'] == 'x';"), context)
        assert context == {"row_data": {"a": "1"}, "vars": {"v": "x"}}
