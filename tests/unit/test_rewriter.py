"""
Unit tests for condition normalization and reference rewriting.
"""

import pytest

from conversion.condition import normalize_condition, rewrite_references
from conversion.errors import LexError


class TestNormalizeCondition:
    """Test statement normalization."""

    def test_adds_prefix_and_terminator(self):
        """Test a bare expression."""
        assert normalize_condition("{a} == 1") == "return {a} == 1;"

    def test_keeps_existing_prefix_and_terminator(self):
        """Test an already normalized condition."""
        assert normalize_condition("return {a} == 1;") == "return {a} == 1;"

    def test_adds_missing_prefix_only(self):
        """Test a terminated expression."""
        assert normalize_condition("{a} == 1;") == "return {a} == 1;"

    def test_prefix_must_be_a_word(self):
        """Test that identifiers starting with return are not the keyword."""
        assert normalize_condition("returned") == "return returned;"

    def test_idempotent(self):
        """Test that normalizing twice changes nothing."""
        once = normalize_condition("{a} == 1")
        assert normalize_condition(once) == once


class TestRewriteReferences:
    """Test reference rewriting."""

    def test_column_and_variable(self):
        """Test both reference kinds in one condition."""
        assert rewrite_references("return {status} == 1 && @env == 'prod';") == (
            "return row_data['status'] == 1 && vars['env'] == 'prod';"
        )

    def test_column_at_start(self):
        """Test a column reference at the very start of the text."""
        assert rewrite_references("{a} > 3") == "row_data['a'] > 3"

    def test_column_at_end(self):
        """Test a column reference as the last tokens."""
        assert rewrite_references("3 < {a}") == "3 < row_data['a']"

    def test_function_argument(self):
        """Test references inside calls."""
        assert rewrite_references("strtolower({email})") == "strtolower(row_data['email'])"

    def test_markers_inside_strings_untouched(self):
        """Test that quoted markers are kept verbatim."""
        assert rewrite_references("{a} == '{b} @c'") == "row_data['a'] == '{b} @c'"

    def test_bare_markers_dropped(self):
        """Test that markers outside a reference are not emitted."""
        assert rewrite_references("{ a }") == " a "
        assert rewrite_references("@ == 1") == " == 1"

    def test_double_braces(self):
        """Test that extra braces around a reference are dropped."""
        assert rewrite_references("{{col}}") == "row_data['col']"

    def test_unclosed_brace(self):
        """Test that an unclosed brace is dropped."""
        assert rewrite_references("{a == 1") == "a == 1"

    def test_operators_preserved(self):
        """Test that operator text is emitted unchanged."""
        assert rewrite_references("{a}!=={b}") == "row_data['a']!==row_data['b']"

    def test_unterminated_literal(self):
        """Test that lexing errors propagate."""
        with pytest.raises(LexError):
            rewrite_references("{a} == 'x")
