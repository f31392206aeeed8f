"""
Unit tests for condition sanitization and security validation.

Validation always runs on quote-blanked text, so these tests check both
the rejection rules and that quoted text can never trigger them.
"""

import pytest

from conversion.condition import (
    FUNCTION_WHITELIST,
    remove_quoted_values,
    sanitize_condition,
    validate_condition,
)
from conversion.condition.sanitizer import strip_markers
from conversion.errors import ConfigurationError, LexError, SecurityValidationError


def check(condition):
    validate_condition(remove_quoted_values(sanitize_condition(condition)))


class TestSanitizeCondition:
    """Test line break collapsing."""

    def test_collapses_line_breaks(self):
        """Test that a multi-line condition becomes a single line."""
        assert sanitize_condition("{a} == 1\n&& {b} == 2") == "{a} == 1 && {b} == 2"

    def test_collapses_crlf_once(self):
        """Test that CRLF becomes one space."""
        assert sanitize_condition("{a} == 1\r\n|| {b}") == "{a} == 1 || {b}"

    def test_strips_surrounding_whitespace(self):
        """Test trimming."""
        assert sanitize_condition("\n {a} \n") == "{a}"


class TestRemoveQuotedValues:
    """Test quote blanking."""

    def test_blanks_single_quoted(self):
        """Test that string literals become empty literals."""
        assert remove_quoted_values("{name} == 'return'") == "{name} == ''"

    def test_blanks_double_quoted(self):
        """Test double-quoted literals."""
        assert remove_quoted_values('strpos({a}, "x = y") !== false') == (
            "strpos({a}, '') !== false"
        )

    def test_keeps_everything_else(self):
        """Test that non-string tokens are untouched."""
        assert remove_quoted_values("{a} >= 10 && @b") == "{a} >= 10 && @b"

    def test_unterminated_literal(self):
        """Test that malformed literals fail instead of being guessed."""
        with pytest.raises(LexError):
            remove_quoted_values("{a} == 'x")


class TestAssignmentOperator:
    """Test rejection of assignments."""

    def test_rejects_assignment(self):
        """Test that a lone = is rejected and named."""
        with pytest.raises(SecurityValidationError, match='operator "="'):
            check("{status} = 1")

    def test_rejects_assignment_without_spaces(self):
        """Test assignment glued to operands."""
        with pytest.raises(SecurityValidationError):
            check("{a}=1")

    @pytest.mark.parametrize(
        "condition",
        [
            "{status} == 1",
            "{status} != 1",
            "{status} === '1'",
            "{status} !== '1'",
            "{status} >= 1",
            "{status} <= 1",
            "{status} <> 1",
        ],
    )
    def test_accepts_comparisons(self, condition):
        """Test that comparison operators are not assignments."""
        check(condition)

    def test_equal_sign_inside_string_accepted(self):
        """Test that quoted = is ignored."""
        check("{a} == 'x=y'")


class TestVariableSigil:
    """Test rejection of the internal variable sigil."""

    def test_rejects_sigil(self):
        """Test that $ is rejected and named."""
        with pytest.raises(SecurityValidationError, match='character "\\$"'):
            check("$row_data == 1")

    def test_sigil_inside_string_accepted(self):
        """Test that quoted $ is ignored."""
        check("{price} == '$10'")


class TestStatementBlacklist:
    """Test rejection of script tags."""

    def test_rejects_open_tag(self):
        """Test that <?php is rejected and named."""
        with pytest.raises(SecurityValidationError, match='statement "<\\?php"'):
            check("<?php {a}")

    def test_rejects_open_tag_any_case(self):
        """Test case-insensitive detection."""
        with pytest.raises(SecurityValidationError):
            check("<?PHP {a}")

    def test_rejects_short_tag(self):
        """Test <? and ?>."""
        with pytest.raises(SecurityValidationError, match='statement "<\\?"'):
            check("<? {a}")
        with pytest.raises(SecurityValidationError, match='statement "\\?>"'):
            check("{a} ?>")

    def test_tag_inside_string_accepted(self):
        """Test that quoted script tags are ignored."""
        check("{a} == '<?php echo 1; ?>'")


class TestStaticCalls:
    """Test rejection of static calls."""

    def test_rejects_static_call(self):
        """Test that Class::method( is rejected and named."""
        with pytest.raises(SecurityValidationError, match="::exec"):
            check("Runner::exec({a})")

    def test_rejects_static_call_with_spaces(self):
        """Test static call with spaces around the name."""
        with pytest.raises(SecurityValidationError, match="Static functions"):
            check("Runner:: exec ({a})")


class TestFunctionWhitelist:
    """Test rejection of non-whitelisted calls."""

    def test_rejects_unknown_function(self):
        """Test that exec() is rejected and named."""
        with pytest.raises(SecurityValidationError, match='function "exec"'):
            check("exec('rm -rf /')")

    def test_accepts_whitelisted_function(self):
        """Test that whitelisted calls pass."""
        check("strtolower({email}) == 'x'")

    def test_whitelist_is_case_sensitive(self):
        """Test that names must match exactly."""
        with pytest.raises(SecurityValidationError, match='function "STRTOLOWER"'):
            check("STRTOLOWER({email}) == 'x'")

    def test_nested_calls_all_checked(self):
        """Test that every call name is checked."""
        with pytest.raises(SecurityValidationError, match='function "system"'):
            check("strtolower(system('id')) == 'x'")

    def test_operator_keywords_are_not_calls(self):
        """Test that keywords before a parenthesis are not function names."""
        check("{a} == 1 and ({b} == 2 or {c} == 3)")
        check("{a} == 1 xor ({b} == 2)")

    @pytest.mark.parametrize("condition", ["exec{}('ls')", "exec{('ls')", "exec@('ls')"])
    def test_call_split_by_stray_markers(self, condition):
        """Test that markers dropped by the rewriter cannot hide a call."""
        with pytest.raises(SecurityValidationError, match='function "exec"'):
            check(condition)

    def test_references_are_not_calls(self):
        """Test that a reference before a parenthesis is not a call name."""
        check("{a} == 1 and (@b == 2)")

    def test_function_name_inside_string_accepted(self):
        """Test that quoted calls are ignored."""
        check("{cmd} == 'exec(ls)'")

    def test_whitelist_size(self):
        """Test that the whitelist has the documented entries."""
        assert len(FUNCTION_WHITELIST) == 50
        assert {"strtolower", "preg_match", "date", "vsprintf", "wordwrap"} <= FUNCTION_WHITELIST


class TestStripMarkers:
    """Test the marker-stripped view used by validation."""

    def test_references_become_literals(self):
        """Test {column} and @variable replacement."""
        assert strip_markers("{a} == @b") == "'' == ''"

    def test_stray_markers_dropped(self):
        """Test markers that do not form a reference."""
        assert strip_markers("exec{}(1) @ {1}") == "exec(1)  1"


class TestErrorHierarchy:
    """Test that security errors are configuration errors."""

    def test_security_error_is_configuration_error(self):
        """Test that pipeline assembly can catch one type."""
        with pytest.raises(ConfigurationError):
            check("{a} = 1")
