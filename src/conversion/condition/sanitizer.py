"""
Sanitization and security validation of converter conditions.

Validation runs on a copy of the condition where every string literal has
been blanked, so that quoted text (e.g. a value containing "<?php" or
"exec(") can never trigger a false rejection.
"""

import logging
import re

from conversion.errors import SecurityValidationError

from .constants import (
    FUNCTION_WHITELIST,
    OPERATOR_KEYWORDS,
    STATEMENT_BLACKLIST,
    VARIABLE_SIGIL,
)
from .tokenizer import TokenType, iter_tokens

logger = logging.getLogger(__name__)


# "=" that is not part of ==, ===, !=, !==, <= or >=
ASSIGNMENT_OPERATOR = re.compile(r"(?<![=!<>])=(?!=)")
STATIC_CALL = re.compile(r"::\s*(\w+)\s*\(")
FUNCTION_CALL = re.compile(r"(\w+)\s*\(")
LINE_BREAKS = re.compile(r"[\r\n]+")
# {column} and @variable references, rewritten to lookups
REFERENCE = re.compile(r"\{[A-Za-z_]\w*\}|@[A-Za-z_]\w*")
MARKERS = re.compile(r"[{}@]")


def sanitize_condition(condition: str) -> str:
    """Collapse line breaks so that the condition is a single line."""
    return LINE_BREAKS.sub(" ", condition).strip()


def remove_quoted_values(condition: str) -> str:
    """
    Replace every string literal with an empty literal.

    Examples:
        "{name} == 'return'" -> "{name} == ''"

    Args:
        condition: Condition text

    Returns:
        Condition text with blanked string literals

    Raises:
        LexError: If a string literal is not terminated
    """
    return "".join(
        "''" if token.type is TokenType.STRING else token.value
        for token in iter_tokens(condition)
    )


def strip_markers(condition: str) -> str:
    """
    Return the condition as the rewriter will see its markers.

    References become empty literals and stray "{", "}" and "@" characters
    are dropped, so that e.g. "exec{}(" shows up as the call it turns into.
    """
    return MARKERS.sub("", REFERENCE.sub("''", condition))


def validate_condition(condition: str) -> None:
    """
    Reject conditions that use constructs outside the allowed subset.

    The checks run on the text as written and with its markers stripped.

    Args:
        condition: Quote-blanked condition text

    Raises:
        SecurityValidationError: Naming the first disallowed construct found
    """
    for text in (condition, strip_markers(condition)):
        _check_constructs(text)

    logger.debug("Condition passed security validation")


def _check_constructs(condition: str) -> None:
    if ASSIGNMENT_OPERATOR.search(condition):
        raise SecurityValidationError(
            'The operator "=" is not allowed in converter conditions.'
        )

    if VARIABLE_SIGIL in condition:
        raise SecurityValidationError(
            f'The character "{VARIABLE_SIGIL}" is not allowed in converter conditions.'
        )

    for statement in STATEMENT_BLACKLIST:
        if statement in condition.lower():
            raise SecurityValidationError(
                f'The statement "{statement}" is not allowed in converter conditions.'
            )

    match = STATIC_CALL.search(condition)
    if match:
        raise SecurityValidationError(
            "Static functions are not allowed in converter conditions "
            f'(found "::{match.group(1)}").'
        )

    for name in FUNCTION_CALL.findall(condition):
        if name.lower() in OPERATOR_KEYWORDS:
            continue
        if name not in FUNCTION_WHITELIST:
            raise SecurityValidationError(
                f'The function "{name}" is not allowed in converter conditions.'
            )
