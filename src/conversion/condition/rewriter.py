"""
Rewriting of column and variable references.

Conditions reference the current row with "{column}" and session variables
with "@variable". The rewriter turns these markers into lookups against the
row context:

    {status} == 1 && @env == 'prod'
    -> return row_data['status'] == 1 && vars['env'] == 'prod';
"""

import re

from .constants import ROW_DATA, VARS
from .tokenizer import Token, TokenType, tokenize

RETURN_PREFIX = re.compile(r"^return\b")


def normalize_condition(condition: str) -> str:
    """
    Turn the condition into a single result-returning statement.

    Args:
        condition: Sanitized condition text

    Returns:
        Condition ending with ";" and starting with "return"
    """
    condition = condition.strip()

    if not condition.endswith(";"):
        condition += ";"

    if not RETURN_PREFIX.match(condition):
        condition = "return " + condition

    return condition


def _is_identifier(tokens: list[Token], index: int) -> bool:
    return index < len(tokens) and tokens[index].type is TokenType.IDENTIFIER


def _value_at(tokens: list[Token], index: int) -> str | None:
    return tokens[index].value if index < len(tokens) else None


def rewrite_references(condition: str) -> str:
    """
    Replace "{column}" and "@variable" references by context lookups.

    Marker characters that are not part of a reference are dropped; every
    other token is kept verbatim.

    Args:
        condition: Condition text (with its original string literals)

    Returns:
        Rewritten condition

    Raises:
        LexError: If a string literal is not terminated
    """
    tokens = tokenize(condition)
    result = []
    index = 0

    while index < len(tokens):
        token = tokens[index]

        if (
            token.value == "{"
            and _is_identifier(tokens, index + 1)
            and _value_at(tokens, index + 2) == "}"
        ):
            result.append(f"{ROW_DATA}['{tokens[index + 1].value}']")
            index += 3
            continue

        if token.value == "@" and _is_identifier(tokens, index + 1):
            result.append(f"{VARS}['{tokens[index + 1].value}']")
            index += 2
            continue

        if not token.is_marker():
            result.append(token.value)

        index += 1

    return "".join(result)
