"""
Compile phase for converter conditions.

compile_condition() runs once per Conditional converter:

    sanitize -> blank quoted values -> validate -> normalize
             -> rewrite references -> parse

The result is immutable and can be evaluated for any number of rows.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import Counter

from conversion.errors import ConfigurationError

from .coercion import to_bool
from .evaluator import Evaluator
from .parser import Expression, parse
from .rewriter import normalize_condition, rewrite_references
from .sanitizer import remove_quoted_values, sanitize_condition, validate_condition

logger = logging.getLogger(__name__)


CONDITION_COMPILATIONS = Counter(
    "condition_compilations_total",
    "Converter conditions compiled",
    ["status"],
)

_EVALUATOR = Evaluator()


@dataclass(frozen=True)
class CompiledCondition:
    """
    A validated condition ready for evaluation.

    Attributes:
        source: Condition text as configured
        code: Rewritten condition, e.g. "return row_data['id'] > 3;"
        expression: Parsed expression tree of code
    """

    source: str
    code: str
    expression: Expression = field(repr=False, compare=False)

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        """
        Evaluate the condition against a row context.

        Raises:
            EvaluationError: If a referenced column/variable is missing or a
                function call fails
        """
        return _EVALUATOR.evaluate(self.expression, context)

    def is_satisfied(self, context: Mapping[str, Any]) -> bool:
        """Evaluate the condition and return its truthiness."""
        return to_bool(self.evaluate(context))

    def __str__(self) -> str:
        return self.code


def compile_condition(condition: str) -> CompiledCondition:
    """
    Compile condition text.

    Args:
        condition: Condition as written in the converter configuration

    Returns:
        CompiledCondition

    Raises:
        ConfigurationError: If the condition is empty
        LexError: If a string literal is not terminated
        SecurityValidationError: If a disallowed construct is used
        ConditionSyntaxError: If the condition is not a valid expression
    """
    if not isinstance(condition, str) or not condition.strip():
        raise ConfigurationError('The parameter "condition" is required.')

    try:
        sanitized = sanitize_condition(condition)
        validate_condition(remove_quoted_values(sanitized))
        code = rewrite_references(normalize_condition(sanitized))
        expression = parse(code)
    except ConfigurationError as e:
        CONDITION_COMPILATIONS.labels(status="rejected").inc()
        logger.warning(f"Rejected converter condition {condition!r}: {e}")
        raise

    CONDITION_COMPILATIONS.labels(status="compiled").inc()
    logger.debug(f"Compiled converter condition {condition!r} to {code!r}")

    return CompiledCondition(source=condition, code=code, expression=expression)
