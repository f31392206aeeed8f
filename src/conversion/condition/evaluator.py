"""
Evaluation of condition expression trees against a row context.

The evaluator only reads from the "row_data" and "vars" namespaces of the
context it is given and only calls functions from the whitelist.
"""

import re
from collections.abc import Mapping
from decimal import InvalidOperation
from typing import Any

from conversion.errors import EvaluationError

from .coercion import loose_compare, strict_equals, to_bool
from .constants import ROW_DATA
from .functions import FUNCTIONS
from .parser import (
    ArrayLiteral,
    Call,
    Comparison,
    Expression,
    Literal,
    Logical,
    Lookup,
    Not,
)

_COMPARATORS = {
    "==": lambda left, right: loose_compare(left, right) == 0,
    "!=": lambda left, right: loose_compare(left, right) != 0,
    "<>": lambda left, right: loose_compare(left, right) != 0,
    "===": strict_equals,
    "!==": lambda left, right: not strict_equals(left, right),
    "<": lambda left, right: loose_compare(left, right) < 0,
    "<=": lambda left, right: loose_compare(left, right) <= 0,
    ">": lambda left, right: loose_compare(left, right) > 0,
    ">=": lambda left, right: loose_compare(left, right) >= 0,
}

# Errors raised by whitelisted functions on bad arguments
_FUNCTION_ERRORS = (
    TypeError,
    ValueError,
    IndexError,
    OverflowError,
    InvalidOperation,
    re.error,
)


class Evaluator:
    """Evaluate expression trees produced by the condition parser."""

    def __init__(self, functions: Mapping[str, Any] | None = None):
        """
        Initialize evaluator.

        Args:
            functions: Function table (defaults to the whitelisted functions)
        """
        self.functions = FUNCTIONS if functions is None else functions
        self._handlers = {
            Literal: self._evaluate_literal,
            ArrayLiteral: self._evaluate_array,
            Lookup: self._evaluate_lookup,
            Call: self._evaluate_call,
            Not: self._evaluate_not,
            Logical: self._evaluate_logical,
            Comparison: self._evaluate_comparison,
        }

    def evaluate(self, node: Expression, context: Mapping[str, Any]) -> Any:
        """
        Evaluate a node.

        Args:
            node: Expression tree
            context: Row context with "row_data" and "vars" mappings

        Returns:
            Value of the expression

        Raises:
            EvaluationError: If a lookup or a function call fails
        """
        return self._handlers[type(node)](node, context)

    def _evaluate_literal(self, node: Literal, context: Mapping[str, Any]) -> Any:
        return node.value

    def _evaluate_array(self, node: ArrayLiteral, context: Mapping[str, Any]) -> list:
        return [self.evaluate(item, context) for item in node.items]

    def _evaluate_lookup(self, node: Lookup, context: Mapping[str, Any]) -> Any:
        kind = "column" if node.namespace == ROW_DATA else "variable"
        namespace = context.get(node.namespace) if context is not None else None

        if namespace is None or node.name not in namespace:
            raise EvaluationError(
                f'The {kind} "{node.name}" is not defined in the row context.'
            )

        return namespace[node.name]

    def _evaluate_call(self, node: Call, context: Mapping[str, Any]) -> Any:
        arguments = [self.evaluate(argument, context) for argument in node.arguments]

        try:
            return self.functions[node.name](*arguments)
        except _FUNCTION_ERRORS as e:
            raise EvaluationError(f'Function "{node.name}" failed: {e}') from e

    def _evaluate_not(self, node: Not, context: Mapping[str, Any]) -> bool:
        return not to_bool(self.evaluate(node.operand, context))

    def _evaluate_logical(self, node: Logical, context: Mapping[str, Any]) -> bool:
        left = to_bool(self.evaluate(node.left, context))

        if node.operator == "and":
            return left and to_bool(self.evaluate(node.right, context))
        if node.operator == "or":
            return left or to_bool(self.evaluate(node.right, context))

        return left != to_bool(self.evaluate(node.right, context))

    def _evaluate_comparison(self, node: Comparison, context: Mapping[str, Any]) -> bool:
        left = self.evaluate(node.left, context)
        right = self.evaluate(node.right, context)

        try:
            return _COMPARATORS[node.operator](left, right)
        except (TypeError, ValueError) as e:
            raise EvaluationError(
                f'Cannot compare {left!r} {node.operator} {right!r}: {e}'
            ) from e


def evaluate(node: Expression, context: Mapping[str, Any]) -> Any:
    """Evaluate an expression tree with the default function table."""
    return Evaluator().evaluate(node, context)


def evaluate_bool(node: Expression, context: Mapping[str, Any]) -> bool:
    """Evaluate an expression tree and return its truthiness."""
    return to_bool(evaluate(node, context))
