"""
Proxy converters.

Converters that delegate to other converters: Conditional selects a child
converter with a sandboxed condition evaluated against the row context,
Chain applies several converters in order.
"""

import logging
from collections.abc import Mapping
from typing import Any

from conversion.condition import compile_condition
from conversion.errors import ConfigurationError, EvaluationError

from .base import (
    CONVERSION_ERRORS,
    CONVERSION_TIME,
    Converter,
    get_parameter,
    require_converter,
)

logger = logging.getLogger(__name__)


class Conditional(Converter):
    """
    Apply a converter depending on a condition.

    The condition references columns of the current row with {column} and
    session variables with @variable, and may call whitelisted functions:

        {status} == 'deleted' || strtolower(@env) != 'prod'

    It is compiled once at construction; a condition that fails validation
    makes construction fail.
    """

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize conditional converter.

        Args:
            parameters: Mapping with "condition" (required),
                "if_true_converter" and/or "if_false_converter"

        Raises:
            ConfigurationError: If the condition is missing, no child
                converter is configured, or the condition is rejected
        """
        condition = get_parameter(parameters, "condition")
        if condition is None or condition == "":
            raise ConfigurationError('The parameter "condition" is required.')

        self.if_true_converter = require_converter(
            get_parameter(parameters, "if_true_converter"), "if_true_converter"
        )
        self.if_false_converter = require_converter(
            get_parameter(parameters, "if_false_converter"), "if_false_converter"
        )

        if self.if_true_converter is None and self.if_false_converter is None:
            raise ConfigurationError(
                'The conditional converter requires a "if_true_converter" '
                'and/or "if_false_converter" parameter.'
            )

        self.condition = compile_condition(condition)

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """
        Convert value with the converter selected by the condition.

        Values pass through unchanged when the selected branch has no
        converter.

        Raises:
            EvaluationError: If the condition cannot be evaluated for this row
        """
        # Only the condition is timed, child converters record their own time
        with CONVERSION_TIME.labels(converter_type=self.get_type()).time():
            try:
                result = self.condition.is_satisfied(context or {})
            except EvaluationError as e:
                CONVERSION_ERRORS.labels(
                    converter_type=self.get_type(),
                    error_type=type(e).__name__,
                ).inc()
                logger.error(f"Condition {self.condition.source!r} failed: {e}")
                raise

        if result:
            if self.if_true_converter is not None:
                return self.if_true_converter.convert(value, context)
        elif self.if_false_converter is not None:
            return self.if_false_converter.convert(value, context)

        return value


class Chain(Converter):
    """Apply a list of converters, each one receiving the previous result."""

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize converter chain.

        Args:
            parameters: Mapping with a non-empty "converters" list

        Raises:
            ConfigurationError: If "converters" is missing or empty
        """
        converters = get_parameter(parameters, "converters")
        if not converters or not isinstance(converters, (list, tuple)):
            raise ConfigurationError('The parameter "converters" must be a non-empty list.')

        self.converters = [
            require_converter(converter, "converters") for converter in converters
        ]

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Convert value through every converter of the chain."""
        for converter in self.converters:
            value = converter.convert(value, context)
        return value
