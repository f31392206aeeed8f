"""
Base converter class and common utilities.

Provides the Converter interface implemented by every converter, the
RowContext passed to converters for each dumped row, and shared metrics for
tracking conversions.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from prometheus_client import Counter, Histogram

from conversion.errors import ConfigurationError

logger = logging.getLogger(__name__)


# Metrics
CONVERSIONS_APPLIED = Counter(
    "conversions_applied_total",
    "Total values converted",
    ["converter_type"],
)

CONVERSION_TIME = Histogram(
    "conversion_seconds",
    "Time to convert a value",
    ["converter_type"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
)

CONVERSION_ERRORS = Counter(
    "conversion_errors_total",
    "Conversion errors",
    ["converter_type", "error_type"],
)

SCALAR_TYPES = (str, int, float, bool)


class RowContext(dict):
    """
    Data visible to converters while a row is dumped.

    Holds two namespaces: "row_data" (column name -> value) and "vars"
    (variable name -> value). Built fresh for each row.
    """

    @classmethod
    def build(
        cls,
        row_data: Mapping[str, Any] | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> "RowContext":
        """
        Build a row context.

        Args:
            row_data: Column values of the current row
            variables: Session variables

        Returns:
            RowContext with copies of both mappings
        """
        return cls(row_data=dict(row_data or {}), vars=dict(variables or {}))

    @property
    def row_data(self) -> Mapping[str, Any]:
        return self.get("row_data", {})

    @property
    def variables(self) -> Mapping[str, Any]:
        return self.get("vars", {})


class Converter(ABC):
    """Base class for value converters."""

    @abstractmethod
    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """
        Convert a single value.

        Args:
            value: Value to convert
            context: Row context (row_data, vars)

        Returns:
            Converted value
        """
        pass

    def get_type(self) -> str:
        """Get converter type for metrics."""
        return self.__class__.__name__


def get_parameter(
    parameters: Mapping[str, Any] | None,
    name: str,
    default: Any = None,
) -> Any:
    """Read an optional parameter from a converter parameter mapping."""
    if parameters is None:
        return default
    if not isinstance(parameters, Mapping):
        raise ConfigurationError(
            f"Converter parameters must be a mapping, got {type(parameters).__name__}"
        )
    return parameters.get(name, default)


def require_converter(value: Any, name: str) -> "Converter | None":
    """Validate an optional child converter parameter."""
    if value is not None and not isinstance(value, Converter):
        raise ConfigurationError(
            f'The parameter "{name}" must be a converter, got {type(value).__name__}.'
        )
    return value
