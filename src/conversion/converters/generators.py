"""
Generator converters.

Converters that ignore the input value and produce a configured one.
"""

import logging
from collections.abc import Mapping
from typing import Any

from conversion.errors import ConfigurationError

from .base import CONVERSIONS_APPLIED, SCALAR_TYPES, Converter, get_parameter

logger = logging.getLogger(__name__)


class SetValue(Converter):
    """
    Replace every value by a fixed value.

    The configured value must be a scalar (str, int, float, bool) or None.
    """

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize fixed value converter.

        Args:
            parameters: Mapping with a required "value" key

        Raises:
            ConfigurationError: If "value" is missing or not a scalar/None
        """
        if parameters is None or "value" not in parameters:
            raise ConfigurationError('The parameter "value" is required.')

        value = get_parameter(parameters, "value")
        if value is not None and not isinstance(value, SCALAR_TYPES):
            raise ConfigurationError(
                f'The parameter "value" must be a scalar or null, got {type(value).__name__}.'
            )

        self.value = value

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Return the configured value."""
        CONVERSIONS_APPLIED.labels(converter_type=self.get_type()).inc()
        return self.value


class SetNull(Converter):
    """Replace every value by None."""

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        if parameters:
            logger.debug(f"SetNull ignores parameters: {sorted(parameters)}")

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Return None."""
        CONVERSIONS_APPLIED.labels(converter_type=self.get_type()).inc()
        return None
