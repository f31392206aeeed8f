"""
Exception hierarchy for value conversion.

Construction-time failures (bad parameters, unsafe or malformed conditions)
derive from ConfigurationError so that pipeline assembly can abort on a
single exception type. Row-time failures raise EvaluationError.
"""


class ConversionError(Exception):
    """Base class for all conversion errors."""


class ConfigurationError(ConversionError, ValueError):
    """Raised when a converter is constructed with invalid parameters."""


class LexError(ConfigurationError):
    """Raised when a condition cannot be split into tokens."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


class SecurityValidationError(ConfigurationError):
    """Raised when a condition contains a disallowed construct."""


class ConditionSyntaxError(ConfigurationError):
    """Raised when a condition does not match the condition grammar."""


class EvaluationError(ConversionError, RuntimeError):
    """Raised when a compiled condition fails against a row context."""
