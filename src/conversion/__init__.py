"""
Value conversion for database dumps.

Converters rewrite column values while rows are dumped (anonymization,
fixed values, hashing). The Conditional converter selects a converter with
a sandboxed condition evaluated against the current row.
"""

from conversion.condition import CompiledCondition, compile_condition
from conversion.converters import (
    AnonymizeEmail,
    AnonymizeText,
    Chain,
    Conditional,
    Converter,
    ConverterFactory,
    Hash,
    RowContext,
    SetNull,
    SetValue,
)
from conversion.errors import (
    ConditionSyntaxError,
    ConfigurationError,
    ConversionError,
    EvaluationError,
    LexError,
    SecurityValidationError,
)
from conversion.pipeline import ConverterPipeline, create_pipeline

__all__ = [
    "CompiledCondition",
    "compile_condition",
    "Converter",
    "RowContext",
    "SetValue",
    "SetNull",
    "AnonymizeText",
    "AnonymizeEmail",
    "Hash",
    "Conditional",
    "Chain",
    "ConverterFactory",
    "ConverterPipeline",
    "create_pipeline",
    "ConversionError",
    "ConfigurationError",
    "LexError",
    "SecurityValidationError",
    "ConditionSyntaxError",
    "EvaluationError",
]
