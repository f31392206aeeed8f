"""
Value converters applied to dumped rows.

Provides:
- generators: SetValue, SetNull
- anonymizers: AnonymizeText, AnonymizeEmail, Hash
- proxy: Conditional, Chain
- factory: ConverterFactory building converters from configuration
"""

from .anonymizers import AnonymizeEmail, AnonymizeText, Hash
from .base import Converter, RowContext
from .factory import ConverterFactory
from .generators import SetNull, SetValue
from .proxy import Chain, Conditional

__all__ = [
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
]
