"""
Sandboxed condition language for converters.

Conditions are boolean expressions referencing the current row with
{column} and session variables with @variable, e.g.

    {status} == 'inactive' && strtolower(@env) != 'prod'

Provides:
- tokenizer: typed tokens covering the whole condition text
- sanitizer: security validation on quote-blanked text
- rewriter: {column} / @variable references to context lookups
- parser / evaluator: closed-grammar expression tree and its evaluation
- compiler: the whole compile phase behind compile_condition()
"""

from .compiler import CompiledCondition, compile_condition
from .constants import FUNCTION_WHITELIST, STATEMENT_BLACKLIST
from .evaluator import Evaluator, evaluate, evaluate_bool
from .functions import FUNCTIONS
from .parser import Parser, parse
from .rewriter import normalize_condition, rewrite_references
from .sanitizer import remove_quoted_values, sanitize_condition, validate_condition
from .tokenizer import Token, TokenType, decode_string, iter_tokens, tokenize

__all__ = [
    "CompiledCondition",
    "compile_condition",
    "FUNCTION_WHITELIST",
    "STATEMENT_BLACKLIST",
    "FUNCTIONS",
    "Evaluator",
    "evaluate",
    "evaluate_bool",
    "Parser",
    "parse",
    "normalize_condition",
    "rewrite_references",
    "remove_quoted_values",
    "sanitize_condition",
    "validate_condition",
    "Token",
    "TokenType",
    "decode_string",
    "iter_tokens",
    "tokenize",
]
