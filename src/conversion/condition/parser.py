"""
Parser for compiled converter conditions.

Builds an immutable expression tree from the rewritten condition text. The
grammar is closed: literals, row/variable lookups, whitelisted function
calls, comparisons and boolean connectives. Anything else (assignments,
arithmetic, unknown identifiers, several statements) is a syntax error, so
the evaluator never sees a construct it would have to refuse at row time.

Grammar:
    statement  := ['return'] expr [';']
    expr       := xor_expr ('or' xor_expr)*
    xor_expr   := and_expr ('xor' and_expr)*
    and_expr   := lor ('and' lor)*
    lor        := land ('||' land)*
    land       := equality ('&&' equality)*
    equality   := relational [('==' | '!=' | '<>' | '===' | '!==') relational]
    relational := unary [('<' | '<=' | '>' | '>=') unary]
    unary      := '!' unary | '-' NUMBER | primary
    primary    := NUMBER | STRING | true | false | null | CONSTANT
                | NAME '(' args ')' | (row_data | vars) '[' STRING ']'
                | '[' args ']' | '(' expr ')'
"""

import inspect
from dataclasses import dataclass
from typing import Any, Union

from conversion.errors import ConditionSyntaxError, SecurityValidationError

from .constants import FUNCTION_WHITELIST, NAMED_CONSTANTS, ROW_DATA, VARS
from .functions import FUNCTIONS
from .tokenizer import Token, TokenType, decode_string, tokenize


@dataclass(frozen=True)
class Literal:
    """A constant value (string, number, boolean or null)."""

    value: Union[str, int, float, bool, None]


@dataclass(frozen=True)
class ArrayLiteral:
    """A list of expressions, e.g. ['a', {col}] passed to implode()."""

    items: tuple


@dataclass(frozen=True)
class Lookup:
    """A read of row_data['name'] or vars['name']."""

    namespace: str
    name: str


@dataclass(frozen=True)
class Call:
    """A call to a whitelisted function."""

    name: str
    arguments: tuple


@dataclass(frozen=True)
class Not:
    """Boolean negation."""

    operand: "Expression"


@dataclass(frozen=True)
class Logical:
    """Boolean connective: and, or, xor."""

    operator: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Comparison:
    """Loose or strict comparison."""

    operator: str
    left: "Expression"
    right: "Expression"


Expression = Union[Literal, ArrayLiteral, Lookup, Call, Not, Logical, Comparison]

EQUALITY_OPERATORS = frozenset({"==", "!=", "<>", "===", "!=="})
RELATIONAL_OPERATORS = frozenset({"<", "<=", ">", ">="})
KEYWORD_LITERALS = {"true": True, "false": False, "null": None}
RESERVED_WORDS = frozenset({"and", "or", "xor", "return"})


class Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, tokens: list[Token]):
        self.tokens = [token for token in tokens if token.type is not TokenType.WHITESPACE]
        self.index = 0

    def parse(self) -> Expression:
        """
        Parse a whole condition statement.

        Returns:
            Root expression node

        Raises:
            ConditionSyntaxError: If the tokens do not form a single expression
            SecurityValidationError: If a non-whitelisted function is called
        """
        self._accept_keyword("return")
        try:
            expression = self._parse_or()
        except RecursionError:
            raise ConditionSyntaxError("Converter condition is nested too deeply") from None
        self._accept_operator(";")

        if self._peek() is not None:
            self._fail(self._peek())

        return expression

    # Token helpers

    def _peek(self, offset: int = 0) -> Token | None:
        position = self.index + offset
        return self.tokens[position] if position < len(self.tokens) else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ConditionSyntaxError("Unexpected end of condition")
        self.index += 1
        return token

    def _is_operator(self, value: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.type is TokenType.OPERATOR and token.value == value

    @staticmethod
    def _is_operator_in(token: Token | None, values) -> bool:
        return token is not None and token.type is TokenType.OPERATOR and token.value in values

    def _is_keyword(self, keyword: str) -> bool:
        token = self._peek()
        return (
            token is not None
            and token.type is TokenType.IDENTIFIER
            and token.value.lower() == keyword
        )

    def _accept_operator(self, value: str) -> bool:
        if self._is_operator(value):
            self.index += 1
            return True
        return False

    def _accept_keyword(self, keyword: str) -> bool:
        if self._is_keyword(keyword):
            self.index += 1
            return True
        return False

    def _expect_operator(self, value: str) -> Token:
        token = self._advance()
        if token.type is not TokenType.OPERATOR or token.value != value:
            raise ConditionSyntaxError(
                f'Expected "{value}" but found "{token.value}" at position {token.position}'
            )
        return token

    def _fail(self, token: Token) -> None:
        raise ConditionSyntaxError(
            f'Unexpected "{token.value}" at position {token.position} in converter condition'
        )

    # Grammar rules

    def _parse_or(self) -> Expression:
        left = self._parse_xor()
        while self._accept_keyword("or"):
            left = Logical("or", left, self._parse_xor())
        return left

    def _parse_xor(self) -> Expression:
        left = self._parse_and()
        while self._accept_keyword("xor"):
            left = Logical("xor", left, self._parse_and())
        return left

    def _parse_and(self) -> Expression:
        left = self._parse_logical_or()
        while self._accept_keyword("and"):
            left = Logical("and", left, self._parse_logical_or())
        return left

    def _parse_logical_or(self) -> Expression:
        left = self._parse_logical_and()
        while self._accept_operator("||"):
            left = Logical("or", left, self._parse_logical_and())
        return left

    def _parse_logical_and(self) -> Expression:
        left = self._parse_equality()
        while self._accept_operator("&&"):
            left = Logical("and", left, self._parse_equality())
        return left

    def _parse_equality(self) -> Expression:
        left = self._parse_relational()
        token = self._peek()
        if self._is_operator_in(token, EQUALITY_OPERATORS):
            self.index += 1
            return Comparison(token.value, left, self._parse_relational())
        return left

    def _parse_relational(self) -> Expression:
        left = self._parse_unary()
        token = self._peek()
        if self._is_operator_in(token, RELATIONAL_OPERATORS):
            self.index += 1
            return Comparison(token.value, left, self._parse_unary())
        return left

    def _parse_unary(self) -> Expression:
        if self._accept_operator("!"):
            return Not(self._parse_unary())

        if self._is_operator("-"):
            following = self._peek(1)
            if following is None or following.type is not TokenType.NUMBER:
                self._fail(self._advance())
            self.index += 1
            return Literal(-self._parse_number(self._advance()))

        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        token = self._advance()

        if token.type is TokenType.NUMBER:
            return Literal(self._parse_number(token))

        if token.type is TokenType.STRING:
            return Literal(decode_string(token.value))

        if token.type is TokenType.IDENTIFIER:
            return self._parse_identifier(token)

        if token.type is TokenType.OPERATOR and token.value == "(":
            expression = self._parse_or()
            self._expect_operator(")")
            return expression

        if token.type is TokenType.OPERATOR and token.value == "[":
            return ArrayLiteral(self._parse_arguments("]"))

        self._fail(token)

    def _parse_identifier(self, token: Token) -> Expression:
        name = token.value
        lowered = name.lower()

        if lowered in KEYWORD_LITERALS:
            return Literal(KEYWORD_LITERALS[lowered])

        if lowered in RESERVED_WORDS:
            self._fail(token)

        if self._accept_operator("("):
            return self._parse_call(token)

        if name in (ROW_DATA, VARS) and self._accept_operator("["):
            key = self._advance()
            if key.type is not TokenType.STRING:
                raise ConditionSyntaxError(
                    f'Expected a quoted name after "{name}[" at position {key.position}'
                )
            self._expect_operator("]")
            return Lookup(name, decode_string(key.value))

        if name in NAMED_CONSTANTS:
            return Literal(NAMED_CONSTANTS[name])

        raise ConditionSyntaxError(
            f'Unknown identifier "{name}" at position {token.position}. '
            "Use {column} to reference a column and @name to reference a variable."
        )

    def _parse_call(self, token: Token) -> Call:
        name = token.value
        if name not in FUNCTION_WHITELIST:
            raise SecurityValidationError(
                f'The function "{name}" is not allowed in converter conditions.'
            )

        arguments = self._parse_arguments(")")

        try:
            inspect.signature(FUNCTIONS[name]).bind(*arguments)
        except TypeError as e:
            raise ConditionSyntaxError(
                f'Invalid number of arguments for function "{name}": {e}'
            ) from e

        return Call(name, arguments)

    def _parse_arguments(self, closing: str) -> tuple:
        arguments = []
        if self._accept_operator(closing):
            return ()

        while True:
            arguments.append(self._parse_or())
            if self._accept_operator(closing):
                return tuple(arguments)
            self._expect_operator(",")

    @staticmethod
    def _parse_number(token: Token) -> Any:
        return float(token.value) if "." in token.value else int(token.value)


def parse(code: str) -> Expression:
    """
    Parse compiled condition text into an expression tree.

    Args:
        code: Rewritten condition, e.g. "return row_data['id'] > 3;"

    Returns:
        Root expression node

    Raises:
        LexError: If a string literal is not terminated
        ConditionSyntaxError: If the text is not a single valid expression
        SecurityValidationError: If a non-whitelisted function is called
    """
    return Parser(tokenize(code)).parse()
