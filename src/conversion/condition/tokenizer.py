"""
Tokenizer for converter conditions.

Splits condition text into typed tokens without interpreting them. The
concatenated token values always reproduce the input exactly, which lets the
sanitizer and the rewriter rebuild the condition from a token list.

Examples:
    "{status} == 'active'" ->
        MARKER '{', IDENTIFIER 'status', MARKER '}', WHITESPACE ' ',
        OPERATOR '==', WHITESPACE ' ', STRING "'active'"
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from conversion.errors import LexError


class TokenType(Enum):
    """Token classification."""

    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    MARKER = "marker"
    OPERATOR = "operator"
    WHITESPACE = "whitespace"
    OTHER = "other"


# Characters used to reference row columns ({name}) and variables (@name)
MARKER_CHARS = frozenset({"{", "}", "@"})

# Longest operators first so that "===" is not read as "==" followed by "="
_MULTI_CHAR_OPERATORS = [
    r"(?i:<\?php)",
    r"===",
    r"!==",
    r"<\?",
    r"\?>",
    r"==",
    r"!=",
    r"<>",
    r"<=",
    r">=",
    r"&&",
    r"\|\|",
    r"::",
]

_TOKEN_PATTERN = re.compile(
    "|".join(
        [
            r"(?P<WHITESPACE>\s+)",
            r"(?P<STRING>'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\")",
            r"(?P<NUMBER>\d+(?:\.\d+)?)",
            r"(?P<IDENTIFIER>[A-Za-z_][A-Za-z0-9_]*)",
            r"(?P<MARKER>[{}@])",
            r"(?P<OPERATOR>" + "|".join(_MULTI_CHAR_OPERATORS) + r"|[()\[\],;!<>=.+\-*/%?:&|^~])",
            r"(?P<OTHER>.)",
        ]
    ),
    re.DOTALL,
)

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "f": "\f",
    "e": "\x1b",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "$": "$",
}


@dataclass(frozen=True)
class Token:
    """A classified slice of condition text."""

    type: TokenType
    value: str
    position: int = 0

    def is_marker(self) -> bool:
        """Check whether the token is one of the reference marker characters."""
        return self.type is TokenType.MARKER

    def __str__(self) -> str:
        return self.value


def iter_tokens(text: str) -> Iterator[Token]:
    """
    Lazily tokenize condition text.

    Args:
        text: Condition source text

    Yields:
        Tokens in source order

    Raises:
        LexError: If a string literal is not terminated
    """
    position = 0
    length = len(text)

    while position < length:
        match = _TOKEN_PATTERN.match(text, position)
        kind = match.lastgroup
        value = match.group()

        # A lone quote only matches OTHER when the literal never closes
        if kind == "OTHER" and value in ("'", '"'):
            raise LexError("Unterminated string literal", position)

        yield Token(TokenType[kind], value, position)
        position = match.end()


def tokenize(text: str) -> list[Token]:
    """
    Tokenize condition text into an index-addressable list.

    Args:
        text: Condition source text

    Returns:
        List of tokens covering every character of the input

    Raises:
        LexError: If a string literal is not terminated
    """
    return list(iter_tokens(text))


def decode_string(raw: str) -> str:
    """
    Return the value of a quoted string token.

    Single-quoted literals only honour \\' and \\\\; double-quoted literals
    also understand the usual control-character escapes. Unknown escapes are
    kept verbatim.

    Args:
        raw: String token value including its delimiters

    Returns:
        Unescaped string content
    """
    quote = raw[0]
    body = raw[1:-1]
    result = []
    index = 0

    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body):
            following = body[index + 1]
            if quote == "'":
                if following in ("'", "\\"):
                    result.append(following)
                    index += 2
                    continue
            elif following in _ESCAPES:
                result.append(_ESCAPES[following])
                index += 2
                continue
        result.append(char)
        index += 1

    return "".join(result)
