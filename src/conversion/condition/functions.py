"""
Whitelisted functions callable from converter conditions.

Every function is pure (apart from reading the clock in date() and time())
and follows the conventional string-library behaviour that configuration
authors expect: positions are 0-based, "not found" is reported as False and
negative offsets count from the end of the string.

Functions are registered under their public name with @register; FUNCTIONS
is the lookup table used by the parser and the evaluator.
"""

import calendar
import hashlib
import html
import re
import time
from collections.abc import Callable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from functools import lru_cache
from html.entities import codepoint2name
from typing import Any

from .coercion import is_numeric, to_bool, to_int, to_number, to_string
from .constants import FUNCTION_WHITELIST

FUNCTIONS: dict[str, Callable[..., Any]] = {}

DEFAULT_TRIM_CHARS = " \t\n\r\0\x0b"
STR_PAD_LEFT = 0
STR_PAD_RIGHT = 1
STR_PAD_BOTH = 2


def register(name: str):
    """Register a function under a whitelisted name."""
    if name not in FUNCTION_WHITELIST:
        raise ValueError(f'"{name}" is not a whitelisted condition function')

    def decorator(func):
        FUNCTIONS[name] = func
        return func

    return decorator


def _compare(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _resolve_offset(offset: int, length: int) -> int:
    """Turn a possibly negative offset into an index, validating bounds."""
    if offset < 0:
        offset += length
    if offset < 0 or offset > length:
        raise ValueError("Offset not contained in string")
    return offset


def _expand_char_list(chars: str) -> str:
    """Expand "a..z" style ranges in a trim character list."""
    return re.sub(
        r"(.)\.\.(.)",
        lambda match: "".join(
            chr(code) for code in range(ord(match.group(1)), ord(match.group(2)) + 1)
        ),
        chars,
    )


# String case and trimming


@register("strtolower")
def lower(value):
    return to_string(value).lower()


@register("strtoupper")
def upper(value):
    return to_string(value).upper()


@register("ucfirst")
def upper_first(value):
    text = to_string(value)
    return text[:1].upper() + text[1:]


@register("lcfirst")
def lower_first(value):
    text = to_string(value)
    return text[:1].lower() + text[1:]


@register("ucwords")
def upper_words(value, separators=" \t\r\n\f\v"):
    text = to_string(value)
    separators = to_string(separators)
    chars = list(text)
    capitalize = True
    for index, char in enumerate(chars):
        if capitalize:
            chars[index] = char.upper()
        capitalize = char in separators
    return "".join(chars)


@register("trim")
def trim(value, characters=DEFAULT_TRIM_CHARS):
    return to_string(value).strip(_expand_char_list(to_string(characters)))


@register("ltrim")
def trim_left(value, characters=DEFAULT_TRIM_CHARS):
    return to_string(value).lstrip(_expand_char_list(to_string(characters)))


@register("rtrim")
def trim_right(value, characters=DEFAULT_TRIM_CHARS):
    return to_string(value).rstrip(_expand_char_list(to_string(characters)))


@register("strrev")
def reverse(value):
    return to_string(value)[::-1]


# Padding, repetition and replacement


@register("str_pad")
def pad(value, length, pad_string=" ", pad_type=STR_PAD_RIGHT):
    text = to_string(value)
    pad_string = to_string(pad_string)
    missing = to_int(length) - len(text)
    if not pad_string:
        raise ValueError("Padding string must be a non-empty string")
    if missing <= 0:
        return text

    pad_type = to_int(pad_type)
    if pad_type == STR_PAD_LEFT:
        return (pad_string * missing)[:missing] + text
    if pad_type == STR_PAD_BOTH:
        left = missing // 2
        right = missing - left
        return (pad_string * left)[:left] + text + (pad_string * right)[:right]
    if pad_type == STR_PAD_RIGHT:
        return text + (pad_string * missing)[:missing]
    raise ValueError("Padding type must be STR_PAD_LEFT, STR_PAD_RIGHT or STR_PAD_BOTH")


@register("str_repeat")
def repeat(value, times):
    times = to_int(times)
    if times < 0:
        raise ValueError("Repeat count must be greater than or equal to 0")
    return to_string(value) * times


@register("str_replace")
def replace(search, replacement, subject):
    if isinstance(subject, list):
        return [replace(search, replacement, item) for item in subject]

    text = to_string(subject)
    searches = search if isinstance(search, list) else [search]

    for index, needle in enumerate(searches):
        if isinstance(replacement, list):
            new = replacement[index] if index < len(replacement) else ""
        else:
            new = replacement
        needle = to_string(needle)
        if needle:
            text = text.replace(needle, to_string(new))

    return text


@register("substr_replace")
def replace_substring(value, replacement, start, length=None):
    text = to_string(value)
    size = len(text)
    start = to_int(start)
    if start < 0:
        start = max(size + start, 0)
    start = min(start, size)

    if length is None:
        end = size
    else:
        length = to_int(length)
        end = size + length if length < 0 else start + length
        end = min(max(end, start), size)

    return text[:start] + to_string(replacement) + text[end:]


@register("strtr")
def translate(value, source, target=None):
    if target is None:
        raise TypeError("strtr() expects the source and target character lists")
    source = to_string(source)
    target = to_string(target)
    size = min(len(source), len(target))
    if not size:
        return to_string(value)
    return to_string(value).translate(str.maketrans(source[:size], target[:size]))


@register("wordwrap")
def wrap_words(value, width=75, line_break="\n", cut=False):
    text = to_string(value)
    width = to_int(width)
    line_break = to_string(line_break)
    cut = to_bool(cut)
    if not line_break:
        raise ValueError("Break string cannot be empty")
    if width == 0 and cut:
        raise ValueError("Cannot force cut when width is zero")

    lines = []
    line = None

    for word in text.split(" "):
        while cut and len(word) > width:
            if line is not None:
                lines.append(line)
                line = None
            lines.append(word[:width])
            word = word[width:]

        if line is None:
            line = word
        elif len(line) + 1 + len(word) <= width:
            line = f"{line} {word}"
        else:
            lines.append(line)
            line = word

    lines.append(line)
    return line_break.join(lines)


# Escaping


@register("addslashes")
def add_slashes(value):
    text = re.sub(r"([\\'\"])", r"\\\1", to_string(value))
    return text.replace("\0", "\\0")


@register("stripslashes")
def strip_slashes(value):
    return re.sub(
        r"\\(.?)",
        lambda match: "\0" if match.group(1) == "0" else match.group(1),
        to_string(value),
        flags=re.DOTALL,
    )


_C_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "a": "\a", "v": "\v", "b": "\b", "f": "\f"}


def _unescape_c(match: re.Match) -> str:
    escape = match.group(1)
    if escape in _C_ESCAPES:
        return _C_ESCAPES[escape]
    if escape[0] == "x" and len(escape) > 1:
        return chr(int(escape[1:], 16))
    if escape[0] in "01234567":
        return chr(int(escape, 8) % 256)
    return escape


@register("stripcslashes")
def strip_c_slashes(value):
    return re.sub(
        r"\\(x[0-9A-Fa-f]{1,2}|[0-7]{1,3}|.)",
        _unescape_c,
        to_string(value),
        flags=re.DOTALL,
    )


@register("htmlspecialchars")
def escape_html(value):
    return html.escape(to_string(value), quote=True).replace("&#x27;", "&#039;")


@register("htmlentities")
def escape_html_entities(value):
    return "".join(
        f"&{codepoint2name[ord(char)]};" if ord(char) > 127 and ord(char) in codepoint2name else char
        for char in escape_html(value)
    )


# Searching


@register("strpos")
def find(haystack, needle, offset=0):
    haystack = to_string(haystack)
    start = _resolve_offset(to_int(offset), len(haystack))
    index = haystack.find(to_string(needle), start)
    return False if index < 0 else index


@register("stripos")
def find_insensitive(haystack, needle, offset=0):
    return find(to_string(haystack).lower(), to_string(needle).lower(), offset)


@register("strrpos")
def find_last(haystack, needle, offset=0):
    haystack = to_string(haystack)
    needle = to_string(needle)
    offset = to_int(offset)
    _resolve_offset(offset, len(haystack))
    if offset >= 0:
        index = haystack.rfind(needle, offset)
    else:
        index = haystack.rfind(needle, 0, len(haystack) + offset + len(needle))
    return False if index < 0 else index


@register("strripos")
def find_last_insensitive(haystack, needle, offset=0):
    return find_last(to_string(haystack).lower(), to_string(needle).lower(), offset)


@register("strstr")
def substring_from(haystack, needle, before_needle=False):
    haystack = to_string(haystack)
    index = haystack.find(to_string(needle))
    if index < 0:
        return False
    return haystack[:index] if to_bool(before_needle) else haystack[index:]


register("strchr")(substring_from)


@register("stristr")
def substring_from_insensitive(haystack, needle, before_needle=False):
    haystack = to_string(haystack)
    index = haystack.lower().find(to_string(needle).lower())
    if index < 0:
        return False
    return haystack[:index] if to_bool(before_needle) else haystack[index:]


@register("strrchr")
def substring_from_last(haystack, needle):
    haystack = to_string(haystack)
    needle = to_string(needle)
    if not needle:
        return False
    index = haystack.rfind(needle[0])
    return False if index < 0 else haystack[index:]


@register("substr")
def substring(value, start, length=None):
    text = to_string(value)
    size = len(text)
    start = to_int(start)
    if start < 0:
        start = max(size + start, 0)
    if start > size:
        return ""

    if length is None:
        return text[start:]

    length = to_int(length)
    end = size + length if length < 0 else start + length
    return text[start:end] if end > start else ""


@register("substr_count")
def count_substring(haystack, needle, offset=0, length=None):
    needle = to_string(needle)
    if not needle:
        raise ValueError("Empty substring")
    haystack = to_string(haystack)
    start = _resolve_offset(to_int(offset), len(haystack))
    window = haystack[start:] if length is None else substring(haystack, start, length)
    return window.count(needle)


def _span(value, mask, offset, length, accept: bool) -> int:
    text = substring(to_string(value), offset, length)
    mask = set(to_string(mask))
    count = 0
    for char in text:
        if (char in mask) != accept:
            break
        count += 1
    return count


@register("strspn")
def span(value, mask, offset=0, length=None):
    return _span(value, mask, offset, length, accept=True)


@register("strcspn")
def complement_span(value, mask, offset=0, length=None):
    return _span(value, mask, offset, length, accept=False)


@register("str_word_count")
def count_words(value, result_format=0):
    words = re.findall(r"[A-Za-z'-]+", to_string(value))
    if to_int(result_format) == 0:
        return len(words)
    return words


@register("preg_match")
def match_pattern(pattern, subject):
    return 1 if _compile_pattern(to_string(pattern)).search(to_string(subject)) else 0


_PATTERN_DELIMITERS = {"(": ")", "{": "}", "[": "]", "<": ">"}
_PATTERN_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE, "u": 0, "D": 0}


@lru_cache(maxsize=128)
def _compile_pattern(pattern: str) -> re.Pattern:
    """Compile a delimited pattern such as "/^abc$/i"."""
    stripped = pattern.lstrip()
    if not stripped or stripped[0].isalnum() or stripped[0] == "\\":
        raise ValueError("Regular expression must start with a non-alphanumeric delimiter")

    opening = stripped[0]
    closing = _PATTERN_DELIMITERS.get(opening, opening)
    end = stripped.rfind(closing)
    if end <= 0:
        raise ValueError(f'No ending delimiter "{closing}" found')

    flags = 0
    for modifier in stripped[end + 1 :].rstrip():
        if modifier not in _PATTERN_FLAGS:
            raise ValueError(f'Unknown modifier "{modifier}"')
        flags |= _PATTERN_FLAGS[modifier]

    return re.compile(stripped[1:end], flags)


# Comparison


def _natural_key(text: str) -> list:
    return [
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in re.findall(r"\d+|\D+", text.strip())
    ]


@register("strcmp")
def compare(left, right):
    return _compare(to_string(left), to_string(right))


@register("strncmp")
def compare_prefix(left, right, length):
    length = to_int(length)
    if length < 0:
        raise ValueError("Length must be greater than or equal to 0")
    return _compare(to_string(left)[:length], to_string(right)[:length])


@register("strncasecmp")
def compare_prefix_insensitive(left, right, length):
    return compare_prefix(to_string(left).lower(), to_string(right).lower(), length)


@register("strnatcmp")
def compare_natural(left, right):
    return _compare(_natural_key(to_string(left)), _natural_key(to_string(right)))


@register("strnatcasecmp")
def compare_natural_insensitive(left, right):
    return compare_natural(to_string(left).lower(), to_string(right).lower())


@register("substr_compare")
def compare_substring(haystack, needle, offset, length=None, case_insensitive=False):
    haystack = to_string(haystack)
    needle = to_string(needle)
    start = _resolve_offset(to_int(offset), len(haystack))
    if length is not None:
        length = to_int(length)
        if length < 0:
            raise ValueError("Length must be greater than or equal to 0")
        haystack = haystack[start : start + length]
        needle = needle[:length]
    else:
        haystack = haystack[start:]
    if to_bool(case_insensitive):
        haystack = haystack.lower()
        needle = needle.lower()
    return _compare(haystack, needle)


# Type checks


@register("empty")
def is_empty(value):
    return not to_bool(value)


@register("is_null")
def is_null(value):
    return value is None


@register("is_numeric")
def is_numeric_value(value):
    return is_numeric(value)


# Formatting


@register("implode")
def join(separator, pieces=None):
    if pieces is None:
        separator, pieces = "", separator
    elif isinstance(separator, list):
        separator, pieces = pieces, separator
    if not isinstance(pieces, list):
        raise TypeError("implode() expects a list of pieces")
    return to_string(separator).join(to_string(piece) for piece in pieces)


@register("chr")
def character(codepoint):
    return chr(to_int(codepoint) % 256)


@register("md5")
def md5_digest(value):
    return hashlib.md5(to_string(value).encode("utf-8")).hexdigest()


@register("sha1")
def sha1_digest(value):
    return hashlib.sha1(to_string(value).encode("utf-8")).hexdigest()


@register("number_format")
def format_number(number, decimals=0, decimal_separator=".", thousands_separator=","):
    decimals = max(to_int(decimals), 0)
    value = Decimal(str(to_number(number)))
    if not value.is_finite():
        raise ValueError(f"number_format() expects a finite number, got {number!r}")
    with localcontext() as context:
        # Default precision (28 digits) is too small for large amounts
        context.prec = max(value.adjusted() + 1, 1) + decimals + 1
        rounded = value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    text = f"{abs(rounded):,.{decimals}f}"
    integer_part, _, fraction = text.partition(".")
    result = integer_part.replace(",", to_string(thousands_separator))
    if decimals:
        result += to_string(decimal_separator) + fraction
    return f"-{result}" if rounded < 0 else result


_FORMAT_SPEC = re.compile(
    r"%(?:(?P<argnum>\d+)\$)?(?P<flags>(?:[-+ 0]|'.)*)(?P<width>\d+)?"
    r"(?:\.(?P<precision>\d+))?(?P<spec>[bcdeEfFgGosuxX%])"
)


def _format_exponent(text: str) -> str:
    return re.sub(r"([eE])([+-])0*(\d)", r"\1\2\3", text)


def _format_argument(match: re.Match, value: Any) -> str:
    spec = match.group("spec")
    flags = match.group("flags") or ""
    precision = match.group("precision")
    width = int(match.group("width") or 0)

    left_align = "-" in flags
    show_sign = "+" in flags
    padding = " "
    for flag in re.findall(r"'.|[ 0]", flags):
        padding = flag[-1]

    numeric = True
    if spec == "s":
        text = to_string(value)
        if precision is not None:
            text = text[: int(precision)]
        numeric = False
    elif spec == "c":
        return chr(to_int(value))
    elif spec == "d":
        text = str(to_int(value))
    elif spec == "u":
        number = to_int(value)
        text = str(number if number >= 0 else number + 2**64)
    elif spec == "b":
        text = format(to_int(value) & (2**64 - 1), "b")
    elif spec == "o":
        text = format(to_int(value) & (2**64 - 1), "o")
    elif spec in "xX":
        text = format(to_int(value) & (2**64 - 1), spec)
    elif spec in "eE":
        text = _format_exponent(format(float(to_number(value)), f".{precision or 6}{spec}"))
    elif spec in "fF":
        text = format(float(to_number(value)), f".{precision or 6}f")
    else:
        text = _format_exponent(format(float(to_number(value)), f".{precision or 6}{spec}"))

    if numeric and show_sign and spec in "deEfFgG" and not text.startswith("-"):
        text = "+" + text

    if len(text) >= width:
        return text
    fill = padding * (width - len(text))
    if left_align:
        return text + (" " * len(fill) if padding == "0" else fill)
    if padding == "0" and numeric and text[:1] in "+-":
        return text[0] + fill + text[1:]
    return fill + text


def _format(template: str, arguments: list) -> str:
    position = 0

    def substitute(match: re.Match) -> str:
        nonlocal position
        if match.group("spec") == "%":
            return "%"
        if match.group("argnum"):
            index = int(match.group("argnum")) - 1
        else:
            index = position
            position += 1
        if index < 0 or index >= len(arguments):
            raise ValueError(f"{len(arguments) + 1} arguments are required, {len(arguments)} given")
        return _format_argument(match, arguments[index])

    return _FORMAT_SPEC.sub(substitute, template)


@register("sprintf")
def format_string(template, *arguments):
    return _format(to_string(template), list(arguments))


@register("vsprintf")
def format_string_list(template, arguments):
    if not isinstance(arguments, list):
        raise TypeError("vsprintf() expects a list of arguments")
    return _format(to_string(template), arguments)


# Date and time


def _ordinal_suffix(day: int) -> str:
    if day in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def _utc_offset(moment: datetime, separator: str) -> str:
    seconds = int(moment.utcoffset().total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{sign}{hours:02d}{separator}{minutes:02d}"


_DATE_FORMATTERS: dict[str, Callable[[datetime], str]] = {
    "d": lambda m: f"{m.day:02d}",
    "D": lambda m: m.strftime("%a"),
    "j": lambda m: str(m.day),
    "l": lambda m: m.strftime("%A"),
    "N": lambda m: str(m.isoweekday()),
    "S": lambda m: _ordinal_suffix(m.day),
    "w": lambda m: str(m.isoweekday() % 7),
    "z": lambda m: str(m.timetuple().tm_yday - 1),
    "W": lambda m: f"{m.isocalendar()[1]:02d}",
    "F": lambda m: m.strftime("%B"),
    "m": lambda m: f"{m.month:02d}",
    "M": lambda m: m.strftime("%b"),
    "n": lambda m: str(m.month),
    "t": lambda m: str(calendar.monthrange(m.year, m.month)[1]),
    "L": lambda m: "1" if calendar.isleap(m.year) else "0",
    "o": lambda m: str(m.isocalendar()[0]),
    "Y": lambda m: str(m.year),
    "y": lambda m: f"{m.year % 100:02d}",
    "a": lambda m: "am" if m.hour < 12 else "pm",
    "A": lambda m: "AM" if m.hour < 12 else "PM",
    "g": lambda m: str(m.hour % 12 or 12),
    "G": lambda m: str(m.hour),
    "h": lambda m: f"{m.hour % 12 or 12:02d}",
    "H": lambda m: f"{m.hour:02d}",
    "i": lambda m: f"{m.minute:02d}",
    "s": lambda m: f"{m.second:02d}",
    "u": lambda m: f"{m.microsecond:06d}",
    "v": lambda m: f"{m.microsecond // 1000:03d}",
    "e": lambda m: m.tzname() or "UTC",
    "T": lambda m: m.tzname() or "UTC",
    "O": lambda m: _utc_offset(m, ""),
    "P": lambda m: _utc_offset(m, ":"),
    "Z": lambda m: str(int(m.utcoffset().total_seconds())),
    "c": lambda m: m.strftime("%Y-%m-%dT%H:%M:%S") + _utc_offset(m, ":"),
    "r": lambda m: m.strftime("%a, %d %b %Y %H:%M:%S ") + _utc_offset(m, ""),
    "U": lambda m: str(int(m.timestamp())),
}


def format_date(template: str, moment: datetime) -> str:
    """Render a date template ("Y-m-d H:i:s") for a timezone-aware datetime."""
    result = []
    escaped = False
    for char in template:
        if escaped:
            result.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _DATE_FORMATTERS:
            result.append(_DATE_FORMATTERS[char](moment))
        else:
            result.append(char)
    return "".join(result)


@register("date")
def date(template, timestamp=None):
    seconds = time.time() if timestamp is None else to_int(timestamp)
    return format_date(to_string(template), datetime.fromtimestamp(seconds).astimezone())


@register("time")
def timestamp():
    return int(time.time())
