"""
Reserved names and characters for converter conditions.

These tables are process-wide and immutable.
"""

# Statements that would let a condition escape the expression it is embedded in
STATEMENT_BLACKLIST = ("<?php", "<?", "?>")

# Sigil reserved for internal rewriting, never allowed in author-supplied text
VARIABLE_SIGIL = "$"

# Pure functions that conditions are allowed to call
FUNCTION_WHITELIST = frozenset(
    {
        "addslashes", "chr", "date", "empty", "implode", "is_null", "is_numeric", "lcfirst", "ltrim",
        "md5", "number_format", "preg_match", "rtrim", "sha1", "sprintf", "str_pad", "str_repeat",
        "htmlentities", "str_replace", "str_word_count", "strchr", "strcmp", "strcspn", "stripcslashes",
        "stripos", "stripslashes", "stristr", "strnatcasecmp", "strnatcmp", "strncasecmp", "strncmp",
        "strpos", "strrchr", "strrev", "htmlspecialchars", "strripos", "strrpos", "strspn", "strstr",
        "strtolower", "strtoupper", "strtr", "substr", "substr_compare", "substr_count", "substr_replace",
        "time", "trim", "ucfirst", "ucwords", "vsprintf", "wordwrap",
    }
)

# Keywords that may precede a parenthesis without being a function call
OPERATOR_KEYWORDS = frozenset({"and", "or", "xor", "return"})

# Lookup namespaces produced by the reference rewriter
ROW_DATA = "row_data"
VARS = "vars"

# Named constants available to conditions
NAMED_CONSTANTS = {
    "STR_PAD_RIGHT": 1,
    "STR_PAD_LEFT": 0,
    "STR_PAD_BOTH": 2,
}
