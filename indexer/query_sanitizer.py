"""Query sanitization for the SQLite FTS5 query grammar.

The FTS5 ``unicode61`` tokenizer splits ``server-side`` into the two tokens
``server`` and ``side`` at index time. At query time a hyphen between two
barewords is not a literal, so a raw ``server-side`` either changes meaning or
makes SQLite raise ``no such column: side``. Hyphenated tokens are therefore
rewritten as exact phrases: ``server-side`` becomes ``"server side"``.

Queries that already use the grammar on purpose (a quoted phrase, or one of
the AND/OR/NOT operators as a whole word) are passed through untouched.
"""

import re

HYPHEN = "-"
QUOTE = '"'
FTS_KEYWORDS = ("AND", "OR", "NOT")

# Any quoted substring or an operator keyword anywhere disables rewriting
# for the whole query.
_FTS_SYNTAX_RE = re.compile(
    r'".*?"|\b(?:' + "|".join(FTS_KEYWORDS) + r")\b",
    re.IGNORECASE,
)
_WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")


def uses_fts_syntax(query: str) -> bool:
    """Return True when the query contains a quoted phrase or an FTS5 operator."""
    return _FTS_SYNTAX_RE.search(query) is not None


def quote_phrase(token: str) -> str:
    """Turn a hyphenated token into a single FTS5 phrase.

    Every hyphen becomes a space and embedded quotes are doubled, which is
    FTS5's own escape for a quote inside a string.
    """
    phrase = token.replace(HYPHEN, " ").replace(QUOTE, QUOTE * 2)
    return f"{QUOTE}{phrase}{QUOTE}"


def sanitize_query(query: str) -> str:
    """Rewrite a free-form search string into a safe FTS5 MATCH expression.

    Examples:
        >>> sanitize_query("server-side processing")
        '"server side" processing'
        >>> sanitize_query("ajax AND server-side")
        'ajax AND server-side'
    """
    if uses_fts_syntax(query):
        return query

    # Capturing split keeps the whitespace runs at odd indexes, so joining
    # the parts restores the original spacing exactly.
    parts = _WHITESPACE_SPLIT_RE.split(query)
    sanitized = []
    for part in parts:
        if HYPHEN in part and not part.isspace():
            sanitized.append(quote_phrase(part))
        else:
            sanitized.append(part)

    return "".join(sanitized)
