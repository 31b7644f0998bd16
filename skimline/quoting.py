"""Shell quoting helpers.

Two directions:
- quote(raw) escapes a raw path or word so it can be spliced into a command line
- unquote_one_level(escaped) removes one level of shell quoting

plus split_words(), which splits a line into words without losing their quoting.
"""

from __future__ import annotations

import logging
import shlex

logger = logging.getLogger("skimline.quoting")

# Characters left untouched by quote(); everything else printable gets a backslash.
_SAFE_PUNCTUATION = frozenset("_-./,:@%+=")


def quote(raw: str) -> str:
    """Escape ``raw`` for verbatim insertion into a shell line.

    Printable words are backslash-escaped (``foo bar`` -> ``foo\\ bar``), the
    same shape ``printf %q`` produces. Words with control characters, such as
    newlines, cannot survive backslash escaping and are single-quoted instead.
    """
    if not raw:
        return "''"
    if not raw.isprintable():
        return shlex.quote(raw)
    return "".join(ch if ch.isalnum() or ch in _SAFE_PUNCTUATION else "\\" + ch for ch in raw)


def unquote_one_level(escaped: str) -> str:
    """Remove one level of quoting: ``foo\\ bar`` and ``'foo bar'`` both give ``foo bar``.

    Never raises. A dangling quote or trailing backslash is closed before
    parsing; the text is returned unchanged only if it still cannot be parsed.
    """
    for closing in ("", "\\", "'", '"'):
        try:
            return _unquote(escaped + closing)
        except ValueError:
            continue
    logger.debug("Could not unquote %r, using it verbatim", escaped)
    return escaped


def _unquote(text: str) -> str:
    # A single word: no whitespace splitting and no comments.
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace = ""
    lexer.whitespace_split = True
    lexer.commenters = ""
    return "".join(lexer)


def split_words(line: str) -> list[str]:
    """Split ``line`` into shell words, keeping each word's quoting intact.

    Quoted and backslash-escaped whitespace does not end a word. An
    unterminated quote runs to the end of the line.
    """
    words: list[str] = []
    current: list[str] = []
    in_word = False
    quote_char: str | None = None
    escaped = False

    for ch in line:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if quote_char is not None:
            current.append(ch)
            if ch == "\\" and quote_char == '"':
                escaped = True
            elif ch == quote_char:
                quote_char = None
            continue
        if ch.isspace():
            if in_word:
                words.append("".join(current))
                current = []
                in_word = False
            continue
        in_word = True
        current.append(ch)
        if ch == "\\":
            escaped = True
        elif ch in ("'", '"'):
            quote_char = ch

    if in_word:
        words.append("".join(current))
    return words
