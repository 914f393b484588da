"""
Token spans and escape handling shared by both tokenizers.

Tokens are half-open ``[start, end)`` offset pairs into the text they were
scanned from. Text is only materialized, with escape sequences resolved,
when a value is actually needed.
"""

from attrs import frozen

ESCAPE_SEQUENCES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b"}


@frozen
class Token:
    """Half-open ``[start, end)`` span into a source string."""

    start: int
    end: int

    def text(self, source: str) -> str:
        """Return the raw token text without escape resolution."""
        return source[self.start : self.end]

    def value(self, source: str) -> str:
        """Return the token text with escape sequences resolved."""
        return decode_escapes(source, self.start, self.end)


def decode_escapes(source: str, start: int = 0, end: int | None = None) -> str:
    """
    Resolve backslash escapes in ``source[start:end]``.

    ``\\n``, ``\\r``, ``\\t`` and ``\\b`` become their control characters; any
    other escaped character is copied literally. A trailing lone backslash is
    kept as is.

    Params:
        source: Text containing the span
        start: Span start offset
        end: Span end offset (exclusive), defaults to the end of ``source``

    Returns:
        Decoded text
    """
    if end is None:
        end = len(source)

    escape_start = source.find("\\", start, end)
    if escape_start < 0:
        return source[start:end]

    parts = [source[start:escape_start]]
    pos = escape_start

    while pos < end:
        char = source[pos]

        if char == "\\" and pos + 1 < end:
            pos += 1
            char = source[pos]
            parts.append(ESCAPE_SEQUENCES.get(char, char))
        else:
            parts.append(char)

        pos += 1

    return "".join(parts)


def find_block_end_whitespace(source: str, start: int, end: int) -> int:
    """Return the offset of the first unescaped whitespace at or after ``start``."""
    while start < end and not source[start].isspace():
        if source[start] == "\\":
            start += 1
        start += 1

    # a trailing backslash may step past end
    return min(start, end)


def find_block_end_delim(source: str, start: int, end: int, delimiter: str) -> int:
    """Return the offset of the first unescaped ``delimiter``, or -1 if absent."""
    while start < end and source[start] != delimiter:
        if source[start] == "\\":
            start += 1
        start += 1

    return start if start < end else -1
