"""
Tests for token spans and escape decoding.
"""

from usagetree.core.tokens import (
    Token,
    decode_escapes,
    find_block_end_delim,
    find_block_end_whitespace,
)


class TestDecodeEscapes:
    """Test backslash escape resolution."""

    def test_without_backslash_returns_slice(self):
        assert decode_escapes("install client", 8, 14) == "client"

    def test_control_sequences(self):
        assert decode_escapes(r"a\nb\rc\td\be") == "a\nb\rc\td\be"

    def test_escaped_backslash(self):
        assert decode_escapes(r"C:\\new\nline") == "C:\\new\nline"

    def test_unknown_escape_copies_character(self):
        assert decode_escapes(r"\"quoted\" \q") == '"quoted" q'

    def test_trailing_backslash_kept(self):
        assert decode_escapes("end\\") == "end\\"

    def test_span_limits_decoding(self):
        source = r"xx\tyy"
        assert decode_escapes(source, 2, 4) == "\t"

    def test_empty_span(self):
        assert decode_escapes("abc", 1, 1) == ""


class TestToken:
    """Test token span accessors."""

    def test_text_and_value(self):
        source = r"say hello\tworld"
        token = Token(4, len(source))

        assert token.text(source) == r"hello\tworld"
        assert token.value(source) == "hello\tworld"

    def test_tokens_compare_by_span(self):
        assert Token(1, 3) == Token(1, 3)
        assert Token(1, 3) != Token(1, 4)


class TestBlockEnds:
    """Test the span scanners shared by both tokenizers."""

    def test_whitespace_end(self):
        assert find_block_end_whitespace("abc def", 0, 7) == 3

    def test_escaped_whitespace_does_not_end_block(self):
        assert find_block_end_whitespace(r"a\ b c", 0, 6) == 4

    def test_trailing_backslash_clamped(self):
        assert find_block_end_whitespace("ab\\", 0, 3) == 3

    def test_delimiter_found(self):
        assert find_block_end_delim('"abc" d', 1, 7, '"') == 4

    def test_escaped_delimiter_skipped(self):
        source = r'"a\"b" c'
        assert find_block_end_delim(source, 1, len(source), '"') == 5

    def test_missing_delimiter(self):
        assert find_block_end_delim('"abc', 1, 4, '"') == -1
