"""
Matcher validating command lines against compiled usage trees.

The command line is split into tokens on whitespace unless escaped or
enclosed in single or double quotes. Supported escape sequences are \\r, \\n,
\\t and \\b; any other escaped character stands for itself. Flags (``--x``,
``--x=value``, ``--x="quoted value"``) may appear anywhere; their keys may not
be quoted.

Output keying rules based on the usage string element:

- variable (``<x>``): variable name x
- floating argument (``--x``): flag key x
- plain literal (``x``): ``unnamed_<n>`` where n is the zero based position of
  the token it matched
"""

import logging
from collections.abc import Iterable, Iterator, Mapping

from attrs import frozen

from usagetree.core.nodes import (
    Empty,
    Floating,
    Literal,
    Node,
    Options,
    Sequence,
    ValueParameter,
)
from usagetree.core.tokens import (
    Token,
    decode_escapes,
    find_block_end_delim,
    find_block_end_whitespace,
)
from usagetree.core.types import BindingValue, Capture, FloatingTable
from usagetree.exceptions import InputSyntaxError, UnterminatedQuoteError

logger = logging.getLogger(__name__)

FAIL = -1
# a present flag with an unusable value; fails even when the flag is optional
_REJECT = -2

QUOTES = "\"'"


class Bindings(Mapping[str, BindingValue]):
    """
    Ordered result of a successful match.

    Keys map to the first value bound under them. Repeated captures of the
    same name stay available through ``get_all``.
    """

    def __init__(self, captures: Iterable[Capture] = ()):
        self._captures = tuple(captures)
        self._first: dict[str, BindingValue] = {}

        for key, value in self._captures:
            self._first.setdefault(key, value)

    def __getitem__(self, key: str) -> BindingValue:
        return self._first[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._first)

    def __len__(self) -> int:
        return len(self._first)

    def __repr__(self) -> str:
        return f"Bindings({self._first!r})"

    @property
    def captures(self) -> tuple[Capture, ...]:
        """All captures in binding order, duplicates included."""
        return self._captures

    def get_all(self, key: str) -> list[BindingValue]:
        """Return every value bound under ``key``, in binding order."""
        return [value for name, value in self._captures if name == key]

    def to_dict(self) -> dict[str, BindingValue]:
        return dict(self._first)


def tokenize_input(
    input: str, start: int = 0, end: int | None = None
) -> tuple[list[Token], FloatingTable]:
    """
    Split a command line into positional tokens and floating arguments.

    Params:
        input: Command line string
        start: Offset to start scanning at
        end: Offset to stop scanning at (exclusive), defaults to the end

    Returns:
        Positional token spans and the table of floating arguments by key
        (None for flags given without ``=``)

    Raises:
        UnterminatedQuoteError: If a quoted span is never closed
        InputSyntaxError: If ``--`` is not followed by a key
    """
    if end is None:
        end = len(input)

    tokens = []
    floating: FloatingTable = {}
    pos = start

    while pos < end:
        char = input[pos]

        if char in QUOTES:
            close = find_block_end_delim(input, pos + 1, end, char)
            if close < 0:
                raise UnterminatedQuoteError(input, pos, char)

            tokens.append(Token(pos + 1, close))
            pos = close + 1
        elif input.startswith("--", pos, end):
            key_start = pos + 2
            key_end = key_start

            while key_end < end and not input[key_end].isspace() and input[key_end] != "=":
                key_end += 1

            if key_end == key_start:
                raise InputSyntaxError(input, pos, "-- not followed by key")

            key = input[key_start:key_end]
            value = None
            pos = key_end

            if key_end < end and input[key_end] == "=":
                value_start = key_end + 1

                if value_start < end and input[value_start] in QUOTES:
                    quote = input[value_start]
                    value_end = find_block_end_delim(input, value_start + 1, end, quote)
                    if value_end < 0:
                        raise UnterminatedQuoteError(input, value_start, quote)

                    value = decode_escapes(input, value_start + 1, value_end)
                    pos = value_end + 1
                else:
                    value_end = find_block_end_whitespace(input, value_start, end)
                    value = decode_escapes(input, value_start, value_end)
                    pos = value_end

            floating[key] = value
        elif char.isspace():
            pos += 1
        else:
            token_end = find_block_end_whitespace(input, pos + 1, end)
            tokens.append(Token(pos, token_end))
            pos = token_end

    return tokens, floating


def accepts_value(node: Node, value: str) -> bool:
    """Check whether a floating argument's value node accepts ``value``."""
    if value == "" and node.optional:
        return True
    if isinstance(node, ValueParameter):
        return True
    if isinstance(node, Literal):
        return node.name == value
    if isinstance(node, Options):
        return any(accepts_value(option, value) for option in node.alternatives)
    if isinstance(node, Empty):
        return value == ""
    return False


@frozen
class _Snapshot:
    """Saved sequence state to resume from after a later sibling fails."""

    index: int
    token: int
    captures: int
    allowed: int
    skipped: int  # bitmask of child indices to pass over
    repeat_limit: int | None = None


class _MatchContext:
    """Mutable state of matching one command line."""

    def __init__(self, source: str, tokens: list[Token], floating: FloatingTable):
        self.source = source
        self.tokens = tokens
        self.floating = floating
        self.captures: list[Capture] = []
        self.allowed: list[str] = []
        self.stack: list[_Snapshot] = []

    def run(self, node: Node) -> Bindings | None:
        if self.process(node, 0, True) < 0:
            return None

        # every supplied flag has to be known on the path taken
        for key in self.floating:
            if key not in self.allowed:
                logger.debug("Rejecting unrecognized floating argument --%s", key)
                return None

        return Bindings([*self.captures, *self.floating.items()])

    def process(self, node: Node, token: int, last: bool) -> int:
        return self.process_counted(node, token, last)[0]

    def process_counted(
        self, node: Node, token: int, last: bool, repeat_limit: int | None = None
    ) -> tuple[int, int]:
        """
        Match ``node`` at token index ``token``.

        Params:
            node: Node to match
            token: Index of the next unconsumed token
            last: Whether nothing may follow this node, so all tokens must be
                consumed by it
            repeat_limit: Maximum repetitions for a repeating node

        Returns:
            New token index (FAIL on failure) and the number of times the node
            matched (0 when skipped as optional)
        """
        if node.repeating and node.is_position_dependent():
            new_token, count = self._repeat(node, token, repeat_limit)
        else:
            new_token = self._attempt(node, token, last)
            if new_token == _REJECT:
                return FAIL, 0
            count = 0 if new_token == FAIL else 1

        if count == 0:
            if not node.optional:
                return FAIL, 0
            new_token = token

        if last and new_token < len(self.tokens):
            return FAIL, 0

        return new_token, count

    def _repeat(self, node: Node, token: int, limit: int | None) -> tuple[int, int]:
        count = 0

        while limit is None or count < limit:
            new_token = self._attempt(node, token, False)
            if new_token < 0:
                break

            count += 1
            if new_token == token:
                break
            token = new_token

        return token, count

    def _attempt(self, node: Node, token: int, last: bool) -> int:
        if isinstance(node, Floating):
            return self._match_floating(node, token)
        if isinstance(node, Sequence):
            return self._match_sequence(node, token, last)
        if isinstance(node, Options):
            return self._match_options(node, token, last)
        if isinstance(node, Empty):
            return token

        if token >= len(self.tokens):
            return FAIL

        if isinstance(node, Literal):
            if self._value(token) != node.name:
                return FAIL
            self.captures.append((f"unnamed_{token}", node.name))
            return token + 1

        if isinstance(node, ValueParameter):
            self.captures.append((node.name, self._value(token)))
            return token + 1

        raise TypeError(f"Unsupported grammar node: {type(node).__name__}")

    def _match_floating(self, node: Floating, token: int) -> int:
        if node.name not in self.floating:
            return FAIL

        value = self.floating[node.name]

        if value is None:
            if node.value is not None and not node.value.optional:
                return _REJECT  # missing value
        elif node.value is None:
            return _REJECT  # excess value
        elif not accepts_value(node.value, value):
            return _REJECT

        self.allowed.append(node.name)
        return token

    def _match_options(self, node: Options, token: int, last: bool) -> int:
        captures, allowed = len(self.captures), len(self.allowed)

        # first match wins
        for option in node.alternatives:
            new_token = self.process(option, token, last)
            if new_token >= 0:
                return new_token

            self._truncate(captures, allowed)

        return FAIL

    def _match_sequence(self, node: Sequence, token: int, last: bool) -> int:
        initial_captures, initial_allowed = len(self.captures), len(self.allowed)
        stack_start = len(self.stack)
        children = node.children
        skipped = 0
        limits: dict[int, int] = {}
        i = 0

        while i < len(children):
            if skipped >> i & 1:
                i += 1
                continue

            child = children[i]
            captures, allowed = len(self.captures), len(self.allowed)

            if child.optional and child.is_position_dependent() and i not in limits:
                # try with the child present, queue a retry without it
                self.stack.append(
                    _Snapshot(i, token, captures, allowed, skipped | 1 << i)
                )

            new_token, count = self.process_counted(
                child, token, last and i + 1 == len(children), limits.get(i)
            )

            if new_token < 0:
                if len(self.stack) > stack_start:
                    snapshot = self.stack.pop()
                    i = snapshot.index
                    token = snapshot.token
                    self._truncate(snapshot.captures, snapshot.allowed)
                    skipped = snapshot.skipped
                    limits = {k: v for k, v in limits.items() if k < i}
                    if snapshot.repeat_limit is not None:
                        limits[i] = snapshot.repeat_limit
                    continue

                # undo the whole sequence, for when it gets skipped as optional
                self._truncate(initial_captures, initial_allowed)
                return FAIL

            if count > 1:
                # later siblings may need some of the repetitions back
                self.stack.append(
                    _Snapshot(i, token, captures, allowed, skipped, count - 1)
                )

            token = new_token
            i += 1

        del self.stack[stack_start:]

        return token

    def _truncate(self, captures: int, allowed: int) -> None:
        del self.captures[captures:]
        del self.allowed[allowed:]

    def _value(self, token: int) -> str:
        return self.tokens[token].value(self.source)


class InputParser:
    """Matcher for command lines against a compiled usage tree."""

    def parse(
        self, input: str, node: Node, start: int = 0, end: int | None = None
    ) -> Bindings | None:
        """
        Parse and validate a command line against a usage tree.

        A command line that doesn't meet the usage requirements is an expected
        outcome and reported as None, not as an exception.

        Params:
            input: Command line string
            node: Root node as obtained from UsageParser.parse
            start: Start offset in the command line
            end: End offset in the command line (exclusive)

        Returns:
            Bindings for a successful match, None otherwise

        Raises:
            InputSyntaxError: If the command line itself is malformed
        """
        tokens, floating = tokenize_input(input, start, end)
        logger.debug(
            "Matching %d positional tokens and floating arguments %s against %s",
            len(tokens),
            floating,
            node,
        )

        result = _MatchContext(input, tokens, floating).run(node)
        logger.debug("Match %s for %r", "succeeded" if result is not None else "failed", input)

        return result


def match_input(input: str, node: Node) -> Bindings | None:
    """
    Convenience function to match a command line against a usage tree.

    Params:
        input: Command line string
        node: Compiled usage tree

    Returns:
        Bindings for a successful match, None otherwise

    Raises:
        InputSyntaxError: If the command line itself is malformed
    """
    return InputParser().parse(input, node)
