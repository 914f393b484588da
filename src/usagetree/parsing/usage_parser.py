"""
Compiler turning usage strings into grammar trees.

The usage string describes the acceptable parameters of a command with their
ordering and presence requirements. Each parameter becomes a node; nodes are
grouped with Sequence and Options to mirror the structure of the usage string
and flagged optional and/or repeating as written.

Usage string format, a and b are any expression, x is a literal or name::

    a b      a and b have to be supplied in this order
    a|b      either a or b, lowest precedence (a b|c is the same as (a b)|c)
    [a]      a is optional
    a...     a may be repeated, at least one instance, highest precedence
    (a b)    a and b act as a common element in the surrounding context
    x        literal input "x" required
    <x>      x is a variable capturing any input token
    --x      position independent flag x
    --x=a    flag x with mandatory value a
    --x[=a]  flag x, optionally with value a
"""

import logging
from dataclasses import replace
from functools import lru_cache
from typing import cast

from usagetree.core.nodes import (
    EMPTY,
    SPECIAL_CHARACTERS,
    Empty,
    Floating,
    Literal,
    Node,
    Options,
    Sequence,
    ValueParameter,
    collect_options,
)
from usagetree.core.tokens import Token, decode_escapes
from usagetree.exceptions import GrammarSyntaxError

logger = logging.getLogger(__name__)

SINGLE_CHARACTER_TOKENS = "()[]|="
REPEAT_MARKER = "..."


def tokenize_usage(usage: str) -> list[Token]:
    """
    Split a usage string into tokens.

    Produces the following tokens, whitespace only separates them:

    - ``<..>`` where .. is anything up to the next ``>``
    - ``...`` directly following a non-whitespace character
    - each of ``(``, ``)``, ``[``, ``]``, ``|`` and ``=``
    - other runs of non-whitespace characters; a backslash escapes the
      following character so it doesn't end the run

    Params:
        usage: The usage string

    Returns:
        Token spans in source order

    Raises:
        GrammarSyntaxError: For an unterminated ``<`` or a misplaced ``...``
    """
    tokens = []
    pos = 0
    length = len(usage)

    while pos < length:
        char = usage[pos]

        if char == "<":
            end = usage.find(">", pos + 1)
            if end < 0:
                raise GrammarSyntaxError(usage, pos, "unterminated < (missing >)")

            tokens.append(Token(pos, end + 1))
            pos = end + 1
        elif usage.startswith(REPEAT_MARKER, pos):
            if pos == 0 or usage[pos - 1].isspace():
                raise GrammarSyntaxError(usage, pos, "... not directly after something")

            tokens.append(Token(pos, pos + 3))
            pos += 3
        elif char in SINGLE_CHARACTER_TOKENS:
            tokens.append(Token(pos, pos + 1))
            pos += 1
        elif char.isspace():
            pos += 1
        else:
            end = pos

            while end < length:
                char = usage[end]

                if char == "\\":
                    end += 2
                    continue

                if end > pos and (
                    char in SPECIAL_CHARACTERS
                    or char.isspace()
                    or usage.startswith(REPEAT_MARKER, end)
                ):
                    break

                end += 1

            end = min(end, length)
            tokens.append(Token(pos, end))
            pos = end

    return tokens


class _UsageCompilation:
    """State of compiling one usage string."""

    def __init__(self, usage: str):
        self.usage = usage
        self.tokens = tokenize_usage(usage)

    def _char(self, index: int) -> str:
        return self.usage[self.tokens[index].start]

    def _error(self, index: int, reason: str) -> GrammarSyntaxError:
        position = self.tokens[index].start if index < len(self.tokens) else len(self.usage)
        return GrammarSyntaxError(self.usage, position, reason)

    def _find_close(self, index: int, end: int) -> int:
        """Return the index of the bracket closing the one at ``index``."""
        opening = self._char(index)
        closing = ")" if opening == "(" else "]"
        depth = 1

        for sub in range(index + 1, end):
            char = self._char(sub)

            if char == opening:
                depth += 1
            elif char == closing:
                depth -= 1
                if depth == 0:
                    return sub

        raise self._error(index, f"unterminated {opening}")

    def to_tree(self, start: int, end: int) -> Node:
        """
        Build the node for the token range ``[start, end)``.

        Params:
            start: Index of the first token
            end: Index after the last token

        Returns:
            Node representing the range, EMPTY for an empty range
        """
        if start == end:
            return EMPTY

        alternatives = None  # overall Options candidates for this range
        current = None  # node currently being assembled
        sequence = None  # set once current holds 2+ consecutive nodes
        last_was_empty = False  # empty nodes aren't collected and can't repeat

        index = start

        while index < end:
            token = self.tokens[index]
            text = token.text(self.usage)
            char = text[0]

            if char in "([":
                close = self._find_close(index, end)
                node = self.to_tree(index + 1, close)
                if char == "[":
                    node = node.with_flags(optional=True)
                index = close
            elif char in ")]":
                raise self._error(index, f"unmatched {char}")
            elif char == "|":
                if alternatives is None:
                    alternatives = []

                pending = self._finish(current, sequence)
                if isinstance(pending, Options) and not pending.repeating:
                    alternatives.extend(pending.alternatives)
                    if pending.optional:
                        alternatives.append(None)
                else:
                    alternatives.append(pending)

                current = None
                sequence = None
                index += 1
                continue
            elif text.startswith("--") and len(text) > 2:
                node, index = self._floating(index, end)
            elif text == REPEAT_MARKER:
                if current is None:
                    raise self._error(index, "standalone ...")

                if not last_was_empty:
                    if sequence is not None:
                        sequence[-1] = sequence[-1].with_flags(repeating=True)
                    else:
                        current = current.with_flags(repeating=True)

                index += 1
                continue
            elif char == "<":
                node = ValueParameter(text[1:-1])
            else:
                node = Literal(decode_escapes(text))

            last_was_empty = isinstance(node, Empty)

            if current is None or isinstance(current, Empty):
                current = node
            elif not last_was_empty:
                if sequence is None:
                    sequence = [current]
                sequence.append(node)

            index += 1

        pending = self._finish(current, sequence)

        if alternatives is not None:
            alternatives.append(pending)
            return collect_options(alternatives).simplify()

        return pending if pending is not None else EMPTY

    @staticmethod
    def _finish(current: Node | None, sequence: list[Node] | None) -> Node | None:
        if sequence is not None:
            return Sequence.of(sequence)
        return current

    def _floating(self, index: int, end: int) -> tuple[Node, int]:
        """
        Build a floating argument node starting at ``index``.

        Handles ``--key``, ``--key=value`` and ``--key[=value]``; the value is a
        single token or a bracketed group.

        Returns:
            The node and the index of the last token it consumed
        """
        name = decode_escapes(self.tokens[index].text(self.usage)[2:])
        separator = index + 1

        if separator < end and self._char(separator) == "=":
            value_index = separator + 1
            optional_value = False
        elif (
            separator + 1 < end
            and self._char(separator) == "["
            and self._char(separator + 1) == "="
        ):
            value_index = separator + 2
            optional_value = True
        else:
            return Floating(name), index

        if value_index >= end or self.tokens[value_index].text(self.usage) in (
            "|",
            ")",
            "]",
            REPEAT_MARKER,
        ):
            raise self._error(value_index, "missing value in --key=value")

        if self._char(value_index) in "([":
            last = self._find_close(value_index, end)
            value = self.to_tree(value_index + 1, last)
            if self._char(value_index) == "[":
                value = value.with_flags(optional=True)
        else:
            last = value_index
            value = self.to_tree(value_index, value_index + 1)

        if optional_value:
            last += 1
            if last >= end or self._char(last) != "]":
                raise self._error(min(last, end), "missing ] in --key[=value]")
            value = value.with_flags(optional=True)

        return Floating(name, value), last


def _without_optional_positional(nodes) -> list[Node]:
    return [
        node
        for node in nodes
        if not node.optional or not node.is_position_dependent()
    ]


def fix_position_dependence(node: Node) -> Node:
    """
    Rewrite sequences so at most one optional positional child is open at a time.

    A sequence with several optional, position dependent children becomes a
    chain of alternatives in which each one commits to the optionals before
    it and drops the ones after it::

        [a] [b] [c]  ->  [a] | a [b] | a b [c]    (i.e. [a [b [c]]])
         a  [b] [c]  ->  a [b] | a b [c]
        a [b] [c] d  ->  a [b] d | a b [c] d

    Options alternatives and sequence children are rewritten first.

    Params:
        node: Root of a compiled tree

    Returns:
        Equivalent tree without ambiguous optional slots
    """
    if isinstance(node, Options):
        alternatives = tuple(fix_position_dependence(option) for option in node.alternatives)
        return replace(node, alternatives=alternatives)

    if not isinstance(node, Sequence):
        return node

    children = tuple(fix_position_dependence(child) for child in node.children)
    options = None
    last_optional = -1

    for i, child in enumerate(children):
        if not child.optional or not child.is_position_dependent():
            continue

        if last_optional >= 0:
            if options is None:
                options = []

                # first alternative: everything up to the first optional, later optionals dropped
                if last_optional > 0 or len(children) > last_optional + 2:
                    first = list(children[: last_optional + 1])
                    first += _without_optional_positional(children[last_optional + 1 :])
                    options.append(Sequence.of(first) if len(first) > 1 else first[0])
                else:
                    options.append(children[0])

            prefix = []
            if last_optional > 0:
                # previous alternative already committed to everything before last_optional
                previous = cast(Sequence, options[-1])
                prefix = list(previous.children[:last_optional])

            alternative = prefix + [children[last_optional].with_flags(optional=False)]
            alternative += children[last_optional + 1 : i + 1]
            alternative += _without_optional_positional(children[i + 1 :])
            options.append(Sequence.of(alternative))

        last_optional = i

    if options is None:
        return replace(node, children=children)

    rewritten = collect_options(options, optional=node.optional)
    logger.debug("Rewrote ambiguous sequence %s as %s", node, rewritten)

    return rewritten.with_flags(repeating=node.repeating)


class UsageParser:
    """Compiler from usage strings to grammar trees."""

    def parse(self, usage: str, fix_ambiguity: bool = False) -> Node:
        """
        Parse a usage string into a node tree.

        The resulting tree can then be used to match and validate any number of
        command lines with InputParser.

        Params:
            usage: Usage string encoding the acceptable command parameters
            fix_ambiguity: Whether to ensure that there can be only one
                optional position dependent parameter at a time by introducing
                the missing dependency between those parameters

        Returns:
            Root node representing the usage string's tree form

        Raises:
            GrammarSyntaxError: If the usage string is malformed
        """
        compilation = _UsageCompilation(usage)
        tree = compilation.to_tree(0, len(compilation.tokens))

        if fix_ambiguity:
            tree = fix_position_dependence(tree)

        logger.debug("Compiled usage %r into %s", usage, tree)

        return tree


@lru_cache(maxsize=128)
def compile_usage(usage: str, fix_ambiguity: bool = False) -> Node:
    """
    Convenience function to compile a usage string.

    Trees are immutable, so compiled results are cached and shared.

    Params:
        usage: The usage string to compile
        fix_ambiguity: Apply the position dependence rewrite

    Returns:
        Root node of the compiled tree

    Raises:
        GrammarSyntaxError: If the usage string is malformed
    """
    return UsageParser().parse(usage, fix_ambiguity)
