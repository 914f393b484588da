"""
Grammar tree nodes for compiled usage strings.

A usage string compiles into a tree built from a closed set of node types:

- Literal: fixed keyword that must appear verbatim
- ValueParameter: ``<name>``, captures any single token
- Floating: ``--name`` flag, optionally carrying a value node
- Sequence: children that must match consecutively
- Options: mutually exclusive alternatives
- Empty: matches nothing and always succeeds

Every node carries an ``optional`` and a ``repeating`` flag. Nodes are frozen;
flag changes produce copies, so a compiled tree can be shared freely between
concurrent matches.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

# characters that terminate a plain token in a usage string
SPECIAL_CHARACTERS = "()[]|=<>"


@dataclass(frozen=True, kw_only=True)
class Node:
    """
    Base class for all grammar tree nodes.

    Params:
        optional: Whether this node may be omitted entirely
        repeating: Whether this node may occur one or more times
    """

    optional: bool = False
    repeating: bool = False

    def is_position_dependent(self) -> bool:
        """Check if matching this node consumes tokens from a fixed slot."""
        raise NotImplementedError

    def with_flags(
        self, optional: bool | None = None, repeating: bool | None = None
    ) -> "Node":
        """
        Return a copy of this node with the given flags replaced.

        Params:
            optional: New optional flag, unchanged if None
            repeating: New repeating flag, unchanged if None

        Returns:
            The same node if nothing changes, a modified copy otherwise
        """
        changes = {}
        if optional is not None and optional != self.optional:
            changes["optional"] = optional
        if repeating is not None and repeating != self.repeating:
            changes["repeating"] = repeating

        return replace(self, **changes) if changes else self

    def render(self, nested: bool = False) -> str:
        """
        Render this node back to usage string syntax.

        Params:
            nested: True when rendered as part of an enclosing node, which
                requires grouping composite bodies in parentheses

        Returns:
            Usage string that compiles to an equivalent node
        """
        body = self._render_body()

        if self.repeating:
            if self._needs_group():
                body = f"({body})"
            if self.optional:
                return f"[{body}]..."
            return f"{body}..."

        if self.optional:
            return f"[{body}]"

        if nested and self._needs_group():
            return f"({body})"

        return body

    def _render_body(self) -> str:
        raise NotImplementedError

    def _needs_group(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Literal(Node):
    """Plain text that must match an input token verbatim."""

    name: str

    def is_position_dependent(self) -> bool:
        return True

    def _render_body(self) -> str:
        return escape_literal(self.name)


@dataclass(frozen=True)
class ValueParameter(Node):
    """Variable capturing any single input token under ``name``."""

    name: str

    def is_position_dependent(self) -> bool:
        return True

    def _render_body(self) -> str:
        return f"<{self.name}>"


@dataclass(frozen=True)
class Floating(Node):
    """
    Argument that isn't bound to a specific position.

    Params:
        name: Flag key without the leading ``--``
        value: None for a bare flag, otherwise the node describing its value;
            an optional value node means the value itself may be left out
    """

    name: str
    value: Node | None = None

    def is_position_dependent(self) -> bool:
        return False

    def _render_body(self) -> str:
        if self.value is None:
            return f"--{self.name}"
        if self.value.optional:
            value = self.value.with_flags(optional=False).render(nested=True)
            return f"--{self.name}[={value}]"
        return f"--{self.name}={self.value.render(nested=True)}"


@dataclass(frozen=True)
class Sequence(Node):
    """Children that must all match consecutively, floating ones excepted."""

    children: tuple[Node, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, children: Iterable[Node], repeating: bool = False) -> "Sequence":
        """
        Build a sequence whose optional flag is derived from its children.

        A sequence is optional when every child is optional.
        """
        children = tuple(children)
        return cls(
            children=children,
            optional=all(child.optional for child in children),
            repeating=repeating,
        )

    def is_position_dependent(self) -> bool:
        return any(child.is_position_dependent() for child in self.children)

    def _render_body(self) -> str:
        return " ".join(child.render(nested=True) for child in self.children)

    def _needs_group(self) -> bool:
        return len(self.children) > 1


@dataclass(frozen=True)
class Options(Node):
    """Selection of mutually exclusive alternatives."""

    alternatives: tuple[Node, ...] = field(default_factory=tuple)

    def is_position_dependent(self) -> bool:
        return any(option.is_position_dependent() for option in self.alternatives)

    def simplify(self) -> Node:
        """
        Collapse degenerate option sets.

        Returns:
            EMPTY for no alternatives, the sole alternative carrying this
            node's flags for one, this node otherwise
        """
        if not self.alternatives:
            return EMPTY

        if len(self.alternatives) == 1:
            only = self.alternatives[0]
            return only.with_flags(
                optional=only.optional or self.optional,
                repeating=only.repeating or self.repeating,
            )

        return self

    def _render_body(self) -> str:
        return " | ".join(option.render(nested=True) for option in self.alternatives)

    def _needs_group(self) -> bool:
        return len(self.alternatives) > 1


@dataclass(frozen=True)
class Empty(Node):
    """Node matching zero input."""

    def is_position_dependent(self) -> bool:
        return False

    def with_flags(
        self, optional: bool | None = None, repeating: bool | None = None
    ) -> Node:
        return self

    def render(self, nested: bool = False) -> str:
        return "()"


EMPTY = Empty()


def collect_options(candidates: Iterable[Node | None], optional: bool = False) -> Options:
    """
    Collect alternatives into an Options node.

    A missing or empty candidate, as in ``(|x)`` or ``(x|)``, is not kept as an
    alternative but marks the whole set optional, as does any optional
    alternative.

    Params:
        candidates: Alternatives in declaration order
        optional: Initial optional flag

    Returns:
        Unsimplified Options node
    """
    alternatives = []

    for candidate in candidates:
        if candidate is None or isinstance(candidate, Empty):
            optional = True
            continue

        alternatives.append(candidate)
        if candidate.optional:
            optional = True

    return Options(alternatives=tuple(alternatives), optional=optional)


def escape_literal(name: str) -> str:
    """Escape literal text so it tokenizes back into a single plain token."""
    escaped = []

    for char in name:
        if char in SPECIAL_CHARACTERS or char == "\\" or char.isspace():
            escaped.append("\\")
        elif char == "." and ("..." in name or name.endswith(".")):
            escaped.append("\\")
        escaped.append(char)

    text = "".join(escaped)

    if text.startswith("--"):
        return "\\" + text

    return text
