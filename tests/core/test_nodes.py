"""
Tests for grammar tree nodes.

Focus Areas:
1. Optional/repeating flags and copies
2. Position dependence of leaf and composite nodes
3. Option collection and simplification
4. Rendering back to usage syntax
"""

import dataclasses

import pytest

from usagetree.core.nodes import (
    EMPTY,
    Empty,
    Floating,
    Literal,
    Options,
    Sequence,
    ValueParameter,
    collect_options,
    escape_literal,
)


class TestFlags:
    """Test optional and repeating flags."""

    def test_defaults(self):
        node = Literal("install")
        assert node.optional is False
        assert node.repeating is False

    def test_with_flags_returns_copy(self):
        node = Literal("install")
        optional = node.with_flags(optional=True)

        assert optional.optional is True
        assert node.optional is False
        assert optional.name == "install"

    def test_with_flags_unchanged_returns_same_node(self):
        node = ValueParameter("dir", optional=True)
        assert node.with_flags(optional=True) is node
        assert node.with_flags() is node

    def test_nodes_are_frozen(self):
        node = Literal("install")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.optional = True

    def test_empty_ignores_flags(self):
        assert EMPTY.with_flags(optional=True, repeating=True) is EMPTY
        assert EMPTY.optional is False


class TestPositionDependence:
    """Test which nodes consume positional tokens."""

    def test_leaves(self):
        assert Literal("a").is_position_dependent()
        assert ValueParameter("a").is_position_dependent()
        assert not Floating("a").is_position_dependent()
        assert not Floating("a", ValueParameter("v")).is_position_dependent()
        assert not EMPTY.is_position_dependent()

    def test_sequence_depends_on_children(self):
        assert Sequence.of([Floating("a"), Literal("b")]).is_position_dependent()
        assert not Sequence.of([Floating("a"), Floating("b")]).is_position_dependent()

    def test_options_depend_on_alternatives(self):
        assert Options(alternatives=(Floating("a"), Literal("b"))).is_position_dependent()
        assert not Options(alternatives=(Floating("a"), Floating("b"))).is_position_dependent()


class TestSequence:
    """Test Sequence construction."""

    def test_optional_when_all_children_optional(self):
        sequence = Sequence.of(
            [Literal("a", optional=True), Literal("b", optional=True)]
        )
        assert sequence.optional is True

    def test_required_when_any_child_required(self):
        sequence = Sequence.of([Literal("a"), Literal("b", optional=True)])
        assert sequence.optional is False

    def test_children_are_tuple(self):
        sequence = Sequence.of(iter([Literal("a"), Literal("b")]))
        assert sequence.children == (Literal("a"), Literal("b"))


class TestOptions:
    """Test option collection and simplification."""

    def test_empty_candidate_marks_optional(self):
        options = collect_options([None, Literal("a")])
        assert options.optional is True
        assert options.alternatives == (Literal("a"),)

    def test_empty_node_candidate_marks_optional(self):
        options = collect_options([Literal("a"), EMPTY])
        assert options.optional is True
        assert options.alternatives == (Literal("a"),)

    def test_optional_alternative_marks_optional(self):
        options = collect_options([Literal("a", optional=True), Literal("b")])
        assert options.optional is True

    def test_simplify_no_alternatives(self):
        assert collect_options([None, None]).simplify() is EMPTY

    def test_simplify_single_alternative_carries_flags(self):
        options = Options(alternatives=(Literal("a"),), optional=True, repeating=True)
        simplified = options.simplify()

        assert simplified == Literal("a", optional=True, repeating=True)

    def test_simplify_keeps_multiple(self):
        options = collect_options([Literal("a"), Literal("b")])
        assert options.simplify() is options


class TestRendering:
    """Test rendering nodes back into usage syntax."""

    def test_leaves(self):
        assert str(Literal("install")) == "install"
        assert str(ValueParameter("dir")) == "<dir>"
        assert str(Floating("snapshots")) == "--snapshots"
        assert str(EMPTY) == "()"
        assert isinstance(EMPTY, Empty)

    def test_floating_values(self):
        assert str(Floating("dir", ValueParameter("d"))) == "--dir=<d>"
        assert str(Floating("dir", ValueParameter("d", optional=True))) == "--dir[=<d>]"

    def test_flags(self):
        assert str(Literal("a", optional=True)) == "[a]"
        assert str(ValueParameter("a", repeating=True)) == "<a>..."
        assert str(ValueParameter("a", optional=True, repeating=True)) == "[<a>]..."

    def test_composites(self):
        inner = Options(alternatives=(Literal("client"), Literal("server")))
        sequence = Sequence.of([Literal("install"), inner, ValueParameter("v")])

        assert str(inner) == "client | server"
        assert str(sequence) == "install (client | server) <v>"

    def test_nested_sequence_in_options(self):
        options = Options(
            alternatives=(Sequence.of([Literal("a"), Literal("b")]), Literal("c"))
        )
        assert str(options) == "(a b) | c"

    def test_repeating_sequence_grouped(self):
        sequence = Sequence.of([Literal("a"), Literal("b")], repeating=True)
        assert str(sequence) == "(a b)..."

    def test_escape_literal(self):
        assert escape_literal("plain") == "plain"
        assert escape_literal("a|b") == "a\\|b"
        assert escape_literal("two words") == "two\\ words"
        assert escape_literal("--x") == "\\--x"
        assert escape_literal("a...") == "a\\.\\.\\."
        assert escape_literal("v1.") == "v1\\."
        assert escape_literal("1.0") == "1.0"
        assert str(Literal("v1.", repeating=True)) == "v1\\...."
