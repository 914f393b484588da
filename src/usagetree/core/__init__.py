"""
Core usagetree components.

This package provides the grammar node types, token spans and the type
aliases shared by the compiler and the matcher.
"""

from usagetree.core.nodes import (
    EMPTY,
    Empty,
    Floating,
    Literal,
    Node,
    Options,
    Sequence,
    ValueParameter,
)
from usagetree.core.tokens import Token, decode_escapes
from usagetree.core.types import BindingValue, Capture, FloatingTable

__all__ = [
    "Node",
    "Literal",
    "ValueParameter",
    "Floating",
    "Sequence",
    "Options",
    "Empty",
    "EMPTY",
    "Token",
    "decode_escapes",
    "BindingValue",
    "Capture",
    "FloatingTable",
]
