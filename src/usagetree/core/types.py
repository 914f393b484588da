"""
Core type definitions for usagetree.

This module contains the type aliases shared by the grammar compiler and
the input matcher.
"""

BindingValue = str | None

# (key, value) as recorded during a match
Capture = tuple[str, BindingValue]

FloatingTable = dict[str, BindingValue]
