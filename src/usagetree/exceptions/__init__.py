"""
usagetree exception classes.

This package provides all exception types used by the grammar compiler,
the input matcher and the command dispatcher.
"""

from usagetree.exceptions.core import (
    CommandLineError,
    ErrorContext,
    GrammarSyntaxError,
    InputSyntaxError,
    UnterminatedQuoteError,
    UsageTreeError,
)

__all__ = [
    "UsageTreeError",
    "ErrorContext",
    "GrammarSyntaxError",
    "InputSyntaxError",
    "UnterminatedQuoteError",
    "CommandLineError",
]
