"""
Exception classes for usage grammar compilation and input matching.

This module defines specific exception types for the error conditions that
can occur while compiling a usage string, tokenizing a command line, or
wiring up a command dispatcher. An ordinary failed match is not an error and
is never reported through these classes.
"""

from dataclasses import dataclass


@dataclass
class ErrorContext:
    """
    Context information for error messages.

    Captures where an error occurred in the text that was being processed
    (usage string at compile time, command line at match time) so the message
    can point at the offending character.

    Params:
        source: The full text being processed
        position: Zero based offset of the offending character
        token_text: The token that caused the error, if one was isolated
    """

    source: str
    position: int
    token_text: str | None = None

    def format_location(self) -> str:
        """
        Format location information with a caret under the error position.

        Returns:
            Multi-line location string suitable for appending to a message
        """
        position = max(0, min(self.position, len(self.source)))
        line_start = self.source.rfind("\n", 0, position) + 1
        line_end = self.source.find("\n", position)
        if line_end < 0:
            line_end = len(self.source)

        lines = [f"  at column {position - line_start + 1}"]
        lines.append(f"    {self.source[line_start:line_end]}")
        lines.append("    " + " " * (position - line_start) + "^")

        if self.token_text:
            lines.append(f"  token: {self.token_text}")

        return "\n".join(lines)


class UsageTreeError(Exception):
    """Base exception for all usagetree errors."""

    pass


class GrammarSyntaxError(UsageTreeError):
    """Raised when a usage string cannot be compiled into a grammar tree."""

    def __init__(self, usage: str, position: int, reason: str):
        """
        Initialize the exception.

        Params:
            usage: The usage string being compiled
            position: Offset in the usage string where the problem was detected
            reason: Short description of what is wrong
        """
        self.usage = usage
        self.position = position
        self.reason = reason
        self.context = ErrorContext(source=usage, position=position)
        super().__init__(
            f"Invalid usage string: {reason}\n{self.context.format_location()}"
        )


class InputSyntaxError(UsageTreeError):
    """Raised when a command line is lexically malformed."""

    def __init__(self, input: str, position: int, reason: str):
        """
        Initialize the exception.

        Params:
            input: The command line being tokenized
            position: Offset in the command line where the problem was detected
            reason: Short description of what is wrong
        """
        self.input = input
        self.position = position
        self.reason = reason
        self.context = ErrorContext(source=input, position=position)
        super().__init__(
            f"Invalid command line: {reason}\n{self.context.format_location()}"
        )


class UnterminatedQuoteError(InputSyntaxError):
    """Raised when a quoted span in a command line is never closed."""

    def __init__(self, input: str, position: int, quote: str):
        """
        Initialize the exception.

        Params:
            input: The command line being tokenized
            position: Offset of the opening quote character
            quote: The quote character that was left open
        """
        self.quote = quote
        super().__init__(input, position, f"unterminated {quote}")


class CommandLineError(UsageTreeError):
    """Raised when a command dispatcher is configured inconsistently."""

    def __init__(self, path: tuple[str, ...], reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot register handler for '{' '.join(path)}': {reason}")
