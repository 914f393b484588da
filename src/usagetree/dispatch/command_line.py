"""
Command dispatcher built on a compiled usage tree.

A CommandLine compiles its usage string once, turns each process argument
vector back into a single command line, matches it and hands the resulting
bindings to the handler registered for the matched keywords. Anything that
doesn't match falls back to the help display.
"""

import logging
import sys
from collections.abc import Callable, Iterable
from typing import TextIO

from pydantic import BaseModel, ConfigDict, field_validator

from usagetree.core.nodes import Literal, Node, Options, Sequence
from usagetree.exceptions import CommandLineError, InputSyntaxError
from usagetree.parsing.input_parser import Bindings, InputParser
from usagetree.parsing.usage_parser import compile_usage

logger = logging.getLogger(__name__)

Handler = Callable[[Bindings], int | None]

HELP_EXIT_CODE = 1


class CommandLineConfig(BaseModel):
    """
    Static description of a command line program.

    Params:
        program_name: Executable name shown in the help banner
        usage: Usage string accepted by the program
        fix_ambiguity: Whether to compile with the position dependence rewrite
        description: Optional text printed below the usage line
    """

    model_config = ConfigDict(frozen=True)

    program_name: str
    usage: str
    fix_ambiguity: bool = False
    description: str | None = None

    @field_validator("usage")
    @classmethod
    def validate_usage(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("usage string must not be blank")
        return value


def _quote(text: str) -> str:
    if text and not text.startswith("--") and not any(
        char.isspace() or char in "\"'\\" for char in text
    ):
        return text

    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def quote_argument(argument: str) -> str:
    """
    Quote a single process argument for inclusion in a command line.

    Flags keep their key unquoted since keys can't be quoted; only the value
    after ``=`` is quoted when needed.
    """
    if argument.startswith("--") and len(argument) > 2:
        key, separator, value = argument.partition("=")
        if not separator:
            return argument
        return f"{key}={_quote(value)}"

    return _quote(argument)


def join_arguments(argv: Iterable[str]) -> str:
    """Assemble an argument vector back into a single command line string."""
    return " ".join(quote_argument(argument) for argument in argv)


def literal_names(node: Node) -> set[str]:
    """Collect the text of every literal reachable in a usage tree."""
    if isinstance(node, Literal):
        return {node.name}
    if isinstance(node, Sequence):
        return set().union(*(literal_names(child) for child in node.children))
    if isinstance(node, Options):
        return set().union(*(literal_names(option) for option in node.alternatives))
    return set()


class CommandLine:
    """
    Dispatcher mapping matched command lines to handlers.

    Handlers are registered against a path of literal keywords, e.g.
    ``("install", "client")``. The handler whose path is the longest prefix of
    the matched literal values wins.
    """

    def __init__(
        self,
        config: CommandLineConfig,
        stdout: TextIO | None = None,
    ):
        self.config = config
        self.grammar = compile_usage(config.usage, config.fix_ambiguity)
        self.stdout = stdout
        self._literals = literal_names(self.grammar)
        self._handlers: dict[tuple[str, ...], Handler] = {}

    def register(self, path: tuple[str, ...], handler: Handler) -> None:
        """
        Register a handler for a path of literal keywords.

        Raises:
            CommandLineError: If the path is taken or can never be matched
        """
        if path in self._handlers:
            raise CommandLineError(path, "a handler is already registered")

        unknown = [keyword for keyword in path if keyword not in self._literals]
        if unknown:
            raise CommandLineError(
                path, f"{', '.join(unknown)} not a literal of the usage string"
            )

        self._handlers[path] = handler

    def command(self, *path: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``."""

        def decorator(handler: Handler) -> Handler:
            self.register(path, handler)
            return handler

        return decorator

    def parse(self, argv: Iterable[str]) -> Bindings | None:
        """
        Match an argument vector against the usage tree.

        Raises:
            InputSyntaxError: If the joined command line is malformed
        """
        return InputParser().parse(join_arguments(argv), self.grammar)

    def resolve(self, bindings: Bindings) -> Handler | None:
        """Find the handler for the literal keywords captured in ``bindings``."""
        keywords = tuple(
            value
            for key, value in bindings.captures
            if key.startswith("unnamed_")
        )

        for length in range(len(keywords), 0, -1):
            handler = self._handlers.get(keywords[:length])
            if handler is not None:
                logger.debug("Dispatching %s", " ".join(keywords[:length]))
                return handler

        return None

    def run(self, argv: Iterable[str]) -> int:
        """
        Dispatch an argument vector.

        Returns:
            The handler's exit status (0 when it returns None), or the help
            exit status if the arguments were improperly given
        """
        try:
            bindings = self.parse(argv)
        except InputSyntaxError as exc:
            logger.warning("%s", exc)
            bindings = None

        if bindings is None:
            return self.display_help()

        handler = self.resolve(bindings)
        if handler is None:
            return self.display_help()

        result = handler(bindings)
        return 0 if result is None else int(result)

    def format_help(self) -> str:
        lines = [f"Usage: {self.config.program_name} {self.grammar}"]
        if self.config.description:
            lines.append("")
            lines.append(self.config.description)
        return "\n".join(lines)

    def display_help(self) -> int:
        print(self.format_help(), file=self.stdout or sys.stdout)
        return HELP_EXIT_CODE
