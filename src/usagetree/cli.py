"""
``usagetree`` console script.

Compiles usage strings and matches command lines against them from the
shell. The tool's own command line is described with a usage string and
dispatched through CommandLine.
"""

import json
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from usagetree.dispatch.command_line import CommandLine, CommandLineConfig
from usagetree.exceptions import GrammarSyntaxError, InputSyntaxError
from usagetree.parsing.input_parser import Bindings, match_input
from usagetree.parsing.usage_parser import compile_usage

USAGE = (
    "[--debug] (help"
    " | render <usage> [--fix-ambiguity]"
    " | match <usage> <input> [--fix-ambiguity])"
)

DESCRIPTION = """\
  render   print the compiled form of a usage string
  match    match a quoted command line against a usage string and print the
           bindings as JSON"""

ERROR_EXIT_CODE = 2


def build_command_line(stdout: TextIO | None = None, stderr: TextIO | None = None) -> CommandLine:
    """Create the dispatcher for the console script."""
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    command_line = CommandLine(
        CommandLineConfig(program_name="usagetree", usage=USAGE, description=DESCRIPTION),
        stdout=stdout,
    )

    @command_line.command("render")
    def render(bindings: Bindings) -> int:
        try:
            tree = compile_usage(bindings["usage"], "fix-ambiguity" in bindings)
        except GrammarSyntaxError as exc:
            print(exc, file=stderr)
            return ERROR_EXIT_CODE

        print(tree, file=stdout)
        return 0

    @command_line.command("match")
    def match(bindings: Bindings) -> int:
        try:
            tree = compile_usage(bindings["usage"], "fix-ambiguity" in bindings)
            result = match_input(bindings["input"], tree)
        except (GrammarSyntaxError, InputSyntaxError) as exc:
            print(exc, file=stderr)
            return ERROR_EXIT_CODE

        if result is None:
            print("no match", file=stderr)
            return 1

        print(json.dumps(result.to_dict(), indent=2), file=stdout)
        return 0

    return command_line


def main(argv: Sequence[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.DEBUG if "--debug" in argv else logging.WARNING)

    return build_command_line().run(argv)
