"""
usagetree - usage string grammars for command line parsing

usagetree compiles a human written usage string such as
``install (client [--no-profile] | server [--server-dir=<dir>]) <version>``
into a grammar tree once and matches any number of command lines against it,
producing a flat mapping of the recognized arguments.
"""

from importlib.metadata import version

from usagetree.dispatch.command_line import CommandLine, CommandLineConfig
from usagetree.parsing.input_parser import Bindings, InputParser, match_input
from usagetree.parsing.usage_parser import (
    UsageParser,
    compile_usage,
    fix_position_dependence,
)

__version__ = version("usagetree")

__all__ = [
    "__version__",
    "UsageParser",
    "InputParser",
    "Bindings",
    "compile_usage",
    "match_input",
    "fix_position_dependence",
    "CommandLine",
    "CommandLineConfig",
]
