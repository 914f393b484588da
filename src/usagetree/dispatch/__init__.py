"""
Command dispatching on top of compiled usage trees.
"""

from usagetree.dispatch.command_line import (
    CommandLine,
    CommandLineConfig,
    join_arguments,
    quote_argument,
)

__all__ = ["CommandLine", "CommandLineConfig", "join_arguments", "quote_argument"]
