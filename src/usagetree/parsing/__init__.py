"""
Usage string compilation and command line matching.
"""

from usagetree.parsing.input_parser import (
    Bindings,
    InputParser,
    match_input,
    tokenize_input,
)
from usagetree.parsing.usage_parser import (
    UsageParser,
    compile_usage,
    fix_position_dependence,
    tokenize_usage,
)

__all__ = [
    "UsageParser",
    "compile_usage",
    "fix_position_dependence",
    "tokenize_usage",
    "InputParser",
    "Bindings",
    "match_input",
    "tokenize_input",
]
