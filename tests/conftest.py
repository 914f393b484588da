"""
Shared test fixtures and utilities for the usagetree test suite.
"""

import pytest

from usagetree.parsing.input_parser import InputParser
from usagetree.parsing.usage_parser import UsageParser

# Command line of a mod loader installer, the grammar this library grew out of
INSTALLER_USAGE = (
    "help"
    " | listVersions [--snapshots]"
    " | install (client [--no-profile] | server [--server-dir=<dir>])"
    " <minecraft-version> [<loader-version>]"
)


@pytest.fixture
def usage_parser():
    return UsageParser()


@pytest.fixture
def input_parser():
    return InputParser()


@pytest.fixture
def installer_usage():
    return INSTALLER_USAGE


@pytest.fixture
def installer_tree(usage_parser):
    """Compiled installer grammar without the ambiguity rewrite."""
    return usage_parser.parse(INSTALLER_USAGE, False)


@pytest.fixture
def match(usage_parser, input_parser):
    """Compile a usage string and match a command line against it.

    Usage:
        def test_something(match):
            assert match("<a>", "x") == {"a": "x"}
    """

    def _match(usage: str, line: str, fix_ambiguity: bool = False):
        tree = usage_parser.parse(usage, fix_ambiguity)
        return input_parser.parse(line, tree)

    return _match
