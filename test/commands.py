"""
Commands module behavioral tests (registration, dispatch, merged results).

Scope
- Validate command registration errors.
- Validate dispatch: the remaining tokens go to the child parser.
- Validate merged errors/ignored tokens and inherited help settings.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (ArgumentParser, Options, store, append).
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from argbind import (
    ArgumentParser,
    ConfigurationError,
    ErrorCode,
    Options,
    ParseError,
    append,
    store,
)


class Fetch(Options):
    def add_arguments(self, parser, /):
        parser.add_argument(store(self, "depth", int), "--depth").nargs(1).help("history depth")
        parser.add_argument(append(self, "refs"), "refs").help("references to fetch")


class Push(Options):
    def add_arguments(self, parser, /):
        parser.add_argument(store(self, "remote"), "remote")


def build_show():
    parser = ArgumentParser()
    parser.add_argument("name", "name")
    return parser


class TestCommandRegistration(TestCase):
    """add_command() validation."""

    def setUp(self):
        self.parser = ArgumentParser("prog")

    def testDuplicateCommand(self):
        self.parser.add_command("fetch", Fetch)
        with self.assertRaises(ConfigurationError):
            self.parser.add_command(" fetch ", Fetch)

    def testInvalidCommandNames(self):
        for name in ("", "  ", "-fetch", "two words"):
            with self.subTest(name=name):
                with self.assertRaises(ConfigurationError):
                    self.parser.add_command(name, Fetch)

    def testNonStringNameRejected(self):
        with self.assertRaises(TypeError):
            self.parser.add_command(3, Fetch)

    def testFactoryMustBeCallable(self):
        with self.assertRaises(TypeError):
            self.parser.add_command("fetch", Fetch())

    def testCommandHelp(self):
        command = self.parser.add_command("fetch", Fetch).help("  Download objects. ").command
        self.assertEqual(command.help, "Download objects.")
        self.assertIs(self.parser.commands["fetch"], command)
        self.assertIsNone(command.parser)


class TestCommandDispatch(TestCase):
    """Dispatching the remaining tokens to a sub-command."""

    def setUp(self):
        self.output = Console(file=io.StringIO(), width=80, color_system=None)
        self.parser = ArgumentParser("prog")
        self.parser.config.console(self.output).on_exit_return()
        self.parser.add_argument("verbose", "-v")
        self.parser.add_command("fetch", Fetch).help("Download objects.")
        self.parser.add_command("push", Push).help("Upload objects.")
        self.parser.add_command("show", build_show)

    def testDispatchWithOptions(self):
        result = self.parser.parse_args(["-v", "fetch", "--depth", "2", "main", "dev"])
        self.assertTrue(result.ok)
        self.assertEqual(self.parser.namespace.verbose, "1")
        self.assertEqual(result.command.name, "fetch")
        self.assertEqual(result.command.options.depth, 2)
        self.assertEqual(result.command.options.refs, ["main", "dev"])

    def testNoCommand(self):
        result = self.parser.parse_args(["-v"])
        self.assertTrue(result.ok)
        self.assertIsNone(result.command)

    def testChildErrorsAreMerged(self):
        result = self.parser.parse_args(["fetch", "--bogus"])
        self.assertEqual(result.errors, [ParseError("--bogus", ErrorCode.UNKNOWN_OPTION)])

    def testChildIgnoredTokensAreMerged(self):
        result = self.parser.parse_args(["push", "origin", "extra"])
        self.assertEqual(result.command.options.remote, "origin")
        self.assertEqual(result.ignored_arguments, ["extra"])

    def testTokensAfterCommandStayWithTheChild(self):
        result = self.parser.parse_args(["fetch", "-v"])
        self.assertEqual(result.errors, [ParseError("-v", ErrorCode.UNKNOWN_OPTION)])
        self.assertIsNone(self.parser.namespace.verbose)

    def testCommandAfterDoubleDashIsFreeArgument(self):
        result = self.parser.parse_args(["--", "fetch"])
        self.assertIsNone(result.command)
        self.assertEqual(result.ignored_arguments, ["fetch"])

    def testFactoryReturningParser(self):
        result = self.parser.parse_args(["show", "HEAD"])
        self.assertTrue(result.ok)
        self.assertIsNone(result.command.options)
        self.assertEqual(result.command.parser.namespace.name, "HEAD")

    def testChildInheritsProgramName(self):
        result = self.parser.parse_args(["show", "HEAD"])
        self.assertEqual(result.command.parser.config.settings.program, "prog show")

    def testChildHelp(self):
        result = self.parser.parse_args(["fetch", "--help"])
        self.assertEqual(result.errors, [ParseError("--help", ErrorCode.HELP_REQUESTED)])
        self.assertTrue(result.help_requested)
        output = self.output.file.getvalue()
        self.assertIn("usage: prog fetch", output)
        self.assertIn("Download objects.", output)
        self.assertIn("history depth", output)

    def testHelpAfterCommandNameTakenAsValue(self):
        self.parser.add_argument("name", "--name").nargs(1)

        result = self.parser.parse_args(["--name", "fetch", "--help"])
        self.assertEqual(result.errors, [ParseError("--help", ErrorCode.HELP_REQUESTED)])
        self.assertIsNone(result.command)
        output = self.output.file.getvalue()
        self.assertIn("usage: prog", output)
        self.assertNotIn("prog fetch", output)

    def testParentHelpListsCommands(self):
        text = self.parser.format_help()
        self.assertIn("<command> ...", text)
        self.assertIn("commands:", text)
        self.assertIn("Download objects.", text)
        self.assertIn("Upload objects.", text)

    def testFreshOptionsForEveryDispatch(self):
        first = self.parser.parse_args(["fetch", "a"]).command.options
        second = self.parser.parse_args(["fetch", "b"]).command.options
        self.assertIsNot(first, second)
        self.assertEqual(first.refs, ["a"])
        self.assertEqual(second.refs, ["b"])

    def testFactoryReturningWrongType(self):
        self.parser.add_command("broken", lambda: 42)
        with self.assertRaises(TypeError):
            self.parser.parse_args(["broken"])


class TestCommandWithPositionals(TestCase):
    """Commands are recognized only where every positional has its minimum."""

    def setUp(self):
        self.output = Console(file=io.StringIO(), width=80, color_system=None)
        self.parser = ArgumentParser("prog")
        self.parser.config.console(self.output).on_exit_return()
        self.parser.add_argument("workspace", "workspace")
        self.parser.add_command("fetch", Fetch)

    def testPositionalBeforeCommand(self):
        result = self.parser.parse_args(["ws", "fetch", "main"])
        self.assertEqual(self.parser.namespace.workspace, "ws")
        self.assertEqual(result.command.name, "fetch")
        self.assertEqual(result.command.options.refs, ["main"])

    def testCommandNameFillsMissingPositional(self):
        result = self.parser.parse_args(["fetch"])
        self.assertEqual(self.parser.namespace.workspace, "fetch")
        self.assertIsNone(result.command)

    def testHelpAfterCommandNameFillingPositional(self):
        result = self.parser.parse_args(["fetch", "--help"])
        self.assertEqual(result.errors, [ParseError("--help", ErrorCode.HELP_REQUESTED)])
        self.assertIsNone(result.command)
        self.assertIsNone(self.parser.namespace.workspace)
        self.assertIn("usage: prog", self.output.file.getvalue())


if __name__ == "__main__":
    unittest.main()
