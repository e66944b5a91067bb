r"""
Argbind parser: the argument registry, the constraint validator and the exit policy.

Overview
- ArgumentParser: registers options, positionals, groups and sub-commands, then
  parses token vectors into the bound destinations.
  • add_argument(destination, name, altname) -> OptionConfig
  • add_arguments(options): let an Options target register its arguments.
  • add_group(name) / add_exclusive_group(name) -> GroupConfig; end_group().
  • add_help_option(name, altname) -> OptionConfig
  • add_command(name, factory) -> CommandConfig
  • parse_args(tokens=None) -> ParseResult
  • describe_argument(name) / describe_arguments() -> ArgumentDescription(s)
  • format_help() / print_help()
- ParserConfig: fluent, parser-wide settings (program, usage, description,
  epilog, console, formatter and the exit mode).
- ExitMode: what happens when parsing ends early (help requested).
- Options: abstract base for objects that declare their own arguments.

Parse pipeline
1. Register the default help option (--help/-h) if none was added.
2. Verify the declarations (a required option inside an exclusive group is fatal).
3. Reset every value slot.
4. Scan the tokens (see argbind.scanner). A help name met before a command
   is dispatched stops the scan: every slot is reset again, help is rendered
   and the exit mode applies.
5. Validate: missing options and positionals, exclusive violations, then
   missing groups. Every check runs; nothing short-circuits.

Quick example:
    >>> parser = ArgumentParser()
    >>> parser.config.program("prog").on_exit_return()
    >>> parser.add_argument("depth", "-d", "--depth", type=int).nargs(1)
    >>> parser.add_argument("files", "files", multiple=True).minargs(1)
    >>> result = parser.parse_args(["-d", "3", "a.txt", "b.txt"])
    >>> parser.namespace.depth, parser.namespace.files
    (3, ['a.txt', 'b.txt'])
"""
import io
import itertools
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import SimpleNamespace

from rich.console import Console

from .arguments import GroupConfig, Option, OptionConfig, OptionGroup
from .commands import Command, CommandConfig
from .faults import (
    ConfigurationError,
    ErrorCode,
    MixingGroupTypesError,
    ParseResult,
    ParserTerminated,
    RequiredExclusiveOptionError,
    UnknownArgumentError,
)
from .formatting import HelpFormatter
from .scanner import Scanner
from .utils import *
from .values import Value, VoidValue, append, store

logger = logging.getLogger(__name__)


class ExitMode(Enum):
    """
    Behavior when parsing ends early.

    - TERMINATE: call the configured terminate strategy with status 0.
    - THROW: raise ParserTerminated(argument, code).
    - RETURN: return a result holding a single error for the argument.
    """
    TERMINATE = "terminate"
    THROW = "throw"
    RETURN = "return"


@dataclass
class ParserSettings:
    """
    Plain snapshot of the parser-wide settings (read through parser.config.settings).
    """
    program: str = ""
    usage: str = ""
    description: str = ""
    epilog: str = ""
    console: object = Unset
    formatter: object = Unset
    exit_mode: ExitMode = ExitMode.TERMINATE
    terminate: object = sys.exit


class ParserConfig:
    """
    Fluent configuration of an ArgumentParser.

    Every method returns the configuration itself:
        parser.config.program("prog").description("Does things.").on_exit_return()
    """

    settings = mirror("settings")

    def __init__(self):
        self._settings = ParserSettings()

    def _text(self, field, text):
        if not isinstance(text, str):
            raise TypeError(f"{field}() argument must be a string")
        setattr(self._settings, field, text)
        return self

    def program(self, name, /):
        return self._text("program", name)

    def usage(self, text, /):
        return self._text("usage", text)

    def description(self, text, /):
        return self._text("description", text)

    def epilog(self, text, /):
        return self._text("epilog", text)

    def console(self, console, /):
        """
        Console receiving the help output (stdout console when not set).
        """
        if not isinstance(console, Console):
            raise TypeError("console() argument must be a rich console")
        self._settings.console = console
        return self

    def formatter(self, formatter, /):
        if not callable(getattr(formatter, "format", None)):
            raise TypeError("formatter() argument must provide a format() method")
        self._settings.formatter = formatter
        return self

    def on_exit_terminate(self, terminate=Unset, /):
        """
        Terminate through `terminate(0)` (sys.exit unless given) when help is requested.

        If the strategy returns, parse_args() returns the synthetic result.
        """
        if terminate is not Unset and not callable(terminate):
            raise TypeError("on_exit_terminate() argument must be callable")
        self._settings.exit_mode = ExitMode.TERMINATE
        self._settings.terminate = coalesce(terminate, sys.exit)
        return self

    def on_exit_throw(self):
        self._settings.exit_mode = ExitMode.THROW
        return self

    def on_exit_return(self):
        self._settings.exit_mode = ExitMode.RETURN
        return self

    def inherit(self, settings, /, *, program):
        """
        Adopt the output and exit settings of a parent parser.

        Used for sub-command parsers: the console, the formatter and the exit
        policy are copied; the program name is only set when none was given.
        """
        self._settings.console = settings.console
        self._settings.formatter = settings.formatter
        self._settings.exit_mode = settings.exit_mode
        self._settings.terminate = settings.terminate
        if not self._settings.program:
            self._settings.program = program
        return self


class Options(ABC):
    """
    Base for objects that carry their own destinations and declarations.

    Example:
        >>> class Settings(Options):
        ...     def add_arguments(self, parser):
        ...         parser.add_argument(store(self, "depth", int), "--depth").nargs(1)
    """

    @abstractmethod
    def add_arguments(self, parser, /):
        raise NotImplementedError


class ArgumentParser:
    """
    The argument registry and parse entry point.

    Parameters
    - program: optional program name shown in help (same as config.program()).
    - namespace: object receiving the values of arguments declared with a
      string destination; a fresh SimpleNamespace by default.

    The parser owns its options, positionals, groups and commands; the values
    always live in caller-owned destinations.
    """

    config = mirror("config")
    options = mirror("options")
    positionals = mirror("positionals")
    groups = mirror("groups")
    commands = mirror("commands")
    targets = mirror("targets")

    def __init__(self, program=Unset, /, *, namespace=Unset):
        self._config = ParserConfig()
        self._namespace = coalesce(namespace, SimpleNamespace())
        self._options = []
        self._positionals = []
        self._groups = {}
        self._active_group = None
        self._help_names = set()
        self._targets = []
        self._commands = {}
        if program is not Unset:
            self._config.program(program)

    @property
    def namespace(self):
        """
        The live object bound by string destinations (never a copy).
        """
        return self._namespace

    # -- registration -----------------------------------------------------------

    def add_argument(self, destination, name="", altname="", /, *, type=Unset, multiple=Unset):
        """
        Register an option or a positional.

        Parameters
        - destination: a Value slot, or the name of an attribute of self.namespace
          (a scalar slot converting with `type`, or a list slot when `multiple`).
        - name, altname: "--long" and/or "-x" for options, a bare name for
          positionals. Empty names are ignored.

        Raises
        - TypeError: type/multiple passed together with a Value slot.
        - ConfigurationError: no usable name, whitespace in a name, mixed
          option/positional names, or a short name longer than one character.
        """
        if isinstance(destination, str):
            if multiple is not Unset and not isinstance(multiple, bool):
                raise TypeError("multiple must be a boolean")
            factory = append if multiple else store
            value = factory(self._namespace, destination, coalesce(type, str))
            value.reset()
        elif isinstance(destination, Value):
            if type is not Unset or multiple is not Unset:
                raise TypeError("type and multiple only apply to attribute destinations")
            value = destination
        else:
            raise TypeError("argument destination must be a value slot or an attribute name")

        return self._try_add_argument(Option(value), (name, altname))

    def _try_add_argument(self, option, names, /):
        if not all(isinstance(name, str) for name in names):
            raise TypeError("argument names must be strings")
        if not (names := [name.strip() for name in names if name.strip()]):
            raise ConfigurationError("an argument must have a name")
        if any(character.isspace() for name in names for character in name):
            raise ConfigurationError("argument names must not contain spaces")

        if not any(name.startswith("-") for name in names):
            option._positional = True
            option._long_name = names[0]
            if option.multiple:
                option._set_min_args(0)
            else:
                option._set_nargs(1)
            # positionals are reached by position, so they always count as required
            option._required = True
            if self._active_group is not None and not self._active_group.exclusive:
                option._group = self._active_group
            self._positionals.append(option)
            logger.debug("registered positional %r", option.name)
            return OptionConfig(option)

        if not all(name.startswith("-") for name in names):
            raise ConfigurationError("the argument must be either positional or an option")

        for name in names:
            if name in ("-", "--"):
                continue
            if name.startswith("--"):
                option._long_name = name
            elif len(name) > 2:
                raise ConfigurationError(f"short option name {name!r} has too many characters")
            else:
                option._short_name = name
        if not option.name:
            raise ConfigurationError("an option must have a name")

        if self._active_group is not None:
            option._group = self._active_group
        self._options.append(option)
        logger.debug("registered option %r", option.name)
        return OptionConfig(option)

    def add_arguments(self, options, /):
        """
        Keep `options` alive with the parser and let it declare its arguments.
        """
        if not isinstance(options, Options):
            raise TypeError("add_arguments() argument must be an Options instance")
        self._targets.append(options)
        options.add_arguments(self)

    def add_help_option(self, name="--help", altname="-h", /):
        """
        Register the option that renders help and ends the parse.

        Without an explicit call, --help/-h is registered before the first parse.
        """
        if not isinstance(name, str) or not isinstance(altname, str):
            raise TypeError("help option names must be strings")
        if any(item and not item.startswith("-") for item in (name.strip(), altname.strip())):
            raise ConfigurationError("a help argument must be an option")

        config = self._try_add_argument(Option(VoidValue()), (name, altname))
        config.help("Print this help message and exit.")
        self._help_names.update(item for item in (config.option.short_name, config.option.long_name) if item)
        return config

    # -- groups -----------------------------------------------------------------

    def _find_group(self, name):
        if not isinstance(name, str):
            raise TypeError("group name must be a string")
        return self._groups.get(name.strip().lower())

    def _activate_group(self, name, exclusive):
        if (group := self._find_group(name)) is not None:
            if group.exclusive != exclusive:
                raise MixingGroupTypesError(name)
        else:
            group = OptionGroup(name, exclusive)
            self._groups[group.name] = group
        self._active_group = group
        return GroupConfig(group)

    def add_group(self, name, /):
        """
        Open (or re-open) a non-exclusive group; following arguments join it.
        """
        return self._activate_group(name, False)

    def add_exclusive_group(self, name, /):
        """
        Open (or re-open) an exclusive group: at most one of its options may be given.

        Positionals declared while an exclusive group is open stay ungrouped.
        """
        return self._activate_group(name, True)

    def end_group(self):
        self._active_group = None

    # -- commands ---------------------------------------------------------------

    def add_command(self, name, factory, /):
        """
        Register a sub-command.

        `factory` is called on dispatch and returns either an Options target
        (a child parser is created for it) or a configured ArgumentParser.
        """
        if not isinstance(name, str):
            raise TypeError("command name must be a string")
        if not (name := name.strip()) or name.startswith("-") or any(map(str.isspace, name)):
            raise ConfigurationError(f"invalid command name {name!r}")
        if name in self._commands:
            raise ConfigurationError(f"duplicate command {name!r}")
        self._commands[name] = command = Command(name, factory, self)
        return CommandConfig(command)

    # -- parsing ----------------------------------------------------------------

    def parse_args(self, tokens=None, /):
        """
        Parse `tokens` (sys.argv[1:] when None) into the bound destinations.

        Returns
        - ParseResult listing errors and ignored tokens.

        Raises
        - RequiredExclusiveOptionError: inconsistent declarations.
        - ParserTerminated: help requested in the "throw" exit mode.
        """
        if tokens is None:
            tokens = sys.argv[1:]
        if isinstance(tokens, str):
            raise TypeError("parse_args() argument must be a sequence of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse_args() argument must be a sequence of strings")

        if not self._help_names:
            self.add_help_option()

        self._verify_defined_options()

        for option in itertools.chain(self._options, self._positionals):
            option.reset_value()

        scanner = Scanner(self._options, self._positionals, self._commands, self._help_names)
        result = scanner.scan(tokens)
        if (token := scanner.help_token) is not None:
            logger.debug("help requested with %r", token)
            for option in itertools.chain(self._options, self._positionals):
                option.reset_value()
            self.print_help()
            return self._exit_parser(token, ErrorCode.HELP_REQUESTED)

        self._report_missing_options(result)
        self._report_exclusive_violations(result)
        self._report_missing_groups(result)
        logger.debug("parsed %d token(s): %d error(s), %d ignored",
                     len(tokens), len(result.errors), len(result.ignored_arguments))
        return result

    def _verify_defined_options(self):
        for option in self._options:
            if option.required and option.group is not None and option.group.exclusive:
                raise RequiredExclusiveOptionError(option.name, option.group.name)

    def _report_missing_options(self, result):
        for option in self._options:
            if option.required and not option.was_assigned():
                result.add_error(option.name, ErrorCode.MISSING_OPTION)

        for option in self._positionals:
            if option.needs_more_arguments():
                result.add_error(option.name, ErrorCode.MISSING_ARGUMENT)

    def _report_exclusive_violations(self, result):
        assigned = {}
        for option in self._options:
            if (group := option.group) is not None and group.exclusive and option.was_assigned():
                assigned.setdefault(group.name, []).append(option.name)

        for names in assigned.values():
            if len(names) > 1:
                result.add_error(names[0], ErrorCode.EXCLUSIVE_OPTION)

    def _report_missing_groups(self, result):
        counts = {}
        for option in self._options:
            if (group := option.group) is not None and group.required:
                counts[group.name] = counts.get(group.name, 0) + option.was_assigned()

        for name, count in counts.items():
            if count < 1:
                result.add_error(name, ErrorCode.MISSING_OPTION_GROUP)

    def _exit_parser(self, argument, code):
        settings = self._config._settings
        match settings.exit_mode:
            case ExitMode.THROW:
                raise ParserTerminated(argument, code)
            case ExitMode.TERMINATE:
                settings.terminate(0)

        result = ParseResult()
        result.add_error(argument, code)
        return result

    # -- help -------------------------------------------------------------------

    def describe_argument(self, name, /):
        """
        Describe the option (dashed name) or positional (bare name) called `name`.

        Raises
        - UnknownArgumentError: nothing is registered under that name.
        """
        if not isinstance(name, str):
            raise TypeError("describe_argument() argument must be a string")
        for option in self._options if name.startswith("-") else self._positionals:
            if option.has_name(name):
                return option.describe()
        raise UnknownArgumentError(name)

    def describe_arguments(self):
        """
        Describe every registered argument: options first, then positionals.
        """
        return [option.describe() for option in itertools.chain(self._options, self._positionals)]

    def _formatter(self):
        return coalesce(self._config._settings.formatter, HelpFormatter())

    def format_help(self):
        """
        Render the help text to a plain string (no styling).
        """
        formatter = self._formatter()
        console = Console(file=io.StringIO(), width=formatter.width, color_system=None, legacy_windows=False)
        console.print(formatter.format(self, console))
        return console.file.getvalue()

    def print_help(self):
        """
        Render the help to the configured console (stdout when not set).
        """
        if (console := self._config._settings.console) is Unset:
            console = Console()
        console.print(self._formatter().format(self, console))

    def __repr__(self):
        return "%s(program=%r, options=%d, positionals=%d, commands=%d)" % (
            type(self).__name__, self._config._settings.program,
            len(self._options), len(self._positionals), len(self._commands)
        )


__all__ = (
    "ExitMode",
    "ParserSettings",
    "ParserConfig",
    "Options",
    "ArgumentParser",
)
