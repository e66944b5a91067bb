"""
Argbind sub-commands: named entry points that hand the rest of the tokens to a child parser.

Overview
- Command: a registered sub-command (name, factory, help text). On dispatch the
  factory is called and the resulting child parser parses every remaining token.
  • factory() -> Options: a fresh child ArgumentParser is created and the Options
    target declares its arguments on it.
  • factory() -> ArgumentParser: the parser is used as is.
- CommandConfig: chainable handle returned by ArgumentParser.add_command().

Dispatch contract
- A command is recognized by the scanner only where a positional could start
  (every positional has its minimum) and never after "--".
- The child inherits the console, the formatter and the exit policy of its parent,
  and its program name is "<parent program> <command>".
- The child result (errors and ignored tokens) is merged into the parent result
  and ParseResult.command is set to the Command.
- Only one command is dispatched per parse.

Quick example:
    >>> class Fetch(Options):
    ...     def add_arguments(self, parser):
    ...         parser.add_argument(store(self, "depth", int), "--depth").nargs(1)
    >>> parser.add_command("fetch", Fetch).help("Download objects.")
    >>> result = parser.parse_args(["fetch", "--depth", "1"])
    >>> result.command.options.depth
    1
"""
import logging

from .formatting import program_name

logger = logging.getLogger(__name__)


class Command:
    """
    A registered sub-command.

    Attributes
    - name: the token selecting the command.
    - help: one-line description shown in the parent help.
    - parser: the child parser built by the last dispatch (None before).
    - options: the Options target produced by the factory (None when the
      factory returned a parser, or before dispatch).
    """

    def __init__(self, name, factory, parent, /):
        if not callable(factory):
            raise TypeError("command factory must be callable")
        self._name = name
        self._factory = factory
        self._parent = parent
        self._help = ""
        self._parser = None
        self._options = None

    @property
    def name(self):
        return self._name

    @property
    def help(self):
        return self._help

    @property
    def parser(self):
        return self._parser

    @property
    def options(self):
        return self._options

    def _build(self):
        # deferred: the parser module imports this one
        from .parser import ArgumentParser, Options

        produced = self._factory()
        if isinstance(produced, ArgumentParser):
            parser, options = produced, None
        elif isinstance(produced, Options):
            parser, options = ArgumentParser(), produced
            parser.config.description(self._help)
        else:
            raise TypeError(f"factory of command {self._name!r} must return Options or an ArgumentParser")

        parser.config.inherit(self._parent.config.settings, program=f"{program_name(self._parent)} {self._name}")
        if options is not None:
            parser.add_arguments(options)
        return parser, options

    def dispatch(self, tokens, /):
        """
        Build the child parser and let it parse `tokens`.

        Returns
        - the child ParseResult (the caller merges it).
        """
        tokens = list(tokens)
        self._parser, self._options = self._build()
        logger.debug("command %r parsing %r", self._name, tokens)
        return self._parser.parse_args(tokens)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._name)


class CommandConfig:
    """
    Chainable handle returned by add_command().
    """

    def __init__(self, command, /):
        self._command = command

    @property
    def command(self):
        return self._command

    def help(self, text, /):
        if not isinstance(text, str):
            raise TypeError("help() argument must be a string")
        self._command._help = text.strip()
        return self


__all__ = (
    "Command",
    "CommandConfig",
)
