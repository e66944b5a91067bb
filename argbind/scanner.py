"""
Argbind token scanner: the state machine that walks the argument vector.

States
- scanning: no option is active; free tokens go to the positionals.
- option active: the last started option still accepts values and has the
  first refusal on every free token.

Token classes
- a help name (exact match): stops the scan; the parser renders help.
- "--" (first occurrence): switch to ignore-options mode, consumed.
- any token in ignore-options mode: positional argument. The active option,
  if any, takes nothing more and is closed at the end of the stream.
- "--name" / "--name=value": long option, optionally with an inline value.
- "-x": short option.
- "-abc": a run of short options, each started in turn ("-x=5" is the run
  "-x", "-=", "-5").
- anything else (including a lone "-"): free argument.

Inline values
- "name=value" splits on the first "=". An empty value ("--name=") counts
  as no value at all.

Free argument routing
1. The active option takes it when willing, and is closed once saturated.
2. Otherwise the active option is closed and, when every positional has met
   its minimum, a token naming a registered command dispatches that command
   with all the remaining tokens. Help names after the command belong to it.
3. Otherwise the current positional takes it, advancing through the
   positionals until one accepts.
4. Otherwise the token is recorded in ParseResult.ignored_arguments.

Conversion and choice failures are recorded as errors keyed by the option's
canonical name and never abort the scan.
"""
import logging

from .faults import ErrorCode, InvalidChoiceError, ParseResult

logger = logging.getLogger(__name__)


class Scanner:
    """
    One-shot scanner bound to the registry of a parser.

    Parameters
    - options: sequence of Option records (dashed names).
    - positionals: sequence of Option records, in declaration order.
    - commands: mapping of command name to Command (may be empty).
    - help_names: tokens that end the scan as a help request.

    A Scanner keeps per-parse state and must not be reused; the parser builds
    a fresh one for every parse_args() call after resetting every slot.
    """

    def __init__(self, options, positionals, commands=None, help_names=(), /):
        self._options = tuple(options)
        self._positionals = tuple(positionals)
        self._commands = dict(commands or {})
        self._help_names = frozenset(help_names)
        self._help_token = None
        self._ignore_options = False
        self._position = 0
        self._active = None
        self._result = ParseResult()

    @property
    def result(self):
        return self._result

    @property
    def help_token(self):
        """
        The help name that stopped the scan, or None.
        """
        return self._help_token

    def scan(self, tokens, /):
        """
        Scan every token and return the ParseResult (constraint validation
        is left to the parser).

        When a help name is met before any command is dispatched, scanning
        stops there and help_token is set; the partial result is meaningless.
        """
        tokens = list(tokens)
        for index, token in enumerate(tokens):
            if token in self._help_names:
                logger.debug("help name %r found at token %d", token, index)
                self._help_token = token
                return self._result

            if token == "--" and not self._ignore_options:
                logger.debug("'--' found, ignoring options from token %d", index)
                self._ignore_options = True
                continue

            if self._ignore_options:
                self._add_free_argument(token)
                continue

            if token.startswith("--"):
                self._start_option(token)
            elif token.startswith("-") and len(token) > 1:
                if len(token) == 2:
                    self._start_option(token)
                else:
                    logger.debug("expanding short option run %r", token)
                    for character in token[1:]:
                        self._start_option("-" + character)
            elif self._take_by_active_option(token):
                continue
            elif self._dispatch(token, tokens[index + 1:]):
                break
            else:
                self._add_free_argument(token)

        self._close_option()
        return self._result

    # -- options ----------------------------------------------------------------

    def _find_option(self, name):
        for option in self._options:
            if option.has_name(name):
                return option
        return None

    def _start_option(self, token):
        self._close_option()

        name, _, inline = token.partition("=")
        if (option := self._find_option(name)) is None:
            logger.debug("unknown option %r", name)
            self._result.add_error(name, ErrorCode.UNKNOWN_OPTION)
            return

        logger.debug("starting option %r", option.name)
        option.on_option_started()
        if option.will_accept_argument():
            self._active = option
        else:
            self._set_value(option, option.flag_value)

        if not inline:
            return

        if option.will_accept_argument():
            self._set_value(option, inline)
            if not option.will_accept_argument():
                self._close_option()
        else:
            self._result.add_error(name, ErrorCode.FLAG_PARAMETER)

    def _close_option(self):
        if (option := self._active) is not None:
            if option.needs_more_arguments():
                self._result.add_error(option.name, ErrorCode.MISSING_ARGUMENT)
            elif option.will_accept_argument() and not option.was_assigned_through_this_option():
                self._set_value(option, option.flag_value)
        self._active = None

    def _take_by_active_option(self, token):
        if (option := self._active) is None:
            return False

        if not option.will_accept_argument():
            self._close_option()
            return False

        self._set_value(option, token)
        if not option.will_accept_argument():
            self._close_option()
        return True

    # -- free arguments ---------------------------------------------------------

    def _dispatch(self, token, remaining):
        # the active option was either absent or closed by the caller
        self._close_option()
        if token not in self._commands:
            return False
        if any(positional.needs_more_arguments() for positional in self._positionals):
            return False

        command = self._commands[token]
        logger.debug("dispatching command %r with %d token(s)", token, len(remaining))
        nested = command.dispatch(remaining)
        self._result.errors.extend(nested.errors)
        self._result.ignored_arguments.extend(nested.ignored_arguments)
        self._result.command = command
        return True

    def _add_free_argument(self, token):
        while self._position < len(self._positionals):
            positional = self._positionals[self._position]
            if positional.will_accept_argument():
                self._set_value(positional, token)
                return
            self._position += 1

        logger.debug("ignoring free argument %r", token)
        self._result.ignored_arguments.append(token)

    # -- writes -----------------------------------------------------------------

    def _set_value(self, option, raw):
        try:
            option.set_value(raw)
        except InvalidChoiceError:
            logger.debug("invalid choice %r for %r", raw, option.name)
            self._result.add_error(option.name, ErrorCode.INVALID_CHOICE)
        except (ValueError, ArithmeticError):
            logger.debug("conversion of %r failed for %r", raw, option.name)
            self._result.add_error(option.name, ErrorCode.CONVERSION_ERROR)


__all__ = (
    "Scanner",
)
