"""
Argbind faults (errors and parse reports) and rendering.

Scope
- ErrorCode: canonical, stable numeric identifiers for every parse-time error.
  Codes are grouped by domain to keep logs and searches predictable.
- ConfigurationError and friends: raised immediately when argument declarations
  are inconsistent (a programming error, never user input).
- ConversionError / InvalidChoiceError: raised by value slots while writing a
  value; the scanner catches them and records a ParseError instead.
- ParseError / ParseResult: the structured outcome of one parse_args() call.
- ParserTerminated: raised by the "throw" exit mode.
- report(): render the errors of a ParseResult on a rich console.

Rendering
- ParseError, ParseResult and ParserTerminated implement __rich__.
- The palette can be overridden by a __styles__ mapping in __main__, and the
  numeric codes can be relabelled by a __codes__ mapping in __main__.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from enum import IntEnum
from typing import NamedTuple

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class ErrorCode(IntEnum):
    """
    canonical parse error codes (stable identifiers).

    grouping (by high-level domain)
    - options (1111x)
      • UNKNOWN_OPTION, FLAG_PARAMETER, MISSING_ARGUMENT, CONVERSION_ERROR, INVALID_CHOICE
    - constraints (1112x)
      • MISSING_OPTION, EXCLUSIVE_OPTION, MISSING_OPTION_GROUP
    - control (1113x)
      • HELP_REQUESTED
    """
    # --- option/value errors (1111x) ---
    UNKNOWN_OPTION              = 11111
    FLAG_PARAMETER              = 11112
    MISSING_ARGUMENT            = 11113
    CONVERSION_ERROR            = 11114
    INVALID_CHOICE              = 11115

    # --- constraint errors (1112x) ---
    MISSING_OPTION              = 11121
    EXCLUSIVE_OPTION            = 11122
    MISSING_OPTION_GROUP        = 11123

    # --- control flow (1113x) ---
    HELP_REQUESTED              = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_messages = {
    ErrorCode.UNKNOWN_OPTION: "unknown option %r",
    ErrorCode.FLAG_PARAMETER: "flag %r does not take a value",
    ErrorCode.MISSING_ARGUMENT: "%r expects more arguments",
    ErrorCode.CONVERSION_ERROR: "invalid value for %r",
    ErrorCode.INVALID_CHOICE: "invalid choice for %r",
    ErrorCode.MISSING_OPTION: "required option %r is missing",
    ErrorCode.EXCLUSIVE_OPTION: "%r cannot be combined with other options of its exclusive group",
    ErrorCode.MISSING_OPTION_GROUP: "one option of group %r is required",
    ErrorCode.HELP_REQUESTED: "help requested with %r",
}


def _styler():
    main = __import__("__main__")
    styles = defaultdict(str, {
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-label": "bold #FF4DA6",  # friendly pinky label
        "error-message": "#C8C8D0",  # soft light gray message
        "ignored-label": "bold #FFB400",  # amber for leftovers
        "ignored": "#D6D6DE",
    } | getattr(main, "__styles__", {}))
    return styles.__getitem__


# -- Configuration-time errors ------------------------------------------------

class ConfigurationError(ValueError):
    """
    Raised when argument declarations are invalid or inconsistent.
    """


class MixingGroupTypesError(ConfigurationError):
    """
    Raised when a group name is re-declared with the other exclusivity.
    """

    def __init__(self, group, /):
        super().__init__(f"mixing group types in group {group!r}")
        self.group = group


class RequiredExclusiveOptionError(ConfigurationError):
    """
    Raised when a required option is placed in an exclusive group.

    Such a declaration can never be satisfied, so it is reported before any
    token is scanned.
    """

    def __init__(self, option, group, /):
        super().__init__(f"option {option!r} is required in exclusive group {group!r}")
        self.option = option
        self.group = group


class UnknownArgumentError(ConfigurationError, LookupError):
    """
    Raised when describing an argument that was never registered.
    """

    def __init__(self, name, /):
        super().__init__(f"unknown option {name!r}")
        self.name = name


# -- Slot-level errors (caught by the scanner) ---------------------------------

class ConversionError(ValueError):
    """
    Raised by a value slot when its converter rejects the raw string.
    """

    def __init__(self, value, type, /):
        super().__init__(f"cannot convert {value!r} to {getattr(type, '__name__', type)}")
        self.value = value
        self.type = type


class InvalidChoiceError(ValueError):
    """
    Raised when a value is not one of the declared choices.
    """

    def __init__(self, value, choices, /):
        super().__init__(f"invalid choice: {value!r} (choose from {', '.join(map(repr, choices))})")
        self.value = value
        self.choices = tuple(choices)


# -- Parse outcome ----------------------------------------------------------------

class ParseError(NamedTuple):
    """
    One parse-time error: the option (or group, or token) it refers to and its code.
    """
    option: str
    code: ErrorCode

    @property
    def message(self):
        return _messages[self.code] % self.option

    def __rich__(self):
        style = _styler()
        return Text.assemble(
            ("error", style("error-label")),
            " [",
            (ErrorCode(self.code).normalize(), style("code")),
            "]: ",
            (self.message, style("error-message")),
        )


@dataclass
class ParseResult:
    """
    The outcome of a single parse_args() call.

    Attributes
    - ignored_arguments: free tokens that matched no positional, in order.
    - errors: ParseError entries in the order they were detected.
    - command: the dispatched sub-command, or None.

    A result is created fresh for every call and never merged across calls.
    """
    ignored_arguments: list[str] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    command: object = None

    @property
    def ok(self):
        """
        True when no error was recorded.
        """
        return not self.errors

    @property
    def help_requested(self):
        return any(error.code is ErrorCode.HELP_REQUESTED for error in self.errors)

    def add_error(self, option, code, /):
        self.errors.append(ParseError(option, code))

    def __rich__(self):
        style = _styler()
        renders = list(self.errors)
        if self.ignored_arguments:
            renders.append(Text.assemble(
                ("ignored", style("ignored-label")),
                ": ",
                (" ".join(self.ignored_arguments), style("ignored")),
            ))
        return Group(*renders)


class ParserTerminated(Exception):
    """
    Raised in the "throw" exit mode when parsing ends early (help requested).

    Attributes
    - argument: the token that triggered the termination.
    - code: the ErrorCode describing the condition.
    """

    def __init__(self, argument, code, /):
        super().__init__(argument, code)
        self.argument = argument
        self.code = code

    def __str__(self):
        return "parsing terminated by %r (%s)" % (self.argument, self.code.name.lower())

    def __rich__(self):
        return ParseError(self.argument, self.code).__rich__()


def report(result, /, output=Unset):
    """
    render the errors and ignored tokens of a ParseResult.

    contract
    - nothing is printed for a clean result (no errors, no ignored tokens).
    - output goes to the given rich console, or to the module stderr console.
    - the function only renders; it never terminates the process.
    """
    if not isinstance(result, ParseResult):
        raise TypeError("report() argument must be a parse result")
    if result.errors or result.ignored_arguments:
        coalesce(output, console).print(result)


__all__ = (
    "ErrorCode",
    "ConfigurationError",
    "MixingGroupTypesError",
    "RequiredExclusiveOptionError",
    "UnknownArgumentError",
    "ConversionError",
    "InvalidChoiceError",
    "ParseError",
    "ParseResult",
    "ParserTerminated",
    "report",
)
