r"""
Argbind argument records and their fluent configuration handles.

Overview
- Option: one registered argument. Options carry dashed names (-x and/or --long),
  positionals carry a single bare name kept in the long slot. Every record owns
  exactly one value slot and an arity window (min_args, max_args), where
  max_args == -1 means unbounded and max_args == 0 makes a pure flag.
- OptionGroup: named (case-insensitive) bucket of arguments; exclusive groups
  allow at most one assigned member, required groups at least one.
- OptionConfig / GroupConfig: chainable handles returned by the parser when an
  argument or a group is declared.
- AssignAction: hook executed before the slot write.
- ArgumentDescription / GroupDescription: read-only help records.

Arity
- nargs(n): exactly n values.
- minargs(n): at least n values, no upper bound.
- maxargs(n): at most n values.
Only one of the three may be used per argument.

Argument strings (used by describe() and by the help formatter)
    nargs(2)    -> "A A"
    minargs(1)  -> "BEES [BEES ...]"
    minargs(0)  -> "[C ...]"
    minargs(2)  -> "D D [D ...]"
    maxargs(3)  -> "[E {0..3}]"
    maxargs(1)  -> "[F]"
    nargs(0)    -> ""

Quick example:
    >>> parser.add_argument(store(settings, "depth", int), "-d", "--depth") \
    ...     .nargs(1).help("some depth").choices(["1", "2", "3"])
"""
from typing import NamedTuple

from .faults import ConfigurationError, InvalidChoiceError
from .utils import *
from .values import ListValue, Value


class AssignAction:
    """
    Hook executed before a raw value is written into a slot.

    assign() may rewrite the raw string (return the new string, it is then
    written the normal way) or handle the write itself (call value.set_value()
    as needed and return None). The base implementation passes the value
    through unchanged.
    """

    def assign(self, value, raw, /):
        return raw


class GroupDescription(NamedTuple):
    name: str = ""
    is_exclusive: bool = False
    is_required: bool = False


class ArgumentDescription(NamedTuple):
    """
    Help record for one argument, as returned by describe_argument().

    Fields
    - short_name: "-x" or "" (always "" for positionals).
    - long_name: "--long", the positional name, or "".
    - help: the raw help text.
    - required: the declared required flag.
    - arguments: the arity rendered with the metavar (see the module doc).
    - group: GroupDescription of the owning group (empty name when ungrouped).
    """
    short_name: str
    long_name: str
    help: str
    required: bool
    arguments: str
    group: GroupDescription = GroupDescription()

    @property
    def is_positional(self):
        return not self.short_name and not self.long_name.startswith("-")


class OptionGroup:
    """
    A named bucket of arguments.

    The name is stored lower-cased and identifies the group; exclusivity is
    fixed at creation. required only ever goes from False to True.
    """

    name = mirror("name")
    exclusive = mirror("exclusive")
    required = mirror("required")
    title = mirror("title")
    description = mirror("description")

    def __init__(self, name, /, exclusive=False):
        if not isinstance(name, str):
            raise TypeError("group name must be a string")
        if not (name := name.strip()):
            raise ConfigurationError("group name must not be empty")
        self._name = name.lower()
        self._exclusive = bool(exclusive)
        self._required = False
        self._title = ""
        self._description = ""

    @property
    def heading(self):
        """
        The label used in help output: the title when set, else the name.
        """
        return self._title or self._name

    def describe(self):
        return GroupDescription(self._name, self._exclusive, self._required)

    def __repr__(self):
        return "%s(%r, exclusive=%r, required=%r)" % (
            type(self).__name__, self._name, self._exclusive, self._required
        )


class Option:
    """
    One registered option or positional.

    The parser creates the record and fills the names; OptionConfig adjusts
    the rest. The scanner only talks to the record through the predicates
    below and set_value().
    """

    value = mirror("value")
    short_name = mirror("short_name")
    long_name = mirror("long_name")
    positional = mirror("positional")
    min_args = mirror("min_args")
    max_args = mirror("max_args")
    required = mirror("required")
    flag_value = mirror("flag_value")
    choices = mirror("choices")
    group = mirror("group")
    help = mirror("help")

    def __init__(self, value, /, *, positional=False):
        if not isinstance(value, Value):
            raise TypeError("argument destination must be a value slot")
        self._value = value
        self._positional = bool(positional)
        self._short_name = ""
        self._long_name = ""
        self._min_args = 0
        self._max_args = 0
        self._required = False
        self._flag_value = "1"
        self._choices = ()
        self._group = None
        self._metavar = ""
        self._help = ""
        self._action = None

    @property
    def name(self):
        """
        Canonical name: the long name when present, otherwise the short one.
        """
        return self._long_name or self._short_name

    @property
    def multiple(self):
        return isinstance(self._value, ListValue)

    @property
    def metavar(self):
        """
        The placeholder shown for each value.

        Positionals default to their own name; options default to the
        canonical name without dashes, upper-cased.
        """
        if self._metavar:
            return self._metavar
        if self._positional:
            return self.name
        return self.name.lstrip("-").upper()

    def has_name(self, name, /):
        return bool(name) and name in (self._short_name, self._long_name)

    # -- arity ------------------------------------------------------------------

    def _set_nargs(self, count, /):
        self._min_args = max(0, count)
        self._max_args = self._min_args

    def _set_min_args(self, count, /):
        self._min_args = max(0, count)
        self._max_args = -1

    def _set_max_args(self, count, /):
        self._min_args = 0
        self._max_args = max(0, count)

    def accepts_any_arguments(self):
        return self._min_args > 0 or self._max_args != 0

    def will_accept_argument(self):
        return self._max_args < 0 or self._value.option_assign_count < self._max_args

    def needs_more_arguments(self):
        return self._value.option_assign_count < self._min_args

    def was_assigned(self):
        """
        True if the slot was assigned through any option sharing it.
        """
        return self._value.assign_count > 0

    def was_assigned_through_this_option(self):
        return self._value.option_assign_count > 0

    # -- slot plumbing ----------------------------------------------------------

    def set_value(self, raw, /):
        """
        Validate the raw string against the choices and write it.

        Raises
        - InvalidChoiceError: raw is not one of the declared choices (the slot
          is marked with a bad argument first).
        - ConversionError: the slot converter rejected raw.
        """
        if self._choices and raw not in self._choices:
            self._value.mark_bad_argument()
            raise InvalidChoiceError(raw, self._choices)

        if self._action is not None:
            if (raw := self._action(self._value, raw)) is None:
                return

        self._value.set_value(raw)

    def reset_value(self):
        self._value.reset()

    def on_option_started(self):
        self._value.on_option_started()

    # -- help -------------------------------------------------------------------

    @property
    def arguments(self):
        """
        The arity rendered with the metavar, empty for flags.
        """
        if not self.accepts_any_arguments():
            return ""

        metavar = self.metavar
        parts = [metavar] * self._min_args
        if self._max_args < 0:
            parts.append(f"[{metavar} ...]")
        elif self._max_args - self._min_args == 1:
            parts.append(f"[{metavar}]")
        elif self._max_args > self._min_args:
            parts.append(f"[{metavar} {{0..{self._max_args - self._min_args}}}]")
        return " ".join(parts)

    def describe(self):
        return ArgumentDescription(
            short_name=self._short_name,
            long_name=self._long_name,
            help=self._help,
            required=self._required,
            arguments=self.arguments,
            group=self._group.describe() if self._group is not None else GroupDescription(),
        )

    def __repr__(self):
        return "%s(%r, min_args=%d, max_args=%d, required=%r)" % (
            type(self).__name__, self.name, self._min_args, self._max_args, self._required
        )

    def __rich_repr__(self):
        yield "short_name", self._short_name, ""
        yield "long_name", self._long_name, ""
        yield "min_args", self._min_args
        yield "max_args", self._max_args
        yield "required", self._required, False
        yield "group", self._group, None


class OptionConfig:
    """
    Chainable handle to configure a freshly registered argument.

    Every method returns the handle itself so calls can be chained:
        parser.add_argument(slot, "--bees").minargs(1).metavar("WORK")
    """

    def __init__(self, option, /):
        self._option = option
        self._count_was_set = False

    @property
    def option(self):
        return self._option

    def _ensure_count_was_not_set(self):
        if self._count_was_set:
            raise ConfigurationError("only one of nargs, minargs and maxargs can be used")
        self._count_was_set = True

    def nargs(self, count, /):
        if not isinstance(count, int):
            raise TypeError("nargs() argument must be an integer")
        self._ensure_count_was_not_set()
        self._option._set_nargs(count)
        return self

    def minargs(self, count, /):
        if not isinstance(count, int):
            raise TypeError("minargs() argument must be an integer")
        self._ensure_count_was_not_set()
        self._option._set_min_args(count)
        return self

    def maxargs(self, count, /):
        if not isinstance(count, int):
            raise TypeError("maxargs() argument must be an integer")
        self._ensure_count_was_not_set()
        self._option._set_max_args(count)
        return self

    def required(self, flag=True, /):
        self._option._required = bool(flag)
        return self

    def help(self, text, /):
        if not isinstance(text, str):
            raise TypeError("help() argument must be a string")
        self._option._help = text
        return self

    def metavar(self, name, /):
        if not isinstance(name, str):
            raise TypeError("metavar() argument must be a string")
        self._option._metavar = name.strip()
        return self

    def flag_value(self, value, /):
        if not isinstance(value, str):
            raise TypeError("flag_value() argument must be a string")
        self._option._flag_value = value
        return self

    def choices(self, choices, /):
        """
        Restrict the accepted raw strings. An empty collection lifts the restriction.
        """
        if isinstance(choices, str):
            raise TypeError("choices() argument must be a collection of strings")
        choices = tuple(choices)
        if not all(isinstance(choice, str) for choice in choices):
            raise TypeError("choices must be strings")
        self._option._choices = choices
        return self

    def action(self, action, /):
        """
        Install an AssignAction (or any callable taking (value, raw)).
        """
        if isinstance(action, AssignAction):
            action = action.assign
        elif not callable(action):
            raise TypeError("action() argument must be an AssignAction or a callable")
        self._option._action = action
        return self


class GroupConfig:
    """
    Chainable handle returned by add_group() and add_exclusive_group().
    """

    def __init__(self, group, /):
        self._group = group

    @property
    def group(self):
        return self._group

    def required(self, flag=True, /):
        # once required, a group stays required
        self._group._required = self._group._required or bool(flag)
        return self

    def title(self, text, /):
        if not isinstance(text, str):
            raise TypeError("title() argument must be a string")
        self._group._title = text.strip()
        return self

    def description(self, text, /):
        if not isinstance(text, str):
            raise TypeError("description() argument must be a string")
        self._group._description = text.strip()
        return self


__all__ = (
    "AssignAction",
    "GroupDescription",
    "ArgumentDescription",
    "OptionGroup",
    "Option",
    "OptionConfig",
    "GroupConfig",
)
