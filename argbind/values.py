"""
Argbind value slots: the write targets behind every option and positional.

Overview
- Value: abstract slot that counts assignments and delegates the actual write.
  • assign_count: assignments through any option sharing this slot.
  • option_assign_count: assignments through the current option activation.
  • has_errors: set when a write was rejected (bad conversion, bad choice).
- VoidValue: accepts and discards everything (used by the help option).
- ConvertedValue: scalar slot, converts the raw string and overwrites the destination.
- ListValue: sequence slot, converts the raw string and appends to the destination.

Destinations
- A destination is a (target, attribute) pair owned by the caller. Mapping targets
  receive item assignment, any other object receives attribute assignment.
- store()/append() are the short spellings used when declaring arguments.

Converters
- converter(type) resolves the string converter used for a declared type and
  register_converter(type, function) installs a new one. bool understands the
  usual spellings ("1", "true", "yes", "on" and their negatives) so that the
  default flag value "1" binds to True.

Quick example:
    >>> class Settings: ...
    >>> settings = Settings()
    >>> slot = store(settings, "depth", int)
    >>> slot.set_value("12")
    >>> settings.depth
    12
"""
from abc import ABC, abstractmethod
from collections.abc import MutableMapping

from .faults import ConversionError
from .utils import mirror

_truthy = frozenset(("1", "true", "yes", "on"))
_falsy = frozenset(("0", "false", "no", "off"))


def _parse_bool(value, /):
    if (lowered := value.strip().lower()) in _truthy:
        return True
    if lowered in _falsy:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


_converters = {
    str: str,
    int: int,
    float: float,
    complex: complex,
    bool: _parse_bool,
}


def register_converter(type, function, /):
    """
    Install the string converter used for `type`.

    The function receives the raw token and returns the converted object. It
    signals bad input by raising ValueError, TypeError or ArithmeticError.
    """
    if not callable(function):
        raise TypeError("register_converter() second argument must be callable")
    _converters[type] = function


def converter(type, /):
    """
    Resolve the converter for `type`.

    Registered types use their registered function; any other callable is
    used directly (e.g. pathlib.Path or a user function).
    """
    try:
        return _converters[type]
    except (KeyError, TypeError):
        if not callable(type):
            raise TypeError(f"no converter for {type!r}") from None
        return type


def _write(target, attribute, object, /):
    if isinstance(target, MutableMapping):
        target[attribute] = object
    else:
        setattr(target, attribute, object)


def _read(target, attribute, /):
    if isinstance(target, MutableMapping):
        return target.get(attribute)
    return getattr(target, attribute, None)


class Value(ABC):
    """
    Abstract value slot.

    Subclasses implement _assign(raw) (and optionally _reset()); the base
    class keeps the counters the scanner and the validator rely on.

    Invariants
    - option_assign_count is zeroed by on_option_started() once per option
      activation, before anything is written for that activation.
    - reset() zeroes every counter and restores the destination default.
    """

    assign_count = mirror("assign_count")
    option_assign_count = mirror("option_assign_count")
    has_errors = mirror("has_errors")

    def __init__(self):
        self._assign_count = 0
        self._option_assign_count = 0
        self._has_errors = False

    def set_value(self, value, /):
        """
        Count the assignment, then convert and write the raw string.

        Raises
        - ConversionError: the converter rejected the string; the counters
          stay incremented and has_errors is set. Custom slots may raise any
          ValueError, which is treated the same way.
        """
        self._assign_count += 1
        self._option_assign_count += 1
        try:
            self._assign(value)
        except ValueError:
            self._has_errors = True
            raise

    def mark_bad_argument(self):
        """
        Count a rejected argument against the current activation only.

        The option then no longer looks unassigned, so its flag value will
        not be substituted when it is closed.
        """
        self._option_assign_count += 1
        self._has_errors = True

    def on_option_started(self):
        self._option_assign_count = 0

    def reset(self):
        self._assign_count = 0
        self._option_assign_count = 0
        self._has_errors = False
        self._reset()

    @abstractmethod
    def _assign(self, value, /):
        raise NotImplementedError

    def _reset(self):
        pass

    def __repr__(self):
        return "%s(assign_count=%d, option_assign_count=%d, has_errors=%r)" % (
            type(self).__name__, self._assign_count, self._option_assign_count, self._has_errors
        )


class VoidValue(Value):
    """
    Slot that accepts anything and stores nothing.
    """

    def _assign(self, value, /):
        pass


class ConvertedValue(Value):
    """
    Scalar slot: every assignment overwrites the destination.

    Parameters
    - target: object | MutableMapping owning the destination.
    - attribute: str, attribute or key receiving the value.
    - type: the declared type; its converter is resolved via converter().
    - default: value restored by reset().
    """

    def __init__(self, target, attribute, /, type=str, default=None):
        if not isinstance(attribute, str):
            raise TypeError("value attribute must be a string")
        super().__init__()
        self._target = target
        self._attribute = attribute
        self._type = type
        self._default = default
        self._convert = converter(type)

    @property
    def target(self):
        return self._target

    @property
    def attribute(self):
        return self._attribute

    @property
    def type(self):
        return self._type

    def convert(self, value, /):
        """
        Convert a raw string with the slot converter.

        Raises
        - ConversionError: wraps ValueError/TypeError/ArithmeticError.
        """
        try:
            return self._convert(value)
        except (ValueError, TypeError, ArithmeticError) as exception:
            raise ConversionError(value, self._type) from exception

    def _assign(self, value, /):
        _write(self._target, self._attribute, self.convert(value))

    def _reset(self):
        _write(self._target, self._attribute, self._default)


class ListValue(ConvertedValue):
    """
    Sequence slot: every assignment appends to the destination list.

    reset() empties the list in place when the destination already holds one,
    so references handed out to the caller stay valid across parses.
    """

    def __init__(self, target, attribute, /, type=str):
        super().__init__(target, attribute, type, None)

    def _items(self):
        items = _read(self._target, self._attribute)
        if not isinstance(items, list):
            _write(self._target, self._attribute, items := [])
        return items

    def _assign(self, value, /):
        # convert first: a rejected value must not create or touch the list
        converted = self.convert(value)
        self._items().append(converted)

    def _reset(self):
        self._items().clear()


def store(target, attribute, /, type=str, default=None):
    """
    Build a scalar slot writing `attribute` of `target`.
    """
    return ConvertedValue(target, attribute, type, default)


def append(target, attribute, /, type=str):
    """
    Build a list slot appending to `attribute` of `target`.
    """
    return ListValue(target, attribute, type)


__all__ = (
    "Value",
    "VoidValue",
    "ConvertedValue",
    "ListValue",
    "store",
    "append",
    "converter",
    "register_converter",
)
