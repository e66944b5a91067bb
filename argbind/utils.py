"""
Argbind helpers shared by every module.

- Unset: the "argument not given" marker used for optional parameters where
  None is a legitimate value (a default of None, a namespace of None, ...).
- coalesce(value, default): swap Unset for a default, keep everything else.
- mirror(name): read-only property over a private "_name" field. Registry
  containers (lists of options, group tables) are handed out as tuples, dicts
  and frozensets built on the fly, so callers cannot edit a parser through them.

    >>> class Registry:
    ...     options = mirror("options")
    ...     def __init__(self):
    ...         self._options = ["--depth"]
    >>> Registry().options
    ('--depth',)
    >>> coalesce(Unset, 80), coalesce(0, 80)
    (80, 0)
"""
import functools
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker; a sealed, falsey singleton.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        # allows annotations and isinstance checks such as `int | Unset`
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` itself.

    Only the marker is replaced: None, 0 and empty strings pass through.
    """
    return default if object is Unset else object


def _immortalize(object):
    # strings are sequences too, but they are already immutable
    if isinstance(object, str):
        return object
    if isinstance(object, Mapping):
        return {key: _immortalize(value) for key, value in object.items()}
    if isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    if isinstance(object, Sequence):
        return tuple(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Build a property returning a detached copy of `self._<name>`.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    field = "_" + name

    def getter(self):
        return _immortalize(getattr(self, field))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)


Unset = UnsetType()


__all__ = (
    "coalesce",
    "mirror",
    "UnsetType",
    "Unset",
)
