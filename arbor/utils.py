import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    internal singleton sentinel representing an "unset" value.

    intent
    - used by the internal API to distinguish "not provided" from a user-supplied
      value (including None, "", 0 or other falsy values that are valid option defaults).
    - although this class is importable, it is intended for internal use only.

    behavior
    - truthiness: bool(Unset) is False.
    - identity: Unset is a process-wide singleton (see __new__).
    - display: repr(Unset) -> "Unset".
    - final: subclassing is forbidden to preserve semantics (see __init_subclass__).
    """

    def __or__(self, other, /):
        """
        support UnsetType | T in isinstance checks (internal convenience only).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        support T | UnsetType in isinstance checks (internal convenience only).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        return the singleton instance (process-wide).
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        # pickling resolves back to the module singleton
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsy values like None, 0, "" or False are preserved as-is; only Unset
    is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(False, True)        -> False
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> decorator

    Purely cosmetic: keeps generated accessors readable in tracebacks and reprs.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Return a shallow read-only view of a container.

    - Sequence (non-string) → tuple
    - Mapping → MappingProxyType (live, read-only)
    - Set → frozenset
    - anything else → unchanged
    """
    if isinstance(object, Sequence) and not isinstance(object, (str, bytes, bytearray)):
        return tuple(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" from the instance and returns a
    read-only view for container types, so registries cannot be mutated
    through the public API.

    Example
    - Given self._options, declare options = mirror("options").
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


def aliases(text, /):
    """
    Split a registration name into its aliases.

    A name string may hold several whitespace-separated aliases that all bind
    to the same value ("verbose v" → ("verbose", "v")). Order is preserved;
    duplicates inside one string are rejected.

    Raises
    - TypeError: when text is not a string.
    - ValueError: when no alias is present or one is repeated.
    """
    if not isinstance(text, str):
        raise TypeError("aliases() argument must be a string")
    if not (names := tuple(re.split(r"\s+", text.strip()))) or not names[0]:
        raise ValueError("aliases() argument must contain at least one name")
    if len(set(names)) != len(names):
        raise ValueError("aliases() argument %r repeats a name" % text)
    return names


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None or another falsy object is a meaningful value
but "no input" must still be distinguishable. Pair with coalesce(...).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "aliases",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
