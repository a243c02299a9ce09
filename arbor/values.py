"""
Arbor option values: typed, append-only value stores for registered options.

Overview
- Kind: the four option kinds (flag, string, integer, float) and their coercion.
- OptionValue: one registered option. Every alias of the option resolves to
  the same OptionValue object, so a value set through one alias is observable
  through all of them.
- to_integer / to_float: textual coercion shared by options and positionals.

Coercion rules
- string: passed through unchanged.
- integer: optional sign, then 0x/0X hexadecimal, 0o/0O octal, 0b/0B binary,
  a C-style leading-zero octal, or decimal. Leading whitespace is tolerated.
  Any trailing characters make the literal malformed. The result must fit in a
  signed 64-bit integer.
- float: decimal or exponential literal (plus inf/infinity/nan). Trailing
  characters make the literal malformed. Overflow to infinity, or underflow of
  a non-zero literal to zero, is out of range.
- flag: never parses text; presence appends True.

Scalar options are seeded with their default at registration time, so the
scalar accessor (last entry) always has something to return. List options
start empty.
"""
import math
import re
from enum import Enum

from .faults import MalformedNumericLiteralError, OutOfRangeNumericLiteralError, FaultCode
from .utils import Unset

INTEGER_MIN = -2 ** 63
INTEGER_MAX = 2 ** 63 - 1

_INTEGER = re.compile(r"""
    \s*
    (?P<sign>[+-]?)
    (?:
        0[xX](?P<hex>[0-9a-fA-F]+)
      | 0[oO](?P<oct>[0-7]+)
      | 0[bB](?P<bin>[01]+)
      | (?P<legacy>0[0-7]*)
      | (?P<dec>[1-9][0-9]*)
    )
""", re.VERBOSE)

_FLOAT = re.compile(r"""
    \s*
    (?P<sign>[+-]?)
    (?:
        (?P<mantissa>[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?
      | (?P<special>inf(?:inity)?|nan)
    )
""", re.VERBOSE | re.IGNORECASE)


def _malformed(token, what):
    return MalformedNumericLiteralError(
        "cannot parse %r as %s" % (token, what),
        title="malformed numeric literal",
        code=FaultCode.MALFORMED_NUMERIC_LITERAL,
        token=token,
    )


def _out_of_range(token):
    return OutOfRangeNumericLiteralError(
        "%r is out of range" % token,
        title="out of range numeric literal",
        code=FaultCode.OUT_OF_RANGE_NUMERIC_LITERAL,
        token=token,
    )


def to_integer(token, /):
    """
    Parse a textual integer, accepting the standard base prefixes.

    Raises
    - MalformedNumericLiteralError: no number, or trailing characters remain.
    - OutOfRangeNumericLiteralError: the value does not fit in a signed 64-bit integer.
    """
    match = _INTEGER.match(token)
    if not match or match.end() != len(token):
        raise _malformed(token, "an integer")

    # int() refuses decimal strings past the interpreter's digit limit
    try:
        if match["hex"]:
            value = int(match["hex"], 16)
        elif match["oct"]:
            value = int(match["oct"], 8)
        elif match["bin"]:
            value = int(match["bin"], 2)
        elif match["legacy"]:
            value = int(match["legacy"], 8)
        else:
            value = int(match["dec"], 10)
    except ValueError:
        raise _out_of_range(token) from None

    if match["sign"] == "-":
        value = -value
    if not INTEGER_MIN <= value <= INTEGER_MAX:
        raise _out_of_range(token)
    return value


def to_float(token, /):
    """
    Parse a decimal or exponential floating-point literal.

    Raises
    - MalformedNumericLiteralError: no number, or trailing characters remain.
    - OutOfRangeNumericLiteralError: the literal overflows, or a non-zero
      literal underflows to zero.
    """
    match = _FLOAT.match(token)
    if not match or match.end() != len(token):
        raise _malformed(token, "a float")

    value = float(match.group().strip())

    if match["mantissa"] is not None:
        if math.isinf(value):
            raise _out_of_range(token)
        if value == 0.0 and match["mantissa"].strip("0.") != "":
            raise _out_of_range(token)
    return value


class Kind(Enum):
    """
    the kind of a registered option; fixed at registration time.
    """
    FLAG = "flag"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"

    @property
    def default(self):
        """
        the zero value used when a scalar option is registered without a default.
        """
        return {
            Kind.FLAG: False,
            Kind.STRING: "",
            Kind.INTEGER: 0,
            Kind.FLOAT: 0.0,
        }[self]

    def coerce(self, token, /):
        """
        convert a raw token to this kind (flags never parse text).
        """
        match self:
            case Kind.STRING:
                return token
            case Kind.INTEGER:
                return to_integer(token)
            case Kind.FLOAT:
                return to_float(token)
            case Kind.FLAG:
                raise TypeError("flag options do not take a textual value")

    def check(self, value, /):
        """
        validate an already-typed value against this kind and normalize it.

        booleans are never accepted as numbers, and integers are widened to
        float for float options.
        """
        match self:
            case Kind.FLAG if isinstance(value, bool):
                return value
            case Kind.STRING if isinstance(value, str):
                return value
            case Kind.INTEGER if isinstance(value, int) and not isinstance(value, bool):
                if not INTEGER_MIN <= value <= INTEGER_MAX:
                    raise ValueError("integer value %d is out of range" % value)
                return value
            case Kind.FLOAT if isinstance(value, int | float) and not isinstance(value, bool):
                return float(value)
        raise TypeError("%s option cannot hold %r" % (self.value, value))


class OptionValue:
    """
    The value store of one registered option.

    Attributes
    - kind: Kind (read-only; never changes after creation).
    - list: bool (read-only) whether the option was registered as a list.
    - greedy: bool (read-only) whether a list option consumes every following
      value-looking token instead of exactly one.
    - found: bool, set by the parser when the option is encountered.
    - values: tuple snapshot of the stored entries, in append order.

    Use the scalar()/multiple() constructors instead of calling the class directly.
    """

    def __init__(self, kind, /, *, list=False, greedy=False):
        if not isinstance(kind, Kind):
            raise TypeError("option-value 'kind' must be a kind")
        if greedy and not list:
            raise ValueError("option-value only list options can be greedy")
        if greedy and kind is Kind.FLAG:
            raise ValueError("option-value flag lists cannot be greedy")
        self._kind = kind
        self._list = bool(list)
        self._greedy = bool(greedy)
        self._values = []
        self.found = False

    @classmethod
    def scalar(cls, kind, default=Unset, /):
        """
        register a scalar option seeded with one default entry.
        """
        self = cls(kind)
        self._values.append(kind.check(kind.default if default is Unset else default))
        return self

    @classmethod
    def multiple(cls, kind, /, greedy=False):
        """
        register a list option with no entries.
        """
        return cls(kind, list=True, greedy=greedy)

    @property
    def kind(self):
        return self._kind

    @property
    def list(self):
        return self._list

    @property
    def greedy(self):
        return self._greedy

    @property
    def values(self):
        return tuple(self._values)

    def append(self, token=Unset, /):
        """
        coerce a raw token and append it; return the coerced value.

        flags take no token and append True. coercion failures propagate as
        MalformedNumericLiteralError / OutOfRangeNumericLiteralError and leave
        the store untouched.
        """
        if self._kind is Kind.FLAG:
            if token is not Unset:
                raise TypeError("flag options do not take a textual value")
            value = True
        else:
            if not isinstance(token, str):
                raise TypeError("option-value append() argument must be a string")
            value = self._kind.coerce(token)
        self._values.append(value)
        return value

    def set(self, value, /):
        """
        append an already-typed value (checked against the kind).
        """
        self._values.append(value := self._kind.check(value))
        return value

    def clear(self):
        """
        truncate the store to zero entries.
        """
        self._values.clear()

    def get(self):
        """
        return the last-appended entry.
        """
        try:
            return self._values[-1]
        except IndexError:
            raise IndexError("option-value has no entries") from None

    def get_list(self):
        """
        return a copy of every entry, in append order.
        """
        return list(self._values)

    def __len__(self):
        return len(self._values)

    def __str__(self):
        def render(value):
            if self._kind is Kind.FLAG:
                return "true" if value else "false"
            return str(value)
        return "[%s]" % ", ".join(map(render, self._values))

    def __repr__(self):
        return "option-value(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        yield "kind", self._kind.value
        yield "list", self._list
        yield "greedy", self._greedy
        yield "found", self.found
        yield "values", self._values


__all__ = (
    "Kind",
    "OptionValue",
    "to_integer",
    "to_float",
    "INTEGER_MIN",
    "INTEGER_MAX",
)
