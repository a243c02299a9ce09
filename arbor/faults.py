"""
Arbor faults (parse errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing parse
  error. Codes are grouped by domain to keep copy consistent and make logs and
  searches predictable.
- ParseError: base type that carries message + options and knows how to render
  itself as a single, friendly diagnostic line.
- UnregisteredNameError: access-time programmer error (querying a name that was
  never registered). Not a ParseError; it is never rendered, only raised.
- trigger(): central entry point to surface a fault (respecting shell/colorful).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The parser builds a fault and calls trigger(fault, **ctx).
- In non-shell mode the fault is raised so embedding callers can recover.
- In shell mode it is rendered on stderr via rich and the process exits with 1.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNRECOGNIZED_COMMAND, MISSING_HELP_TARGET
    - switches (1111x)
      • UNRECOGNIZED_OPTION, FLAG_ASSIGNMENT, MISSING_OPTION_VALUE
    - values (1112x)
      • MALFORMED_NUMERIC_LITERAL, OUT_OF_RANGE_NUMERIC_LITERAL

    normalize() allows host remapping to custom labels while keeping the
    numeric codes stable.
    """
    # --- routing errors ---
    UNRECOGNIZED_COMMAND         = 11101
    MISSING_HELP_TARGET          = 11103

    # --- switch errors ---
    UNRECOGNIZED_OPTION          = 11112
    FLAG_ASSIGNMENT              = 11113
    MISSING_OPTION_VALUE         = 11117

    # --- value errors ---
    MALFORMED_NUMERIC_LITERAL    = 11126
    OUT_OF_RANGE_NUMERIC_LITERAL = 11127

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ParseError(Exception):
    """
    base class of every user-facing parse fault.

    the message is a short, lowercased sentence ("--bogus is not a recognised
    option"); options carry structured context (code, title, token, node,
    shell, colorful) used by the renderer and by embedding callers.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message or "")

    @property
    def code(self):
        return self.options.get("code")

    @property
    def token(self):
        return self.options.get("token")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "error-label": "bold #FF4DA6",  # friendly pinky label
            "code": "#00E5FF dim",  # neon cyan fault code
            "error-message": "#C8C8D0",  # soft light gray message
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        node = self.options.get("node")
        prog = getattr(main, "__prog__", getattr(getattr(node, "root", None), "name", None))

        parts = []
        if prog:
            parts += [text(prog, "prog-name"), ": "]
        parts += [text("error", "error-label"), ": ", text(self.message, "error-message")]
        if isinstance(self.code, FaultCode):
            parts += [" ", text("[%s]" % self.code.normalize(), "code")]
        return Text.assemble(*parts)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self, soft_wrap=True)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnrecognizedOptionError(ParseError): ...
class UnrecognizedCommandError(ParseError): ...
class MissingOptionValueError(ParseError): ...
class FlagAssignmentError(ParseError): ...
class MalformedNumericLiteralError(ParseError): ...
class OutOfRangeNumericLiteralError(ParseError): ...
class MissingHelpTargetError(ParseError): ...


class UnregisteredNameError(KeyError):
    """
    raised when querying an option name that was never registered on a node.

    this is a programmer error, not a user error: it is never routed through
    trigger() and always propagates.
    """

    def __init__(self, name, /):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return "%r is not a registered option name" % self.name


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console and the process
      exits; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParseError",
    "UnrecognizedOptionError",
    "UnrecognizedCommandError",
    "MissingOptionValueError",
    "FlagAssignmentError",
    "MalformedNumericLiteralError",
    "OutOfRangeNumericLiteralError",
    "MissingHelpTargetError",
    "UnregisteredNameError",
    "trigger",
    "getdoc",
)
