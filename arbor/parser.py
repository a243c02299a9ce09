"""
Arbor parser layer: register options and commands, then parse a token stream.

What this module provides
- ParserNode: owns a name → OptionValue registry, a name → ParserNode command
  registry, a PositionalCollector, optional help/version text and a
  navigational reference to its parent. Parsing fills the tree in a single
  forward pass over a shared TokenCursor.
- parse(node, tokens): convenience runner mirroring ParserNode.parse.

Quick start
    from arbor import ParserNode

    root = ParserNode("usage: tool [--verbose] <command>", "1.0.0")
    root.add_flag("verbose v")
    show = root.command("show", "usage: tool show [--depth N] <name>...")
    show.add_integer("depth d", 1)

    root.parse(["-v", "show", "--depth", "3", "eth0"])
    root.found("verbose")          # True
    root.command_name              # "show"
    show.get("depth"), list(show.args)  # 3, ["eth0"]

Dispatch (per token, while option parsing is active)
1. "--"            → every remaining token of this node becomes positional.
2. "--name[=value]"→ long option; "--help"/"--version" are built-ins when the
                     corresponding text was supplied and no option of that
                     name was registered.
3. "-" / "-5"      → positional (bare dash and negative numbers).
4. "-abc" / "-n=v" → bundled short options / single short option with value.
5. command name    → the command node parses the rest of the stream, then its
                     callback runs with the command node.
6. "help <cmd>"    → print the command's help text.
7. anything else   → positional.

Faults are raised as ParseError subclasses. With shell=True they are printed
as one diagnostic line on stderr and the process exits with status 1.
Help and version output go to stdout and exit with status 0.
"""
import os.path
import shlex
import sys
from collections.abc import Iterable
from enum import Enum

from rich.console import Console, Group
from rich.text import Text

from .cursor import TokenCursor
from .faults import *
from .positionals import PositionalCollector
from .utils import *
from .values import Kind, OptionValue


class State(Enum):
    """
    dispatch state of one node's pass over the stream.

    POSITIONAL_ONLY is entered irreversibly on a literal "--".
    """
    ACTIVE = "active"
    POSITIONAL_ONLY = "positional-only"


def _styles():
    return {
        "help-text": "",
        "version-text": "bold #00E6FF",
        "section-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "command-name": "bold #FF4D94",
        "none": "dim",
    } | getattr(__import__("__main__"), "__styles__", {})


class ParserNode:
    """
    A parser for one level of the command tree.

    Lifecycle
    - Created before parsing; options and commands are registered on it.
    - Mutated only during the single parse pass (values appended, positionals
      appended, command match recorded).
    - Read afterwards by the caller.

    Parameters
    - helptext: str | Unset
      Text printed by "--help" (and by "help <name>" from the parent node).
    - version: str | Unset
      Text printed by "--version".
    - name: str | Unset (keyword-only)
      Display name; defaults to the program name for a root node and to the
      first alias for a command node.
    - shell, colorful: bool | Unset (keyword-only)
      Runtime flags. Unset inherits from the parent (or False at the root).

    Notes
    - Option names and command names live in separate namespaces.
    - Every alias of an option resolves to the same OptionValue.
    - A node tree supports one parse pass at a time.
    """

    __introspectable__ = (
        "name",
        "helptext",
        "version",
        "options",
        "commands",
        "parent",
        "shell",
        "colorful",
    )

    options = mirror("options")
    commands = mirror("commands")

    def __init__(self, helptext=Unset, version=Unset, /, *, name=Unset, shell=Unset, colorful=Unset):
        for label, object in (("helptext", helptext), ("version", version), ("name", name)):
            if not isinstance(object, str | Unset):
                raise TypeError(f"parser-node {label!r} must be a string")
        if isinstance(name, str) and not (name := name.strip()):
            raise ValueError("parser-node 'name' cannot be empty")

        self._name = coalesce(name, os.path.basename(sys.argv[0]) or "prog")
        self._helptext = coalesce(helptext)
        self._version = coalesce(version)
        self._shell = bool(coalesce(shell, False))
        self._colorful = bool(coalesce(colorful, False))
        self._parent = None
        self._callback = None
        self._options = {}
        self._commands = {}
        self._args = PositionalCollector()
        self._command = None

    # ── Introspection ──────────────────────────────────────────────────────

    @property
    def name(self):
        return self._name

    @property
    def helptext(self):
        return self._helptext

    @property
    def version(self):
        return self._version

    @property
    def shell(self):
        return self._shell

    @property
    def colorful(self):
        return self._colorful

    @property
    def parent(self):
        """
        The node this command was registered on, or None for a root node.
        """
        return self._parent

    @property
    def root(self):
        """
        Return the topmost node of the tree.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root to this node as a tuple.
        """
        path = [node := self]
        while node._parent:
            path.append(node := node._parent)
        return tuple(reversed(path))

    # ── Registration ───────────────────────────────────────────────────────

    def _register(self, name, option):
        """
        Bind every alias in 'name' to one OptionValue, enforcing unique aliases.
        """
        names = aliases(name)
        for alias in names:
            if alias.startswith("-") or "=" in alias:
                raise ValueError(f"parser-node option name {alias!r} cannot start with '-' or contain '='")
            if alias in self._options:
                raise ValueError(f"parser-node option name {alias!r} is already in use")
        self._options.update(dict.fromkeys(names, option))
        return option

    def add_flag(self, name, /):
        return self._register(name, OptionValue.scalar(Kind.FLAG))

    def add_string(self, name, default="", /):
        return self._register(name, OptionValue.scalar(Kind.STRING, default))

    def add_integer(self, name, default=0, /):
        return self._register(name, OptionValue.scalar(Kind.INTEGER, default))

    def add_float(self, name, default=0.0, /):
        return self._register(name, OptionValue.scalar(Kind.FLOAT, default))

    def add_flag_list(self, name, /):
        return self._register(name, OptionValue.multiple(Kind.FLAG))

    def add_string_list(self, name, /, greedy=False):
        return self._register(name, OptionValue.multiple(Kind.STRING, greedy=greedy))

    def add_integer_list(self, name, /, greedy=False):
        return self._register(name, OptionValue.multiple(Kind.INTEGER, greedy=greedy))

    def add_float_list(self, name, /, greedy=False):
        return self._register(name, OptionValue.multiple(Kind.FLOAT, greedy=greedy))

    def command(self, name, helptext=Unset, callback=Unset, /):
        """
        Register a command and return its (new) node.

        Parameters
        - name: str
          One or more whitespace-separated aliases; all resolve to one node.
        - helptext: str | Unset
          Shown by "<cmd> --help" and by "help <cmd>".
        - callback: Callable[[ParserNode], Any] | Unset
          Invoked with the command node once it has parsed the rest of the stream.

        The command node inherits the runtime flags (shell, colorful).
        """
        names = aliases(name)
        for alias in names:
            if alias.startswith("-"):
                raise ValueError(f"parser-node command name {alias!r} cannot start with '-'")
            if alias in self._commands:
                raise ValueError(f"parser-node command name {alias!r} is already in use")

        node = type(self)(helptext, name=names[0], shell=self._shell, colorful=self._colorful)
        node._parent = self
        if callback is not Unset:
            node.bind(callback)
        self._commands.update(dict.fromkeys(names, node))
        return node

    def bind(self, callback, /):
        """
        Register the callback run after this command node has parsed.

        Can be set only once; returns the callable so it works as a decorator:

            @root.command("show").bind
            def show(node): ...
        """
        if not callable(callback):
            raise TypeError("parser-node callback must be callable")
        if self._callback is not None:
            raise TypeError("parser-node callback cannot be overridden")
        self._callback = callback
        return callback

    # ── Queries ────────────────────────────────────────────────────────────

    def option(self, name, /):
        """
        Return the OptionValue registered under 'name' (any alias).

        Raises UnregisteredNameError for names never registered on this node.
        """
        try:
            return self._options[name]
        except KeyError:
            raise UnregisteredNameError(name) from None

    def found(self, name, /):
        return self.option(name).found

    def get(self, name, /):
        return self.option(name).get()

    def get_list(self, name, /):
        return self.option(name).get_list()

    def count(self, name, /):
        return len(self.option(name))

    def clear(self, name, /):
        self.option(name).clear()

    def set(self, name, value, /):
        return self.option(name).set(value)

    @property
    def args(self):
        return self._args

    @property
    def has_args(self):
        return len(self._args) > 0

    @property
    def has_command(self):
        return self._command is not None

    @property
    def command_name(self):
        return self._command[0] if self._command else None

    @property
    def command_node(self):
        return self._command[1] if self._command else None

    # ── Faults and displays ────────────────────────────────────────────────

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this node's runtime flags merged in.
        """
        trigger(fault, **options, node=self, shell=self._shell, colorful=self._colorful)

    def _display(self, text, style):
        console = Console()
        styles = _styles()
        console.print(Text(text, styles.get(style, "") if self._colorful else ""), soft_wrap=True)
        sys.exit(0)

    def _helper(self):
        """
        Print this node's help text to stdout and exit successfully.
        """
        self._display(self._helptext or "", "help-text")

    def _versioner(self):
        """
        Print this node's version text to stdout and exit successfully.
        """
        self._display(self._version or "", "version-text")

    # ── Dispatch ───────────────────────────────────────────────────────────

    def _append(self, option, switch, token):
        """
        Coerce and append one raw token, tagging coercion faults with the switch.
        """
        try:
            option.append(token)
        except ParseError as fault:
            self.trigger(fault, switch=switch)

    def _consume(self, switch, option, cursor):
        """
        Resolve one option switch that was given without an inline value.

        Flags store True. Other kinds require a value-looking next token; greedy
        lists keep consuming while the next token still looks like a value.
        """
        if option.kind is Kind.FLAG:
            option.append()
            option.found = True
            return

        if not cursor.looks_like_value():
            return self.trigger(MissingOptionValueError(
                "missing argument for the %s option" % switch,
                title="missing option value",
                code=FaultCode.MISSING_OPTION_VALUE,
                token=switch,
                docs=getdoc(FaultCode.MISSING_OPTION_VALUE),
            ))

        self._append(option, switch, cursor.next())
        option.found = True

        if option.greedy:
            while cursor.looks_like_value():
                self._append(option, switch, cursor.next())

    def _unrecognized(self, switch):
        return self.trigger(UnrecognizedOptionError(
            "%s is not a recognised option" % switch,
            title="unrecognized option",
            code=FaultCode.UNRECOGNIZED_OPTION,
            token=switch,
            docs=getdoc(FaultCode.UNRECOGNIZED_OPTION),
        ))

    def _parse_equals(self, prefix, body, *, short=False):
        """
        Resolve "--name=value" or "-n=value"; the value is split at the first '='.
        """
        name, _, value = body.partition("=")
        switch = prefix + name

        if short and len(name) != 1 or name not in self._options:
            return self._unrecognized(switch)
        option = self._options[name]

        if option.kind is Kind.FLAG:
            return self.trigger(FlagAssignmentError(
                "invalid format for boolean flag %s" % switch,
                title="flag cannot take a value",
                code=FaultCode.FLAG_ASSIGNMENT,
                token=switch,
                docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
            ))

        if not value:
            return self.trigger(MissingOptionValueError(
                "missing argument for the %s option" % switch,
                title="missing option value",
                code=FaultCode.MISSING_OPTION_VALUE,
                token=switch,
                docs=getdoc(FaultCode.MISSING_OPTION_VALUE),
            ))

        self._append(option, switch, value)
        option.found = True

    def _parse_long(self, body, cursor):
        if "=" in body:
            return self._parse_equals("--", body)

        # registered options take precedence over the built-in --help/--version
        if body in self._options:
            return self._consume("--" + body, self._options[body], cursor)
        if body == "help" and self._helptext is not None:
            return self._helper()
        if body == "version" and self._version is not None:
            return self._versioner()
        return self._unrecognized("--" + body)

    def _parse_short(self, body, cursor):
        if "=" in body:
            return self._parse_equals("-", body, short=True)

        # "-abc x y" behaves as "-a -b -c x": each character is resolved and
        # consumes its value before the next one is looked at
        for char in body:
            if char not in self._options:
                return self._unrecognized("-" + char)
            self._consume("-" + char, self._options[char], cursor)

    def _parse_command(self, name, cursor):
        node = self._commands[name]
        self._command = (name, node)
        node._parse(cursor)
        if node._callback is not None:
            node._callback(node)

    def _parse_help(self, cursor):
        if not cursor.has_next():
            return self.trigger(MissingHelpTargetError(
                "the help command requires an argument",
                title="missing help target",
                code=FaultCode.MISSING_HELP_TARGET,
                token="help",
                docs=getdoc(FaultCode.MISSING_HELP_TARGET),
            ))

        name = cursor.next()
        try:
            node = self._commands[name]
        except KeyError:
            return self.trigger(UnrecognizedCommandError(
                "%r is not a recognised command" % name,
                title="unrecognized command",
                code=FaultCode.UNRECOGNIZED_COMMAND,
                token=name,
                docs=getdoc(FaultCode.UNRECOGNIZED_COMMAND),
            ))
        node._helper()

    def _parse(self, cursor):
        """
        Run the dispatch loop on this node until the shared cursor is exhausted.
        """
        state = State.ACTIVE

        while cursor.has_next():
            token = cursor.next()

            if state is State.POSITIONAL_ONLY:
                self._args.append(token)
            elif token == "--":
                state = State.POSITIONAL_ONLY
            elif token.startswith("--"):
                self._parse_long(token[2:], cursor)
            elif token.startswith("-") and (len(token) == 1 or token[1] in "0123456789"):
                self._args.append(token)
            elif token.startswith("-"):
                self._parse_short(token[1:], cursor)
            elif token in self._commands:
                self._parse_command(token, cursor)
            elif token == "help":
                self._parse_help(cursor)
            else:
                self._args.append(token)

    def parse(self, tokens=Unset, /):
        """
        Parse a token stream into this node tree and return the node.

        Parameters
        - tokens:
          • Unset: read sys.argv[1:].
          • str: shell-like string, split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Raises
        - ParseError subclasses on invalid input (unless shell=True, in which
          case the fault is printed and the process exits with status 1).
        - SystemExit(0) after printing help or version text.
        - TypeError when tokens is not one of the accepted shapes.
        """
        if tokens is Unset:
            tokens = sys.argv[1:]
        elif isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif isinstance(tokens, Iterable):
            tokens = list(tokens)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._parse(TokenCursor(tokens))
        return self

    # ── Representation ─────────────────────────────────────────────────────

    def __rich__(self):
        """
        Render the resolved state: options with their values, positionals and
        the matched command.
        """
        styles = _styles()

        def text(fragment, style):
            return Text(str(fragment), styles.get(style, "") if self._colorful else "")

        renders = [text("Options:", "section-label")]
        if self._options:
            for name, option in self._options.items():
                renders.append(Text.assemble("  ", text(name, "option-name"), ": ", str(option)))
        else:
            renders.append(text("  [none]", "none"))

        renders.append(Text())
        renders.append(text("Arguments:", "section-label"))
        if self._args:
            renders.extend(Text("  %s" % token) for token in self._args)
        else:
            renders.append(text("  [none]", "none"))

        renders.append(Text())
        renders.append(text("Command:", "section-label"))
        if self._command:
            renders.append(Text.assemble("  ", text(self.command_name, "command-name")))
        else:
            renders.append(text("  [none]", "none"))

        return Group(*renders)

    def print(self):
        """
        Print the resolved state of this node to stdout.
        """
        Console().print(self, soft_wrap=True)

    def __rich_repr__(self):
        yield "name", self._name
        yield "helptext", self._helptext
        yield "version", self._version
        yield "options", tuple(self._options)
        yield "commands", tuple(self._commands)
        yield "parent", self._parent.name if self._parent else None
        yield "shell", self._shell
        yield "colorful", self._colorful

    def __repr__(self):
        return "parser-node(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def parse(node, tokens=Unset, /):
    """
    Convenience runner: parse tokens with a ParserNode and return it.

    Parameters
    - node: ParserNode
    - tokens: Unset | str | Iterable[str] (see ParserNode.parse)
    """
    if not isinstance(node, ParserNode):
        raise TypeError("parse() first argument must be a parser-node")
    return node.parse(tokens)


__all__ = (
    "ParserNode",
    "State",
    "parse",
)
