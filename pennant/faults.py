"""
Errors and warnings raised while declaring flags or parsing arguments.

Every fault is built as `Fault("plain message", **options)`. The options carry
the context a report needs (code, title, hint, prog, the offending name or
token) together with the switches that decide how the fault surfaces:

- shell: print the fault on `output` (a rich Console) instead of raising it.
- deferred: in shell mode, raise after printing instead of leaving the process.
- usage: callable run right after printing (usually FlagSet.usage).
- colorful / fancy: styled text / a rich Panel around the report.

A printed report reads

    [ prog — 11112 | Unknown Flag ]
    unknown flag: --verbos
     → did you mean --verbose? (first position)

and str(fault) is the bare message line only.

A host program may define in __main__:
- __codes__: {FaultCode: label} shown instead of the number,
- __docs__: {FaultCode: text} returned by getdoc(),
- __styles__: style overrides keyed like Fault.palette,
- __prog__: program name for the header.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    stable numeric fault identifiers.

    - 100xx: help
    - 111xx: token and value errors
    - 112xx: registry errors
    - 121xx: deprecation warnings
    """
    HELP_REQUESTED = 10001

    MALFORMED_FLAG = 11111
    UNKNOWN_FLAG = 11112
    UNKNOWN_SHORTHAND = 11113
    MISSING_VALUE = 11117
    INVALID_VALUE = 11123
    ARG_COUNT = 11125
    DELEGATED_ERROR = 11131

    NAME_CONFLICT = 11201
    SHORTHAND_CONFLICT = 11202
    UNDEFINED_FLAG = 11203
    FLAG_TYPE = 11204

    DEPRECATED_FLAG = 12112
    DEPRECATED_SHORTHAND = 12113

    def normalize(self):
        """the label for this code: the host's __codes__ entry, else the number."""
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


def _option(name):
    return property(lambda self: self.options.get(name), doc="the fault's %r option" % name)


class Fault:
    """
    message + options behaviour shared by FlagException and FlagWarning.
    """
    palette = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        if self.message is Unset:
            return self.options.get("title", "")
        return self.message

    def __replace__(self, *unused, **overrides):
        assert not unused, "__replace__() takes keyword arguments only"
        return type(self)(self.message, **(dict(self.options) | overrides))

    def __rich__(self):
        options = self.options
        main = __import__("__main__")
        colorful = options.get("colorful", False)
        styles = defaultdict(str, self.palette | getattr(main, "__styles__", {}))

        def part(fragment, role):
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment or ""), styles[role] if colorful else "")

        code = options.get("code")
        header = Text.assemble(
            "[ ",
            part(getattr(main, "__prog__", None) or options.get("prog") or "pennant", "prog"),
            " — ",
            part("?" if code is None else code.normalize(), "code"),
            " | ",
            part(str(options.get("title", "")).title(), "title"),
            " ]",
        )
        lines = [part(str(self), "message")]
        if hint := options.get("hint"):
            lines.append(Text.assemble(part(" → ", "arrow"), part(hint, "hint")))

        if not options.get("fancy"):
            return Group(header, *lines)
        width = None
        if "ratio" in options:
            width = int((self._output().width - 4) * options["ratio"])
        return Panel(Group(*lines), title=header, title_align="left", width=width)

    def _output(self):
        return self.options.get("output") or console


class FlagException(Fault, Exception):
    """
    base of every error raised by pennant.

    outside shell mode __trigger__ raises; in shell mode it prints the report,
    runs the usage callback, then exits with status 2 (or raises when deferred).
    """
    palette = {
        "prog": "bold white",
        "code": "bold red",
        "title": "bold magenta",
        "message": "default",
        "arrow": "dim green",
        "hint": "italic green",
    }

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        self._output().print(self)
        if usage := self.options.get("usage"):
            usage()
        if self.options.get("deferred"):
            raise self from None
        sys.exit(2)


class MalformedFlagError(FlagException):
    token = _option("token")


class UnknownFlagError(FlagException):
    name = _option("name")
    token = _option("token")


class MissingValueError(FlagException):
    name = _option("name")


class InvalidValueError(FlagException):
    name = _option("name")
    raw = _option("raw")
    cause = _option("cause")


class NameConflictError(FlagException):
    name = _option("name")


class ShorthandConflictError(FlagException):
    char = _option("char")


class ArgCountError(FlagException):
    expected_kind = _option("expected_kind")
    expected_n = _option("expected_n")
    actual_n = _option("actual_n")


class DelegatedFlagError(FlagException):
    name = _option("name")
    cause = _option("cause")


class UndefinedFlagError(FlagException, LookupError):
    name = _option("name")


class FlagTypeError(FlagException, TypeError):
    name = _option("name")


class HelpRequested(FlagException):
    """
    --help or -h with no such flag registered.

    the usage callback always runs; shell mode then exits with status 0.
    """

    def __trigger__(self):
        if usage := self.options.get("usage"):
            usage()
        if self.options.get("shell") and not self.options.get("deferred"):
            sys.exit(0)
        raise self from None


class FlagWarning(Fault, Warning):
    """
    base of deprecation notices: printed in shell mode, else sent to `warnings`.
    """
    palette = {
        "prog": "bold white",
        "code": "bold yellow",
        "title": "bold yellow",
        "message": "default",
        "arrow": "dim green",
        "hint": "italic green",
    }

    def __trigger__(self):
        if self.options.get("shell"):
            self._output().print(self)
        else:
            warnings.warn(self, stacklevel=len(inspect.stack()))


class DeprecatedFlagWarning(FlagWarning):
    name = _option("name")


class DeprecatedShorthandWarning(FlagWarning):
    char = _option("char")


def trigger(fault, /, **options):
    """
    surface `fault` after merging `options` into it.

    `fault` is anything with __replace__(**options) and __trigger__(), which is
    every FlagException and FlagWarning.
    """
    for method in ("__replace__", "__trigger__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """the host's __docs__ entry for `code`, or None."""
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FlagException",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingValueError",
    "InvalidValueError",
    "NameConflictError",
    "ShorthandConflictError",
    "ArgCountError",
    "DelegatedFlagError",
    "UndefinedFlagError",
    "FlagTypeError",
    "HelpRequested",
    "FlagWarning",
    "DeprecatedFlagWarning",
    "DeprecatedShorthandWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
