"""
The process-wide registry.

`commandline()` creates a FlagSet named after the program on first use, with
ErrorHandling.EXIT. The module-level functions forward to it, so a small script
can declare and parse flags without building its own registry:

    import pennant.commandline as flags

    verbose = flags.bool("verbose", "v", False, "talk more")
    flags.parse()

Typed declarers and getters (flags.int(), flags.get_string_slice(), ...) are
forwarded by attribute lookup.
"""
import os
import sys

from .flags import FlagSet
from .policy import ErrorHandling
from .utils import Unset, coalesce

_commandline = None


def commandline():
    """the process-wide FlagSet, created on first use."""
    global _commandline
    if _commandline is None:
        _commandline = FlagSet(os.path.basename(sys.argv[0]), ErrorHandling.EXIT)
    return _commandline


def reset():
    """drop the process-wide FlagSet; the next access creates a fresh one."""
    global _commandline
    _commandline = None


def parse(arguments=Unset, /):
    """parse `arguments`, sys.argv[1:] by default."""
    commandline().parse(coalesce(arguments, sys.argv[1:]))


def parsed():
    return commandline().parsed


def var(value, name, shorthand="", usage="", /, **options):
    return commandline().var(value, name, shorthand, usage, **options)


def add_flagset(other, /):
    commandline().add_flagset(other)


def set(name, raw, /):
    commandline().set(name, raw)


def lookup(name, /):
    return commandline().lookup(name)


def changed(name, /):
    return commandline().changed(name)


def args():
    return commandline().args()


def arg(index, /):
    return commandline().arg(index)


def narg():
    return commandline().narg()


def nflag():
    return commandline().nflag()


def visit(callback, /):
    commandline().visit(callback)


def visit_all(callback, /):
    commandline().visit_all(callback)


def set_normalize_func(normalize, /):
    commandline().set_normalize_func(normalize)


def mark_deprecated(name, message, /):
    commandline().mark_deprecated(name, message)


def mark_shorthand_deprecated(name, message, /):
    commandline().mark_shorthand_deprecated(name, message)


def mark_hidden(name, /):
    commandline().mark_hidden(name)


def set_interspersed(interspersed, /):
    commandline().interspersed = interspersed


def print_defaults():
    commandline().print_defaults()


def __getattr__(name):
    # typed declarers, getters and any other FlagSet method
    if name.startswith("_") or not callable(getattr(FlagSet, name, None)):
        raise AttributeError("module %r has no attribute %r" % (__name__, name))
    return getattr(commandline(), name)


__all__ = (
    "commandline",
    "reset",
    "parse",
    "parsed",
    "var",
    "add_flagset",
    "set",
    "lookup",
    "changed",
    "args",
    "arg",
    "narg",
    "nflag",
    "visit",
    "visit_all",
    "set_normalize_func",
    "mark_deprecated",
    "mark_shorthand_deprecated",
    "mark_hidden",
    "set_interspersed",
    "print_defaults",
)
