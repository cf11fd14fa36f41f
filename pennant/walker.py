"""
Argument walker: the token state machine.

The walker consumes an argument list left to right and yields one Event per flag
occurrence, in token order. Positional arguments and the `--` index are kept on
the walker. It never coerces values; the registry dispatches each event as it is
yielded, so an error stops the walk right where it happened.

Token classes, in priority order
- after `--`: positional.
- `--`: records the positional count as the dash index.
- "", "-" or anything not starting with "-": positional (or, with interspersion
  off and a flag already seen, the start of the positional tail).
- `--name` / `--name=value`: long flag.
- `-abc`: shorthand cluster (or, outside POSIX mode, a shorthand word / long name).
"""
from collections import deque
from enum import Enum
from typing import NamedTuple

from .faults import (
    FaultCode,
    HelpRequested,
    MalformedFlagError,
    MissingValueError,
    UnknownFlagError,
    getdoc,
)
from .resolver import resolve_long, suggest
from .utils import Unset, UnsetType, ordinal


class State(Enum):
    READING = "reading"
    AFTER_DASHDASH = "after-dashdash"
    DONE = "done"


class Event(NamedTuple):
    """
    one assignment: `flag` receives `value`; `input` is how the flag was
    written ("--name", "-n") and `index` the 1-based token position.

    `value` is a string, or a tuple of the tokens a flag declared with nargs
    consumed (one element each).
    """
    flag: object
    value: str | tuple
    input: str
    index: int


def flaglike(token, /):
    """a token that would be read as a flag (or as `--`)."""
    return len(token) > 1 and token.startswith("-")


class Walker:
    """
    single-use iterator over the assignment events of one argument list.

    attributes
    - state: State of the machine (DONE once the input is exhausted).
    - positionals: positional arguments collected so far.
    - dash: positional count when `--` was met, -1 if never.
    """

    def __init__(self, flagset, arguments, /):
        self.flagset = flagset
        self.state = State.READING
        self.positionals = []
        self.dash = -1
        self._tokens = deque(arguments)
        self._index = 0
        self._seen = False

    def _next(self):
        self._index += 1
        return self._tokens.popleft()

    def __iter__(self):
        while self._tokens:
            token = self._next()

            if self.state is State.AFTER_DASHDASH:
                self.positionals.append(token)
                continue

            if token == "--":
                self.dash = len(self.positionals)
                self.state = State.AFTER_DASHDASH
                continue

            if not flaglike(token):
                self.positionals.append(token)
                if not self.flagset.interspersed and self._seen:
                    self.positionals.extend(self._tokens)
                    self._tokens.clear()
                continue

            self._seen = True
            if token.startswith("--"):
                yield from self._long(token)
            else:
                yield from self._short(token)

        self.state = State.DONE

    # --- long flags ---

    def _long(self, token):
        index = self._index
        name, equals, value = token[2:].partition("=")
        if not name or name[0] in "-=":
            raise MalformedFlagError(
                "bad flag syntax: %s" % token,
                title="malformed flag",
                code=FaultCode.MALFORMED_FLAG,
                hint="write long flags as --name or --name=value (%s position)" % ordinal(index),
                token=token,
                index=index,
                docs=getdoc(FaultCode.MALFORMED_FLAG),
            )

        if (flag := resolve_long(self.flagset, name)) is None:
            if name == "help":
                raise self._help(token)
            self._unknown("--" + name, token, name, strip=not equals)
            return

        if equals:
            yield Event(flag, value, "--" + name, index)
        elif flag.no_value_default is not Unset:
            yield Event(flag, flag.no_value_default, "--" + name, index)
        else:
            yield Event(flag, self._consume(flag, "flag needs an argument: --%s" % name, index), "--" + name, index)

    # --- shorthand flags ---

    def _short(self, token):
        index = self._index
        cluster = token[1:]
        flagset = self.flagset

        if not flagset.posix and len(cluster) > 1:
            word, equals, value = cluster.partition("=")
            if len(word) > 1:
                flag = flagset._shorthands.get(word)
                if flag is None and word[0] not in flagset._shorthands:
                    flag = resolve_long(flagset, word)
                if flag is not None:
                    if equals:
                        yield Event(flag, value, "-" + word, index)
                    elif flag.no_value_default is not Unset:
                        yield Event(flag, flag.no_value_default, "-" + word, index)
                    else:
                        message = "flag needs an argument: %r in -%s" % (word, cluster)
                        yield Event(flag, self._consume(flag, message, index), "-" + word, index)
                    return

        unknown = consumed = False
        position = 0
        while position < len(cluster):
            char, rest = cluster[position], cluster[position + 1:]
            input = "-" + char

            if (flag := flagset._shorthands.get(char)) is None:
                if char == "h":
                    raise self._help(token)
                self._unknown(input, token, char, strip=False, cluster=cluster)
                if rest.startswith("="):
                    break
                unknown = True
                position += 1
                continue

            if rest.startswith("="):
                yield Event(flag, rest[1:], input, index)
                break

            optional = flag.no_value_default is not Unset
            if optional and flag.delimiter and not flag.is_bool_flag() and rest.startswith(flag.delimiter):
                yield Event(flag, rest[len(flag.delimiter):], input, index)
                break

            if optional:
                yield Event(flag, flag.no_value_default, input, index)
                position += 1
                continue

            if rest:
                yield Event(flag, rest, input, index)
                break

            consumed = True
            yield Event(flag, self._consume(flag, "flag needs an argument: %r in -%s" % (char, cluster), index), input, index)
            break

        if unknown and not consumed:
            self._strip()

    # --- values ---

    def _consume(self, flag, message, index):
        """
        take the value of a flag written without one from the following token(s).
        """
        match flag.nargs:
            case UnsetType():
                if self._tokens:
                    return self._next()
                taken = []
            case -1:
                taken = []
                while self._tokens and not flaglike(self._tokens[0]):
                    taken.append(self._next())
            case count:
                taken = []
                while len(taken) < count and self._tokens and not flaglike(self._tokens[0]):
                    taken.append(self._next())
                if len(taken) < count:
                    taken = []

        if not taken:
            raise MissingValueError(
                message,
                title="missing value",
                code=FaultCode.MISSING_VALUE,
                hint=self._arity(flag, index),
                name=flag.name,
                index=index,
                docs=getdoc(FaultCode.MISSING_VALUE),
            )
        return tuple(taken)

    @staticmethod
    def _arity(flag, index):
        match flag.nargs:
            case -1:
                wanted = "one or more values"
            case int(count):
                wanted = "%d values" % count
            case _:
                wanted = "a value"
        return "flag --%s at %s position needs %s (for example: --%s=<%s>)" % (
            flag.name, ordinal(index), wanted, flag.name, flag.value.typename
        )

    # --- unknown flags ---

    def _unknown(self, input, token, name, *, strip, cluster=Unset):
        """
        fail on an unknown flag, or skip it when unknown flags are tolerated.
        """
        if self.flagset.tolerance.unknown_flags:
            if strip:
                self._strip()
            return

        index = self._index
        if cluster is Unset:
            message = "unknown flag: %s" % input
            suggestions = suggest(self.flagset, name)
        else:
            message = "unknown shorthand flag: %r in -%s" % (name, cluster)
            suggestions = []
        try:
            hint = "did you mean --%s? (%s position)" % (suggestions[0], ordinal(index))
        except IndexError:
            hint = "remove %r from the %s position or declare it first" % (input, ordinal(index))
        raise UnknownFlagError(
            message,
            title="unknown flag",
            code=FaultCode.UNKNOWN_FLAG if cluster is Unset else FaultCode.UNKNOWN_SHORTHAND,
            hint=hint,
            name=name,
            token=token,
            index=index,
            docs=getdoc(FaultCode.UNKNOWN_FLAG),
        )

    def _strip(self):
        """
        drop the bare token that follows a skipped unknown flag.
        """
        if self.flagset.tolerance.unknown_values and self._tokens and not self._tokens[0].startswith("-"):
            self._next()

    def _help(self, token):
        return HelpRequested(
            "help requested",
            title="help requested",
            code=FaultCode.HELP_REQUESTED,
            token=token,
            index=self._index,
            docs=getdoc(FaultCode.HELP_REQUESTED),
        )


__all__ = (
    "State",
    "Event",
    "Walker",
    "flaglike",
)
