"""
Pennant flags: the Flag record and the FlagSet registry.

Scope
- Flag: one declared option (name, shorthand, usage, value box, metadata).
- FlagSet: owns the flags of one parsing session.
  • registration: var(), add_flag(), the typed declarers (fs.int(), fs.string_slice(), ...),
    func(), text(), add_flagset(), merge().
  • parsing: parse(), parse_all(); the walker yields events, the registry assigns them.
  • queries: lookup(), lookup_shorthand(), changed(), is_set(), get_<kind>(), args(), visit().
  • metadata: set_annotation(), mark_deprecated(), mark_shorthand_deprecated(), mark_hidden().
  • usage: flag_usages(), flag_usages_wrapped(), print_defaults().

Faults
- parse and registration faults go through FlagSet.trigger(), which applies the
  registry's ErrorHandling mode (raise, render and exit, render and raise).
- API misuse (bad shorthand, bad nargs) raises TypeError/ValueError directly.
"""
import copy

from rich.console import Console

from . import usage as _usage
from . import values
from .faults import (
    DeprecatedFlagWarning,
    DeprecatedShorthandWarning,
    DelegatedFlagError,
    FaultCode,
    FlagException,
    FlagTypeError,
    InvalidValueError,
    NameConflictError,
    ShorthandConflictError,
    UndefinedFlagError,
    getdoc,
    trigger,
)
from .policy import ArgCount, ErrorHandling, Tolerance
from .resolver import identity, resolve_long, resolve_short
from .utils import Unset, coalesce, mirror, ordinal, rename
from .walker import Walker


class Flag:
    """
    one declared option.

    fields
    - name: long name as registered (display name).
    - shorthand: "" or a single character (a word outside POSIX mode).
    - usage: help text; a `back-quoted` word names the value placeholder.
    - value: the value box (set/get/__str__/typename).
    - default: str(value) at registration time.
    - no_value_default: value used when the flag appears without one (Unset when
      the flag requires a value).
    - changed: set at least once by parsing or FlagSet.set().
    - annotations, deprecated, shorthand_deprecated, hidden: metadata.
    - delimiter: optional character introducing an attached value for an
      optional-value shorthand (`-o:value`).
    - nargs: tokens a value-requiring sequence flag consumes, one element each
      (-1: until the next flag).
    - validators: callables run on value.get() after each assignment.
    """

    def __init__(
            self,
            name,
            shorthand,
            usage,
            value,
            /,
            *,
            no_value_default=Unset,
            delimiter=Unset,
            nargs=Unset,
            validators=(),
    ):
        self.name = name
        self.shorthand = shorthand
        self.usage = usage
        self.value = value
        self.default = str(value)
        self.no_value_default = no_value_default
        self.changed = False
        self.annotations = {}
        self.deprecated = ""
        self.shorthand_deprecated = ""
        self.hidden = False
        self.delimiter = delimiter
        self.nargs = nargs
        self.validators = tuple(validators)

    @property
    def typename(self):
        return self.value.typename

    def is_bool_flag(self):
        return bool(getattr(self.value, "is_bool_flag", lambda: False)())

    def display(self):
        """the flag as written in messages: "-s, --name" or "--name"."""
        if self.shorthand and not self.shorthand_deprecated:
            return "-%s, --%s" % (self.shorthand, self.name)
        return "--%s" % self.name

    def __copy__(self):
        flag = object.__new__(type(self))
        flag.__dict__.update(self.__dict__)
        flag.annotations = {key: list(entries) for key, entries in self.annotations.items()}
        return flag

    def __repr__(self):
        return "<Flag %s=%r>" % (self.display(), str(self.value))

    def __rich_repr__(self):
        yield "name", self.name
        yield "shorthand", self.shorthand, ""
        yield "typename", self.typename
        yield "value", str(self.value)
        yield "default", self.default
        yield "changed", self.changed, False
        yield "hidden", self.hidden, False


def _check_options(value, shorthand, posix, delimiter, nargs, validators):
    if not callable(getattr(value, "set", None)) or not isinstance(getattr(value, "typename", None), str):
        raise TypeError("flag value must provide set() and a typename")
    if not isinstance(shorthand, str):
        raise TypeError("shorthand must be a string")
    if posix and len(shorthand) > 1:
        raise ValueError("%r shorthand is more than one ASCII character" % shorthand)
    if delimiter is not Unset and (not isinstance(delimiter, str) or len(delimiter) != 1):
        raise ValueError("delimiter must be a single character")
    if nargs is not Unset:
        if not isinstance(nargs, int) or isinstance(nargs, bool) or nargs == 0 or nargs < -1:
            raise ValueError("nargs must be a positive integer or -1")
        if not callable(getattr(value, "set_many", None)):
            raise TypeError("nargs is only supported by sequence values")
    if not all(map(callable, validators)):
        raise TypeError("validators must be callable")


class FlagSet:
    """
    registry of flags for one parsing session.

    construction
    - FlagSet(name="", handling=ErrorHandling.CONTINUE, /, **options)
      • posix (True): shorthands are single characters.
      • interspersed (True): flags may follow positional arguments.
      • sort_flags (True): visit()/visit_all()/usage in name order, else insertion order.
      • abbreviations (False): a unique prefix of a long name selects the flag.
      • output (stderr console): rich Console (or a text stream) for usage, errors, warnings.
      • usage (print_defaults with a header): zero-argument callable run on errors and help.
      • arguments (ArgCount.any()): positional argument count requirement.
      • colorful / fancy (False): styled / panel rendering of faults.

    lifecycle
    - register flags, parse() (re-parsing is additive), then query.
    """

    def __init__(
            self,
            name="",
            handling=ErrorHandling.CONTINUE,
            /,
            *,
            posix=True,
            interspersed=True,
            sort_flags=True,
            abbreviations=False,
            output=Unset,
            usage=Unset,
            arguments=Unset,
            colorful=False,
            fancy=False,
    ):
        self.name = name
        self.handling = ErrorHandling(handling)
        self.tolerance = Tolerance()
        self.posix = posix
        self.interspersed = interspersed
        self.sort_flags = sort_flags
        self.abbreviations = abbreviations
        self.arguments = coalesce(arguments, ArgCount.any())
        self.colorful = colorful
        self.fancy = fancy
        self.usage = coalesce(usage, self.default_usage)
        self.output = output

        self._normalize = identity
        self._formal = {}
        self._shorthands = {}
        self._conflicts = {}
        self._actual = {}
        self._args = []
        self._dash = -1
        self._parsed = False

    parsed = mirror("parsed")

    @property
    def output(self):
        """console receiving usage text, rendered faults and warnings."""
        return self._output

    @output.setter
    def output(self, output):
        if output is Unset:
            output = Console(stderr=True)
        elif not isinstance(output, Console):
            output = Console(file=output, highlight=False, soft_wrap=True)
        self._output = output

    # --- faults ---

    def trigger(self, fault, /, **options):
        """
        surface a fault under this registry's error handling mode.
        """
        options = {
            "prog": self.name,
            "output": self.output,
            "usage": self.usage,
            "colorful": self.colorful,
            "fancy": self.fancy,
        } | self.handling.options() | options
        trigger(fault, **options)

    # --- normalization ---

    def set_normalize_func(self, normalize, /):
        """
        install `normalize(flagset, name) -> str` and re-key every registered flag.

        Parameters
        - normalize: callable(flagset, name) -> str
          maps a name as written (at registration or on the command line) to
          the key it is stored and looked up under.

        Effects
        - every registered flag, and every flag already set, is stored again
          under its new key; Flag.name (the display name) is not changed.
        - flags whose keys collide afterwards stay registered, and any lookup
          of the shared key raises NameConflictError.
        - later registrations and lookups go through `normalize`.

        Raises
        - TypeError: `normalize` is not callable.

        Examples
            fs.set_normalize_func(lambda fs, name: name.replace("_", "-"))
            fs.parse(["--dry_run"])  # sets the flag registered as "dry-run"
        """
        if not callable(normalize):
            raise TypeError("normalize function must be callable")
        self._normalize = normalize
        formal, conflicts = {}, {}
        for flag in self._flags():
            key = normalize(self, flag.name)
            if key in conflicts:
                conflicts[key].append(flag)
            elif key in formal:
                conflicts[key] = [formal.pop(key), flag]
            else:
                formal[key] = flag
        actual = {}
        for flag in self._actual.values():
            if (key := normalize(self, flag.name)) in formal:
                actual[key] = flag
        self._formal, self._conflicts, self._actual = formal, conflicts, actual

    def get_normalize_func(self):
        return self._normalize

    def _key(self, name):
        return self._normalize(self, name)

    def _flags(self):
        yield from self._formal.values()
        for flags in self._conflicts.values():
            yield from flags

    # --- registration ---

    def var(self, value, name, shorthand="", usage="", /, *, no_value_default=Unset, delimiter=Unset, nargs=Unset, validators=()):
        """
        register `value` under `name` and return the new Flag.

        Parameters
        - value: the value box; it must provide set() and a typename (see
          pennant.values for the built-in kinds).
        - name: long name, used as written for display and normalized for lookup.
        - shorthand: "" or a single character (any word when posix is off).
        - usage: help text; a `back-quoted` word names the value placeholder.
        - no_value_default: raw value used when the flag is given without one.
          values reporting is_bool_flag() get "true" when it is left Unset.
        - delimiter: single character introducing an attached value for an
          optional-value shorthand (`-o:value`).
        - nargs: tokens consumed by a value-requiring sequence flag, handed to
          value.set_many() one element per token; -1 takes tokens until the
          next flag-like one.
        - validators: callables run on value.get() after every assignment; an
          exception they raise becomes an InvalidValueError.

        Raises
        - TypeError / ValueError: malformed options (API misuse, raised directly).
        - NameConflictError / ShorthandConflictError: the name or shorthand is
          taken; raised or reported under the error handling mode.
        """
        _check_options(value, shorthand, self.posix, delimiter, nargs, validators)
        flag = Flag(
            name,
            shorthand,
            usage,
            value,
            no_value_default=no_value_default,
            delimiter=delimiter,
            nargs=nargs,
            validators=validators,
        )
        if no_value_default is Unset and flag.is_bool_flag():
            flag.no_value_default = "true"
        self.add_flag(flag)
        return flag

    def add_flag(self, flag, /):
        """
        register an existing Flag; name and shorthand collisions are faults.
        """
        key = self._key(flag.name)
        if key in self._formal or key in self._conflicts:
            return self.trigger(NameConflictError(
                "flag redefined: %s" % flag.name,
                title="name conflict",
                code=FaultCode.NAME_CONFLICT,
                hint="%r is already registered in %r" % (flag.name, self.name),
                name=flag.name,
                docs=getdoc(FaultCode.NAME_CONFLICT),
            ), usage=None)

        if flag.shorthand:
            if self.posix and len(flag.shorthand) > 1:
                raise ValueError("%r shorthand is more than one ASCII character" % flag.shorthand)
            if (used := self._shorthands.get(flag.shorthand)) is not None:
                return self.trigger(ShorthandConflictError(
                    "unable to redefine %r shorthand in %r flagset: it's already used for %r flag" % (
                        flag.shorthand, self.name, used.name
                    ),
                    title="shorthand conflict",
                    code=FaultCode.SHORTHAND_CONFLICT,
                    hint="pick another shorthand for %r" % flag.name,
                    char=flag.shorthand,
                    name=flag.name,
                    docs=getdoc(FaultCode.SHORTHAND_CONFLICT),
                ), usage=None)
            self._shorthands[flag.shorthand] = flag

        self._formal[key] = flag

    def add_flagset(self, other, /):
        """
        add copies of the flags of `other` whose names are not registered yet.
        """
        if other is None:
            return
        for flag in other._formal.values():
            if self.lookup(flag.name) is None:
                self.add_flag(copy.copy(flag))

    def merge(self, *others):
        """
        add copies of every flag of `others`; any name or shorthand collision is
        a fault under this registry's error handling mode.

        Parameters
        - others: FlagSet instances, merged in order.

        Effects
        - each flag is copied, so metadata changes on this registry do not reach
          the source; the value box is shared with the source flag.
        - flags merged before a collision stay registered.

        Raises
        - NameConflictError / ShorthandConflictError: a name or shorthand is
          already registered here (or in an earlier set of `others`).

        See also
        - add_flagset(), which skips names that are taken instead.
        """
        for other in others:
            for flag in other._formal.values():
                self.add_flag(copy.copy(flag))

    def func(self, name, callback, /, shorthand="", usage="", **options):
        """
        a flag that calls `callback(raw)` on every occurrence.
        """
        return self.var(values.Func(callback), name, shorthand, usage, **options)

    def text(self, name, shorthand="", default=Unset, usage="", /, *, parse, format=str, **options):
        """
        a flag holding any object, with caller supplied parse/format callables.
        """
        value = values.Text(default, parse=parse, format=format)
        self.var(value, name, shorthand, usage, **options)
        return value

    def get_text(self, name, /):
        flag = self._require(name)
        if not isinstance(flag.value, values.Text):
            raise self._mismatch(flag, "text")
        return flag.value.get()

    # --- metadata ---

    def set_annotation(self, name, key, entries, /):
        self._require(name, "set annotation").annotations[key] = list(entries)

    def mark_deprecated(self, name, message, /):
        """
        deprecate a flag: it is hidden from usage and using it prints `message`.
        """
        flag = self._require(name, "mark deprecated")
        if not message:
            raise ValueError("deprecated message for flag %r must be set" % name)
        flag.deprecated = message
        flag.hidden = True

    def mark_shorthand_deprecated(self, name, message, /):
        flag = self._require(name, "mark shorthand deprecated")
        if not message:
            raise ValueError("deprecated message for flag %r must be set" % name)
        flag.shorthand_deprecated = message

    def mark_hidden(self, name, /):
        self._require(name, "mark hidden").hidden = True

    # --- parsing ---

    def parse(self, arguments, /):
        """
        walk `arguments` (not including the program name) and assign every flag.
        """
        self._parse(arguments, None)

    def parse_all(self, arguments, visitor, /):
        """
        like parse(), calling `visitor(flag, raw)` after every assignment.

        Parameters
        - arguments: tokens to walk, not including the program name.
        - visitor: callable(flag, raw)
          `raw` is the string that was assigned, or a tuple of strings for a
          flag declared with nargs. Its return value is ignored.

        Raises
        - TypeError: `visitor` is not callable.
        - DelegatedFlagError: the visitor raised; the original exception is
          its cause. FlagException subclasses pass through unchanged.
        - every fault parse() raises, under the error handling mode.

        Examples
            seen = []
            fs.parse_all(["-v", "--name=x"], lambda flag, raw: seen.append((flag.name, raw)))
            # seen == [("verbose", "true"), ("name", "x")]
        """
        if not callable(visitor):
            raise TypeError("parse_all() visitor must be callable")
        self._parse(arguments, visitor)

    def _parse(self, arguments, visitor):
        if isinstance(arguments, str):
            raise TypeError("arguments must be a sequence of strings, not a string")
        self._parsed = True
        walker = Walker(self, arguments)
        try:
            try:
                for event in walker:
                    self._dispatch(event, visitor)
            finally:
                self._args = walker.positionals
                self._dash = walker.dash
            self.arguments.check(len(self._args))
        except FlagException as fault:
            self.trigger(fault)

    def _dispatch(self, event, visitor):
        flag = event.flag
        if flag.shorthand_deprecated and event.input == "-" + flag.shorthand:
            self._warn(DeprecatedShorthandWarning(
                "Flag shorthand -%s has been deprecated, %s" % (flag.shorthand, flag.shorthand_deprecated),
                title="deprecated shorthand",
                code=FaultCode.DEPRECATED_SHORTHAND,
                hint="use --%s instead" % flag.name,
                char=flag.shorthand,
                docs=getdoc(FaultCode.DEPRECATED_SHORTHAND),
            ))
        self._assign(flag, event.value)
        if visitor is None:
            return
        try:
            visitor(flag, event.value)
        except FlagException:
            raise
        except Exception as exception:
            raise DelegatedFlagError(
                "something occurred in flag %r at %s position: %s" % (event.input, ordinal(event.index), exception),
                title="delegated flag error",
                code=FaultCode.DELEGATED_ERROR,
                hint="check the parse_all() visitor for flag --%s" % flag.name,
                name=flag.name,
                cause=exception,
                docs=getdoc(FaultCode.DELEGATED_ERROR),
            ) from exception

    def _assign(self, flag, raw):
        if flag.deprecated:
            self._warn(DeprecatedFlagWarning(
                "Flag --%s has been deprecated, %s" % (flag.name, flag.deprecated),
                title="deprecated flag",
                code=FaultCode.DEPRECATED_FLAG,
                hint=flag.deprecated,
                name=flag.name,
                docs=getdoc(FaultCode.DEPRECATED_FLAG),
            ))
        try:
            if isinstance(raw, tuple):
                flag.value.set_many(raw)
            else:
                flag.value.set(raw)
            for validator in flag.validators:
                validator(getattr(flag.value, "get", lambda: flag.value)())
        except Exception as exception:
            raise InvalidValueError(
                'invalid argument "%s" for "%s" flag: %s' % (
                    " ".join(raw) if isinstance(raw, tuple) else raw, flag.display(), exception
                ),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                hint="use a valid %s for --%s" % (flag.typename, flag.name),
                name=flag.name,
                raw=raw,
                cause=exception,
                docs=getdoc(FaultCode.INVALID_VALUE),
            ) from exception
        flag.changed = True
        self._actual[self._key(flag.name)] = flag

    def _warn(self, warning):
        self.trigger(warning, shell=True, deferred=False)

    def set(self, name, raw, /):
        """
        assign `raw` to the flag `name` as if it was parsed.
        """
        if (flag := self.lookup(name)) is None:
            raise UndefinedFlagError(
                "no such flag -%s" % name,
                title="undefined flag",
                code=FaultCode.UNDEFINED_FLAG,
                name=name,
                docs=getdoc(FaultCode.UNDEFINED_FLAG),
            )
        self._assign(flag, raw)

    # --- queries ---

    def lookup(self, name, /):
        """the flag registered under `name` (exact, normalized), or None."""
        return resolve_long(self, name, abbreviate=False)

    def lookup_shorthand(self, shorthand, /):
        """the flag registered under `shorthand`, or None; see resolver.resolve_short."""
        return resolve_short(self, shorthand)

    def _require(self, name, action="access", /):
        if (flag := self.lookup(name)) is None:
            raise UndefinedFlagError(
                "flag accessed but not defined: %s" % name if action == "access"
                else "unable to %s of flag %r: flag does not exist" % (action, name),
                title="undefined flag",
                code=FaultCode.UNDEFINED_FLAG,
                name=name,
                docs=getdoc(FaultCode.UNDEFINED_FLAG),
            )
        return flag

    def _mismatch(self, flag, typename):
        return FlagTypeError(
            "trying to get %s value of flag of type %s" % (typename, flag.typename),
            title="flag type mismatch",
            code=FaultCode.FLAG_TYPE,
            hint="use get_%s() style accessors matching %r" % (flag.typename, flag.name),
            name=flag.name,
            docs=getdoc(FaultCode.FLAG_TYPE),
        )

    def changed(self, name, /):
        """whether `name` was set; False for unknown names."""
        return (flag := self.lookup(name)) is not None and flag.changed

    def is_set(self, name, /):
        """whether `name` was assigned during parsing or by set()."""
        return self._key(name) in self._actual

    def args(self):
        return list(self._args)

    def arg(self, index, /):
        """the positional argument at `index`, "" when out of range."""
        if 0 <= index < len(self._args):
            return self._args[index]
        return ""

    def narg(self):
        return len(self._args)

    def nflag(self):
        return len(self._actual)

    def args_len_at_dash(self):
        return self._dash

    def has_flags(self):
        return bool(self._formal or self._conflicts)

    def has_available_flags(self):
        return any(not flag.hidden for flag in self._flags())

    def _ordered(self, flags):
        if self.sort_flags:
            return [flag for _, flag in sorted(flags.items(), key=lambda item: item[0])]
        return list(flags.values())

    def visit_all(self, callback, /):
        """call `callback(flag)` for every registered flag."""
        flags = dict(self._formal)
        for key, conflicted in self._conflicts.items():
            flags.update(("%s#%d" % (key, position), flag) for position, flag in enumerate(conflicted))
        for flag in self._ordered(flags):
            callback(flag)

    def visit(self, callback, /):
        """call `callback(flag)` for every flag set so far."""
        for flag in self._ordered(self._actual):
            callback(flag)

    # --- usage ---

    def flag_usages(self):
        return _usage.flag_usages(self)

    def flag_usages_wrapped(self, columns, /):
        return _usage.flag_usages(self, columns)

    def print_defaults(self):
        self.output.out(self.flag_usages(), end="", highlight=False)

    def default_usage(self):
        self.output.out("Usage of %s:" % self.name if self.name else "Usage:", highlight=False)
        self.print_defaults()

    def __rich_repr__(self):
        yield "name", self.name
        yield "handling", self.handling
        yield "flags", len(self._formal)
        yield "parsed", self._parsed, False

    def __repr__(self):
        return "<FlagSet %r with %d flag(s)>" % (self.name, len(self._formal))


def _declarer(kind):
    @rename(kind)
    def declare(self, name, shorthand="", default=Unset, usage="", /, **options):
        value = values.make(kind, default)
        if kind == "count":
            options.setdefault("no_value_default", "+1")
        self.var(value, name, shorthand, usage, **options)
        return value

    declare.__doc__ = "declare a %s flag and return its value box." % kind
    return declare


def _getter(kind, typename):
    @rename("get_" + kind)
    def get(self, name, /):
        flag = self._require(name)
        if flag.typename != typename:
            raise self._mismatch(flag, typename)
        return flag.value.get()

    get.__doc__ = "the current %s value of the flag `name`." % kind
    return get


for _kind, _info in (values.SCALARS | values.SEQUENCES | values.MAPPINGS).items():
    setattr(FlagSet, _kind, _declarer(_kind))
    setattr(FlagSet, "get_" + _kind, _getter(_kind, _info.typename))
del _kind, _info


__all__ = (
    "Flag",
    "FlagSet",
)
