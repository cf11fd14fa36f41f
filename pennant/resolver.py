"""
Name resolution for flag tokens.

Responsibilities
- normalization: run the registry's pluggable normalize function over a name.
- abbreviations: the unique-prefix table for a fixed word list.
- long and shorthand lookups used by the walker and by the query API.

The resolver owns no state: every function reads the FlagSet it is given.
"""
import difflib
from collections import Counter

from .faults import FaultCode, NameConflictError, getdoc


def identity(flagset, name, /):
    """default normalize function: names are used as written."""
    return name


def normalize(flagset, name, /):
    """
    normalized key for `name` under the registry's current normalize function.
    """
    return flagset.get_normalize_func()(flagset, name)


def abbreviations(words, /):
    """
    map every unambiguous prefix of the given words to its word.

    - a prefix is kept when exactly one word starts with it.
    - every full word maps to itself, so an exact name wins over a longer word
      that shares it as a prefix ("uint" vs "uint16").

    >>> sorted(abbreviations(["sync", "uint", "uint16"]).items())[:3]
    [('s', 'sync'), ('sy', 'sync'), ('syn', 'sync')]
    """
    words = list(dict.fromkeys(words))
    counts = Counter(word[:length] for word in words for length in range(1, len(word) + 1))
    table = {}
    for word in words:
        for length in range(1, len(word)):
            if counts[prefix := word[:length]] == 1:
                table[prefix] = word
    for word in words:
        table[word] = word
    return table


def _conflict(flagset, key):
    names = ", ".join(repr(flag.name) for flag in flagset._conflicts[key])
    return NameConflictError(
        "flag redefined: %s" % key,
        title="name conflict",
        code=FaultCode.NAME_CONFLICT,
        hint="flags %s normalize to the same name %r" % (names, key),
        name=key,
        docs=getdoc(FaultCode.NAME_CONFLICT),
    )


def resolve_long(flagset, name, /, abbreviate=True):
    """
    the flag registered under the long `name`, or None.

    - the name is normalized before the lookup.
    - with `flagset.abbreviations` on (and `abbreviate`), a unique prefix of a
      registered key matches too.
    - a key shared by several flags after re-normalization raises NameConflictError.
    """
    key = normalize(flagset, name)
    if key in flagset._conflicts:
        raise _conflict(flagset, key)
    try:
        return flagset._formal[key]
    except KeyError:
        pass
    if abbreviate and flagset.abbreviations and key:
        # same answer as abbreviations(keys)[key] without building the table
        candidates = [word for word in flagset._formal if word.startswith(key)]
        if len(candidates) == 1:
            return flagset._formal[candidates[0]]
    return None


def resolve_short(flagset, shorthand, /):
    """
    the flag registered under `shorthand`, or None.

    - "" is never a match.
    - in POSIX mode more than one character is API misuse (ValueError).
    """
    if not shorthand:
        return None
    if len(shorthand) > 1 and flagset.posix:
        raise ValueError("can not look up shorthand which is more than one ASCII character: %r" % shorthand)
    return flagset._shorthands.get(shorthand)


def suggest(flagset, name, /):
    """
    closest registered long names for an unknown one (best first).
    """
    return difflib.get_close_matches(name, [flag.name for flag in flagset._formal.values()], 3)


__all__ = (
    "identity",
    "normalize",
    "abbreviations",
    "resolve_long",
    "resolve_short",
    "suggest",
)
