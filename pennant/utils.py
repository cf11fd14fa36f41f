"""
Small helpers shared by the registry, the walker and the value kinds.

Scope
- Building blocks with one meaning everywhere in the package.
- Exposed through pennant.utils; only the names in __all__ are supported.

Overview
- UnsetType / Unset
  • "argument not given" marker, distinct from None, "" and 0 (all of which
    are real flag defaults).
- coalesce(value, default)
  • swap Unset for a default; every other value is kept.
- rename("name")
  • give generated declarers and getters a readable __name__.
- mirror("attr")
  • read-only property over self._attr.
- ordinal(n)
  • "first", "second", ... "11th", used in fault hints.
- read_csv / write_csv
  • one CSV record, as used by slice and map values.

Quick examples
    >>> coalesce(Unset, "true")
    'true'
    >>> ordinal(2), ordinal(12)
    ('second', '12th')
"""
import csv
import functools
import io
from typing import final


@final
class UnsetType:
    """
    type of the Unset marker; there is exactly one instance and it is falsy.

    Unset is the default of parameters where None, "" or 0 is a value the
    caller may really mean (a flag default, a no-value default, a delimiter).

    Characteristics
    - falsy: bool(Unset) is False, yet Unset is not None and not "".
    - printable: repr(Unset) is "Unset".
    - singleton: UnsetType() always returns the same object; copy() and
      deepcopy() return it unchanged.
    - sealed: subclassing raises TypeError.
    - unions: `str | Unset` builds `str | UnsetType`, so isinstance() checks
      and annotations can name "a string or nothing".
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    `object` unless it is Unset, else `default`.

    Parameters
    - object: any value, possibly Unset.
    - default: returned only when `object` is Unset (None when omitted).

    Returns
    - `object` itself for every other value; None, 0 and "" are kept.

    >>> coalesce("", "true")
    ''
    >>> coalesce(Unset, "true")
    'true'
    """
    return default if object is Unset else object


def rename(name, /):
    """
    decorator setting __name__ and __qualname__ of the decorated function.

    Parameters
    - name: str
      the name shown in tracebacks, help() and repr() of the function.

    Returns
    - a decorator returning the same function object, renamed in place.

    Raises
    - TypeError: `name` is not a string.

    Examples
        @rename("get_int")
        def getter(self, name): ...
        # getter.__name__ == getter.__qualname__ == "get_int"
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def apply(function):
        function.__name__ = function.__qualname__ = name
        return function

    return apply


def mirror(name, /):
    """
    read-only property returning self._<name>.

    Parameters
    - name: str
      public attribute name; the backing field is "_" + name.

    Returns
    - a property with a getter named `name` and no setter, so assignment
      raises AttributeError.

    Raises
    - TypeError: `name` is not a string.

    Examples
        class FlagSet:
            parsed = mirror("parsed")  # reads self._parsed
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return getattr(self, "_" + name)

    return property(getter, doc="read-only view of _%s" % name)


_WORDS = (
    "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
)


def ordinal(number, /):
    """
    label for a 1-based token position: words up to ten, then "11th", "22nd", ...

    Parameters
    - number: int
      1-based position of a token on the command line.

    Returns
    - "first" through "tenth" for 1..10.
    - digits with an English suffix above ten; 11, 12 and 13 (and 111, ...)
      take "th".

    >>> ordinal(3), ordinal(11), ordinal(22), ordinal(103)
    ('third', '11th', '22nd', '103rd')
    """
    if 1 <= number <= len(_WORDS):
        return _WORDS[number - 1]
    if 10 < number % 100 < 20:
        return "%dth" % number
    return "%d%s" % (number, {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th"))


def read_csv(text, /):
    """
    fields of the first CSV record in `text` ("" has none).

    quoted fields may hold commas; a malformed record raises ValueError.
    """
    if not text:
        return []
    try:
        return next(csv.reader(io.StringIO(text), strict=True), [])
    except csv.Error as error:
        raise ValueError(str(error)) from None


def write_csv(fields, /):
    # quotes only the fields that need it
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(fields)
    return buffer.getvalue()


Unset = UnsetType()


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "read_csv",
    "write_csv",
)
