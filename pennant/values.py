"""
Pennant values: the boxes flags write into.

Protocol
- every value offers set(raw), get(), str(value) and a `typename` tag.
- set() raises ValueError (or OverflowError/TypeError) on bad input; the registry
  wraps that into an InvalidValueError naming the flag.
- is_bool_flag() is optional; a true result lets the flag appear without a value.
- set(str(value)) leaves a scalar unchanged.

Shape
- a handful of generic variants (Scalar, Count, Sequence, Mapping, Func, Text)
  configured by free parse/format functions, one pair per kind.
- SCALARS / SEQUENCES / MAPPINGS map a declarer name (as used by FlagSet.<kind>())
  to a Kind: (typename, parse, format, zero).
"""
import base64
import binascii
import ipaddress
import math
import re
import struct
import uuid
from datetime import timedelta
from typing import NamedTuple

from .utils import Unset, read_csv, write_csv


class Value:
    """
    base value: subclasses (or any duck-typed object) provide set/get/__str__/typename.
    """
    typename = "value"

    def set(self, raw, /):
        raise NotImplementedError

    def get(self):
        raise NotImplementedError

    def __str__(self):
        return ""

    def is_bool_flag(self):
        return False

    def __repr__(self):
        return "<%s value %r>" % (self.typename, str(self))

    def __rich_repr__(self):
        yield "typename", self.typename
        yield "value", str(self)


class Kind(NamedTuple):
    typename: str
    parse: object
    format: object
    zero: object


# --- booleans ---

_TRUE = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSE = frozenset(("0", "f", "F", "FALSE", "false", "False"))


def parse_bool(raw):
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError("parsing %r: invalid syntax" % raw)


def format_bool(value):
    return "true" if value else "false"


# --- integers ---

_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7_]+")


def parse_integer(raw, bits=64, signed=True):
    """
    parse an integer literal with an optional base prefix (0x, 0o, 0b, or a
    leading 0 for octal) and check it fits the given width.
    """
    if raw != raw.strip() or (not signed and raw.startswith(("+", "-"))):
        raise ValueError("parsing %r: invalid syntax" % raw)
    try:
        number = int(raw, 8) if _LEGACY_OCTAL.fullmatch(raw) else int(raw, 0)
    except ValueError:
        raise ValueError("parsing %r: invalid syntax" % raw) from None
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= number <= high:
        raise OverflowError("parsing %r: value out of range" % raw)
    return number


def _integer(bits, signed=True):
    def parse(raw):
        return parse_integer(raw, bits, signed)
    return parse


def parse_decimal(raw):
    """arbitrary precision, base 10 only."""
    if not re.fullmatch(r"[+-]?\d+", raw):
        raise ValueError("parsing %r: invalid syntax" % raw)
    return int(raw, 10)


# --- floats ---

_FLOAT32_MAX = 3.4028234663852886e38


def _single(number):
    return struct.unpack("f", struct.pack("f", number))[0]


def parse_float64(raw):
    if not raw or raw != raw.strip():
        raise ValueError("parsing %r: invalid syntax" % raw)
    try:
        number = float(raw)
    except ValueError:
        try:
            number = float.fromhex(raw)
        except (ValueError, OverflowError):
            raise ValueError("parsing %r: invalid syntax" % raw) from None
    if math.isinf(number) and "inf" not in raw.lower():
        raise OverflowError("parsing %r: value out of range" % raw)
    return number


def parse_float32(raw):
    number = parse_float64(raw)
    if math.isfinite(number) and abs(number) > _FLOAT32_MAX:
        raise OverflowError("parsing %r: value out of range" % raw)
    try:
        return _single(number)
    except OverflowError:
        raise OverflowError("parsing %r: value out of range" % raw) from None


def format_float(number, bits=64):
    """
    shortest text that reads back to the same float of the given width, using an
    exponent only below 1e-4 or from 1e6 upwards (1e+06, 1.5e-05, 22, 0.5).
    """
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    rounder = _single if bits == 32 else float
    for precision in range(1, 18):
        text = "%.*e" % (precision - 1, number)
        if rounder(float(text)) == number:
            break
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    if exponent < -4 or exponent >= 6:
        return "%se%+03d" % (mantissa, exponent)

    sign = "-" if mantissa.startswith("-") else ""
    digits = mantissa.lstrip("-").replace(".", "")
    if exponent >= 0:
        whole = digits[:exponent + 1].ljust(exponent + 1, "0")
        fraction = digits[exponent + 1:]
    else:
        whole = "0"
        fraction = "0" * (-exponent - 1) + digits
    return sign + whole + ("." + fraction if fraction else "")


def format_float32(number):
    return format_float(number, 32)


def parse_complex(raw):
    text = raw
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    if not text or text != text.strip() or "j" in text.lower():
        raise ValueError("parsing %r: invalid syntax" % raw)
    if text.endswith("i"):
        text = text[:-1] + "j"
    try:
        return complex(text)
    except ValueError:
        raise ValueError("parsing %r: invalid syntax" % raw) from None


def format_complex(number):
    imaginary = format_float(number.imag)
    if not imaginary.startswith(("+", "-")):
        imaginary = "+" + imaginary
    return "(%s%si)" % (format_float(number.real), imaginary)


# --- durations (integer nanoseconds) ---

_SCALES = {
    "ns": 1,
    "us": 1000,
    "µs": 1000,  # U+00B5
    "μs": 1000,  # U+03BC
    "ms": 1000 ** 2,
    "s": 1000 ** 3,
    "m": 60 * 1000 ** 3,
    "h": 3600 * 1000 ** 3,
}
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")
_MAX_NANOSECONDS = (1 << 63) - 1


def parse_duration(raw):
    """
    parse "300ms", "-1.5h" or "2h45m" into nanoseconds; units are
    ns, us (or µs), ms, s, m, h.
    """
    text, sign = raw, 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueError("invalid duration %r" % raw)
    total, position = 0, 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if not match or not (match[1] or match[2]):
            raise ValueError("invalid duration %r" % raw)
        whole, fraction, unit = match.groups()
        try:
            scale = _SCALES[unit]
        except KeyError:
            raise ValueError("unknown unit %r in duration %r" % (unit, raw)) from None
        total += int(whole or "0") * scale
        if fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        position = match.end()
    if total > _MAX_NANOSECONDS:
        raise OverflowError("invalid duration %r" % raw)
    return sign * total


def parse_timedelta(raw):
    return timedelta(microseconds=parse_duration(raw) / 1000)


def format_timedelta(delta):
    return format_duration(nanoseconds(delta))


def _decimal(number, places):
    whole, fraction = divmod(number, 10 ** places)
    fraction = ("%0*d" % (places, fraction)).rstrip("0")
    return "%d.%s" % (whole, fraction) if fraction else "%d" % whole


def format_duration(nanoseconds):
    """1h0m0s, 2m0s, 1.5s, 300ms, 1.5µs, 12ns, 0s."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    nanoseconds = abs(nanoseconds)
    if nanoseconds < 1000 ** 3:
        if nanoseconds < 1000:
            return "%s%dns" % (sign, nanoseconds)
        if nanoseconds < 1000 ** 2:
            return sign + _decimal(nanoseconds, 3) + "µs"
        return sign + _decimal(nanoseconds, 6) + "ms"
    hours, nanoseconds = divmod(nanoseconds, _SCALES["h"])
    minutes, nanoseconds = divmod(nanoseconds, _SCALES["m"])
    text = sign
    if hours:
        text += "%dh" % hours
    if hours or minutes:
        text += "%dm" % minutes
    return text + _decimal(nanoseconds, 9) + "s"


def nanoseconds(value):
    """
    accept a timedelta, an integer nanosecond count or a duration string.
    """
    if isinstance(value, timedelta):
        return (value // timedelta(microseconds=1)) * 1000
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise TypeError("duration must be a timedelta, an int or a str, not %r" % type(value).__name__)


# --- network ---

def parse_ip(raw):
    try:
        return ipaddress.ip_address(raw.strip())
    except ValueError:
        raise ValueError("failed to parse IP: %r" % raw) from None


def format_ip(address):
    return "<nil>" if address is None else str(address)


def parse_ip_mask(raw):
    """dotted quad ("255.255.255.0") or eight hex digits ("ffffff00")."""
    text = raw.strip()
    try:
        return ipaddress.IPv4Address(text).packed
    except ValueError:
        pass
    if len(text) == 8:
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass
    raise ValueError("failed to parse IP mask: %r" % raw)


def format_ip_mask(mask):
    return "<nil>" if mask is None else mask.hex()


def parse_ip_net(raw):
    text = raw.strip()
    address, slash, prefix = text.partition("/")
    if not slash or not (prefix.isascii() and prefix.isdigit()):
        raise ValueError("invalid CIDR address: %s" % raw)
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError:
        raise ValueError("invalid CIDR address: %s" % raw) from None


def parse_uuid(raw):
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise ValueError("invalid UUID: %r" % raw) from None


def format_optional(value):
    return "" if value is None else str(value)


# --- bytes ---

def parse_bytes_hex(raw):
    try:
        return binascii.unhexlify(raw.strip())
    except (binascii.Error, ValueError):
        raise ValueError("invalid hex string: %r" % raw) from None


def format_bytes_hex(data):
    return data.hex().upper()


def parse_bytes_base64(raw):
    try:
        return base64.b64decode(raw.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("invalid base64 string: %r" % raw) from None


def format_bytes_base64(data):
    return base64.b64encode(data).decode("ascii")


_SIZE = re.compile(r"(\d+(?:\.\d+)?) ?([kmgtp]?)i?b?", re.IGNORECASE)
_SIZE_PREFIXES = "kmgtp"
_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def parse_byte_size(raw):
    """decimal human size: "1kb" is 1000, "1MB" is 1000000."""
    if not (match := _SIZE.fullmatch(raw.strip())):
        raise ValueError("invalid size: %r" % raw)
    number, prefix = match.groups()
    scale = 1000 ** (_SIZE_PREFIXES.index(prefix.lower()) + 1) if prefix else 1
    return int(float(number) * scale)


def format_byte_size(size):
    """four significant digits over decimal units: 1024 -> "1.024kB"."""
    size, index = float(size), 0
    while size >= 1000 and index < len(_SIZE_UNITS) - 1:
        size /= 1000
        index += 1
    return "%.4g%s" % (size, _SIZE_UNITS[index])


class Scalar(Value):
    """
    one value of one kind; every set() overwrites.
    """

    def __init__(self, default, /, *, kind, boolean=False):
        self.kind = kind
        self.typename = kind.typename
        self._boolean = boolean
        if default is Unset:
            default = kind.zero
        elif isinstance(default, str) and kind.parse is not _string:
            default = kind.parse(default)
        self._value = default

    def set(self, raw, /):
        self._value = self.kind.parse(raw)

    def get(self):
        return self._value

    def __str__(self):
        return self.kind.format(self._value)

    def is_bool_flag(self):
        return self._boolean


class Duration(Scalar):
    """
    stored as integer nanoseconds; get() converts to a timedelta.
    """

    def __init__(self, default, /, *, kind):
        super().__init__(Unset if default is Unset else nanoseconds(default), kind=kind)

    def get(self):
        return timedelta(microseconds=self._value / 1000)

    def nanoseconds(self):
        return self._value


class Count(Scalar):
    """
    "+1" increments, any integer literal sets.
    """

    def set(self, raw, /):
        if raw == "+1":
            self._value += 1
        else:
            self._value = parse_integer(raw)


class Sequence(Value):
    """
    a list filled from comma separated records.

    - the first set() replaces the default, later ones append.
    - elements are read as one CSV record, so quoted elements may hold commas.
    - set_many/append/replace/get_slice give element-wise access.
    """

    def __init__(self, default, /, *, kind, split=read_csv, quoted=False):
        self.kind = kind
        self.typename = kind.typename
        self._split = split
        self._quoted = quoted
        self._items = [] if default is Unset else list(default)
        self._changed = False

    def set(self, raw, /):
        items = [self.kind.parse(item) for item in self._split(raw)]
        if self._changed:
            self._items.extend(items)
        else:
            self._items = items
            self._changed = True

    def set_many(self, raws, /):
        """
        like set(), with one element per entry of `raws` and no CSV splitting.

        the walker uses it for flags declared with nargs, so a consumed token
        holding a comma stays one element.
        """
        items = [self.kind.parse(raw) for raw in raws]
        if self._changed:
            self._items.extend(items)
        else:
            self._items = items
            self._changed = True

    def append(self, raw, /):
        self._items.append(self.kind.parse(raw))

    def replace(self, items, /):
        self._items = [self.kind.parse(item) for item in items]

    def get_slice(self):
        return [self.kind.format(item) for item in self._items]

    def get(self):
        return list(self._items)

    def __str__(self):
        fields = self.get_slice()
        return "[%s]" % (write_csv(fields) if self._quoted else ",".join(fields))


def _whole(raw):
    return [raw] if raw else []


def split_pairs(raw):
    """
    one "=" means the whole value is a single pair (quotes trimmed); more mean a
    CSV record of pairs.
    """
    match raw.count("="):
        case 0:
            raise ValueError("%s must be formatted as key=value" % raw)
        case 1:
            return [raw.strip('"')]
        case _:
            return read_csv(raw)


def split_commas(raw):
    return raw.split(",")


class Mapping(Value):
    """
    key=value pairs; the first set() replaces the default, later ones merge.
    """

    def __init__(self, default, /, *, kind, split=split_commas, quoted=False):
        self.kind = kind
        self.typename = kind.typename
        self._split = split
        self._quoted = quoted
        self._items = {} if default is Unset else dict(default)
        self._changed = False

    def set(self, raw, /):
        items = {}
        for pair in (self._split(raw) if raw else []):
            key, equals, value = pair.partition("=")
            if not equals:
                raise ValueError("%s must be formatted as key=value" % pair)
            items[key] = self.kind.parse(value)
        if self._changed:
            self._items.update(items)
        else:
            self._items = items
            self._changed = True

    def get(self):
        return dict(self._items)

    def __str__(self):
        fields = ["%s=%s" % (key, self.kind.format(value)) for key, value in self._items.items()]
        return "[%s]" % (write_csv(fields) if self._quoted else ",".join(fields))


class Func(Value):
    """
    calls `callback(raw)` on every occurrence; holds nothing.
    """
    typename = "func"

    def __init__(self, callback, /):
        if not callable(callback):
            raise TypeError("func value callback must be callable")
        self._callback = callback

    def set(self, raw, /):
        self._callback(raw)

    def get(self):
        return None


class Text(Value):
    """
    any python object with caller supplied parse/format callables.

    the type tag defaults to the default's class name.
    """

    def __init__(self, default, /, *, parse, format=str, typename=Unset):
        if not callable(parse) or not callable(format):
            raise TypeError("text value parse and format must be callable")
        self._parse = parse
        self._format = format
        self._value = default
        self.typename = type(default).__name__ if typename is Unset else typename

    def set(self, raw, /):
        self._value = self._parse(raw)

    def get(self):
        return self._value

    def __str__(self):
        return self._format(self._value)


def _string(raw):
    return raw


SCALARS = {
    "bool": Kind("bool", parse_bool, format_bool, False),
    "string": Kind("string", _string, str, ""),
    "int": Kind("int", _integer(64), str, 0),
    "int8": Kind("int8", _integer(8), str, 0),
    "int16": Kind("int16", _integer(16), str, 0),
    "int32": Kind("int32", _integer(32), str, 0),
    "int64": Kind("int64", _integer(64), str, 0),
    "uint": Kind("uint", _integer(64, False), str, 0),
    "uint8": Kind("uint8", _integer(8, False), str, 0),
    "uint16": Kind("uint16", _integer(16, False), str, 0),
    "uint32": Kind("uint32", _integer(32, False), str, 0),
    "uint64": Kind("uint64", _integer(64, False), str, 0),
    "float32": Kind("float32", parse_float32, format_float32, 0.0),
    "float64": Kind("float64", parse_float64, format_float, 0.0),
    "duration": Kind("duration", parse_duration, format_duration, 0),
    "ip": Kind("ip", parse_ip, format_ip, None),
    "ip_mask": Kind("ipMask", parse_ip_mask, format_ip_mask, None),
    "ip_net": Kind("ipNet", parse_ip_net, format_ip, None),
    "uuid": Kind("uuid", parse_uuid, format_optional, None),
    "bytes_hex": Kind("bytesHex", parse_bytes_hex, format_bytes_hex, b""),
    "bytes_base64": Kind("bytesBase64", parse_bytes_base64, format_bytes_base64, b""),
    "byte_size": Kind("byte-size", parse_byte_size, format_byte_size, 0),
    "big_int": Kind("bigInt", parse_decimal, str, 0),
    "complex128": Kind("complex128", parse_complex, format_complex, 0j),
    "count": Kind("count", parse_integer, str, 0),
}

SEQUENCES = {
    "string_slice": Kind("stringSlice", _string, str, ()),
    "string_array": Kind("stringArray", _string, str, ()),
    "int_slice": Kind("intSlice", _integer(64), str, ()),
    "int32_slice": Kind("int32Slice", _integer(32), str, ()),
    "int64_slice": Kind("int64Slice", _integer(64), str, ()),
    "uint_slice": Kind("uintSlice", _integer(64, False), str, ()),
    "float32_slice": Kind("float32Slice", parse_float32, format_float32, ()),
    "float64_slice": Kind("float64Slice", parse_float64, format_float, ()),
    "bool_slice": Kind("boolSlice", parse_bool, format_bool, ()),
    "duration_slice": Kind("durationSlice", parse_timedelta, format_timedelta, ()),
    "ip_slice": Kind("ipSlice", parse_ip, format_ip, ()),
    "ip_net_slice": Kind("ipNetSlice", parse_ip_net, format_ip, ()),
    "complex128_slice": Kind("complex128Slice", parse_complex, format_complex, ()),
}

MAPPINGS = {
    "string_to_string": Kind("stringToString", _string, str, ()),
    "string_to_int": Kind("stringToInt", _integer(64), str, ()),
    "string_to_int64": Kind("stringToInt64", _integer(64), str, ()),
}


def make(kind, default=Unset, /):
    """
    build the value box for a declarer name ("int", "string_slice", ...).
    """
    if kind in SCALARS:
        match kind:
            case "bool":
                return Scalar(default, kind=SCALARS[kind], boolean=True)
            case "duration":
                return Duration(default, kind=SCALARS[kind])
            case "count":
                return Count(default, kind=SCALARS[kind])
        return Scalar(default, kind=SCALARS[kind])
    if kind in SEQUENCES:
        if kind == "string_array":
            return Sequence(default, kind=SEQUENCES[kind], split=_whole, quoted=True)
        return Sequence(default, kind=SEQUENCES[kind], quoted=kind == "string_slice")
    if kind in MAPPINGS:
        if kind == "string_to_string":
            return Mapping(default, kind=MAPPINGS[kind], split=split_pairs, quoted=True)
        return Mapping(default, kind=MAPPINGS[kind])
    raise ValueError("unknown value kind %r" % kind)


__all__ = (
    "Value",
    "Kind",
    "Scalar",
    "Duration",
    "Count",
    "Sequence",
    "Mapping",
    "Func",
    "Text",
    "SCALARS",
    "SEQUENCES",
    "MAPPINGS",
    "make",
    "parse_bool",
    "parse_integer",
    "parse_duration",
    "format_duration",
    "format_float",
    "parse_byte_size",
    "format_byte_size",
)
