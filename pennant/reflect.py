"""
Dataclass adapter: declare flags from fields and write parsed values back.

    @dataclass
    class Options:
        name: str = field(default="abc", metadata={"flag": "name", "short": "n", "desc": "who"})
        retries: list[int] = field(default_factory=list, metadata={"flag": "retry"})

    add_flags(flagset, Options)
    flagset.parse(sys.argv[1:])
    options = Options()
    set_values(flagset, options)

Field metadata keys
- flag: long name (the field name with "_" turned into "-" when absent).
- short: shorthand (dropped for nested dataclasses).
- desc: usage text.

The field default (or default_factory, or the instance's current value) is the
flag default. A nested dataclass field registers its own fields under
"<flag>.<name>".
"""
import dataclasses
import typing
import uuid
from datetime import timedelta
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network

from .utils import Unset

# python type -> declarer kind
KINDS = {
    bool: "bool",
    str: "string",
    int: "int",
    float: "float64",
    complex: "complex128",
    bytes: "bytes_hex",
    timedelta: "duration",
    IPv4Address: "ip",
    IPv6Address: "ip",
    IPv4Network: "ip_net",
    IPv6Network: "ip_net",
    uuid.UUID: "uuid",
    list[str]: "string_slice",
    list[int]: "int_slice",
    list[float]: "float64_slice",
    list[bool]: "bool_slice",
    list[complex]: "complex128_slice",
    list[timedelta]: "duration_slice",
    list[IPv4Address]: "ip_slice",
    list[IPv6Address]: "ip_slice",
    list[IPv4Network]: "ip_net_slice",
    list[IPv6Network]: "ip_net_slice",
    dict[str, str]: "string_to_string",
    dict[str, int]: "string_to_int",
}


def _fields(obj):
    if not dataclasses.is_dataclass(obj):
        raise TypeError("%r is not a dataclass or dataclass instance" % (obj,))
    hints = typing.get_type_hints(obj if isinstance(obj, type) else type(obj))
    for field in dataclasses.fields(obj):
        yield field, hints.get(field.name, field.type)


def _name(field, prefix):
    name = field.metadata.get("flag", field.name.replace("_", "-"))
    return prefix + "." + name if prefix else name


def _default(obj, field):
    if not isinstance(obj, type):
        return getattr(obj, field.name)
    if field.default is not dataclasses.MISSING:
        return field.default
    if field.default_factory is not dataclasses.MISSING:
        return field.default_factory()
    return Unset


def add_flags(flagset, obj, /, prefix=""):
    """
    declare one flag per field of the dataclass (or dataclass instance) `obj`.

    unsupported field types raise TypeError.
    """
    for field, hint in _fields(obj):
        name = _name(field, prefix)
        default = _default(obj, field)
        if dataclasses.is_dataclass(hint):
            add_flags(flagset, hint if default is Unset else default, name)
            continue
        try:
            kind = KINDS[hint]
        except (KeyError, TypeError):
            raise TypeError("unsupported type %r for field %r" % (hint, field.name)) from None
        shorthand = "" if prefix else field.metadata.get("short", "")
        getattr(flagset, kind)(name, shorthand, default, field.metadata.get("desc", ""))


def set_values(flagset, instance, /, prefix=""):
    """
    write the flags declared by add_flags() back onto the dataclass `instance`.
    """
    if isinstance(instance, type):
        raise TypeError("set_values() needs a dataclass instance, not a class")
    for field, hint in _fields(instance):
        name = _name(field, prefix)
        if dataclasses.is_dataclass(hint):
            set_values(flagset, getattr(instance, field.name), name)
            continue
        try:
            kind = KINDS[hint]
        except (KeyError, TypeError):
            raise TypeError("unsupported type %r for field %r" % (hint, field.name)) from None
        setattr(instance, field.name, getattr(flagset, "get_" + kind)(name))


__all__ = (
    "KINDS",
    "add_flags",
    "set_values",
)
