"""
Usage text: one aligned line per visible flag.

    -s, --name type[=nodef]   usage (default X)

The left part is padded to the widest left part; with a column limit the usage
part wraps under itself (or as a block on the next line when it would be too
narrow).
"""

# placeholder names for the verbose type tags
_PLACEHOLDERS = {
    "bool": "",
    "boolfunc": "",
    "float64": "float",
    "int64": "int",
    "uint64": "uint",
    "stringSlice": "strings",
    "intSlice": "ints",
    "uintSlice": "uints",
    "boolSlice": "bools",
}

_NUMERIC = {
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
    "float32", "float64", "count", "bigInt",
}


def unquote_usage(flag, /):
    """
    split a flag's usage into (placeholder, usage).

    the first `back-quoted` word is the placeholder and loses its quotes in the
    usage; without one the placeholder derives from the value's type tag.

    >>> class Flag: usage, typename = "a `file` to read", "string"
    >>> unquote_usage(Flag)
    ('file', 'a file to read')
    """
    usage = flag.usage
    start = usage.find("`")
    if start != -1 and (end := usage.find("`", start + 1)) != -1:
        name = usage[start + 1:end]
        return name, usage[:start] + name + usage[end + 1:]
    return _PLACEHOLDERS.get(flag.typename, flag.typename), usage


def is_zero_default(flag, /):
    """whether the flag's default is the zero value of its type (and so not shown)."""
    default, typename = flag.default, flag.typename
    if flag.is_bool_flag():
        return default in ("false", "")
    match typename:
        case "string":
            return default == ""
        case "duration":
            return default in ("0", "0s")
        case _ if typename in _NUMERIC:
            return default == "0"
        case "ip" | "ipMask" | "ipNet":
            return default == "<nil>"
    return default in ("false", "<nil>", "", "0", "[]")


def _optional(flag):
    value = flag.no_value_default
    if not value:
        return ""
    match flag.typename:
        case "string":
            return '[="%s"]' % value
        case "bool" | "boolfunc":
            return "" if value == "true" else "[=%s]" % value
        case "count":
            return "" if value == "+1" else "[=%s]" % value
    return "[=%s]" % value


def _split(width, slop, text):
    if width + slop > len(text):
        return text, ""
    head = text[:width]
    space = max(head.rfind(" "), head.rfind("\t"), head.rfind("\n"))
    if space <= 0:
        return text, ""
    newline = head.rfind("\n")
    if 0 < newline < space:
        return text[:newline], text[newline + 1:]
    return text[:space], text[space + 1:]


def wrap(indent, columns, text, /):
    """
    wrap `text` to `columns`, indenting continuation lines by `indent`.

    - columns == 0: no wrapping, embedded newlines are indented.
    - fewer than 24 usable columns: wrap as a block starting on the next line,
      indented by 16; still too narrow: leave the text alone.
    """
    if columns == 0:
        return text.replace("\n", "\n" + " " * indent)

    width = columns - indent
    result = ""
    if width < 24:
        indent = 16
        width = columns - indent
        result += "\n" + " " * indent
    if width < 24:
        return text.replace("\n", result)

    # up to `slop` extra characters avoid a short orphan word on the last line
    slop = 5
    width -= slop

    line, text = _split(width, slop, text)
    result += line.replace("\n", "\n" + " " * indent)
    while text:
        line, text = _split(width, slop, text)
        result += "\n" + " " * indent + line.replace("\n", "\n" + " " * indent)
    return result


def flag_usages(flagset, columns=0, /):
    """
    the usage block of every visible flag of `flagset`, wrapped to `columns`
    (0 disables wrapping).
    """
    lines = []
    widest = 0

    def collect(flag):
        nonlocal widest
        if flag.hidden:
            return
        if flag.shorthand and not flag.shorthand_deprecated:
            line = "  -%s, --%s" % (flag.shorthand, flag.name)
        else:
            line = "      --%s" % flag.name

        placeholder, usage = unquote_usage(flag)
        if placeholder:
            line += " " + placeholder
        line += _optional(flag)

        # the NUL marks the alignment column until the widest left part is known
        line += "\x00"
        widest = max(widest, len(line))

        line += usage
        if not is_zero_default(flag):
            if flag.typename == "string":
                line += ' (default "%s")' % flag.default.replace("\\", "\\\\").replace('"', '\\"')
            else:
                line += " (default %s)" % flag.default
        if flag.deprecated:
            line += " (DEPRECATED: %s)" % flag.deprecated
        lines.append(line)

    flagset.visit_all(collect)

    output = []
    for line in lines:
        left, _, right = line.partition("\x00")
        output.append("%s %s %s\n" % (left, " " * (widest - len(left)), wrap(widest + 2, columns, right)))
    return "".join(output)


__all__ = (
    "unquote_usage",
    "is_zero_default",
    "wrap",
    "flag_usages",
)
