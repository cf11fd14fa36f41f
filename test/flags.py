# python
"""
Flag registry behavioral tests (registration, dispatch, queries, metadata, merge).

Scope
- Validate typed declarers and getters, including type-tag mismatches.
- Validate registration conflicts (names, shorthands) and API misuse.
- Validate the dispatcher: validators, invalid values, visitor failures, deprecation notices.
- Validate normalization (word separators, re-keying, collisions).
- Validate queries (changed, is_set, args, visit order) and merge/add_flagset.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured on a rich Console over io.StringIO.
"""

from __future__ import annotations

import io
import unittest
from datetime import timedelta
from ipaddress import ip_address
from unittest import TestCase

from rich.console import Console

from pennant import (
    DelegatedFlagError,
    ErrorHandling,
    Flag,
    FlagSet,
    FlagTypeError,
    InvalidValueError,
    NameConflictError,
    ShorthandConflictError,
    UndefinedFlagError,
    values,
)


def capture(name="test", handling=ErrorHandling.CONTINUE, **options):
    output = io.StringIO()
    return FlagSet(name, handling, output=Console(file=output, width=200), **options), output


def separators(flagset, name):
    return name.replace("_", "-").replace(".", "-")


class TestDeclarers(TestCase):
    """Typed declarers and getters."""

    def testParseEveryKind(self):
        fs, _ = capture()
        self.assertFalse(fs.parsed)
        flag = fs.bool("bool", "", False, "bool value")
        bool2 = fs.bool("bool2", "", False, "")
        bool3 = fs.bool("bool3", "", False, "")
        number = fs.int("int", "", 0, "")
        int8 = fs.int8("int8", "", 0, "")
        int64 = fs.int64("int64", "", 0, "")
        uint = fs.uint("uint", "", 0, "")
        text = fs.string("string", "", "0", "")
        float32 = fs.float32("float32", "", 0, "")
        float64 = fs.float64("float64", "", 0, "")
        ip = fs.ip("ip", "", "127.0.0.1", "")
        mask = fs.ip_mask("mask", "", "0.0.0.0", "")
        duration = fs.duration("duration", "", timedelta(seconds=5), "")
        optional = fs.int("optional-int-no-value", "", 0, "", no_value_default="9")
        given = fs.int("optional-int-with-value", "", 0, "", no_value_default="9")

        fs.parse([
            "--bool",
            "--bool2=true",
            "--bool3=false",
            "--int=22",
            "--int8=-8",
            "--int64=0x23",
            "--uint", "24",
            "--string=hello",
            "--float32=-172e12",
            "--float64=2718e28",
            "--ip=10.11.12.13",
            "--mask=255.255.255.0",
            "--duration=2m",
            "--optional-int-no-value",
            "--optional-int-with-value=42",
            "one-extra-argument",
        ])
        self.assertTrue(fs.parsed)
        self.assertTrue(flag.get())
        self.assertEqual(fs.get_bool("bool"), True)
        self.assertTrue(bool2.get())
        self.assertFalse(bool3.get())
        self.assertEqual(number.get(), 22)
        self.assertEqual(int8.get(), -8)
        self.assertEqual(int64.get(), 0x23)
        self.assertEqual(uint.get(), 24)
        self.assertEqual(text.get(), "hello")
        self.assertEqual(fs.get_float32("float32"), float32.get())
        self.assertEqual(float64.get(), 2718e28)
        self.assertEqual(ip.get(), ip_address("10.11.12.13"))
        self.assertEqual(fs.get_ip_mask("mask"), mask.get())
        self.assertEqual(str(mask), "ffffff00")
        self.assertEqual(duration.get(), timedelta(minutes=2))
        self.assertEqual(fs.get_duration("duration"), timedelta(minutes=2))
        self.assertEqual(optional.get(), 9)
        self.assertEqual(given.get(), 42)
        self.assertEqual(fs.args(), ["one-extra-argument"])

    def testGetterTypeMismatch(self):
        fs, _ = capture()
        fs.duration("duration", "", 0, "")
        with self.assertRaises(FlagTypeError) as context:
            fs.get_int("duration")
        self.assertEqual(str(context.exception), "trying to get int value of flag of type duration")
        self.assertIsInstance(context.exception, TypeError)

    def testGetterUndefined(self):
        fs, _ = capture()
        with self.assertRaises(UndefinedFlagError) as context:
            fs.get_string("missing")
        self.assertEqual(str(context.exception), "flag accessed but not defined: missing")
        self.assertIsInstance(context.exception, LookupError)

    def testEveryKindHasDeclarerAndGetter(self):
        fs, _ = capture()
        for kind in values.SCALARS | values.SEQUENCES | values.MAPPINGS:
            with self.subTest(kind=kind):
                box = getattr(fs, kind)(kind.replace("_", "-"))
                self.assertEqual(getattr(fs, "get_" + kind)(kind.replace("_", "-")), box.get())
                self.assertEqual(getattr(FlagSet, kind).__name__, kind)

    def testSliceAndMapGetters(self):
        fs, _ = capture()
        fs.string_slice("names", "n", ["a"], "")
        fs.string_to_int("limits", "", {}, "")
        fs.parse(["-n", "x,y", "--names=z", "--limits", "cpu=2,mem=4"])
        self.assertEqual(fs.get_string_slice("names"), ["x", "y", "z"])
        self.assertEqual(fs.get_string_to_int("limits"), {"cpu": 2, "mem": 4})

    def testFunc(self):
        fs, _ = capture()
        seen = []
        flag = fs.func("call", seen.append, "c", "run a callback")
        fs.parse(["--call=one", "-c", "two", "--call", "three"])
        self.assertEqual(seen, ["one", "two", "three"])
        self.assertEqual(flag.typename, "func")

    def testText(self):
        fs, _ = capture()
        fs.text("level", "", ("low",), "", parse=lambda raw: tuple(raw.split("+")), format="+".join)
        fs.parse(["--level=high+urgent"])
        self.assertEqual(fs.get_text("level"), ("high", "urgent"))
        self.assertEqual(str(fs.lookup("level").value), "high+urgent")
        self.assertEqual(fs.lookup("level").default, "low")

    def testVarWithCustomValue(self):
        class Flavor:
            typename = "flavor"

            def __init__(self):
                self.chosen = "vanilla"

            def set(self, raw):
                if raw not in ("vanilla", "chocolate"):
                    raise ValueError("unknown flavor")
                self.chosen = raw

            def get(self):
                return self.chosen

            def __str__(self):
                return self.chosen

        fs, _ = capture()
        flag = fs.var(Flavor(), "flavor", "f", "pick one")
        self.assertEqual(flag.default, "vanilla")
        fs.parse(["-f", "chocolate"])
        self.assertEqual(flag.value.get(), "chocolate")
        with self.assertRaises(InvalidValueError):
            fs.parse(["-f", "mint"])

    def testVarRejectsNonValue(self):
        fs, _ = capture()
        with self.assertRaises(TypeError):
            fs.var(object(), "bad")


class TestRegistration(TestCase):
    """Conflicts and misuse."""

    def testRedefinedName(self):
        fs, _ = capture("set")
        fs.bool("verbose", "v", False, "")
        with self.assertRaises(NameConflictError) as context:
            fs.string("verbose", "", "", "")
        self.assertEqual(str(context.exception), "flag redefined: verbose")

    def testRedefinedShorthand(self):
        fs, _ = capture("set")
        fs.bool("verbose", "v", False, "")
        with self.assertRaises(ShorthandConflictError) as context:
            fs.bool("version", "v", False, "")
        self.assertEqual(
            str(context.exception),
            "unable to redefine 'v' shorthand in 'set' flagset: it's already used for 'verbose' flag",
        )
        self.assertIsNone(fs.lookup("version"))

    def testConflictExitsInExitMode(self):
        fs, output = capture("set", ErrorHandling.EXIT)
        fs.bool("verbose", "", False, "")
        with self.assertRaises(SystemExit) as context:
            fs.bool("verbose", "", False, "")
        self.assertEqual(context.exception.code, 2)
        self.assertIn("flag redefined: verbose", output.getvalue())

    def testBadDelimiter(self):
        fs, _ = capture()
        with self.assertRaises(ValueError):
            fs.string("name", "", "", "", delimiter="::")

    def testValidatorsMustBeCallable(self):
        fs, _ = capture()
        with self.assertRaises(TypeError):
            fs.int("port", "", 0, "", validators=["positive"])


class TestDispatch(TestCase):
    """Value assignment: validators, errors, visitors."""

    def testInvalidValueMessage(self):
        fs, _ = capture()
        fs.int("count", "c", 0, "")
        with self.assertRaises(InvalidValueError) as context:
            fs.parse(["-c", "many"])
        error = context.exception
        self.assertTrue(str(error).startswith('invalid argument "many" for "-c, --count" flag: '))
        self.assertEqual(error.name, "count")
        self.assertEqual(error.raw, "many")
        self.assertIsInstance(error.cause, ValueError)

    def testInvalidValueWithoutShorthand(self):
        fs, _ = capture()
        fs.uint8("level", "", 0, "")
        with self.assertRaises(InvalidValueError) as context:
            fs.parse(["--level=300"])
        self.assertTrue(str(context.exception).startswith('invalid argument "300" for "--level" flag: '))

    def testEarlierAssignmentsKept(self):
        fs, _ = capture()
        name = fs.string("name", "", "", "")
        fs.int("count", "", 0, "")
        with self.assertRaises(InvalidValueError):
            fs.parse(["--name=kept", "--count=x", "tail"])
        self.assertEqual(name.get(), "kept")
        self.assertTrue(fs.changed("name"))
        self.assertFalse(fs.changed("count"))

    def testValidators(self):
        def positive(number):
            if number <= 0:
                raise ValueError("must be positive")

        fs, _ = capture()
        fs.int("port", "p", 80, "", validators=[positive])
        fs.parse(["--port=8080"])
        self.assertEqual(fs.get_int("port"), 8080)
        with self.assertRaises(InvalidValueError) as context:
            fs.parse(["-p", "-1"])
        self.assertTrue(str(context.exception).endswith("must be positive"))

    def testVisitorFailure(self):
        fs, _ = capture()
        fs.bool("verbose", "v", False, "")

        def visitor(flag, value):
            raise RuntimeError("boom")

        with self.assertRaises(DelegatedFlagError) as context:
            fs.parse_all(["-v"], visitor)
        self.assertEqual(context.exception.name, "verbose")
        self.assertIsInstance(context.exception.cause, RuntimeError)
        self.assertTrue(fs.changed("verbose"))

    def testVisitorMustBeCallable(self):
        fs, _ = capture()
        with self.assertRaises(TypeError):
            fs.parse_all([], "visitor")

    def testSet(self):
        fs, _ = capture()
        fs.int("count", "", 0, "")
        self.assertFalse(fs.is_set("count"))
        fs.set("count", "3")
        self.assertEqual(fs.get_int("count"), 3)
        self.assertTrue(fs.is_set("count"))
        self.assertTrue(fs.changed("count"))
        self.assertEqual(fs.nflag(), 1)
        with self.assertRaises(UndefinedFlagError) as context:
            fs.set("missing", "1")
        self.assertEqual(str(context.exception), "no such flag -missing")
        with self.assertRaises(InvalidValueError):
            fs.set("count", "x")

    def testReparseIsAdditive(self):
        fs, _ = capture()
        names = fs.string_slice("name", "", [], "")
        fs.parse(["--name=a", "first"])
        fs.parse(["--name=b", "second"])
        self.assertEqual(names.get(), ["a", "b"])
        self.assertEqual(fs.args(), ["second"])


class TestDeprecation(TestCase):
    """Deprecated flags and shorthands."""

    def testDeprecatedFlagNotice(self):
        fs, output = capture("bob")
        fs.bool("badflag", "", True, "always true")
        fs.mark_deprecated("badflag", "use --good-flag instead")
        self.assertTrue(fs.lookup("badflag").hidden)
        fs.parse(["--badflag"])
        self.assertIn("Flag --badflag has been deprecated, use --good-flag instead", output.getvalue())

    def testDeprecatedShorthandNotice(self):
        fs, output = capture("bob")
        fs.bool("noshorthandflag", "n", True, "always true")
        fs.mark_shorthand_deprecated("noshorthandflag", "use --noshorthandflag instead")
        fs.parse(["-n"])
        self.assertIn("Flag shorthand -n has been deprecated, use --noshorthandflag instead", output.getvalue())

    def testLongFormOfShorthandDeprecatedFlagIsQuiet(self):
        fs, output = capture("bob")
        fs.bool("noshorthandflag", "n", True, "")
        fs.mark_shorthand_deprecated("noshorthandflag", "use --noshorthandflag instead")
        fs.parse(["--noshorthandflag"])
        self.assertEqual(output.getvalue(), "")

    def testDeprecatedNormalized(self):
        fs, output = capture("bob")
        fs.bool("bad-double_flag", "", True, "")
        fs.set_normalize_func(separators)
        fs.mark_deprecated("bad_double-flag", "use --good-flag instead")
        fs.parse(["--bad_double_flag"])
        self.assertIn("use --good-flag instead", output.getvalue())

    def testEmptyMessageRejected(self):
        fs, _ = capture()
        fs.bool("flag", "f", False, "")
        with self.assertRaises(ValueError):
            fs.mark_deprecated("flag", "")
        with self.assertRaises(ValueError):
            fs.mark_shorthand_deprecated("flag", "")

    def testMetadataOnMissingFlag(self):
        fs, _ = capture()
        for mark in (
            lambda: fs.mark_deprecated("missing", "gone"),
            lambda: fs.mark_shorthand_deprecated("missing", "gone"),
            lambda: fs.mark_hidden("missing"),
            lambda: fs.set_annotation("missing", "key", ["value"]),
        ):
            with self.assertRaises(UndefinedFlagError):
                mark()

    def testAnnotation(self):
        fs, _ = capture()
        fs.string("stringa", "a", "", "string value")
        fs.set_annotation("stringa", "key", ["value1", "value2"])
        self.assertEqual(fs.lookup("stringa").annotations, {"key": ["value1", "value2"]})


class TestNormalization(TestCase):
    """Pluggable name normalization."""

    def testWordSeparators(self):
        fs, _ = capture()
        fs.set_normalize_func(separators)
        fs.bool("valid-flag", "", False, "")
        fs.bool("valid_flag2", "", False, "")
        fs.parse(["--valid_flag", "--valid.flag2"])
        self.assertTrue(fs.get_bool("valid-flag"))
        self.assertTrue(fs.get_bool("valid.flag2"))
        self.assertEqual(fs.lookup("valid-flag2").name, "valid_flag2")

    def testNormalizeAfterRegistration(self):
        fs, _ = capture()
        fs.bool("with_under_flag", "", False, "")
        fs.set_normalize_func(separators)
        self.assertIsNotNone(fs.lookup("with-under-flag"))
        fs.parse(["--with-under-flag"])
        self.assertTrue(fs.is_set("with_under_flag"))

    def testRekeyKeepsSetFlags(self):
        fs, _ = capture()
        fs.bool("set_me", "", False, "")
        fs.set("set_me", "true")
        fs.set_normalize_func(separators)
        self.assertTrue(fs.is_set("set-me"))

    def testCollisionAfterRenormalization(self):
        fs, _ = capture()
        fs.bool("my-flag", "", False, "")
        fs.bool("my_flag", "", False, "")
        fs.set_normalize_func(separators)
        with self.assertRaises(NameConflictError):
            fs.lookup("my-flag")
        flags = []
        fs.visit_all(flags.append)
        self.assertEqual(len(flags), 2)

    def testCalledOncePerRegistration(self):
        calls = []

        def normalize(flagset, name):
            calls.append(name)
            return name

        fs, _ = capture()
        fs.set_normalize_func(normalize)
        fs.bool("with_under_flag", "", False, "")
        self.assertEqual(calls, ["with_under_flag"])

    def testGetNormalizeFunc(self):
        fs, _ = capture()
        fs.set_normalize_func(separators)
        self.assertIs(fs.get_normalize_func(), separators)
        with self.assertRaises(TypeError):
            fs.set_normalize_func("separators")


class TestQueries(TestCase):
    """Lookups, args and visiting."""

    def testChangedHelper(self):
        fs, _ = capture()
        fs.bool("changed", "", False, "")
        fs.bool("settrue", "", True, "")
        fs.bool("setfalse", "", False, "")
        fs.bool("unchanged", "", False, "")
        fs.parse(["--changed", "--settrue", "--setfalse=false"])
        self.assertTrue(fs.changed("changed"))
        self.assertTrue(fs.changed("settrue"))
        self.assertTrue(fs.changed("setfalse"))
        self.assertFalse(fs.changed("unchanged"))
        self.assertFalse(fs.changed("invalid"))
        self.assertEqual(fs.nflag(), 3)

    def testShorthandLookup(self):
        fs, _ = capture()
        fs.bool("boola", "a", False, "")
        fs.bool("boolb", "b", False, "")
        self.assertEqual(fs.lookup_shorthand("a").name, "boola")
        self.assertIsNone(fs.lookup_shorthand(""))
        self.assertIsNone(fs.lookup_shorthand("z"))
        with self.assertRaises(ValueError):
            fs.lookup_shorthand("ab")

    def testArgs(self):
        fs, _ = capture()
        fs.parse(["one", "two"])
        self.assertEqual(fs.narg(), 2)
        self.assertEqual(fs.arg(1), "two")
        self.assertEqual(fs.arg(2), "")
        self.assertEqual(fs.arg(-1), "")
        arguments = fs.args()
        arguments.append("three")
        self.assertEqual(fs.narg(), 2)

    def testVisitAllSorted(self):
        fs, _ = capture()
        for name in ("C", "B", "A", "D"):
            fs.bool(name, "", False, "")
        seen = []
        fs.visit_all(lambda flag: seen.append(flag.name))
        self.assertEqual(seen, ["A", "B", "C", "D"])

    def testVisitAllInsertionOrder(self):
        fs, _ = capture(sort_flags=False)
        for name in ("C", "B", "A", "D"):
            fs.bool(name, "", False, "")
        seen = []
        fs.visit_all(lambda flag: seen.append(flag.name))
        self.assertEqual(seen, ["C", "B", "A", "D"])

    def testVisitSetFlags(self):
        fs, _ = capture(sort_flags=False)
        for name in ("C", "B", "A", "D"):
            fs.bool(name, "", False, "")
        fs.bool("E", "", False, "")
        for name in ("C", "B", "A", "D"):
            fs.set(name, "true")
        seen = []
        fs.visit(lambda flag: seen.append(flag.name))
        self.assertEqual(seen, ["C", "B", "A", "D"])

    def testHasFlags(self):
        fs, _ = capture()
        self.assertFalse(fs.has_flags())
        self.assertFalse(fs.has_available_flags())
        fs.bool("secret", "", False, "")
        fs.mark_hidden("secret")
        self.assertTrue(fs.has_flags())
        self.assertFalse(fs.has_available_flags())
        fs.bool("public", "", False, "")
        self.assertTrue(fs.has_available_flags())

    def testLookupIsExact(self):
        fs, _ = capture(abbreviations=True)
        fs.bool("verbose", "", False, "")
        self.assertIsNone(fs.lookup("verb"))
        fs.parse(["--verb"])
        self.assertTrue(fs.get_bool("verbose"))

    def testFlagRepr(self):
        fs, _ = capture()
        flag = fs.var(values.make("int", 3), "count", "c", "")
        self.assertIsInstance(flag, Flag)
        self.assertEqual(repr(flag), "<Flag -c, --count='3'>")
        self.assertEqual(flag.display(), "-c, --count")


class TestMerge(TestCase):
    """add_flagset() and merge()."""

    def testAddFlagSetKeepsExisting(self):
        fs, _ = capture()
        fs.string("name", "", "mine", "")
        other, _ = capture("other")
        other.string("name", "", "theirs", "")
        other.bool("verbose", "v", False, "")
        fs.add_flagset(other)
        self.assertEqual(fs.get_string("name"), "mine")
        self.assertIsNotNone(fs.lookup("verbose"))
        fs.add_flagset(None)

    def testMergeSharesValues(self):
        fs, _ = capture()
        other, _ = capture("other")
        box = other.int("count", "c", 0, "")
        fs.merge(other)
        fs.parse(["-c", "4"])
        self.assertEqual(box.get(), 4)
        self.assertFalse(other.changed("count"))

    def testMergeCopiesAnnotations(self):
        fs, _ = capture()
        other, _ = capture("other")
        other.bool("verbose", "", False, "")
        other.set_annotation("verbose", "group", ["output"])
        fs.merge(other)
        fs.lookup("verbose").annotations["group"].append("extra")
        self.assertEqual(other.lookup("verbose").annotations["group"], ["output"])

    def testMergeCollision(self):
        fs, _ = capture()
        fs.bool("verbose", "v", False, "")
        other, _ = capture("other")
        other.bool("verbose", "", False, "")
        with self.assertRaises(NameConflictError):
            fs.merge(other)
        shorthands, _ = capture("shorthands")
        shorthands.bool("version", "v", False, "")
        with self.assertRaises(ShorthandConflictError):
            fs.merge(shorthands)


if __name__ == '__main__':
    unittest.main()
