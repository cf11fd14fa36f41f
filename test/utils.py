# python
"""
Shared helper tests (Unset, coalesce, rename, mirror, ordinal, CSV records).

Scope
- Validate the Unset marker: falsy, singleton, sealed, union-friendly.
- Validate coalesce/rename/mirror/ordinal, and that their docstring examples run.
- Validate that the registry entry points document every parameter they take.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import doctest
import inspect
import unittest
from unittest import TestCase

from pennant import FlagSet, utils
from pennant.utils import Unset, UnsetType, coalesce, mirror, ordinal, read_csv, rename, write_csv


class TestUnset(TestCase):

    def testMarker(self):
        self.assertFalse(Unset)
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertIsInstance(Unset, str | Unset)
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "true"), "true")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce("", "true"), "")
        self.assertIsNone(coalesce(None, "true"))


class TestHelpers(TestCase):

    def testRename(self):
        @rename("get_int")
        def getter():
            pass

        self.assertEqual((getter.__name__, getter.__qualname__), ("get_int", "get_int"))
        with self.assertRaises(TypeError):
            rename(1)

    def testMirror(self):
        class Box:
            parsed = mirror("parsed")

            def __init__(self):
                self._parsed = True

        box = Box()
        self.assertTrue(box.parsed)
        with self.assertRaises(AttributeError):
            box.parsed = False
        with self.assertRaises(TypeError):
            mirror(None)

    def testOrdinal(self):
        self.assertEqual([ordinal(n) for n in (1, 2, 10)], ["first", "second", "tenth"])
        self.assertEqual([ordinal(n) for n in (11, 12, 13, 21, 22, 23, 111)], ["11th", "12th", "13th", "21st", "22nd", "23rd", "111th"])

    def testCsv(self):
        self.assertEqual(read_csv('a,"b,c"'), ["a", "b,c"])
        self.assertEqual(read_csv(""), [])
        self.assertEqual(write_csv(["a", "b,c"]), 'a,"b,c"')


class TestDocumentation(TestCase):

    def testExamplesRun(self):
        results = doctest.testmod(utils)
        self.assertGreater(results.attempted, 0)
        self.assertEqual(results.failed, 0)

    def testHelpersDocumentParameters(self):
        for helper in (coalesce, rename, mirror, ordinal):
            with self.subTest(helper=helper.__name__):
                self.assertIn("Parameters", helper.__doc__)
                self.assertIn("Returns", helper.__doc__)
        self.assertIn("Characteristics", UnsetType.__doc__)

    def testRegistryDocumentsParameters(self):
        for method in (FlagSet.var, FlagSet.parse_all, FlagSet.merge, FlagSet.set_normalize_func):
            with self.subTest(method=method.__name__):
                doc = inspect.getdoc(method)
                self.assertIn("Parameters", doc)
                for name in list(inspect.signature(method).parameters)[1:]:
                    self.assertIn("- %s:" % name, doc)


if __name__ == '__main__':
    unittest.main()
