"""
Tests for the internal helpers.

This module verifies the guarantees the rest of the package leans on:
- The Unset sentinel is a falsy singleton usable in isinstance unions.
- coalesce() only replaces Unset.
- rename() sets names directly or as a decorator.
- mirror() exposes read-only, immutable views of private fields.
- iequals() compares without regard to case.
"""
import unittest
from types import MappingProxyType
from unittest import TestCase

from ligature.utils import *


class Holder:
    items = mirror("items")
    table = mirror("table")
    tags = mirror("tags")
    count = mirror("count")

    def __init__(self) -> None:
        self._items = [1, 2]
        self._table = {"a": 1}
        self._tags = {"x"}
        self._count = 3


class UnsetTest(TestCase):
    def testSingleton(self) -> None:
        """
        The constructor always returns the module-level instance.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnion(self) -> None:
        """
        str | Unset works as the second argument of isinstance().
        """
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            class Subclass(UnsetType):
                pass


class HelpersTest(TestCase):
    def testCoalesce(self) -> None:
        """
        Only Unset is replaced; other falsy values are legitimate.
        """
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)

    def testRename(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorViews(self) -> None:
        """
        Containers come back as immutable views; scalars as-is.
        """
        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.tags, frozenset({"x"}))
        self.assertEqual(holder.count, 3)

    def testMirrorIsReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            Holder().count = 4

    def testIequals(self) -> None:
        self.assertTrue(iequals("AddIfMissing", "addifmissing"))
        self.assertFalse(iequals("Add", "Added"))


if __name__ == "__main__":
    unittest.main()
