"""
Converter registry tests.

Scope
- Built-in converters (booleans, numbers, dates, paths).
- Enum by-name conversion (caseless, values rejected).
- Registration, removal and fallback to the type itself.
- Quote unescaping.
"""
import unittest
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from unittest import TestCase

from ligature import ConverterRegistry, converters, unescape


class Color(Enum):
    RED = 1
    GREEN = 2


class Point:
    def __init__(self, text):
        self.x, self.y = map(int, text.split(","))


class TestBuiltins(TestCase):
    def testBoolean(self):
        convert = converters.retrieve(bool)
        self.assertIs(convert("TRUE"), True)
        self.assertIs(convert("false"), False)
        with self.assertRaises(ValueError):
            convert("yes")

    def testNumbers(self):
        self.assertEqual(converters.retrieve(int)("18446744073709551615"), 2 ** 64 - 1)
        self.assertEqual(converters.retrieve(float)("1.5"), 1.5)
        self.assertEqual(converters.retrieve(Decimal)("0.1"), Decimal("0.1"))

    def testDecimalFailureIsArithmeticError(self):
        with self.assertRaises(ArithmeticError):
            converters.retrieve(Decimal)("asdf")

    def testDates(self):
        self.assertEqual(converters.retrieve(datetime)("05/06/2018"), datetime(2018, 5, 6))
        self.assertEqual(converters.retrieve(datetime)("2018/05/06"), datetime(2018, 5, 6))
        self.assertEqual(converters.retrieve(datetime)("2018-05-06T10:30:00"), datetime(2018, 5, 6, 10, 30))
        self.assertEqual(converters.retrieve(date)("2018-05-06"), date(2018, 5, 6))
        with self.assertRaises(ValueError):
            converters.retrieve(datetime)("not a date")

    def testPath(self):
        self.assertEqual(converters.retrieve(Path)("a/b"), Path("a/b"))


class TestEnums(TestCase):
    def testByNameIgnoringCase(self):
        self.assertIs(converters.retrieve(Color)("green"), Color.GREEN)

    def testValuesNeverMatch(self):
        with self.assertRaises(ValueError):
            converters.retrieve(Color)("1")

    def testConverterIsCached(self):
        self.assertIs(converters.retrieve(Color), converters.retrieve(Color))
        self.assertIn(Color, converters)


class TestRegistry(TestCase):
    def setUp(self):
        self.registry = ConverterRegistry()

    def testFallbackToType(self):
        point = self.registry.retrieve(Point)("3,4")
        self.assertEqual((point.x, point.y), (3, 4))

    def testRegisterAndRemove(self):
        self.registry.register(int, lambda text: int(text, 16))
        self.assertEqual(self.registry.retrieve(int)("ff"), 255)
        self.registry.remove(int)
        self.assertNotIn(int, self.registry)
        self.assertIs(self.registry.retrieve(int), int)

    def testRegisterAsDecorator(self):
        @self.registry.register(Point)
        def parse(text):
            return "custom:" + text

        self.assertIs(self.registry.retrieve(Point), parse)

    def testRegisterRejectsNonCallables(self):
        with self.assertRaises(TypeError):
            self.registry.register(int, "not callable")

    def testRetrieveRejectsNonCallables(self):
        with self.assertRaises(TypeError):
            self.registry.retrieve(42)


class TestUnescape(TestCase):
    def testEscapedQuotesBecomeLiteral(self):
        self.assertEqual(unescape(r'-Name \"Test Value\"'), '-Name "Test Value"')

    def testOtherBackslashesAreKept(self):
        self.assertEqual(unescape(r"C:\temp"), r"C:\temp")


if __name__ == "__main__":
    unittest.main()
