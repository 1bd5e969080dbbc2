r"""
Resolver and mapper behavioral tests.

Scope
- Prefix stripping in the three PrefixState modes, caseless lookup, alias identity.
- argmap(): settings claiming text, unused parts, flags, quoted names, nesting
  markers and strictness.

Conventions
- Test method names follow CamelCase per project convention.
- Settings are stand-in handles exposing only names and flag, the two
  attributes the mapper reads.
"""
import unittest
from unittest import TestCase

from ligature import (
    PREFIXES, MappingEntry, PrefixState, QuoteMismatchError, Span, argmap, deprefix, resolve, tokenize,
)


class Handle:
    def __init__(self, *names, flag=False):
        self.names = names
        self.flag = flag

    def __repr__(self):
        return f"Handle({self.names[0]!r})"


STRING = Handle("StringValue", "s")
VERBOSE = Handle("Verbose", "v", flag=True)
CHILD = Handle("Child")
LOOKUP = {name.casefold(): handle for handle in (STRING, VERBOSE, CHILD) for name in handle.names}


def mapped(text, /, **options):
    return argmap(tokenize(text), lambda token: resolve(token, PREFIXES, LOOKUP), **options)


class TestResolve(TestCase):
    """Token → handle resolution."""

    def testRequiredPrefixIsStripped(self):
        self.assertIs(resolve("-StringValue", PREFIXES, LOOKUP), STRING)
        self.assertIs(resolve("--stringvalue", PREFIXES, LOOKUP), STRING)
        self.assertIs(resolve("/STRINGVALUE", PREFIXES, LOOKUP), STRING)

    def testRequiredPrefixIsMandatory(self):
        self.assertIsNone(resolve("StringValue", PREFIXES, LOOKUP))

    def testOptionalPrefix(self):
        self.assertIs(resolve("StringValue", PREFIXES, LOOKUP, PrefixState.OPTIONAL), STRING)
        self.assertIs(resolve("-StringValue", PREFIXES, LOOKUP, PrefixState.OPTIONAL), STRING)

    def testNotPrefixedUsesTokenVerbatim(self):
        self.assertIs(resolve("stringvalue", PREFIXES, LOOKUP, PrefixState.NOT_PREFIXED), STRING)
        self.assertIsNone(resolve("-StringValue", PREFIXES, LOOKUP, PrefixState.NOT_PREFIXED))

    def testAliasesResolveToTheSameHandle(self):
        self.assertIs(resolve("-s", PREFIXES, LOOKUP), resolve("--StringValue", PREFIXES, LOOKUP))

    def testUnknownTokens(self):
        self.assertIsNone(resolve("-unknown", PREFIXES, LOOKUP))
        self.assertIsNone(resolve("-", PREFIXES, LOOKUP))
        self.assertIsNone(resolve("hello", PREFIXES, LOOKUP))

    def testPrefixComparisonIgnoresCase(self):
        self.assertIs(resolve("SET:verbose", ("set:",), LOOKUP), VERBOSE)

    def testDeprefix(self):
        self.assertEqual(deprefix("--", "--x"), "x")
        self.assertIsNone(deprefix("-", "x"))
        self.assertEqual(deprefix("-", "x", PrefixState.OPTIONAL), "x")
        self.assertEqual(deprefix("-", "-x", PrefixState.NOT_PREFIXED), "-x")


class TestArgmap(TestCase):
    """Span → (setting, text) grouping."""

    def testSettingClaimsOneSpan(self):
        self.assertEqual(mapped("-StringValue hello"), [MappingEntry(STRING, "hello")])

    def testUnusedToken(self):
        self.assertEqual(
            mapped("-StringValue hello extra"),
            [MappingEntry(STRING, "hello"), MappingEntry(None, "extra")],
        )

    def testLeadingUnusedTokens(self):
        self.assertEqual(
            mapped("stray -s x"),
            [MappingEntry(None, "stray"), MappingEntry(STRING, "x")],
        )

    def testFlagZeroArg(self):
        self.assertEqual(mapped("-Verbose"), [MappingEntry(VERBOSE, None)])

    def testFlagFollowedBySetting(self):
        self.assertEqual(
            mapped("-Verbose -StringValue x"),
            [MappingEntry(VERBOSE, None), MappingEntry(STRING, "x")],
        )

    def testFlagAbsorbsBooleanLiterals(self):
        self.assertEqual(mapped("-v false"), [MappingEntry(VERBOSE, "false")])
        self.assertEqual(mapped("-v TRUE"), [MappingEntry(VERBOSE, "TRUE")])

    def testFlagDoesNotAbsorbWords(self):
        self.assertEqual(
            mapped("-Verbose hello"),
            [MappingEntry(VERBOSE, None), MappingEntry(None, "hello")],
        )

    def testTrailingSettingWithoutText(self):
        self.assertEqual(
            mapped("-s a -StringValue"),
            [MappingEntry(STRING, "a"), MappingEntry(STRING, None)],
        )

    def testQuotedSettingNameResolves(self):
        self.assertEqual(
            mapped('"-Verbose" -StringValue x'),
            [MappingEntry(VERBOSE, None), MappingEntry(STRING, "x")],
        )

    def testQuotedSettingNameEndsThePendingSetting(self):
        self.assertEqual(
            mapped('-StringValue "-Verbose"'),
            [MappingEntry(STRING, None), MappingEntry(VERBOSE, None)],
        )

    def testQuotedTextWithSpacesIsNeverASettingName(self):
        self.assertEqual(mapped('-StringValue "-Verbose now"'), [MappingEntry(STRING, "-Verbose now")])

    def testNestedTextStaysWhole(self):
        self.assertEqual(
            mapped(r'-Child "-Name "-Name \"Test Value\"" -Text TestText"'),
            [MappingEntry(CHILD, r'-Name "-Name \"Test Value\"" -Text TestText')],
        )

    def testWholeStringQuotedIsUnused(self):
        self.assertEqual(mapped('"a b c"'), [MappingEntry(None, "a b c")])

    def testRoundTrip(self):
        for text in ("hello", "42", "x.y", "-"):
            with self.subTest(text=text):
                entry, = mapped(f"-StringValue {text}")
                self.assertEqual(mapped(f"-{entry.setting.names[0]} {entry.text}"), [entry])

    def testEmptyInput(self):
        self.assertEqual(mapped(""), [])


class TestDepthMarkers(TestCase):
    """Spans carrying a single quote flag move the quote depth."""

    def resolver(self, token):
        return resolve(token, PREFIXES, LOOKUP)

    def testOpenRegionAbsorbsSettingNames(self):
        spans = [
            Span("-StringValue", False, False),
            Span("-Verbose", True, False),
            Span("inner", False, False),
            Span("tail", False, True),
            Span("extra", False, False),
        ]
        self.assertEqual(
            argmap(spans, self.resolver),
            [MappingEntry(STRING, "-Verbose inner tail"), MappingEntry(None, "extra")],
        )

    def testFlagIsEmittedBeforeAnOpenRegion(self):
        spans = [Span("-Verbose", False, False), Span("a", True, False), Span("b", False, True)]
        self.assertEqual(
            argmap(spans, self.resolver),
            [MappingEntry(VERBOSE, None), MappingEntry(None, "a b")],
        )

    def testUnclosedRegionRaisesWhenStrict(self):
        with self.assertRaises(QuoteMismatchError):
            argmap([Span("-s", False, False), Span("a", True, False)], self.resolver)

    def testUnclosedRegionIsKeptWhenLenient(self):
        self.assertEqual(
            argmap([Span("-s", False, False), Span("a", True, False), Span("b", False, False)], self.resolver, strict=False),
            [MappingEntry(STRING, "a b")],
        )

    def testCloseWithoutOpenRaises(self):
        with self.assertRaises(QuoteMismatchError):
            argmap([Span("a", False, True)], self.resolver)


if __name__ == "__main__":
    unittest.main()
