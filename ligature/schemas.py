r"""
Ligature schemas: collections of settings, the registry, and bind().

Overview
- Schema: an ordered set of settings with a caseless alias map, name prefixes,
  an optional help command and a nesting limit. parse() runs the whole
  pipeline (tokenize → argmap → bind every entry) against a source object.
- SchemaRegistry / registry: type → schema lookup (walking the MRO). Registering
  a type also registers a converter for it, so a setting typed with a schema
  type parses its argument text into a fresh instance recursively.
- schema(*settings, **options): class decorator registering a new Schema.
- bind(source, input, ...): parse, then surface quote mismatches, unused parts,
  binding errors and missing settings as faults (see faults.trigger).

Ledger
- Each schema keeps, per source (keyed by id()), a bitset of the settings not
  yet set on it. Entries are created on first use; needed()/satisfied()/
  describe() read it, reset() sets the bits again.
- Every entry holds a reference to its source and is only returned for that
  very object, so a recycled id never inherits another object's bits.
  Sources supporting weak references are tracked weakly and their entry is
  dropped when they are collected; any other source is held strongly until
  release(source).

Nesting
- Recursive parses are counted in a context variable; a parse starting at
  depth >= limit raises NestingDepthExceededError, which no binder swallows.

Example
    >>> class Person:
    ...     name = None
    ...     age = None
    >>> registry.register(Person, Schema(Setting("Name"), Setting("Age", type=int)))
    >>> person = Person()
    >>> registry.parse(person, '-Name "Ada Lovelace" -Age 36').success
    True
"""
import builtins
import logging
import sys
import weakref
from collections.abc import Iterable
from contextvars import ContextVar

from rich.console import Console

from .faults import (
    BindingExit, MissingSettingsError, NestingDepthExceededError, QuoteMismatchError, SettingError,
    UnusedPartWarning, trigger,
)
from .mapping import PREFIXES, PrefixState, argmap, resolve
from .results import HelpResult, ParseResult
from .settings import HelpCommand, Setting
from .tokens import ESCAPE, QUOTES, Span, tokenize
from .utils import Unset, mirror, rename
from .values import converters

logger = logging.getLogger(__name__)

MAXDEPTH = 64

_depth = ContextVar("depth", default=0)


def _referent(reference, /):
    return reference() if isinstance(reference, weakref.ref) else reference


class Schema:
    """
    Ordered, caseless collection of settings bound to one kind of source.

    Parameters
    - settings: initial Setting objects (each may belong to one schema only).
    - prefixes: name prefixes tried in order during resolution.
    - quotes: quote characters recognized by the tokenizer.
    - escape: character making the following quote literal.
    - help: add a HelpCommand (help/h).
    - limit: maximum nesting depth of recursive parses.
    """
    prefixes = mirror("prefixes")
    quotes = mirror("quotes")
    escape = mirror("escape")
    limit = mirror("limit")
    frozen = mirror("frozen")

    def __init__(self, *settings, prefixes=PREFIXES, quotes=QUOTES, escape=ESCAPE, help=True, limit=MAXDEPTH):
        if isinstance(prefixes, str) or not isinstance(prefixes, Iterable):
            raise TypeError("schema 'prefixes' must be an iterable of strings")
        prefixes = tuple(prefixes)
        if not prefixes or not all(isinstance(prefix, str) and prefix for prefix in prefixes):
            raise ValueError("schema 'prefixes' must be non-empty strings")
        if isinstance(quotes, str) or not isinstance(quotes, Iterable):
            raise TypeError("schema 'quotes' must be an iterable of characters")
        quotes = tuple(quotes)
        if not quotes or not all(isinstance(quote, str) and len(quote) == 1 and not quote.isspace() for quote in quotes):
            raise ValueError("schema 'quotes' must be single non-whitespace characters")
        if not isinstance(escape, str):
            raise TypeError("schema 'escape' must be a string")
        if len(escape) != 1 or escape.isspace() or escape in quotes:
            raise ValueError("schema 'escape' must be one non-whitespace character other than a quote")
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise TypeError("schema 'limit' must be an integer")
        if limit < 1:
            raise ValueError("schema 'limit' must be a positive integer")

        self._prefixes = prefixes
        self._quotes = quotes
        self._escape = escape
        self._limit = limit
        self._frozen = False
        self._settings = []
        self._lookup = {}
        self._bits = {}
        self._counter = 0
        self._ledger = {}

        for setting in settings:
            self.add(setting)
        if help:
            self.add(HelpCommand(self))

    def _check(self):
        if self._frozen:
            raise RuntimeError("cannot modify a schema after it has been frozen")

    def add(self, setting, /):
        """
        add a setting; its names must not collide with any registered alias.
        """
        self._check()
        if not isinstance(setting, Setting):
            raise TypeError("schema settings must be Setting instances")
        if setting in self._settings:
            raise ValueError(f"setting {setting.name!r} is already in this schema")
        if isinstance(setting, HelpCommand) and any(isinstance(other, HelpCommand) for other in self._settings):
            raise ValueError("do not add more than one help command into a schema")
        for name in setting.names:
            if name.casefold() in self._lookup:
                raise ValueError(f"setting name {name!r} is already registered")

        setting._adopt(self)
        self._settings.append(setting)
        for name in setting.names:
            self._lookup[name.casefold()] = setting
        self._bits[setting] = bit = self._counter
        self._counter += 1
        for entry in self._ledger.values():
            entry[1] |= 1 << bit

    def remove(self, setting, /):
        """
        remove a setting (or the setting registered under a name).
        """
        self._check()
        if isinstance(setting, str):
            setting = self.get(setting)
        self._settings.remove(setting)
        for name in setting.names:
            del self._lookup[name.casefold()]
        bit = self._bits.pop(setting)
        for entry in self._ledger.values():
            entry[1] &= ~(1 << bit)
        setting._adopt(None)

    def clear(self):
        for setting in list(self._settings):
            self.remove(setting)

    def freeze(self):
        self._frozen = True

    def __contains__(self, item):
        if isinstance(item, str):
            return item.casefold() in self._lookup
        return item in self._settings

    def __iter__(self):
        return iter(tuple(self._settings))

    def __len__(self):
        return len(self._settings)

    def resolve(self, token, /, state=PrefixState.REQUIRED):
        return resolve(token, self._prefixes, self._lookup, state)

    def get(self, name, /, state=PrefixState.NOT_PREFIXED):
        if (setting := self.resolve(name, state)) is None:
            raise KeyError(f"There is no setting with the registered name {name}.")
        return setting

    def information(self, name=Unset, /):
        """
        help text for one setting, or the list of every setting with its aliases.
        """
        if name is Unset or not name.strip():
            lines = (
                setting.name if len(setting.names) < 2 else f"{setting.name} ({', '.join(setting.names[1:])})"
                for setting in self._settings
            )
            return "All Settings:\n\t" + "\n\t".join(lines)
        if (setting := self.resolve(name.strip(), PrefixState.OPTIONAL)) is None:
            return f"'{name}' is not a valid setting."
        return setting.information

    def _entry(self, source, /):
        """
        ledger entry [reference, bits] of source, created with every bit set.

        an entry whose reference no longer points at source belongs to a
        collected object that had the same id and is replaced.
        """
        key = id(source)
        if (entry := self._ledger.get(key)) is not None and _referent(entry[0]) is source:
            return entry
        try:
            reference = weakref.ref(source)
        except TypeError:
            reference = source
        else:
            weakref.finalize(source, self._forget, key, reference)
        entry = self._ledger[key] = [reference, sum(1 << bit for bit in self._bits.values())]
        return entry

    def _forget(self, key, reference, /):
        if (entry := self._ledger.get(key)) is not None and entry[0] is reference:
            del self._ledger[key]

    def _mark(self, source, setting, /):
        self._entry(source)[1] &= ~(1 << self._bits[setting])

    def isset(self, source, setting, /):
        """
        whether setting was bound on source since its ledger entry was created.
        """
        if isinstance(setting, str):
            setting = self.get(setting)
        return not self._entry(source)[1] >> self._bits[setting] & 1

    def needed(self, source, /):
        """
        settings that must still be set on source.

        a setting is needed when it is not optional, has not been set, and no
        other setting of its group has been set.
        """
        unset = {setting for setting in self._settings if not self.isset(source, setting)}
        groups = {setting.group for setting in self._settings if setting not in unset and setting.group is not None}
        return [
            setting for setting in self._settings
            if setting in unset and not setting.optional and setting.group not in groups
        ]

    def satisfied(self, source, /):
        return not self.needed(source)

    def describe(self, source, /):
        if not (needed := self.needed(source)):
            return "Every setting which is necessary has been set."
        return "The following settings need to be set:\n" + "".join(f"\t{setting}\n" for setting in needed)

    def reset(self, source, name=Unset, /):
        """
        write defaults back to source (every setting, or only the named one).
        """
        settings = self._settings if name is Unset else [self.get(name)]
        for setting in settings:
            if isinstance(setting, HelpCommand):
                continue
            setting.reset(source)
            self._entry(source)[1] |= 1 << self._bits[setting]

    def release(self, source, /):
        """
        forget the ledger entry of source.

        only needed for sources without weak reference support, which are
        otherwise kept alive by their entry.
        """
        key = id(source)
        if (entry := self._ledger.get(key)) is not None and _referent(entry[0]) is source:
            del self._ledger[key]

    def _split(self, input, /):
        if input is Unset:
            input = sys.argv[1:]
        if input is None or isinstance(input, str):
            return tokenize(input, self._quotes, escape=self._escape)
        if not isinstance(input, Iterable):
            raise TypeError("parse() input must be a string or an iterable of strings")
        spans = []
        for part in input:
            if not isinstance(part, str):
                raise TypeError("parse() input must be a string or an iterable of strings")
            if part := part.strip():
                spans.append(Span(part, False, False))
        return spans

    def parse(self, source, input=Unset, /, *, strict=True):
        """
        bind input to source and report every outcome.

        Parameters
        - source: object receiving the values.
        - input: str (tokenized), iterable of pre-split strings, or Unset (sys.argv[1:]).
        - strict: raise on quoted regions left open by nesting markers.

        Raises
        - QuoteMismatchError: unbalanced quotes at this level.
        - NestingDepthExceededError: the recursive parse went deeper than limit.
        """
        if (depth := _depth.get()) >= self._limit:
            raise NestingDepthExceededError(
                f"arguments are nested deeper than {self._limit} levels", depth=depth, limit=self._limit
            )
        token = _depth.set(depth + 1)
        try:
            entries = argmap(self._split(input), self.resolve, strict=strict)
            unused, successes, errors, help = [], [], [], []
            for setting, text in entries:
                if setting is None:
                    unused.append(text)
                    continue
                if text is None and setting.flag:
                    text = "true"
                result = setting.bind(source, text)
                if isinstance(result, HelpResult):
                    help.append(result)
                elif result.success:
                    successes.append(result)
                    self._mark(source, setting)
                else:
                    errors.append(result)
            logger.debug(
                "parsed %s at depth %d: %d successes, %d errors, %d unused",
                type(source).__name__, depth, len(successes), len(errors), len(unused),
            )
            return ParseResult(unused, successes, errors, help)
        finally:
            _depth.reset(token)

    def __repr__(self):
        return f"Schema({', '.join(setting.name for setting in self._settings)})"


class SchemaRegistry:
    """
    type → Schema mapping.

    - register(cls, schema): freeze schema, store it, and register a converter
      turning argument text into a parsed cls() instance.
    - retrieve(cls): first registration along cls.__mro__ (KeyError when none).
    - parse(source, input): parse with the schema of type(source).
    """

    def __init__(self):
        self._schemas = {}

    def register(self, cls, schema, /):
        if not isinstance(cls, builtins.type):
            raise TypeError("register() first argument must be a class")
        if not isinstance(schema, Schema):
            raise TypeError("register() second argument must be a schema")
        schema.freeze()
        self._schemas[cls] = schema
        converters.register(cls, self._nested(cls))
        logger.debug("registered schema for %s with %d settings", cls.__name__, len(schema))
        return schema

    def remove(self, cls, /):
        del self._schemas[cls]
        converters.remove(cls)

    def retrieve(self, cls, /):
        for base in cls.__mro__:
            try:
                return self._schemas[base]
            except KeyError:
                continue
        raise KeyError(f"There is no schema registered for {cls.__name__}.")

    def __contains__(self, cls):
        return any(base in self._schemas for base in getattr(cls, "__mro__", ()))

    def parse(self, source, input=Unset, /, *, strict=True):
        return self.retrieve(type(source)).parse(source, input, strict=strict)

    def _nested(self, cls, /):
        """
        build the converter parsing text into a new cls() instance.

        the instance is returned only when every part was used, nothing failed
        and no required setting is missing; otherwise ValueError is raised.
        """
        @rename(cls.__name__)
        def converter(text, /):
            schema = self.retrieve(cls)
            source = cls()
            try:
                result = schema.parse(source, text)
                if not result.success:
                    raise ValueError(str(result).strip())
                if not schema.satisfied(source):
                    raise ValueError(schema.describe(source).strip())
                return source
            finally:
                schema.release(source)
        return converter


registry = SchemaRegistry()


def schema(*settings, **options):
    """
    class decorator registering Schema(*settings, **options) for the class.

    settings referring to the decorated class itself must be registered after
    the class exists, with registry.register().
    """
    def wrapper(cls):
        registry.register(cls, Schema(*settings, **options))
        return cls
    return rename(wrapper, "schema")


def bind(source, input=Unset, /, *, shell=False, fancy=False, colorful=True, strict=True, complete=True):
    """
    parse input into source and surface problems as faults.

    Behavior
    - QuoteMismatchError is triggered as-is (raised, or printed and exit in shell mode).
    - each unused part triggers an UnusedPartWarning.
    - each error result becomes a SettingError; when complete is set, a missing
      required setting adds a MissingSettingsError. All of them are triggered
      together as one BindingExit.
    - in shell mode help responses are printed to stdout.

    Returns the ParseResult when nothing fatal was triggered.
    """
    options = {"shell": shell, "fancy": fancy, "colorful": colorful}
    schema = registry.retrieve(type(source))
    try:
        result = schema.parse(source, input, strict=strict)
    except QuoteMismatchError as exception:
        trigger(exception, **options)
        return None

    if shell and result.help:
        output = Console()
        for help in result.help:
            output.print(str(help), markup=False, highlight=False)

    for part in result.unused:
        trigger(UnusedPartWarning(f"'{part}' was not claimed by any setting", part=part), **options)

    faults = [
        SettingError(error.response, setting=error.setting.name, text=error.text, code=error.code)
        for error in result.errors
    ]
    if complete and not result.help and not schema.satisfied(source):
        faults.append(MissingSettingsError(
            schema.describe(source).strip(),
            settings=tuple(setting.name for setting in schema.needed(source)),
        ))
    if faults:
        trigger(BindingExit(faults), **options)
    return result


__all__ = (
    "MAXDEPTH",
    "Schema",
    "SchemaRegistry",
    "registry",
    "schema",
    "bind",
)
