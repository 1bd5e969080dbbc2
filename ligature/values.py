"""
Ligature value converters: text → typed value.

A converter is any callable(text) -> value that raises ValueError, TypeError or
ArithmeticError on bad input. The module-level `converters` registry maps types
to converters and is consulted by every Setting that has no explicit parser.

Lookup order (ConverterRegistry.retrieve)
1. an exact registration for the type (built-ins, schema classes, user types);
2. for Enum subclasses, a caseless by-name converter, built once and cached;
3. the type itself when it is callable (int-like constructors, user classes).
"""
import builtins
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import Path
from uuid import UUID

from .tokens import ESCAPE, QUOTES
from .utils import Unset, iequals, rename

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d")


def unescape(text, quotes=QUOTES, escape=ESCAPE, /):
    """
    turn escaped quotes (\\") back into literal quotes.
    """
    for quote in quotes:
        text = text.replace(escape + quote, quote)
    return text


@rename("bool")
def _boolean(text, /):
    if iequals(text, "true"):
        return True
    if iequals(text, "false"):
        return False
    raise ValueError(f"{text!r} is not a boolean (expected true or false)")


@rename("datetime")
def _datetime(text, /):
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for format in DATE_FORMATS:
        try:
            return datetime.strptime(text, format)
        except ValueError:
            continue
    raise ValueError(f"{text!r} is not a date")


@rename("date")
def _date(text, /):
    return _datetime(text).date()


def _enumerate(type, /):
    """
    build a caseless by-name converter for an Enum subclass; values never match.
    """
    @rename(type.__name__)
    def converter(text, /):
        for name, member in type.__members__.items():
            if iequals(name, text):
                return member
        raise ValueError(f"{text!r} is not one of {', '.join(type.__members__)}")
    return converter


class ConverterRegistry:
    """
    mapping of types to text converters.

    - register(type, converter): add or replace a converter; also usable as a
      decorator, register(type) -> wrapper.
    - remove(type): drop a registration (KeyError when missing).
    - retrieve(type): see module docstring for the lookup order.
    """

    def __init__(self, converters=(), /):
        self._converters = dict(converters)

    def register(self, type, converter=Unset, /):
        if not callable(type):
            raise TypeError("register() first argument must be a type or callable")
        if converter is Unset:
            def wrapper(converter):
                self.register(type, converter)
                return converter
            return rename(wrapper, "register")
        if not callable(converter):
            raise TypeError("register() second argument must be callable")
        self._converters[type] = converter
        logger.debug("registered converter for %s", getattr(type, "__name__", type))
        return converter

    def remove(self, type, /):
        del self._converters[type]

    def retrieve(self, type, /):
        try:
            return self._converters[type]
        except KeyError:
            pass
        if isinstance(type, builtins.type) and issubclass(type, Enum):
            converter = self._converters[type] = _enumerate(type)
            return converter
        if callable(type):
            return type
        raise TypeError(f"no converter for {type!r}")

    def __contains__(self, type):
        return type in self._converters


converters = ConverterRegistry({
    str: str,
    bool: _boolean,
    int: int,
    float: float,
    complex: complex,
    Decimal: Decimal,
    Fraction: Fraction,
    datetime: _datetime,
    date: _date,
    time: time.fromisoformat,
    Path: Path,
    UUID: UUID,
})


__all__ = (
    "DATE_FORMATS",
    "ConverterRegistry",
    "converters",
    "unescape",
)
