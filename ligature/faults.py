"""
Ligature faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  (errors and warnings) raised while tokenizing, mapping and binding input.
- BindingException / BindingWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased and actionable way.
- BindingExit: aggregate of every per-setting error of one bind() call.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Failure policy
- Quote mismatches are never swallowed; they abort the parse that met them.
- Nesting overflow is fatal and escapes every binder (it is not a ValueError).
- Everything else (unknown settings, unconvertible values) travels as data in
  ParseResult and only becomes a fault when bind() surfaces it.

Integration
- In non-shell mode, exceptions are raised and warnings are emitted through warnings.warn.
- In shell mode, faults are rendered to stderr via rich; errors then exit with status 1.
"""
import copy
import inspect
import logging
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from pathlib import Path
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

logger = logging.getLogger(__name__)

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across ligature (stable identifiers).

    grouping (by high-level domain)
    - tokenizing (1110x)
      • QUOTE_MISMATCH, NESTING_DEPTH_EXCEEDED
    - binding (1112x)
      • MISSING_VALUE, UNCASTABLE_VALUE, NULL_VALUE, INVALID_VALUE,
        ACTION_ONLY, UNMODIFIED_COLLECTION, MISSING_SETTINGS, UNWRITABLE_TARGET
    - warnings (12xxx)
      • UNUSED_PART

    rationale
    - codes are searchable in logs and docs, and normalize() lets hosts remap
      them to their own labels without breaking stability.
    """
    # --- tokenizing errors (11xxx) ---
    QUOTE_MISMATCH              = 11101
    NESTING_DEPTH_EXCEEDED      = 11102

    # --- binding errors (11xxx) ---
    MISSING_VALUE               = 11121
    UNCASTABLE_VALUE            = 11122
    NULL_VALUE                  = 11123
    INVALID_VALUE               = 11124
    ACTION_ONLY                 = 11125
    UNMODIFIED_COLLECTION       = 11126
    MISSING_SETTINGS            = 11127
    UNWRITABLE_TARGET           = 11128

    # --- warnings (12xxx) ---
    UNUSED_PART                 = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_PALETTES = {
    "error": {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title
        "error-message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    },
    "warning": {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",  # amber fault code for warnings
        "warning-title": "bold #FFC2E0",
        "warning-message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    },
    "exit": {
        "prog-name": "bold #E6E6F0",
        "title": "bold #FF4DA6",
    },
}


def _painter(kind, options, /):
    """
    build (styler, text) helpers for a palette, honoring __main__.__styles__
    and the colorful option.
    """
    styles = defaultdict(str, _PALETTES[kind] | getattr(__import__("__main__"), "__styles__", {}))
    colorful = options.get("colorful", True)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    return styler, text


def _prog(options, /):
    return getattr(__import__("__main__"), "__prog__", options.get("prog") or Path(sys.argv[0]).name or "ligature")


def _render(fault, kind, /):
    """
    render a single error or warning as a header/message/hint group, or as a
    panel when the fancy option is on.
    """
    options = fault.options
    styler, text = _painter(kind, options)

    header = Text.assemble(
        "[ ",
        text(_prog(options), styler("prog-name")),
        " — ",
        text(options["code"].normalize(), styler("code")),
        " | ",
        text(options["title"].title(), styler(kind + "-title")),
        " ]"
    )
    message = text(fault.message, styler(kind + "-message"))
    parts = [message]
    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if options.get("fancy", False):
        try:
            width = int((console.width - 4) * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*parts), title=header, title_align="left", width=width)

    return Group(header, *parts)


class BindingException(Exception):
    """
    base type for every error ligature raises or reports.

    options
    - code/title/hint: defaults come from the class-level __fault__ mapping and
      can be overridden per instance (trigger() merges runtime options too).
    - shell/fancy/colorful/deferred: rendering switches consumed by __trigger__.
    - anything else is context (setting, text, depth, ...) kept for handlers.
    """
    __fault__ = MappingProxyType({})

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(dict(type(self).__fault__) | options)

    def __rich__(self):
        return _render(self, "error")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class QuoteMismatchError(BindingException, ValueError):
    __fault__ = MappingProxyType({
        "code": FaultCode.QUOTE_MISMATCH,
        "title": "quote mismatch",
        "hint": "close every quote you open, and escape literal quotes with a backslash",
    })


class NestingDepthExceededError(BindingException, RecursionError):
    __fault__ = MappingProxyType({
        "code": FaultCode.NESTING_DEPTH_EXCEEDED,
        "title": "nesting too deep",
        "hint": "flatten the nested arguments or raise the schema limit",
    })


class SettingError(BindingException):
    __fault__ = MappingProxyType({
        "code": FaultCode.INVALID_VALUE,
        "title": "invalid setting",
        "hint": "use help followed by the setting name to see what it accepts",
    })


class MissingSettingsError(BindingException):
    __fault__ = MappingProxyType({
        "code": FaultCode.MISSING_SETTINGS,
        "title": "missing settings",
        "hint": "provide a value for every required setting",
    })


class BindingWarning(ABC, Warning):
    __fault__ = MappingProxyType({})

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(dict(type(self).__fault__) | options)

    def __rich__(self):
        return _render(self, "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnusedPartWarning(BindingWarning):
    __fault__ = MappingProxyType({
        "code": FaultCode.UNUSED_PART,
        "title": "unused part",
        "hint": "was an argument mistyped?",
    })


class BindingExit(ExceptionGroup[BindingException]):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        styler, text = _painter("exit", self.options)

        header = Text.assemble(
            "[ ", text(_prog(self.options), styler("prog-name")), " — ", text(self.message.title(), styler("title")), " ]"
        )
        renders = [copy.replace(exception, ratio=2/3, **self.options) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      and warnings are emitted.

    typical options
    - shell, fancy, colorful, deferred, prog, and any context the reporter may want
      to show (setting, text, part, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    logger.debug("triggering %s (shell=%s)", type(fault).__name__, options.get("shell", False))
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "BindingException",
    "QuoteMismatchError",
    "NestingDepthExceededError",
    "SettingError",
    "MissingSettingsError",
    "BindingWarning",
    "UnusedPartWarning",
    "BindingExit",
    "FaultCode",
    "trigger",
    "getdoc",
)
