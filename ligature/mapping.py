"""
Ligature mapping: setting resolution and the span-to-setting state machine.

Resolution
- resolve() decides whether a token names a known setting. It strips one of the
  registered prefixes (tried in order, case-insensitively) according to a
  PrefixState, then looks the remainder up in a casefolded name → setting
  mapping. Every alias of a setting maps to the same object.

Mapping
- argmap() walks spans in order and groups them into MappingEntry pairs:
  • a depth-0 span that resolves starts a new setting (the previous one is
    emitted, with no text if it took none);
  • a depth-0 span that does not resolve is the text of the pending setting,
    or an unused entry (setting None) when there is none; either way the entry
    is emitted at once, so a setting claims at most one span;
  • a whole quoted region is resolved like a bare word, so "-Verbose" names
    Verbose; text with spaces never matches a name and stays whole;
  • while the quote depth is non-zero (nesting markers), spans are absorbed
    verbatim and the region is emitted as a whole once depth returns to 0;
  • flag settings take no text, except a following boolean literal.
- the result preserves input order and is a pure function of its inputs.
"""
import logging
from collections import namedtuple
from enum import Enum, auto

from .faults import QuoteMismatchError

logger = logging.getLogger(__name__)

PREFIXES = ("-", "--", "/")
BOOLEANS = ("true", "false")


class PrefixState(Enum):
    """
    how a token's prefix is treated during resolution.

    - REQUIRED: the token must start with a prefix, which is stripped.
    - OPTIONAL: a prefix is stripped when present; otherwise the token is used verbatim.
    - NOT_PREFIXED: the token is used verbatim.
    """
    REQUIRED = auto()
    OPTIONAL = auto()
    NOT_PREFIXED = auto()


MappingEntry = namedtuple("MappingEntry", ("setting", "text"))


def deprefix(prefix, token, state=PrefixState.REQUIRED, /):
    """
    strip prefix from token according to state.

    Returns the stripped token, the token itself (OPTIONAL without the prefix,
    or NOT_PREFIXED), or None when a REQUIRED prefix is absent.
    """
    match state:
        case PrefixState.NOT_PREFIXED:
            return token
        case PrefixState.REQUIRED | PrefixState.OPTIONAL:
            if token[:len(prefix)].casefold() == prefix.casefold():
                return token[len(prefix):]
            return token if state is PrefixState.OPTIONAL else None
        case _:
            raise TypeError("deprefix() state must be a prefix-state")


def resolve(token, prefixes, lookup, /, state=PrefixState.REQUIRED):
    """
    return the setting named by token, or None.

    Parameters
    - token: str candidate.
    - prefixes: ordered prefixes; the first one yielding a known name wins.
    - lookup: mapping of casefolded names to settings.
    - state: PrefixState.
    """
    if state is not PrefixState.NOT_PREFIXED:
        for prefix in prefixes:
            name = deprefix(prefix, token, PrefixState.REQUIRED)
            if name and (setting := lookup.get(name.casefold())) is not None:
                return setting
        if state is PrefixState.REQUIRED:
            return None
    return lookup.get(token.casefold())


def _join(text, part, /):
    return part if text is None else text + " " + part


def argmap(spans, resolve, /, *, strict=True):
    """
    group spans into ordered (setting, text) entries.

    Parameters
    - spans: iterable of Span.
    - resolve: callable(token) -> setting or None (settings expose names and flag).
    - strict: raise QuoteMismatchError when quote depth has not returned to 0 at
      the end of input; otherwise the open region is emitted as text.

    Raises
    - QuoteMismatchError: a span closes a region that was never opened, or
      (strict) a region is left open.
    """
    entries = []
    setting = text = None
    depth = 0

    for span in spans:
        previous = depth
        depth += span.delta
        if depth < 0:
            raise QuoteMismatchError(f"{span.text!r} closes a quote that was never opened", text=span.text)

        if depth != 0:
            if previous == 0 and setting is not None and setting.flag:
                entries.append(MappingEntry(setting, None))
                setting = None
            text = _join(text, span.text)
            continue

        if previous == 0 and (target := resolve(span.text)) is not None:
            if setting is not None:
                entries.append(MappingEntry(setting, text))
            setting, text = target, None
            continue

        if previous == 0 and setting is not None and setting.flag and span.text.casefold() not in BOOLEANS:
            entries.append(MappingEntry(setting, None))
            setting = None

        entries.append(MappingEntry(setting, _join(text, span.text)))
        setting = text = None

    if depth != 0:
        if strict:
            raise QuoteMismatchError(f"{depth} quoted region(s) left open", depth=depth)
        logger.debug("ignoring %d unclosed quoted region(s)", depth)

    if setting is not None or text is not None:
        entries.append(MappingEntry(setting, text))

    logger.debug("mapped spans into %d entries (%d unused)", len(entries), sum(entry.setting is None for entry in entries))
    return entries


__all__ = (
    "PREFIXES",
    "BOOLEANS",
    "PrefixState",
    "MappingEntry",
    "deprefix",
    "resolve",
    "argmap",
)
