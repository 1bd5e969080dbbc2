r"""
Ligature tokenizer: quote-aware splitting of one shell-like string into spans.

Overview
- indices(): one left-to-right scan returning the positions of valid quote
  characters, according to a placement predicate (isstart / isend).
- assemble(): pairs start and end positions outermost-first and cuts the input
  into Span units (bare words or whole quoted regions).
- tokenize(): indices + assemble over a stripped input.

Quote placement
- a start quote is preceded by whitespace or by nothing (line start).
- an end quote is followed by whitespace, by nothing, or by another quote
  character (so adjacent closing quotes of nested levels, '""', both count).
- a quote immediately preceded by the escape character is literal and is
  never a boundary (escaping=True, the default).

Pairing
- indices are walked in order with a depth counter; only the outermost pair
  of each nested region becomes a span, inner quotes stay in its text.
- a position that qualifies as both start and end closes when a quote is
  open and opens otherwise.
- any unbalanced walk raises QuoteMismatchError.

Example
    >>> [span.text for span in tokenize(r'-Child "-Name "-Name \"Test Value\"" -Text TestText"')]
    ['-Child', '-Name "-Name \\"Test Value\\"" -Text TestText']
"""
import logging
from collections import namedtuple

from .faults import QuoteMismatchError

logger = logging.getLogger(__name__)

QUOTES = ('"',)
ESCAPE = "\\"


QuoteSpan = namedtuple("QuoteSpan", ("start", "end"))


class Span(namedtuple("Span", ("text", "opened", "closed"))):
    """
    One lexical unit: a bare word (opened=closed=False) or a quoted region
    (opened=closed=True). Spans carrying only one flag are nesting markers and
    move the mapper's quote depth by delta.
    """
    __slots__ = ()

    @property
    def delta(self):
        return int(self.opened) - int(self.closed)


def isstart(prev, char, next, /, quotes=QUOTES):
    """
    accept a start quote when the previous character is absent or whitespace.

    quotes is accepted so both placement predicates share one signature.
    """
    return prev is None or prev.isspace()


def isend(prev, char, next, /, quotes=QUOTES):
    """
    accept an end quote when the next character is absent, whitespace, or a quote.
    """
    return next is None or next.isspace() or next in quotes


def indices(input, quotes=QUOTES, /, escaping=True, validate=isstart, escape=ESCAPE):
    """
    return the ascending positions of quote characters accepted by validate.

    Parameters
    - input: str to scan.
    - quotes: collection of quote characters.
    - escaping: skip quotes immediately preceded by escape.
    - validate: predicate validate(prev, char, next, quotes=quotes) with None
      for missing neighbours; quotes is the same collection being scanned.
    - escape: the escape character.

    Never raises on malformed input; pairing problems are the assembler's job.
    """
    found = []
    for index, char in enumerate(input):
        if char not in quotes:
            continue
        prev = input[index - 1] if index > 0 else None
        if escaping and prev == escape:
            continue
        next = input[index + 1] if index + 1 < len(input) else None
        if validate(prev, char, next, quotes=quotes):
            found.append(index)
    return found


def pair(starts, ends, /):
    """
    pair start and end positions outermost-first, left to right.

    Returns
    - list[QuoteSpan] of the outermost pairs, in input order.

    Raises
    - QuoteMismatchError: the counts differ, an end arrives while nothing is
      open, or a quote is still open after the last position.
    """
    if len(starts) != len(ends):
        raise QuoteMismatchError(
            f"found {len(starts)} opening and {len(ends)} closing quotes",
            starts=tuple(starts),
            ends=tuple(ends),
        )

    opening, closing = set(starts), set(ends)
    stack = []
    pairs = []
    for index in sorted(opening | closing):
        if index in closing and (stack or index not in opening):
            if not stack:
                raise QuoteMismatchError(f"closing quote at {index} has no opening quote", index=index)
            start = stack.pop()
            if not stack:
                pairs.append(QuoteSpan(start, index))
        else:
            stack.append(index)

    if stack:
        raise QuoteMismatchError(f"opening quote at {stack[0]} is never closed", index=stack[0])

    return pairs


def assemble(input, starts, ends, /):
    """
    cut input into spans given the accepted start and end quote positions.

    - no quotes: the whitespace split of input, every span unquoted.
    - unquoted runs between quoted regions are whitespace split.
    - each outermost quoted region becomes one span, stripped of its quote
      characters and surrounding whitespace, with both quote flags set; when
      the whole input is one quoted region the result is that single span.
    - blank spans are discarded.

    Raises
    - QuoteMismatchError: see pair().
    """
    if not starts and not ends:
        return [Span(part, False, False) for part in input.split()]

    spans = []
    previous = 0
    for start, end in pair(starts, ends):
        spans.extend(Span(part, False, False) for part in input[previous:start].split())
        if text := input[start + 1:end].strip():
            spans.append(Span(text, True, True))
        previous = end + 1
    spans.extend(Span(part, False, False) for part in input[previous:].split())
    return spans


def tokenize(input, quotes=QUOTES, /, escaping=True, escape=ESCAPE):
    """
    split a raw argument string into spans (indices + assemble).

    None or blank input yields no spans.
    """
    if input is None or not (input := input.strip()):
        return []
    starts = indices(input, quotes, escaping=escaping, validate=isstart, escape=escape)
    ends = indices(input, quotes, escaping=escaping, validate=isend, escape=escape)
    spans = assemble(input, starts, ends)
    logger.debug("tokenized %d characters into %d spans (%d quoted)", len(input), len(spans), sum(span.opened for span in spans))
    return spans


__all__ = (
    "QUOTES",
    "ESCAPE",
    "QuoteSpan",
    "Span",
    "isstart",
    "isend",
    "indices",
    "pair",
    "assemble",
    "tokenize",
)
