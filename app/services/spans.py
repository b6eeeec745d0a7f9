"""
Span arithmetic over source text: boundary scanning, normalization, length clamping.

Offsets are plain ``str`` indices, spans are half-open ``[start, end)``.
Every function here is pure and total for offsets within ``[0, len(text)]``.
"""
from __future__ import annotations

from dataclasses import dataclass

MIN_PHRASE_LEN = 10
MAX_PHRASE_LEN = 220

# A clause terminator only ends a right-boundary scan after this many characters.
CLAUSE_MIN_SPAN = 40

SENTENCE_TERMINATORS = frozenset(".!?…")
CLAUSE_TERMINATORS = frozenset(";:,—–")
CLOSING_QUOTES = frozenset("\"”»)]’'")
OPENING_QUOTES = frozenset("\"“«([‘'")


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end

    def shifted(self, offset: int) -> "Span":
        return Span(self.start + offset, self.end + offset)


def is_sentence_terminator(ch: str) -> bool:
    return ch in SENTENCE_TERMINATORS


def is_clause_terminator(ch: str) -> bool:
    return ch in CLAUSE_TERMINATORS


def is_closing_quote(ch: str) -> bool:
    return ch in CLOSING_QUOTES


def _skip_closing(text: str, index: int) -> int:
    while index < len(text) and text[index] in CLOSING_QUOTES:
        index += 1
    return index


def _is_paragraph_break(text: str, index: int) -> bool:
    return text[index] == "\n" and index + 1 < len(text) and text[index + 1] == "\n"


# -------------------- BOUNDARY SCANNER --------------------

def find_left_boundary(text: str, index: int) -> int:
    """Start of the sentence containing ``index``.

    Scans backwards for a sentence terminator (the boundary is just after it,
    past closing quotes and blanks) or a blank line. Returns 0 if neither is found.
    """
    if index <= 0:
        return 0
    i = min(index, len(text))
    while i > 0:
        if text[i - 1] in SENTENCE_TERMINATORS:
            j = i
            while j < len(text) and (text[j] in CLOSING_QUOTES or text[j] in " \t"):
                j += 1
            return j
        if i >= 2 and text[i - 1] == "\n" and text[i - 2] == "\n":
            return i
        i -= 1
    return 0


def find_right_boundary(text: str, index: int) -> int:
    """End of the sentence (or long-enough clause) at or after ``index``.

    Sentence terminators are included together with any closing quotes that
    follow them. Clause terminators only count once the scan has covered
    ``CLAUSE_MIN_SPAN`` characters. A blank line stops the scan before it.
    """
    n = len(text)
    if index >= n:
        return n
    i = max(index, 0)
    while i < n:
        ch = text[i]
        if ch in SENTENCE_TERMINATORS:
            return _skip_closing(text, i + 1)
        if ch in CLAUSE_TERMINATORS and i - index >= CLAUSE_MIN_SPAN:
            return _skip_closing(text, i + 1)
        if _is_paragraph_break(text, i):
            return i
        i += 1
    return n


def terminator_end(text: str, end: int) -> int:
    """Offset just past the terminator that ``text[:end]`` ends on, ignoring
    closing quotes, or -1 if it does not end on one."""
    i = min(end, len(text))
    while i > 0 and text[i - 1] in CLOSING_QUOTES:
        i -= 1
    if i > 0 and (text[i - 1] in SENTENCE_TERMINATORS or text[i - 1] in CLAUSE_TERMINATORS):
        return i
    return -1


# -------------------- NORMALIZER --------------------

def trim_soft(text: str, start: int, end: int) -> Span:
    """Strip blanks and wrapping quotes/brackets without leaving ``[start, end)``."""
    start = min(start, end)
    while start < end and (text[start].isspace() or text[start] in OPENING_QUOTES):
        start += 1
    while end > start and (text[end - 1].isspace() or text[end - 1] in CLOSING_QUOTES):
        end -= 1
    return Span(start, end)


def _keeps_end(text: str, start: int, end: int) -> bool:
    stop = terminator_end(text, end)
    if stop < 0:
        return False
    if text[stop - 1] in SENTENCE_TERMINATORS:
        return True
    return stop - trim_soft(text, start, stop).start > CLAUSE_MIN_SPAN


def normalize_to_sentence_or_clause(text: str, span: Span) -> Span:
    """Grow ``span`` to sentence/clause boundaries, then soft-trim it.

    An end that already sits on a sentence terminator is kept as is. An end on
    a clause terminator is kept only when the trimmed span reaching it is longer
    than ``CLAUSE_MIN_SPAN``; shorter clauses grow to the sentence end. Either
    way, normalizing a normalized span is a no-op.
    """
    start = min(find_left_boundary(text, span.start), span.start)
    if _keeps_end(text, start, span.end):
        end = _skip_closing(text, span.end)
    else:
        end = find_right_boundary(text, span.end)
    end = max(end, span.end)
    return trim_soft(text, start, end)


# -------------------- CLAMPER --------------------

def find_first_terminator_after(text: str, start: int, max_len: int) -> int:
    """Cut point for an overlong span: just past the first sentence terminator
    in ``[start, start + max_len)``, else ``start + max_len`` (soft cap)."""
    limit = min(len(text), start + max_len)
    for i in range(start, limit):
        if text[i] in SENTENCE_TERMINATORS:
            return _skip_closing(text, i + 1)
    return limit


def clamp_length(text: str, span: Span, min_len: int = MIN_PHRASE_LEN, max_len: int = MAX_PHRASE_LEN) -> Span:
    """Bring ``span`` within ``[min_len, max_len]`` where a boundary allows it.

    Too short: try the next right boundary, then the previous left boundary,
    keeping whichever lands inside the bounds. Too long: cut at the first
    sentence end in the window. Spans that cannot be fixed come back trimmed
    but otherwise unchanged; callers reject those still under ``min_len``.
    """
    start, end = span.start, span.end
    length = end - start

    if length < min_len:
        new_end = find_right_boundary(text, end)
        if min_len <= new_end - start <= max_len:
            return trim_soft(text, start, new_end)
        new_start = find_left_boundary(text, start)
        if min_len <= end - new_start <= max_len:
            return trim_soft(text, new_start, end)
    elif length > max_len:
        cut = find_first_terminator_after(text, start, max_len)
        if cut > start:
            return trim_soft(text, start, cut)

    return trim_soft(text, start, end)


def slice_span(text: str, span: Span) -> str:
    return text[span.start:span.end].strip()
