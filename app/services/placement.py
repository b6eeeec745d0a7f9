"""
Placement of untrusted key phrases onto exact, boundary-aligned spans of the source.
"""
from __future__ import annotations

import re
from bisect import bisect_left, insort
from typing import Any, Iterable, Iterator, List, Optional

import structlog
from pydantic import ValidationError

from app.schemas import CandidatePhrase, KeyPoint
from app.services.spans import (
    MAX_PHRASE_LEN,
    MIN_PHRASE_LEN,
    Span,
    clamp_length,
    normalize_to_sentence_or_clause,
    slice_span,
)

logger = structlog.get_logger(__name__)


class SpanSet:
    """Ordered list of pairwise non-overlapping spans."""

    def __init__(self, spans: Iterable[Span] = ()) -> None:
        self._spans: List[Span] = []
        self._starts: List[int] = []
        for span in spans:
            self.add(span)

    def overlaps(self, span: Span) -> bool:
        # Members are disjoint and sorted, so ends ascend with starts: only the
        # last member starting before span.end can reach into it.
        i = bisect_left(self._starts, span.end)
        return i > 0 and self._spans[i - 1].end > span.start

    def add(self, span: Span) -> None:
        if self.overlaps(span):
            raise ValueError(f"span {span} overlaps an accepted span")
        i = bisect_left(self._starts, span.start)
        self._starts.insert(i, span.start)
        self._spans.insert(i, span)

    def copy(self) -> "SpanSet":
        clone = SpanSet()
        clone._spans = list(self._spans)
        clone._starts = list(self._starts)
        return clone

    def __iter__(self) -> Iterator[Span]:
        return iter(self._spans)

    def __len__(self) -> int:
        return len(self._spans)


def parse_candidate(raw: Any) -> Optional[CandidatePhrase]:
    """Validate one raw model phrase; ``None`` for anything unusable."""
    if isinstance(raw, CandidatePhrase):
        phrase = raw
    elif isinstance(raw, dict):
        try:
            phrase = CandidatePhrase.model_validate(raw)
        except ValidationError:
            return None
    else:
        return None
    if not phrase.text.strip():
        return None
    return phrase


def _anchor_span(phrase: CandidatePhrase, text: str, needle: str) -> Optional[Span]:
    start, end = phrase.start_pos, phrase.end_pos
    if start is None or end is None:
        return None
    if start < 0 or end <= start or end > len(text):
        return None
    if text[start:end] != needle:
        return None
    return Span(start, end)


def _settle(text: str, span: Span, taken: SpanSet) -> Optional[Span]:
    span = normalize_to_sentence_or_clause(text, span)
    span = clamp_length(text, span, MIN_PHRASE_LEN, MAX_PHRASE_LEN)
    if taken.overlaps(span):
        return None
    if len(slice_span(text, span)) < MIN_PHRASE_LEN:
        return None
    return span


def _key_point(text: str, span: Span, phrase: CandidatePhrase) -> KeyPoint:
    return KeyPoint(
        text=slice_span(text, span),
        start_pos=span.start,
        end_pos=span.end,
        importance=phrase.importance,
        category=phrase.category,
    )


def place_phrase(phrase: CandidatePhrase, text: str, taken: SpanSet, log=None) -> Optional[KeyPoint]:
    """Anchor ``phrase`` to a span of ``text`` that is free in ``taken``.

    The model's own offsets win when they point at the exact phrase. Otherwise
    every literal occurrence is tried left to right. The caller records the
    returned span in ``taken``.
    """
    log = log or logger
    needle = phrase.text.strip()
    if not needle:
        return None

    anchor = _anchor_span(phrase, text, needle)
    if anchor is not None:
        span = _settle(text, anchor, taken)
        if span is not None:
            return _key_point(text, span, phrase)

    for match in re.finditer(re.escape(needle), text):
        span = _settle(text, Span(match.start(), match.end()), taken)
        if span is not None:
            return _key_point(text, span, phrase)

    log.warning("phrase_unplaced", phrase=needle[:80], anchored=anchor is not None)
    return None
