"""
Heuristic key-point extraction and the whole-text fallback summary.

Used to top up a model pass that placed too few phrases, and as the entire
result when the model cannot be used at all. Deterministic: the same input
always yields the same key points.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from app.schemas import Category, Importance, KeyPoint, SummaryResult
from app.services.placement import SpanSet
from app.services.prompts import EffectiveLang, I18N_STRINGS
from app.services.spans import (
    MAX_PHRASE_LEN,
    MIN_PHRASE_LEN,
    Span,
    clamp_length,
    normalize_to_sentence_or_clause,
    slice_span,
)
from app.services.text_utils import iter_paragraphs, iter_sentences, split_into_paragraphs

logger = structlog.get_logger(__name__)

MIN_KP = 8
MAX_KP = 15

QUOTE_PATTERNS = (
    re.compile(r'"([^"]{10,200})"'),
    re.compile(r"“([^”]{10,200})”"),
    re.compile(r"«([^»]{10,200})»"),
)


def _first_sentence(text: str, min_len: int, max_len: Optional[int] = None) -> Optional[str]:
    for sentence in iter_sentences(text):
        if len(sentence) >= min_len and (max_len is None or len(sentence) <= max_len):
            return sentence
    return None


def deduplicate_key_points(key_points: Iterable[KeyPoint]) -> List[KeyPoint]:
    """Keep the first key point per ``(text, start_pos)``, ordered by ``start_pos``."""
    seen: Dict[Tuple[str, int], KeyPoint] = {}
    for kp in key_points:
        seen.setdefault((kp.text, kp.start_pos), kp)
    return sorted(seen.values(), key=lambda kp: kp.start_pos)


class _Collector:
    def __init__(self, text: str, taken: SpanSet):
        self.text = text
        self.taken = taken
        self.points: List[KeyPoint] = []

    def try_add(self, start: int, end: int, importance: Importance, category: Category, align: bool = True) -> bool:
        span = Span(start, end)
        if align:
            span = normalize_to_sentence_or_clause(self.text, span)
        span = clamp_length(self.text, span, MIN_PHRASE_LEN, MAX_PHRASE_LEN)
        if self.taken.overlaps(span):
            return False
        snippet = slice_span(self.text, span)
        if len(snippet) < MIN_PHRASE_LEN:
            return False
        self.points.append(
            KeyPoint(text=snippet, start_pos=span.start, end_pos=span.end, importance=importance, category=category)
        )
        self.taken.add(span)
        return True

    def __len__(self) -> int:
        return len(self.points)


def extract_fallback_key_points(text: str, max_points: int, taken: Optional[Iterable[Span]] = None) -> List[KeyPoint]:
    """Synthesize up to ``max_points`` key points that avoid ``taken``.

    Stages, in order: whole sentences of 30-180 characters, quoted passages of
    20-200 characters, then the leading sentence of each of the first six
    paragraphs. ``taken`` is copied; the caller's collection is not modified.
    """
    if max_points <= 0:
        return []
    if isinstance(taken, SpanSet):
        spans = taken.copy()
    else:
        spans = SpanSet(taken or ())
    found = _Collector(text, spans)

    # Stage 1 leaves room for quotes once the minimum count is reached.
    cursor = 0
    for sentence in iter_sentences(text):
        # Units come in text order, so each is searched for past the previous one.
        idx = text.find(sentence, cursor)
        if idx == -1:
            continue
        cursor = idx + len(sentence)
        if not 30 <= len(sentence) <= 180:
            continue
        if found.try_add(idx, idx + len(sentence), "high", "fact"):
            if len(found) >= min(MIN_KP, max_points):
                break

    if len(found) < max_points:
        quotes = []
        for pattern in QUOTE_PATTERNS:
            for match in pattern.finditer(text):
                if 20 <= len(match.group(1)) <= 200:
                    quotes.append((match.start(1), match.end(1)))
        for start, end in quotes:
            # Quotes stay anchored to the quotation rather than its sentence.
            if found.try_add(start, end, "high", "definition", align=False):
                if len(found) >= max_points:
                    break

    if len(found) < max_points:
        paragraphs = [p for p in iter_paragraphs(text) if len(p.text.strip()) > 50]
        for paragraph in paragraphs[:6]:
            sentence = _first_sentence(paragraph.text, 25, 160)
            if sentence is None:
                continue
            idx = text.find(sentence, paragraph.start_offset)
            if idx == -1:
                continue
            if found.try_add(idx, idx + len(sentence), "medium", "fact"):
                if len(found) >= max_points:
                    break

    return deduplicate_key_points(found.points)[:max_points]


def generate_enhanced_fallback(text: str, lang: EffectiveLang, log=None) -> SummaryResult:
    """Model-free summary: leading sentences per paragraph plus heuristic key points."""
    log = log or logger
    log.info("fallback_summary_generated", chars=len(text), lang=lang)
    strings = I18N_STRINGS[lang]

    paragraphs = [p for p in split_into_paragraphs(text) if len(p.strip()) > 30]
    summary = f"{strings['main_points']}\n\n"

    for i, paragraph in enumerate(paragraphs[:4]):
        first = _first_sentence(paragraph, 30, 180)
        if first:
            summary += f"**{i + 1}. {first}**\n\n"

    if len(paragraphs) > 1:
        conclusion = _first_sentence(paragraphs[-1], 20)
        if conclusion:
            summary += f"{strings['conclusion']}\n\n{conclusion}\n"

    key_points = extract_fallback_key_points(text, MAX_KP)
    return SummaryResult(summary=summary.strip(), key_points=key_points)
