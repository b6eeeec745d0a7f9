from __future__ import annotations

import re
from typing import Iterator, List, NamedTuple

from app.services.spans import is_closing_quote, is_sentence_terminator

PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

# Units this short (after trimming) are noise, not sentences.
MIN_SENTENCE_CHARS = 10


class TextChunk(NamedTuple):
    text: str
    start_offset: int


def iter_sentences(text: str) -> Iterator[str]:
    """Yield trimmed sentence-like units of ``text``.

    A unit ends after a sentence terminator (plus closing quotes/brackets) or
    at a blank line. Units of ``MIN_SENTENCE_CHARS`` characters or fewer are dropped.
    """
    n = len(text)
    unit_start = 0
    i = 0
    while i < n:
        ch = text[i]
        if is_sentence_terminator(ch):
            j = i + 1
            while j < n and is_closing_quote(text[j]):
                j += 1
            unit = text[unit_start:j].strip()
            if len(unit) > MIN_SENTENCE_CHARS:
                yield unit
            unit_start = i = j
            continue
        if ch == "\n" and i + 1 < n and text[i + 1] == "\n":
            unit = text[unit_start:i + 1].strip()
            if len(unit) > MIN_SENTENCE_CHARS:
                yield unit
            unit_start = i + 1
        i += 1
    tail = text[unit_start:].strip()
    if len(tail) > MIN_SENTENCE_CHARS:
        yield tail


def split_into_sentences(text: str) -> List[str]:
    return list(iter_sentences(text))


def iter_paragraphs(text: str) -> Iterator[TextChunk]:
    """Paragraphs of ``text`` tagged with their start offset."""
    start = 0
    for match in PARAGRAPH_SPLIT.finditer(text):
        yield TextChunk(text[start:match.start()], start)
        start = match.end()
    yield TextChunk(text[start:], start)


def split_into_paragraphs(text: str) -> List[str]:
    return [p.text for p in iter_paragraphs(text)]


def chunk_text_with_offsets(text: str, max_chars: int, overlap: int = 200) -> List[TextChunk]:
    """Greedy char-based windows with overlap, each tagged with its offset in ``text``."""
    if max_chars <= overlap:
        raise ValueError("max_chars must be larger than overlap")
    if len(text) <= max_chars:
        return [TextChunk(text, 0)]

    chunks: List[TextChunk] = []
    i, n = 0, len(text)
    while i < n:
        j = min(i + max_chars, n)
        chunks.append(TextChunk(text[i:j], i))
        if j == n:
            break
        i = max(0, j - overlap)
    return chunks
