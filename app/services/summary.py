"""
Summary generation: model call, key-phrase placement, chunking and fallback.

``generate_summary`` is the only entry point callers need. It rejects invalid
input with ``SummaryInputError`` and otherwise always returns a
``SummaryResult``; model trouble of any kind degrades to the heuristic fallback.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional

import structlog

from app.schemas import KeyPoint, SummaryResult
from app.services.coercion import AIResponse, coerce_ai_response
from app.services.errors import ChunkFailure, SummaryInputError
from app.services.fallback import (
    MAX_KP,
    MIN_KP,
    deduplicate_key_points,
    extract_fallback_key_points,
    generate_enhanced_fallback,
)
from app.services.llm import AskJson, chat_json
from app.services.monitoring import KEY_PHRASES_UNPLACED, SUMMARY_FALLBACKS, SUMMARY_KEY_POINTS
from app.services.placement import SpanSet, parse_candidate, place_phrase
from app.services.prompts import (
    EffectiveLang,
    I18N_STRINGS,
    LanguageCode,
    create_summary_prompt,
    infer_language,
    normalize_language,
)
from app.services.spans import Span
from app.services.text_utils import chunk_text_with_offsets

logger = structlog.get_logger(__name__)

CHARS_PER_TOKEN = 4
MAX_TOKENS = 3000
CHUNK_OVERLAP = 200

MIN_TEXT_CHARS = 50
MAX_TEXT_CHARS = 50_000
MIN_MEANINGFUL_WORDS = 20


def validate_summary_input(text: str) -> str:
    """Return the trimmed text or raise ``SummaryInputError`` with a user-facing message."""
    if not text or not isinstance(text, str):
        raise SummaryInputError("Text is required")
    trimmed = text.strip()
    if len(trimmed) < MIN_TEXT_CHARS:
        raise SummaryInputError("Text is too short. Please provide at least 50 characters.")
    if len(trimmed) > MAX_TEXT_CHARS:
        raise SummaryInputError("Text is too long. Please provide less than 50,000 characters.")
    words = [w for w in trimmed.split() if len(w) > 2]
    if len(words) < MIN_MEANINGFUL_WORDS:
        raise SummaryInputError("Text doesn't contain enough meaningful content.")
    return trimmed


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


async def generate_summary(
    text: str,
    language: str = "auto",
    *,
    ask_json: Optional[AskJson] = None,
    log=None,
) -> SummaryResult:
    validate_summary_input(text)
    ask_json = ask_json or chat_json

    prompt_lang = normalize_language(language)
    effective_lang: EffectiveLang = infer_language(text) if prompt_lang == "auto" else prompt_lang
    est_tokens = estimate_tokens(text)
    log = (log or logger).bind(chars=len(text), est_tokens=est_tokens, lang=effective_lang)
    log.info("summary_started", prompt_lang=prompt_lang)

    try:
        if est_tokens > MAX_TOKENS:
            result = await generate_chunked_summary(text, prompt_lang, effective_lang, ask_json, log=log)
        else:
            result = await generate_single_summary(text, prompt_lang, ask_json, log=log)
    except Exception as e:
        log.warning("summary_fallback", reason=type(e).__name__, error=str(e))
        SUMMARY_FALLBACKS.labels(reason=type(e).__name__).inc()
        result = generate_enhanced_fallback(text, effective_lang, log=log)

    SUMMARY_KEY_POINTS.observe(len(result.key_points))
    log.info("summary_completed", key_points=len(result.key_points))
    return result


# ----------------- Single pass & chunked -----------------

async def generate_single_summary(text: str, lang: LanguageCode, ask_json: AskJson, log=None) -> SummaryResult:
    """One model call over ``text``. Raises ``CoercionError`` on unusable output."""
    prompt = create_summary_prompt(text, lang, MIN_KP, MAX_KP)
    raw = await ask_json(prompt)
    response = coerce_ai_response(raw).unwrap()
    return process_summary_response(response, text, log=log)


async def generate_chunked_summary(
    text: str,
    prompt_lang: LanguageCode,
    effective_lang: EffectiveLang,
    ask_json: AskJson,
    log=None,
) -> SummaryResult:
    log = log or logger
    chunk_size = MAX_TOKENS * CHARS_PER_TOKEN
    chunks = chunk_text_with_offsets(text, chunk_size, CHUNK_OVERLAP)
    log.info("chunked_mode", chunks=len(chunks), chunk_size=chunk_size, overlap=CHUNK_OVERLAP)

    partials: List[SummaryResult] = []
    failures: List[ChunkFailure] = []
    for i, chunk in enumerate(chunks):
        try:
            res = await generate_single_summary(chunk.text, prompt_lang, ask_json, log=log)
        except Exception as e:
            failure = ChunkFailure(i, len(chunks), e)
            failures.append(failure)
            log.warning("chunk_failed", chunk=i + 1, total=len(chunks), error=str(failure))
            continue
        partials.append(offset_summary(res, chunk.start_offset))

    if not partials:
        log.warning("all_chunks_failed", failures=len(failures))
        SUMMARY_FALLBACKS.labels(reason="all_chunks_failed").inc()
        return generate_enhanced_fallback(text, effective_lang, log=log)

    return merge_chunk_summaries(partials, effective_lang)


# ----------------- Response processing -----------------

def process_summary_response(response: AIResponse, text: str, log=None) -> SummaryResult:
    """Place the model's phrases on ``text``, topping up from the fallback extractor."""
    log = log or logger
    taken = SpanSet()
    key_points: List[KeyPoint] = []
    unplaced = 0

    for raw in response.key_phrases:
        phrase = parse_candidate(raw)
        if phrase is None:
            log.debug("phrase_rejected", phrase=repr(raw)[:80])
            continue
        kp = place_phrase(phrase, text, taken, log=log)
        if kp is None:
            unplaced += 1
            continue
        key_points.append(kp)
        taken.add(Span(kp.start_pos, kp.end_pos))

    if unplaced:
        KEY_PHRASES_UNPLACED.inc(unplaced)

    if len(key_points) < MIN_KP:
        needed = MIN_KP - len(key_points)
        extra = extract_fallback_key_points(text, needed, taken)
        log.info("key_points_topped_up", placed=len(key_points), added=len(extra))
        key_points.extend(extra)

    key_points.sort(key=lambda kp: kp.start_pos)
    return SummaryResult(summary=response.summary, key_points=key_points[:MAX_KP])


# ----------------- Chunk merging -----------------

def offset_summary(result: SummaryResult, offset: int) -> SummaryResult:
    """Translate a window-local result into whole-text coordinates."""
    shifted = [
        kp.model_copy(update={"start_pos": kp.start_pos + offset, "end_pos": kp.end_pos + offset})
        for kp in result.key_points
    ]
    return SummaryResult(summary=result.summary, key_points=shifted)


def _drop_overlapping(key_points: Iterable[KeyPoint]) -> List[KeyPoint]:
    taken = SpanSet()
    kept = []
    for kp in key_points:
        span = Span(kp.start_pos, kp.end_pos)
        if taken.overlaps(span):
            continue
        taken.add(span)
        kept.append(kp)
    return kept


def merge_chunk_summaries(chunks: List[SummaryResult], lang: EffectiveLang) -> SummaryResult:
    strings = I18N_STRINGS[lang]
    merged = "".join(
        f"### {strings['part']} {i + 1}\n\n{chunk.summary}\n\n" for i, chunk in enumerate(chunks)
    )
    # Windows overlap, so the same passage can come back from two of them.
    unique = deduplicate_key_points(kp for chunk in chunks for kp in chunk.key_points)
    return SummaryResult(summary=merged.strip(), key_points=_drop_overlapping(unique)[:MAX_KP])
