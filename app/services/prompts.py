from __future__ import annotations

import re
from typing import Literal

LanguageCode = Literal["auto", "en", "fr"]
EffectiveLang = Literal["en", "fr"]

I18N_STRINGS = {
    "en": {
        "main_points": "## Main Points",
        "conclusion": "## Conclusion",
        "part": "Part",
    },
    "fr": {
        "main_points": "## Points Principaux",
        "conclusion": "## Conclusion",
        "part": "Partie",
    },
}

FRENCH_HINTS = re.compile(
    r"[àâäçéèêëîïôöùûüÿœæ]|(^|\s)(les|des|une|dans|avec|sans|pour|sur|ce|cette|ces|est|sont)(\s|[,.!?;:])",
    re.IGNORECASE,
)


def normalize_language(language: str) -> LanguageCode:
    lang = (language or "").strip().lower()
    if lang in ("fr", "french", "français", "francais"):
        return "fr"
    if lang in ("en", "english"):
        return "en"
    return "auto"


def infer_language(text: str) -> EffectiveLang:
    return "fr" if FRENCH_HINTS.search(text) else "en"


def create_summary_prompt(text: str, lang: LanguageCode, min_phrases: int, max_phrases: int) -> str:
    if lang == "auto":
        language_instruction = "Detect and maintain the original language of the input."
    else:
        language_instruction = f"Generate the response in {'French' if lang == 'fr' else 'English'}."

    return f"""You are a precise study assistant. Create a comprehensive summary with highlighted key phrases.

CRITICAL:
- Return ONLY valid JSON. No prose, no comments, no extra text.
- Do NOT wrap the JSON in code fences.
- All indices are character offsets into the text between the markers, counting from 0.

{language_instruction}
- Summary length: target 20-40% of the original, but NEVER exceed ~800 words.
- Use short section headings (e.g., "Main Points", "Key Concepts", "Important Details").
- Maintain academic accuracy and fidelity to the input.

Key phrases:
- EXACTLY {min_phrases}-{max_phrases} phrases.
- Each phrase must be a COMPLETE, MEANINGFUL unit from the input text (prefer full sentences).
- Never output partial fragments that stop mid-clause.
- If a sentence is very long, pick a whole clause that ends naturally (before ; , : - or . ! ? ...).
- Each phrase must be an exact substring of the input text.
- Provide BOTH startPos and endPos (end-exclusive) for the COMPLETE phrase.
- No duplicates (unique by text+startPos) and no overlapping spans.

Return ONLY this JSON:
{{
  "summary": string,
  "keyPhrases": [
    {{
      "text": string,
      "startPos": number,
      "endPos": number,
      "importance": "high"|"medium"|"low",
      "category": "definition"|"fact"|"concept"|"example"|"warning"
    }}
  ]
}}

INPUT START
<<TEXT_START>>
{text}
<<TEXT_END>>
INPUT END"""
