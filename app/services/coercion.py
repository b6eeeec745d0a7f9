"""
Coercion of language-model output into the ``{summary, keyPhrases}`` shape.

The collaborator may hand back a parsed object, a JSON string (possibly in a
code fence or surrounded by prose), or something else entirely. Raw output is
first classified into a tagged union, then coerced by a pure function that
returns a ``CoercionResult`` instead of raising.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.services.errors import CoercionError

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


class AIResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    key_phrases: List[Any] = Field(alias="keyPhrases")

    @field_validator("summary")
    @classmethod
    def _non_empty_summary(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("summary must be non-empty")
        return value


@dataclass(frozen=True)
class ParsedObject:
    value: Mapping[str, Any]


@dataclass(frozen=True)
class JsonString:
    text: str


@dataclass(frozen=True)
class Unstructured:
    value: Any


RawModelOutput = Union[ParsedObject, JsonString, Unstructured]


@dataclass(frozen=True)
class CoercionResult:
    response: Optional[AIResponse] = None
    error: Optional[CoercionError] = None

    @property
    def ok(self) -> bool:
        return self.response is not None

    def unwrap(self) -> AIResponse:
        if self.response is None:
            raise self.error or CoercionError("empty coercion result")
        return self.response


def classify_output(raw: Any) -> RawModelOutput:
    if isinstance(raw, str):
        return JsonString(raw)
    if isinstance(raw, Mapping):
        if "summary" not in raw and isinstance(raw.get("content"), str):
            return JsonString(raw["content"])
        return ParsedObject(raw)
    return Unstructured(raw)


def strip_code_fence(text: str) -> str:
    text = _FENCE_OPEN.sub("", text.strip(), count=1)
    return _FENCE_CLOSE.sub("", text, count=1)


def _match_shape(value: Any) -> Optional[AIResponse]:
    if not isinstance(value, Mapping):
        return None
    try:
        return AIResponse.model_validate(dict(value))
    except ValidationError:
        return None


def _parse_object(text: str) -> Optional[AIResponse]:
    try:
        return _match_shape(json.loads(text))
    except ValueError:
        return None


def _extract_first_object(text: str) -> Optional[AIResponse]:
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return _parse_object(text[start:end + 1])
    return None


def _coerce_text(text: str) -> Optional[AIResponse]:
    text = strip_code_fence(text)
    return _parse_object(text) or _extract_first_object(text)


def coerce_ai_response(raw: Any) -> CoercionResult:
    """Direct shape match, then fence-stripped parse, then first-``{``-to-last-``}``."""
    output = classify_output(raw)

    if isinstance(output, ParsedObject):
        response = _match_shape(output.value)
        kind = "object"
    elif isinstance(output, JsonString):
        response = _coerce_text(output.text)
        kind = "json_string"
    else:
        response = _coerce_text(str(output.value)) if output.value is not None else None
        kind = "unstructured"

    if response is None:
        return CoercionResult(error=CoercionError("Unable to coerce AI response into JSON", raw_type=kind))
    return CoercionResult(response=response)
