from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Importance = Literal["high", "medium", "low"]
Category = Literal["definition", "fact", "concept", "example", "warning"]


class CandidatePhrase(BaseModel):
    """Untrusted key phrase as reported by the model (or a fallback generator)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str
    importance: Importance
    category: Category
    start_pos: Optional[int] = Field(default=None, alias="startPos")
    end_pos: Optional[int] = Field(default=None, alias="endPos")

    @field_validator("start_pos", "end_pos", mode="before")
    @classmethod
    def _integral_offset(cls, value: Any) -> Optional[int]:
        # Bad offsets only disable the anchor path; the phrase itself survives.
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return None


class KeyPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    start_pos: int = Field(alias="startPos")
    end_pos: int = Field(alias="endPos")
    importance: Importance
    category: Category


class SummaryResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    key_points: List[KeyPoint] = Field(default_factory=list, alias="keyPoints")


# ----------------- API bodies -----------------

class GenerateSummaryRequest(BaseModel):
    text: str
    language: str = "English"


class CreateSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=255)
    original_text: str = Field(min_length=50, max_length=50_000, alias="originalText")
    language: str = "English"
    flashcard_set_id: Optional[str] = Field(default=None, alias="flashcardSetId")


class UpdateSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    original_text: Optional[str] = Field(default=None, min_length=50, max_length=50_000, alias="originalText")
    summary: Optional[str] = None
    key_points: Optional[List[KeyPoint]] = Field(default=None, alias="keyPoints")
    language: Optional[str] = None
    flashcard_set_id: Optional[str] = Field(default=None, alias="flashcardSetId")


class StudySummaryRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    title: str
    original_text: str = Field(alias="originalText")
    summary: str
    key_points: List[KeyPoint] = Field(default_factory=list, alias="keyPoints")
    language: str
    flashcard_set_id: Optional[str] = Field(default=None, alias="flashcardSetId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
