from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON


class StudySummary(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    original_text: str
    summary: str
    # KeyPoint dicts in their serialized (camelCase) form
    key_points: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    language: str = Field(default="English")
    flashcard_set_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
