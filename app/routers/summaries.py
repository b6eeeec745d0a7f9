from datetime import datetime
from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from app.auth import get_current_user_id
from app.db import get_session
from app.middleware.rate_limit import ai_generation_limit
from app.models import StudySummary
from app.schemas import (
    CreateSummaryRequest,
    GenerateSummaryRequest,
    StudySummaryRead,
    SummaryResult,
    UpdateSummaryRequest,
)
from app.services.errors import SummaryInputError
from app.services.monitoring import AI_GENERATION_REQUESTS
from app.services.summary import generate_summary, validate_summary_input

logger = structlog.get_logger()

router = APIRouter(prefix="/api/study-summaries", tags=["study-summaries"])


def _serialize(row: StudySummary) -> dict:
    return StudySummaryRead(
        id=row.id,
        title=row.title,
        original_text=row.original_text,
        summary=row.summary,
        key_points=row.key_points or [],
        language=row.language,
        flashcard_set_id=row.flashcard_set_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    ).model_dump(by_alias=True, mode="json")


def _owned_summary(summary_id: int, user_id: str, session: Session) -> StudySummary:
    row = session.exec(
        select(StudySummary).where(StudySummary.id == summary_id, StudySummary.user_id == user_id)
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Study summary not found")
    return row


async def _summarize(text: str, language: str, user_id: str) -> SummaryResult:
    try:
        validate_summary_input(text)
    except SummaryInputError as e:
        AI_GENERATION_REQUESTS.labels(type="summary", status="rejected").inc()
        raise HTTPException(status_code=400, detail=str(e))
    result = await generate_summary(text, language, log=logger.bind(user_id=user_id))
    AI_GENERATION_REQUESTS.labels(type="summary", status="success").inc()
    return result


@router.post("/generate")
@ai_generation_limit()
async def generate(request: Request, body: GenerateSummaryRequest, user_id: str = Depends(get_current_user_id)):
    """Generate a summary without saving it"""
    result = await _summarize(body.text, body.language, user_id)
    return {"success": True, "data": result.model_dump(by_alias=True)}


@router.post("")
@ai_generation_limit()
async def create_summary(
    request: Request,
    body: CreateSummaryRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    result = await _summarize(body.original_text, body.language, user_id)
    row = StudySummary(
        user_id=user_id,
        title=body.title,
        original_text=body.original_text,
        summary=result.summary,
        key_points=[kp.model_dump(by_alias=True) for kp in result.key_points],
        language=body.language,
        flashcard_set_id=body.flashcard_set_id,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info("study_summary_created", summary_id=row.id, user_id=user_id, key_points=len(result.key_points))
    return {"success": True, "data": _serialize(row)}


@router.get("")
def list_summaries(user_id: str = Depends(get_current_user_id), session: Session = Depends(get_session)):
    rows: List[StudySummary] = session.exec(
        select(StudySummary).where(StudySummary.user_id == user_id).order_by(StudySummary.updated_at.desc())
    ).all()
    return {"success": True, "data": [_serialize(r) for r in rows]}


@router.get("/{summary_id}")
def get_summary(summary_id: int, user_id: str = Depends(get_current_user_id), session: Session = Depends(get_session)):
    return {"success": True, "data": _serialize(_owned_summary(summary_id, user_id, session))}


@router.put("/{summary_id}")
async def update_summary(
    summary_id: int,
    body: UpdateSummaryRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    row = _owned_summary(summary_id, user_id, session)
    changes = body.model_dump(exclude_unset=True)

    if "key_points" in changes and body.key_points is not None:
        changes["key_points"] = [kp.model_dump(by_alias=True) for kp in body.key_points]

    # A new source text invalidates the old summary and its spans.
    if body.original_text and body.original_text != row.original_text:
        result = await _summarize(body.original_text, body.language or row.language, user_id)
        changes["summary"] = result.summary
        changes["key_points"] = [kp.model_dump(by_alias=True) for kp in result.key_points]

    for field, value in changes.items():
        if value is not None:
            setattr(row, field, value)
    row.updated_at = datetime.utcnow()
    session.add(row)
    session.commit()
    session.refresh(row)
    return {"success": True, "data": _serialize(row)}


@router.delete("/{summary_id}")
def delete_summary(summary_id: int, user_id: str = Depends(get_current_user_id), session: Session = Depends(get_session)):
    row = _owned_summary(summary_id, user_id, session)
    session.delete(row)
    session.commit()
    logger.info("study_summary_deleted", summary_id=summary_id, user_id=user_id)
    return {"success": True, "message": "Study summary deleted successfully"}
