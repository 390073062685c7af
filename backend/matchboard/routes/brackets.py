"""
Bracket store maintenance: upsert, list and delete brackets of an event.

Placeholder brackets (LEAGUE_PLACEHOLDER / Manual) are listed but never
targeted by an upsert.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import field_validator
from sqlmodel import Session, select

from matchboard.database import get_session
from matchboard.models.bracket import MODE_BRACKET, MODE_MEDIA, EventBracket
from matchboard.models.event import Event
from matchboard.schemas import CamelModel, coerce_id
from matchboard.services.errors import ScoreboardError, translate_error
from matchboard.services.match_cleanup import delete_bracket
from matchboard.utils.category_ref import CategoryRef

logger = logging.getLogger(__name__)

router = APIRouter()


class BracketUpsert(CamelModel):
    category: str
    category_id: Optional[str] = None
    mode: str = MODE_BRACKET
    draw_type: str = "bracket"
    bracket_data: Dict[str, Any]

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if not v or not v.strip():
            raise ValueError("category cannot be empty")
        return v.strip()

    @field_validator("category_id", mode="before")
    @classmethod
    def validate_category_id(cls, v):
        return coerce_id(v)

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v):
        if v not in (MODE_BRACKET, MODE_MEDIA):
            raise ValueError(f"mode must be {MODE_BRACKET} or {MODE_MEDIA}")
        return v

    @field_validator("bracket_data")
    @classmethod
    def validate_bracket_data(cls, v):
        rounds = v.get("rounds", [])
        if not isinstance(rounds, list):
            raise ValueError("bracket_data.rounds must be a list")
        for r in rounds:
            if not isinstance(r, dict) or not r.get("name"):
                raise ValueError("every round needs a name")
            if not isinstance(r.get("matches", []), list):
                raise ValueError(f"round '{r['name']}' matches must be a list")
        return v


class BracketResponse(CamelModel):
    id: int
    event_id: int
    category: str
    category_id: Optional[str] = None
    mode: str
    draw_type: str
    round_name: Optional[str] = None
    bracket_data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime


class BracketDeleteResponse(CamelModel):
    success: bool = True
    deleted_matches: int


@router.get("/admin/events/{event_id}/brackets", response_model=List[BracketResponse])
def list_brackets(event_id: int, session: Session = Depends(get_session)):
    if not session.get(Event, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return session.exec(select(EventBracket).where(EventBracket.event_id == event_id).order_by(EventBracket.id)).all()


@router.put("/admin/events/{event_id}/brackets", response_model=BracketResponse)
def upsert_bracket(event_id: int, body: BracketUpsert, response: Response, session: Session = Depends(get_session)):
    """Create or replace the bracket of a category. Existing matches are untouched."""
    if not session.get(Event, event_id):
        raise HTTPException(status_code=404, detail="Event not found")

    ref = CategoryRef.parse(body.category_id)
    category_id = ref.value if ref is not None and ref.is_uuid else None

    bracket = session.exec(
        select(EventBracket).where(
            EventBracket.event_id == event_id,
            EventBracket.category == body.category,
            EventBracket.mode == body.mode,
            EventBracket.round_name.is_(None),
        )
    ).first()

    if bracket is None:
        bracket = EventBracket(event_id=event_id, category=body.category, mode=body.mode)
        response.status_code = 201
    bracket.category_id = category_id or bracket.category_id
    bracket.draw_type = body.draw_type
    bracket.bracket_data = dict(body.bracket_data)
    bracket.updated_at = datetime.utcnow()

    session.add(bracket)
    session.commit()
    session.refresh(bracket)
    logger.info("Saved bracket %s for event %s (%s)", bracket.id, event_id, bracket.category)

    return bracket


@router.delete("/admin/brackets/{bracket_id}", response_model=BracketDeleteResponse)
def remove_bracket(bracket_id: int, session: Session = Depends(get_session)):
    """Delete a bracket and every match generated from it"""
    try:
        deleted = delete_bracket(session, bracket_id)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return BracketDeleteResponse(deleted_matches=deleted)
