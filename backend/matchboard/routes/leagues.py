from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from matchboard.database import get_session
from matchboard.models.event import Event
from matchboard.models.league import DEFAULT_LEAGUE_RULES
from matchboard.schemas import CamelModel
from matchboard.services.errors import NotFoundError, ScoreboardError, translate_error
from matchboard.services.leagues import delete_league, find_league, merge_rules, save_league

router = APIRouter()


class LeagueConfigIn(CamelModel):
    category_label: Optional[str] = None
    participants: List[Dict[str, Any]] = []
    rules: Optional[Dict[str, Any]] = None


class LeagueConfigOut(CamelModel):
    success: bool = True
    exists: bool
    id: Optional[int] = None
    event_id: int
    category_id: Optional[str] = None
    category_label: Optional[str] = None
    participants: List[Dict[str, Any]]
    rules: Dict[str, Any]


class LeagueDeleteResponse(CamelModel):
    success: bool = True
    deleted_matches: int


def _require_event(session: Session, event_id: int) -> None:
    if not session.get(Event, event_id):
        raise translate_error(NotFoundError("Event not found", debug={"eventId": event_id}))


@router.get("/admin/events/{event_id}/categories/{category_id}/league", response_model=LeagueConfigOut)
def get_league_config(
    event_id: int,
    category_id: str,
    category_label: Optional[str] = Query(None, alias="categoryLabel"),
    session: Session = Depends(get_session),
):
    """Saved league configuration, or empty defaults when none exists yet."""
    _require_event(session, event_id)
    try:
        league, _strategy = find_league(session, event_id, category_id, category_label)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    if league is None:
        return LeagueConfigOut(
            exists=False,
            event_id=event_id,
            category_id=category_id,
            category_label=category_label,
            participants=[],
            rules=dict(DEFAULT_LEAGUE_RULES),
        )
    return LeagueConfigOut(
        exists=True,
        id=league.id,
        event_id=event_id,
        category_id=league.category_id,
        category_label=league.category_label,
        participants=league.participants or [],
        rules=merge_rules(league.rules),
    )


@router.post("/admin/events/{event_id}/categories/{category_id}/league", response_model=LeagueConfigOut)
def save_league_config(
    event_id: int,
    category_id: str,
    body: LeagueConfigIn,
    response: Response,
    session: Session = Depends(get_session),
):
    """Create or replace participants and rules. 201 on first save."""
    _require_event(session, event_id)
    try:
        league, created = save_league(
            session, event_id, category_id, body.category_label, body.participants, body.rules
        )
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    if created:
        response.status_code = 201
    return LeagueConfigOut(
        exists=True,
        id=league.id,
        event_id=event_id,
        category_id=league.category_id,
        category_label=league.category_label,
        participants=league.participants,
        rules=league.rules,
    )


@router.delete("/admin/events/{event_id}/categories/{category_id}/league", response_model=LeagueDeleteResponse)
def delete_league_config(
    event_id: int,
    category_id: str,
    category_label: Optional[str] = Query(None, alias="categoryLabel"),
    delete_matches: bool = Query(True, alias="deleteMatches"),
    session: Session = Depends(get_session),
):
    try:
        deleted = delete_league(session, event_id, category_id, category_label, delete_matches)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return LeagueDeleteResponse(deleted_matches=deleted)
