"""
Public read-only API endpoints.

No auth required. Used by public scoreboard and league table pages.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from matchboard.database import get_session
from matchboard.models.event import Event
from matchboard.models.match import LEAGUE_ROUND
from matchboard.schemas import CamelModel, PublicMatchOut
from matchboard.services.errors import NotFoundError, ScoreboardError, translate_error
from matchboard.services.leagues import find_league, merge_rules
from matchboard.services.match_generation import league_match_category_id
from matchboard.services.scoreboard import query_matches
from matchboard.services.standings import compute_standings

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────


class PublicMatchList(CamelModel):
    success: bool = True
    event_id: int
    count: int
    matches: List[PublicMatchOut]


class StandingRowOut(CamelModel):
    participant_id: str
    name: Optional[str] = None
    played: int
    won: int
    drawn: int
    lost: int
    sets_for: int
    sets_against: int
    set_difference: int
    points: int


class GroupStandingsOut(CamelModel):
    group: str
    rows: List[StandingRowOut]


class StandingsResponse(CamelModel):
    success: bool = True
    event_id: int
    category_id: Optional[str] = None
    category_label: str
    rules: Dict[str, Any]
    groups: List[GroupStandingsOut]


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/public/events/{event_id}/matches", response_model=PublicMatchList)
def get_public_matches(
    event_id: int,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    category_name: Optional[str] = Query(None, alias="categoryName"),
    round_name: Optional[str] = Query(None, alias="roundName"),
    session: Session = Depends(get_session),
):
    """Scoreboard for an event with the same category/round rules as the admin read."""
    if not session.get(Event, event_id):
        raise HTTPException(status_code=404, detail={"success": False, "message": "Event not found"})
    try:
        matches = query_matches(session, event_id, category_id, category_name, round_name)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return PublicMatchList(
        event_id=event_id,
        count=len(matches),
        matches=[PublicMatchOut.model_validate(m) for m in matches],
    )


@router.get("/public/events/{event_id}/categories/{category_id}/standings", response_model=StandingsResponse)
def get_league_standings(
    event_id: int,
    category_id: str,
    category_label: Optional[str] = Query(None, alias="categoryLabel"),
    session: Session = Depends(get_session),
):
    """League table from COMPLETED LEAGUE matches of a category."""
    try:
        league, _strategy = find_league(session, event_id, category_id, category_label)
        if league is None:
            raise NotFoundError(
                "League configuration not found",
                debug={"categoryId": category_id, "categoryLabel": category_label},
            )
        match_category_id = league_match_category_id(league, category_id)
        matches = query_matches(session, event_id, category_id=match_category_id, round_name=LEAGUE_ROUND)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    rules = merge_rules(league.rules)
    groups = compute_standings(league.participants or [], matches, rules)
    return StandingsResponse(
        event_id=event_id,
        category_id=match_category_id,
        category_label=league.category_label,
        rules=rules,
        groups=[
            GroupStandingsOut(
                group=g.group,
                rows=[
                    StandingRowOut(
                        participant_id=r.participant_id,
                        name=r.name,
                        played=r.played,
                        won=r.won,
                        drawn=r.drawn,
                        lost=r.lost,
                        sets_for=r.sets_for,
                        sets_against=r.sets_against,
                        set_difference=r.set_difference,
                        points=r.points,
                    )
                    for r in g.rows
                ],
            )
            for g in groups
        ],
    )
