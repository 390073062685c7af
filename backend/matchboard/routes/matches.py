"""
Admin match endpoints: generation, manual creation, scoring, finalize, deletes.
"""
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response
from pydantic import field_validator
from sqlmodel import Session

from matchboard.database import get_session
from matchboard.schemas import CamelModel, MatchOut, coerce_id
from matchboard.services.errors import ScoreboardError, translate_error
from matchboard.services.match_cleanup import delete_category_matches, delete_match
from matchboard.services.match_generation import (
    create_manual_match,
    generate_bracket_matches,
    generate_league_matches,
)
from matchboard.services.scoreboard import query_matches, round_status
from matchboard.services.scoring import FinalizeEntry, finalize_round, update_match_score

router = APIRouter()


# ── Request / response models ───────────────────────────────────────────


class GenerationStats(CamelModel):
    created_count: int
    skipped_count: int
    existing_count: int
    bye_count: int


class GenerateResponse(CamelModel):
    success: bool = True
    message: str
    bracket_id: int
    stats: GenerationStats


class LeagueGenerateResponse(CamelModel):
    success: bool = True
    message: str
    created_count: int
    skipped_count: int = 0
    league_id: int
    category_id: Optional[str] = None
    bracket_id: int


class ManualMatchCreate(CamelModel):
    event_id: Optional[int] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    round_name: Optional[str] = None
    player_a: Optional[Dict[str, Any]] = None
    player_b: Optional[Dict[str, Any]] = None
    bracket_id: Optional[int] = None

    @field_validator("category_id", mode="before")
    @classmethod
    def validate_category_id(cls, v):
        return coerce_id(v)


class MatchEnvelope(CamelModel):
    success: bool = True
    match: MatchOut


class ScoreUpdate(CamelModel):
    score: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    winner: Optional[Union[str, int]] = None


class FinalizeMatch(CamelModel):
    match_id: int
    score: Any = None


class FinalizeRequest(CamelModel):
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    round_name: Optional[str] = None
    matches: List[FinalizeMatch] = []

    @field_validator("category_id", mode="before")
    @classmethod
    def validate_category_id(cls, v):
        return coerce_id(v)


class FinalizeResponse(CamelModel):
    success: bool = True
    message: str
    finalized_count: int
    matches: List[MatchOut]


class MatchListResponse(CamelModel):
    success: bool = True
    count: int
    matches: List[MatchOut]


class RoundStatusResponse(CamelModel):
    success: bool = True
    round_name: str
    total: int
    completed: int
    scheduled: int
    is_complete: bool


class DeleteMatchResponse(CamelModel):
    success: bool = True
    deleted_match: MatchOut


class DeleteCountResponse(CamelModel):
    success: bool = True
    deleted_count: int


# ── Generation ──────────────────────────────────────────────────────────


@router.post("/admin/matches/generate/{event_id}/{category_id}", response_model=GenerateResponse)
def generate_matches(
    event_id: int,
    category_id: str,
    category_label: Optional[str] = Query(None, alias="categoryLabel"),
    round_name: Optional[str] = Query(None, alias="roundName"),
    session: Session = Depends(get_session),
):
    """Create SCHEDULED matches from a BRACKET-mode bracket; safe to repeat."""
    try:
        result = generate_bracket_matches(session, event_id, category_id, category_label, round_name)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    if result.created_count:
        message = f"Generated {result.created_count} match(es)"
    else:
        message = "All matches already generated"
    return GenerateResponse(
        message=message,
        bracket_id=result.bracket_id,
        stats=GenerationStats(
            created_count=result.created_count,
            skipped_count=result.skipped_count,
            existing_count=result.existing_count,
            bye_count=result.bye_count,
        ),
    )


@router.post("/admin/matches/generate-league/{event_id}/{category_id}", response_model=LeagueGenerateResponse)
def generate_league(
    event_id: int,
    category_id: str,
    response: Response,
    category_label: Optional[str] = Query(None, alias="categoryLabel"),
    session: Session = Depends(get_session),
):
    """Round-robin matches for a league category. 201 when rows were created."""
    try:
        result = generate_league_matches(session, event_id, category_id, category_label)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    if result.created_count:
        response.status_code = 201
        message = f"Generated {result.created_count} league match(es)"
    else:
        message = "All league matches already generated"
    return LeagueGenerateResponse(
        message=message,
        created_count=result.created_count,
        skipped_count=result.existing_count,
        league_id=result.league_id,
        category_id=result.category_id,
        bracket_id=result.bracket_id,
    )


# ── Manual creation and scoring ─────────────────────────────────────────


@router.post("/admin/matches", response_model=MatchEnvelope, status_code=201)
def create_match(body: ManualMatchCreate, session: Session = Depends(get_session)):
    try:
        match = create_manual_match(
            session,
            event_id=body.event_id,
            category_id=body.category_id,
            round_name=body.round_name,
            category_name=body.category_name,
            player_a=body.player_a,
            player_b=body.player_b,
            bracket_id=body.bracket_id,
        )
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return MatchEnvelope(match=MatchOut.model_validate(match))


@router.put("/admin/matches/{match_id}/score", response_model=MatchEnvelope)
def update_score(match_id: int, body: ScoreUpdate, session: Session = Depends(get_session)):
    """Direct score edit. Marking COMPLETED without a winner computes one."""
    try:
        match = update_match_score(
            session,
            match_id,
            score=body.score,
            status=body.status,
            winner=body.winner,
            winner_provided="winner" in body.model_fields_set,
        )
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return MatchEnvelope(match=MatchOut.model_validate(match))


@router.post("/admin/matches/{event_id}/finalize", response_model=FinalizeResponse)
def finalize_matches(event_id: int, body: FinalizeRequest, session: Session = Depends(get_session)):
    """Compute winners for a round and mark its matches COMPLETED, all or nothing."""
    entries = [FinalizeEntry(match_id=m.match_id, score=m.score) for m in body.matches]
    try:
        matches = finalize_round(session, event_id, body.round_name, entries, category_id=body.category_id)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc

    return FinalizeResponse(
        message=f"Finalized {len(matches)} match(es)",
        finalized_count=len(matches),
        matches=[MatchOut.model_validate(m) for m in matches],
    )


# ── Reads ───────────────────────────────────────────────────────────────


@router.get("/admin/matches/{event_id}/round-status", response_model=RoundStatusResponse)
def get_round_status(
    event_id: int,
    round_name: str = Query(..., alias="roundName"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    category_name: Optional[str] = Query(None, alias="categoryName"),
    session: Session = Depends(get_session),
):
    try:
        status = round_status(session, event_id, round_name, category_id, category_name)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return RoundStatusResponse(
        round_name=round_name,
        total=status.total,
        completed=status.completed,
        scheduled=status.scheduled,
        is_complete=status.is_complete,
    )


@router.get("/admin/matches/{event_id}", response_model=MatchListResponse)
def list_matches(
    event_id: int,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    category_name: Optional[str] = Query(None, alias="categoryName"),
    round_name: Optional[str] = Query(None, alias="roundName"),
    session: Session = Depends(get_session),
):
    try:
        matches = query_matches(session, event_id, category_id, category_name, round_name)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return MatchListResponse(count=len(matches), matches=[MatchOut.model_validate(m) for m in matches])


# ── Deletes ─────────────────────────────────────────────────────────────
# /category/{event_id} is declared before /{match_id} so "category" never parses as an id


@router.delete("/admin/matches/category/{event_id}", response_model=DeleteCountResponse)
def delete_matches_for_category(
    event_id: int,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    category_name: Optional[str] = Query(None, alias="categoryName"),
    round_name: Optional[str] = Query(None, alias="roundName"),
    session: Session = Depends(get_session),
):
    try:
        deleted = delete_category_matches(session, event_id, category_id, category_name, round_name)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return DeleteCountResponse(deleted_count=deleted)


@router.delete("/admin/matches/{match_id}", response_model=DeleteMatchResponse)
def remove_match(match_id: int, session: Session = Depends(get_session)):
    try:
        snapshot = delete_match(session, match_id)
    except ScoreboardError as exc:
        raise translate_error(exc) from exc
    return DeleteMatchResponse(deleted_match=MatchOut.model_validate(snapshot))
