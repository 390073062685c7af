"""
Match scoring: round finalize and direct score edits.

Finalize is all-or-nothing. Every requested match is validated and evaluated
before anything is written; the updates then share one transaction.
A COMPLETED match may be finalized again; the new result replaces the old one.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from matchboard.models.event import Event
from matchboard.models.match import MATCH_STATUSES, STATUS_COMPLETED, Match
from matchboard.services.errors import NotFoundError, UpstreamError, ValidationError
from matchboard.services.score_evaluator import (
    SIDE_A,
    SIDE_B,
    ScoreOutcome,
    best_of_for_category,
    evaluate_final_score,
    lenient_winner_side,
)

logger = logging.getLogger(__name__)


@dataclass
class FinalizeEntry:
    match_id: int
    score: Dict[str, Any]


def winner_for_side(match: Match, side: Optional[str]) -> Optional[str]:
    if side == SIDE_A:
        return match.player_a_id
    if side == SIDE_B:
        return match.player_b_id
    return None


def _event_categories(session: Session, event_id: int) -> List[Any]:
    event = session.get(Event, event_id)
    if not event or not isinstance(event.categories, list):
        return []
    return event.categories


def finalize_round(
    session: Session,
    event_id: int,
    round_name: str,
    entries: List[FinalizeEntry],
    category_id: Optional[str] = None,
) -> List[Match]:
    """Compute winners for a batch of matches and mark them COMPLETED.

    Raises ValidationError (nothing written) when a match is missing, outside
    the event/category/round, has an invalid score, or ends in a knockout draw.
    """
    if not event_id or not round_name or not entries:
        raise ValidationError("Event ID, round name, and matches array are required")

    match_ids = [e.match_id for e in entries]
    duplicates = sorted({mid for mid in match_ids if match_ids.count(mid) > 1})
    if duplicates:
        raise ValidationError("Each match may appear only once per finalize request", debug={"duplicateMatchIds": duplicates})

    query = select(Match).where(
        Match.event_id == event_id,
        Match.round_name == round_name,
        Match.id.in_(match_ids),
    )
    category = str(category_id).strip() if category_id not in (None, "") else None
    if category:
        query = query.where(Match.category_id == category)
    found = {m.id: m for m in session.exec(query).all()}

    missing = [mid for mid in match_ids if mid not in found]
    if missing:
        raise ValidationError(
            "Some matches not found or don't belong to this event/category/round",
            debug={"missingMatchIds": missing, "categoryId": category, "roundName": round_name},
        )

    best_of = best_of_for_category(_event_categories(session, event_id), category)

    planned: List[Tuple[Match, ScoreOutcome]] = []
    for entry in entries:
        match = found[entry.match_id]
        outcome = evaluate_final_score(entry.score, best_of, match.round_name, match.id)
        planned.append((match, outcome))

    now = datetime.utcnow()
    try:
        for match, outcome in planned:
            if match.status == STATUS_COMPLETED:
                logger.warning("Re-finalizing completed match %s; previous winner %s", match.id, match.winner)
            match.score = outcome.score
            match.winner = winner_for_side(match, outcome.winner_side)
            match.status = STATUS_COMPLETED
            match.updated_at = now
            session.add(match)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Finalize failed for event %s round %s", event_id, round_name)
        raise UpstreamError(
            "Failed to finalize matches; no match was modified",
            debug={"failedMatchIds": match_ids},
        ) from exc

    for match, _outcome in planned:
        session.refresh(match)

    logger.info(
        "Finalized %d match(es) for event %s round %s (best of %d)", len(planned), event_id, round_name, best_of
    )
    return [match for match, _outcome in planned]


def update_match_score(
    session: Session,
    match_id: int,
    score: Optional[Dict[str, Any]] = None,
    status: Optional[str] = None,
    winner: Any = None,
    winner_provided: bool = False,
) -> Match:
    """Direct score edit. Never finalizes on its own.

    Only an explicit status=COMPLETED without a winner triggers the lenient
    winner computation, using the category's setsPerMatch (default 1).
    """
    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found", debug={"matchId": match_id})

    if status is not None and status not in MATCH_STATUSES:
        raise ValidationError(f"Invalid status: {status}", debug={"allowed": list(MATCH_STATUSES)})

    if score:
        match.score = score
    if status:
        match.status = status
    if winner_provided:
        match.winner = str(winner) if winner not in (None, "") else None

    if status == STATUS_COMPLETED and not (winner_provided and winner not in (None, "")):
        final_score = score or match.score
        if final_score:
            best_of = best_of_for_category(_event_categories(session, match.event_id), match.category_id)
            side = lenient_winner_side(final_score, best_of, match.round_name)
            match.winner = winner_for_side(match, side)

    match.updated_at = datetime.utcnow()
    try:
        session.add(match)
        session.commit()
        session.refresh(match)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Score update failed for match %s", match_id)
        raise UpstreamError("Failed to update score") from exc

    return match
