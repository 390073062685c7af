"""
Match and bracket deletion.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from matchboard.models.bracket import EventBracket
from matchboard.models.match import Match
from matchboard.services.errors import NotFoundError, UpstreamError, ValidationError
from matchboard.services.scoreboard import query_matches

logger = logging.getLogger(__name__)


def _delete_rows(session: Session, rows: List, what: str) -> None:
    try:
        for row in rows:
            session.delete(row)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to delete %s", what)
        raise UpstreamError(f"Failed to delete {what}") from exc


def delete_match(session: Session, match_id: int) -> Dict[str, Any]:
    """Delete one match; returns its column values as they were."""
    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found", debug={"matchId": match_id})
    snapshot = match.model_dump()
    _delete_rows(session, [match], f"match {match_id}")
    logger.info("Deleted match %s", match_id)
    return snapshot


def delete_category_matches(
    session: Session,
    event_id: int,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
    round_name: Optional[str] = None,
) -> int:
    """Delete the matches a scoreboard query for the same filters would return."""
    if not category_id and not category_name:
        raise ValidationError("categoryId or categoryName is required")
    matches = query_matches(session, event_id, category_id, category_name, round_name)
    _delete_rows(session, list(matches), f"matches of event {event_id}")
    logger.info(
        "Deleted %d match(es) for event %s category %s round %s",
        len(matches),
        event_id,
        category_id or category_name,
        round_name,
    )
    return len(matches)


def delete_bracket(session: Session, bracket_id: int) -> int:
    """Delete a bracket and every match referencing it; returns the match count."""
    bracket = session.get(EventBracket, bracket_id)
    if not bracket:
        raise NotFoundError("Bracket not found", debug={"bracketId": bracket_id})
    matches = session.exec(select(Match).where(Match.bracket_id == bracket_id)).all()
    _delete_rows(session, [*matches, bracket], f"bracket {bracket_id}")
    logger.info("Deleted bracket %s with %d match(es)", bracket_id, len(matches))
    return len(matches)
