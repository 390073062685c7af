"""
League blueprint maintenance: participants and points rules per category.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from matchboard.models.league import DEFAULT_LEAGUE_RULES, League
from matchboard.models.match import LEAGUE_ROUND, Match
from matchboard.services.errors import NotFoundError, UpstreamError, ValidationError
from matchboard.services.match_generation import league_match_category_id
from matchboard.utils.category_ref import AmbiguousCategoryError, CategoryRef, resolve_by_label_ladder

logger = logging.getLogger(__name__)

EXACT_STRATEGIES = ("exact_id", "exact_label")


def merge_rules(rules: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(DEFAULT_LEAGUE_RULES)
    for key, value in (rules or {}).items():
        if key in DEFAULT_LEAGUE_RULES and isinstance(value, (int, float)) and not isinstance(value, bool):
            merged[key] = int(value)
    return merged


def clean_participants(participants: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """Validate participants and drop repeated ids (first occurrence wins)."""
    cleaned: List[Dict[str, Any]] = []
    seen = set()
    for i, p in enumerate(participants or []):
        if not isinstance(p, dict):
            raise ValidationError(f"Participant {i + 1} must be an object with id and name")
        pid = str(p.get("id") or "").strip()
        name = str(p.get("name") or "").strip()
        if not pid or not name:
            raise ValidationError(f"Participant {i + 1} requires id and name", debug={"participant": p})
        if pid in seen:
            continue
        seen.add(pid)
        entry: Dict[str, Any] = {"id": pid, "name": name}
        group = p.get("group") or p.get("group_id") or p.get("groupLabel")
        if group is not None and str(group).strip():
            entry["group"] = str(group).strip()
        cleaned.append(entry)
    return cleaned


def find_league(
    session: Session, event_id: int, category_id: Optional[str], category_label: Optional[str]
) -> Tuple[Optional[League], Optional[str]]:
    """(league, strategy) through the shared label ladder; ambiguity is a not-found."""
    leagues = session.exec(select(League).where(League.event_id == event_id).order_by(League.id)).all()
    try:
        return resolve_by_label_ladder(
            leagues,
            category_id,
            category_label,
            get_id=lambda lg: lg.category_id,
            get_label=lambda lg: lg.category_label,
        )
    except AmbiguousCategoryError as exc:
        raise NotFoundError(
            f"League configuration is ambiguous for category: {category_label or category_id}",
            debug={
                "categoryId": category_id,
                "categoryLabel": category_label,
                "strategy": exc.strategy,
                "ambiguousLeagues": [lg.category_label for lg in exc.candidates],
            },
        ) from exc


def save_league(
    session: Session,
    event_id: int,
    category_id: Optional[str],
    category_label: Optional[str],
    participants: Optional[List[Any]],
    rules: Optional[Dict[str, Any]] = None,
) -> Tuple[League, bool]:
    """Create or update the blueprint for (event, category label). Returns (league, created)."""
    ref = CategoryRef.parse(category_id)
    label = (category_label or "").strip()
    if not label and ref is not None and not ref.is_placeholder:
        label = ref.value
    if not label:
        raise ValidationError("categoryLabel is required to save a league configuration")

    cleaned = clean_participants(participants)
    stored_id = ref.value if ref is not None and not ref.is_placeholder else None

    league = None
    if stored_id:
        league = session.exec(
            select(League).where(League.event_id == event_id, League.category_id == stored_id)
        ).first()
    if league is None:
        league = session.exec(
            select(League).where(League.event_id == event_id, League.category_label == label)
        ).first()

    created = league is None
    if created:
        league = League(event_id=event_id, category_label=label)
    league.category_id = stored_id or league.category_id
    league.category_label = label
    league.participants = cleaned
    league.rules = merge_rules(rules if rules is not None else league.rules)
    league.updated_at = datetime.utcnow()

    try:
        session.add(league)
        session.commit()
        session.refresh(league)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Saving league configuration failed for event %s (%s)", event_id, label)
        raise UpstreamError("Failed to save league configuration") from exc

    logger.info(
        "%s league %s for event %s (%s) with %d participant(s)",
        "Created" if created else "Updated",
        league.id,
        event_id,
        label,
        len(cleaned),
    )
    return league, created


def delete_league(
    session: Session,
    event_id: int,
    category_id: Optional[str],
    category_label: Optional[str],
    delete_matches: bool = True,
) -> int:
    """Remove a blueprint matched by exact id or exact label; returns deleted match count."""
    league, strategy = find_league(session, event_id, category_id, category_label)
    if league is None or strategy not in EXACT_STRATEGIES:
        raise NotFoundError(
            "League configuration not found",
            debug={"categoryId": category_id, "categoryLabel": category_label},
        )

    deleted = 0
    try:
        if delete_matches:
            match_category_id = league_match_category_id(league, category_id)
            matches = session.exec(
                select(Match).where(
                    Match.event_id == event_id,
                    Match.round_name == LEAGUE_ROUND,
                    Match.category_id == match_category_id,
                )
            ).all()
            for m in matches:
                session.delete(m)
            deleted = len(matches)
        session.delete(league)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Deleting league %s failed", league.id)
        raise UpstreamError("Failed to delete league configuration") from exc

    logger.info("Deleted league %s for event %s and %d match(es)", league.id, event_id, deleted)
    return deleted
