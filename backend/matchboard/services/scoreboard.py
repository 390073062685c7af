"""
Scoreboard queries: category/round scoped reads of the match table.

League scoreboards are strict: categoryId is mandatory and compared with
exact equality in SQL. Knockout scoreboards are lenient: the accepted set of
category ids is grown from the bracket store and the event's category
configuration, but the final filter is always literal membership in that set.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Set, Tuple

from sqlmodel import Session, select

from matchboard.models.bracket import EventBracket
from matchboard.models.event import Event
from matchboard.models.match import LEAGUE_ROUND, STATUS_COMPLETED, Match, is_league_round
from matchboard.services.errors import ValidationError
from matchboard.utils.category_ref import CategoryRef, base_name


@dataclass
class RoundStatus:
    total: int
    completed: int
    scheduled: int

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed == self.total


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _category_full_label(category: dict) -> Optional[str]:
    name = category.get("category") or category.get("name") or category.get("rawName")
    if not name:
        return None
    label = str(name)
    if category.get("gender"):
        label += f" - {category['gender']}"
    if category.get("match_type"):
        label += f" - {category['match_type']}"
    return label


def accepted_category_ids(
    brackets: Iterable[EventBracket],
    categories: Optional[Iterable[Any]],
    category_id: Optional[str],
    category_name: Optional[str],
) -> Tuple[Set[str], Set[str]]:
    """Build (exact, fuzzy) sets of category ids a knockout scoreboard accepts.

    exact: the literal id/name plus ids of brackets and configured categories
    whose id or label equals the request. fuzzy: ids whose base name (label
    before the first " - ") equals the requested label's base name.
    """
    exact: Set[str] = set()
    fuzzy: Set[str] = set()
    ref = CategoryRef.parse(category_id)
    wanted_base = base_name(category_name) if category_name else ""

    def add(target: Set[str], *values: Any) -> None:
        for v in values:
            text = _clean(v)
            if text:
                target.add(text)

    add(exact, category_id, category_name)

    for b in brackets:
        hit = (
            (category_name and b.category == category_name)
            or (category_id and b.category_id == category_id)
            or (ref is not None and not ref.is_uuid and b.category == category_id)
        )
        if hit:
            add(exact, b.category_id, b.category)
        elif wanted_base and base_name(b.category) == wanted_base:
            add(fuzzy, b.category_id, b.category)

    for cat in categories or []:
        if isinstance(cat, dict):
            cat_id = cat.get("id") or cat.get("category_id")
            cat_name = cat.get("category") or cat.get("name") or cat.get("rawName")
            if category_id and (_clean(cat_id) == category_id or cat_name == category_id):
                add(exact, cat_id, cat_name)
            if category_name:
                full_label = _category_full_label(cat)
                if category_name in (full_label, cat_name):
                    add(exact, cat_id)
                elif wanted_base and full_label and base_name(full_label) == wanted_base:
                    add(fuzzy, cat_id)
        elif isinstance(cat, str) and cat in (category_id, category_name):
            add(exact, cat)

    return exact, fuzzy - exact


def query_matches(
    session: Session,
    event_id: int,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
    round_name: Optional[str] = None,
) -> List[Match]:
    """Matches of an event, optionally scoped to a category and/or round."""
    category_id = _clean(category_id)
    category_name = _clean(category_name)
    round_name = _clean(round_name)

    if round_name and is_league_round(round_name):
        if not category_id:
            raise ValidationError(
                "categoryId is required for LEAGUE scoreboards",
                debug={"eventId": event_id, "categoryName": category_name, "roundName": round_name},
            )
        return session.exec(
            select(Match)
            .where(
                Match.event_id == event_id,
                Match.round_name == LEAGUE_ROUND,
                Match.category_id == category_id,
            )
            .order_by(Match.match_index, Match.id)
        ).all()

    query = select(Match).where(Match.event_id == event_id)
    if round_name:
        query = query.where(Match.round_name == round_name)
    matches = session.exec(query.order_by(Match.round_name, Match.match_index, Match.id)).all()

    if not category_id and not category_name:
        return list(matches)

    brackets = session.exec(select(EventBracket).where(EventBracket.event_id == event_id)).all()
    event = session.get(Event, event_id)
    exact, fuzzy = accepted_category_ids(brackets, event.categories if event else None, category_id, category_name)

    selected = [m for m in matches if m.category_id in exact]
    if selected or not fuzzy:
        return selected

    widened = exact | fuzzy
    return [m for m in matches if m.category_id in widened]


def round_status(
    session: Session,
    event_id: int,
    round_name: str,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
) -> RoundStatus:
    matches = query_matches(session, event_id, category_id, category_name, round_name)
    completed = sum(1 for m in matches if m.status == STATUS_COMPLETED)
    return RoundStatus(total=len(matches), completed=completed, scheduled=len(matches) - completed)
