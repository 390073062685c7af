"""
Match generation: bracket rounds and league blueprints into Match rows.

Generation is idempotent. Each candidate match is keyed by
(bracket_id, round_name, match_index); rows already present are skipped and
never overwritten, so live scores survive any number of regenerations.
Every batch is written in a single transaction with insert-ignore-on-conflict
statements, so a concurrent run that wins the race on a key only turns our
insert into a skip.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from matchboard.models.bracket import (
    LEAGUE_PLACEHOLDER_ROUND,
    MANUAL_PLACEHOLDER_ROUND,
    MODE_BRACKET,
    MODE_MEDIA,
    EventBracket,
)
from matchboard.models.event import Event
from matchboard.models.league import League
from matchboard.models.match import LEAGUE_ROUND, STATUS_SCHEDULED, Match
from matchboard.services.errors import NotFoundError, UpstreamError, ValidationError
from matchboard.utils.category_ref import AmbiguousCategoryError, CategoryRef, resolve_by_label_ladder
from matchboard.utils.sql import insert_ignoring_conflicts, scalar_int

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "A"


@dataclass
class BracketGenerationResult:
    bracket_id: int
    created_count: int
    existing_count: int
    bye_count: int

    @property
    def skipped_count(self) -> int:
        return self.existing_count + self.bye_count


@dataclass
class LeagueGenerationResult:
    league_id: int
    category_id: Optional[str]
    bracket_id: int
    created_count: int
    existing_count: int


# ----------------------------------------------------------------------------
# Slot helpers
# ----------------------------------------------------------------------------


def is_fake_bye_player(player: Any) -> bool:
    """A missing player or an explicit BYE marker."""
    if not player:
        return True
    if isinstance(player, str):
        return player.strip().lower() == "bye"
    if isinstance(player, dict):
        name = str(player.get("name") or "").strip().upper()
        pid = str(player.get("id") or player.get("player_id") or player.get("playerId") or "").strip().lower()
        return name == "BYE" or pid == "bye"
    return False


def has_real_player(player: Any) -> bool:
    if is_fake_bye_player(player) or not isinstance(player, dict):
        return False
    return bool(player.get("id") or player.get("player_id"))


def player_snapshot(player: Dict[str, Any], group: Optional[str] = None) -> Dict[str, Any]:
    """Frozen {id, name, group?} copy stored on the match row."""
    snapshot: Dict[str, Any] = {
        "id": str(player.get("id") or player.get("player_id")),
        "name": player.get("name"),
    }
    group = group or player.get("group")
    if group:
        snapshot["group"] = group
    return snapshot


def normalize_group(raw: Any) -> str:
    text = str(raw).strip().upper() if raw is not None else ""
    return text or DEFAULT_GROUP


def next_match_index(
    session: Session,
    round_name: str,
    bracket_id: Optional[int] = None,
    event_id: Optional[int] = None,
    category_id: Optional[str] = None,
) -> int:
    """Max match_index + 1 within bracket+round, or event+category+round without a bracket."""
    stmt = select(func.max(Match.match_index)).where(Match.round_name == round_name)
    if bracket_id is not None:
        stmt = stmt.where(Match.bracket_id == bracket_id)
    else:
        stmt = stmt.where(Match.event_id == event_id, Match.category_id == category_id)
    current = scalar_int(session.exec(stmt).first())
    return 0 if current is None else current + 1


def _require_event(session: Session, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found", debug={"eventId": event_id})
    return event


def _insert_match(session: Session, match: Match) -> bool:
    values = match.model_dump(exclude={"id"})
    return insert_ignoring_conflicts(session, Match.__table__, values)


# ----------------------------------------------------------------------------
# Bracket mode
# ----------------------------------------------------------------------------


def resolve_generation_bracket(
    session: Session, event_id: int, category_id: Optional[str], category_label: Optional[str]
) -> EventBracket:
    """Find the BRACKET-mode bracket for a category.

    UUID-shaped ids match category_id exactly; otherwise the label is used,
    falling back to treating a non-UUID id as the label.
    """
    ref = CategoryRef.parse(category_id)
    label = (category_label or "").strip() or None

    query = select(EventBracket).where(EventBracket.event_id == event_id, EventBracket.mode == MODE_BRACKET)
    if ref is not None and ref.is_uuid:
        query = query.where(EventBracket.category_id == ref.value)
    elif label:
        query = query.where(EventBracket.category == label)
    elif ref is not None and not ref.is_placeholder:
        query = query.where(EventBracket.category == ref.value)
    else:
        query = None

    bracket = None
    if query is not None:
        bracket = session.exec(query.order_by(EventBracket.created_at.desc(), EventBracket.id.desc())).first()

    if not bracket:
        raise NotFoundError(
            f"Bracket not found or not in BRACKET mode. Category: {label or category_id}",
            debug={"categoryId": category_id, "categoryLabel": category_label},
        )
    return bracket


def generate_bracket_matches(
    session: Session,
    event_id: int,
    category_id: Optional[str],
    category_label: Optional[str] = None,
    round_name: Optional[str] = None,
) -> BracketGenerationResult:
    """Materialize a Match for every bracket slot holding two real players.

    Byes (one player) and empty slots are skipped: their outcome is structural.
    Existing matches are skipped and left untouched.
    """
    bracket = resolve_generation_bracket(session, event_id, category_id, category_label)

    rounds = bracket.rounds
    if not rounds:
        raise ValidationError(
            "No rounds found in bracket data",
            debug={"bracketId": bracket.id, "categoryId": category_id, "categoryLabel": category_label},
        )

    if round_name:
        rounds = [r for r in rounds if r.get("name") == round_name]
        if not rounds:
            raise NotFoundError(
                f'Round "{round_name}" not found in bracket data',
                debug={"bracketId": bracket.id, "availableRounds": [r.get("name") for r in bracket.rounds]},
            )

    ref = CategoryRef.parse(category_id)
    if bracket.category_id:
        match_category_id = bracket.category_id
    elif ref is not None and not ref.is_placeholder:
        match_category_id = ref.value
    else:
        match_category_id = bracket.category

    existing_keys: Set[Tuple[str, int]] = {
        (m.round_name, m.match_index)
        for m in session.exec(select(Match).where(Match.bracket_id == bracket.id)).all()
    }

    created = 0
    existing = 0
    byes = 0
    try:
        for round_data in rounds:
            name = round_data.get("name")
            for index, slot in enumerate(round_data.get("matches") or []):
                p1 = slot.get("player1") if isinstance(slot, dict) else None
                p2 = slot.get("player2") if isinstance(slot, dict) else None
                if not (has_real_player(p1) and has_real_player(p2)):
                    byes += 1
                    continue

                if (name, index) in existing_keys:
                    existing += 1
                    continue

                match = Match(
                    event_id=event_id,
                    category_id=match_category_id,
                    bracket_id=bracket.id,
                    round_name=name,
                    match_index=index,
                    player_a=player_snapshot(p1),
                    player_b=player_snapshot(p2),
                    score=None,
                    winner=None,
                    status=STATUS_SCHEDULED,
                )
                if _insert_match(session, match):
                    created += 1
                else:
                    logger.warning(
                        "Match %s/%s/%d already inserted by a concurrent request; skipping",
                        bracket.id,
                        name,
                        index,
                    )
                    existing += 1
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Bracket match generation failed for bracket %s", bracket.id)
        raise UpstreamError("Failed to generate matches") from exc

    logger.info(
        "Generated bracket matches for event %s bracket %s: created=%d existing=%d byes=%d",
        event_id,
        bracket.id,
        created,
        existing,
        byes,
    )
    return BracketGenerationResult(bracket_id=bracket.id, created_count=created, existing_count=existing, bye_count=byes)


# ----------------------------------------------------------------------------
# League (round-robin) mode
# ----------------------------------------------------------------------------


def _league_summary(leagues: List[League]) -> List[Dict[str, Any]]:
    return [{"category_id": lg.category_id, "category_label": lg.category_label} for lg in leagues]


def resolve_league(
    session: Session, event_id: int, category_id: Optional[str], category_label: Optional[str]
) -> League:
    """Find the league blueprint for a category with the shared label ladder."""
    if not category_id and not category_label:
        raise ValidationError("Event ID and Category are required")

    leagues = session.exec(select(League).where(League.event_id == event_id).order_by(League.id)).all()
    searched = {"categoryId": category_id or None, "categoryLabel": category_label or None}

    try:
        league, strategy = resolve_by_label_ladder(
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
                **searched,
                "searchedFor": searched,
                "strategy": exc.strategy,
                "ambiguousLeagues": _league_summary(exc.candidates),
                "availableLeagues": _league_summary(leagues),
            },
        ) from exc

    if league is None:
        raise NotFoundError(
            "League configuration not found. Please configure participants first. "
            f"Category: {category_label or category_id}",
            debug={
                **searched,
                "searchedFor": searched,
                "availableLeagues": _league_summary(leagues),
                "hint": "Make sure you've saved the league configuration with participants before generating matches.",
            },
        )

    logger.debug("Resolved league %s for event %s via %s", league.id, event_id, strategy)
    return league


def league_match_category_id(league: League, category_id: Optional[str]) -> str:
    """Category id stamped on LEAGUE matches: the blueprint's id, else the request's, else the label."""
    if league.category_id:
        return str(league.category_id).strip()
    ref = CategoryRef.parse(category_id)
    if ref is not None and not ref.is_placeholder:
        return ref.value
    return league.category_label


def _placeholder_bracket_for_league(
    session: Session,
    event_id: int,
    league_category_id: Optional[str],
    category_label: str,
    existing_matches: List[Match],
) -> EventBracket:
    """Reuse or create the LEAGUE_PLACEHOLDER bracket that league matches reference."""
    for m in existing_matches:
        if m.bracket_id is not None:
            bracket = session.get(EventBracket, m.bracket_id)
            if bracket:
                return bracket

    ref = CategoryRef.parse(league_category_id)
    query = select(EventBracket).where(
        EventBracket.event_id == event_id,
        EventBracket.round_name == LEAGUE_PLACEHOLDER_ROUND,
    )
    if ref is not None and ref.is_uuid:
        query = query.where(EventBracket.category_id == ref.value)
    else:
        query = query.where(EventBracket.category == category_label)
    placeholder = session.exec(query.order_by(EventBracket.id)).first()
    if placeholder:
        return placeholder

    placeholder = EventBracket(
        event_id=event_id,
        category=category_label,
        category_id=ref.value if ref is not None and ref.is_uuid else None,
        mode=MODE_MEDIA,
        draw_type="bracket",
        round_name=LEAGUE_PLACEHOLDER_ROUND,
        bracket_data={"rounds": [], "isPlaceholder": True, "note": "Placeholder bracket for league matches"},
    )
    session.add(placeholder)
    session.flush()
    logger.info("Created league placeholder bracket %s for event %s (%s)", placeholder.id, event_id, category_label)
    return placeholder


def _pair_key(group: str, id1: str, id2: str) -> Tuple[str, str, str]:
    low, high = sorted((str(id1), str(id2)))
    return (group, low, high)


def _league_start_index(
    session: Session, event_id: int, category_id: Optional[str], bracket_id: int, existing: List[Match]
) -> int:
    if existing:
        start = max(m.match_index or 0 for m in existing) + 1
    else:
        # Fresh category query came back empty: scan every league match of the event
        ref = CategoryRef.parse(category_id)
        rows = session.exec(
            select(Match).where(Match.event_id == event_id, Match.round_name == LEAGUE_ROUND)
        ).all()
        if ref is not None:
            rows = [m for m in rows if ref.matches(m.category_id)]
        start = max((m.match_index or 0 for m in rows), default=-1) + 1

    # Keep clear of indexes other categories already hold on a shared placeholder
    return max(start, next_match_index(session, LEAGUE_ROUND, bracket_id=bracket_id))


def generate_league_matches(
    session: Session,
    event_id: int,
    category_id: Optional[str],
    category_label: Optional[str] = None,
) -> LeagueGenerationResult:
    """One LEAGUE match per unordered pair of participants within the same group.

    Pairs that already have a match are skipped, so adding a participant and
    regenerating creates only the pairs involving the newcomer.
    """
    league = resolve_league(session, event_id, category_id, category_label)
    participants = league.participants if isinstance(league.participants, list) else []
    debug = {"categoryId": category_id, "categoryLabel": category_label, "leagueConfigId": league.id}

    if not participants:
        raise ValidationError(
            "League configuration found but no participants configured. Please add participants to category "
            f'"{league.category_label or category_label or category_id}" before generating matches.',
            debug={**debug, "participantsCount": 0},
        )
    if len(participants) < 2:
        raise ValidationError(
            "At least two participants are required to generate league matches. "
            f"Currently configured: {len(participants)} participant(s).",
            debug={
                **debug,
                "participantsCount": len(participants),
                "participants": [{"id": p.get("id"), "name": p.get("name")} for p in participants],
            },
        )

    league_category_id = league_match_category_id(league, category_id)
    bracket_label = league.category_label or category_label or f"League - {category_id or 'Unknown'}"

    try:
        existing = session.exec(
            select(Match).where(
                Match.event_id == event_id,
                Match.round_name == LEAGUE_ROUND,
                Match.category_id == league_category_id,
            )
        ).all()

        placeholder = _placeholder_bracket_for_league(session, event_id, league_category_id, bracket_label, existing)

        existing_pairs: Set[Tuple[str, str, str]] = set()
        for m in existing:
            a_id, b_id = m.player_a_id, m.player_b_id
            if not a_id or not b_id:
                continue
            group = normalize_group((m.player_a or {}).get("group") or (m.player_b or {}).get("group"))
            existing_pairs.add(_pair_key(group, a_id, b_id))

        groups: Dict[str, List[Dict[str, Any]]] = {}
        for p in participants:
            if not isinstance(p, dict) or not p.get("id"):
                continue
            group = normalize_group(p.get("group") or p.get("group_id") or p.get("groupLabel"))
            groups.setdefault(group, []).append(p)

        pending: List[Tuple[str, Dict[str, Any], Dict[str, Any]]] = []
        for group, members in groups.items():
            for i in range(len(members)):
                for j in range(i + 1, len(members)):
                    key = _pair_key(group, members[i]["id"], members[j]["id"])
                    if key in existing_pairs:
                        continue
                    existing_pairs.add(key)
                    pending.append((group, members[i], members[j]))

        if not pending:
            session.commit()
            logger.info(
                "League matches already generated for event %s category %s (%d existing)",
                event_id,
                league_category_id,
                len(existing),
            )
            return LeagueGenerationResult(
                league_id=league.id,
                category_id=league_category_id,
                bracket_id=placeholder.id,
                created_count=0,
                existing_count=len(existing),
            )

        start = _league_start_index(session, event_id, league_category_id, placeholder.id, existing)
        created = 0
        for offset, (group, p1, p2) in enumerate(pending):
            match = Match(
                event_id=event_id,
                category_id=league_category_id,
                bracket_id=placeholder.id,
                round_name=LEAGUE_ROUND,
                match_index=start + offset,
                player_a=player_snapshot(p1, group),
                player_b=player_snapshot(p2, group),
                score=None,
                winner=None,
                status=STATUS_SCHEDULED,
            )
            if _insert_match(session, match):
                created += 1
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("League match generation failed for event %s league %s", event_id, league.id)
        raise UpstreamError("Failed to generate league matches") from exc

    logger.info(
        "Generated league matches for event %s category %s: created=%d existing=%d",
        event_id,
        league_category_id,
        created,
        len(existing),
    )
    return LeagueGenerationResult(
        league_id=league.id,
        category_id=league_category_id,
        bracket_id=placeholder.id,
        created_count=created,
        existing_count=len(existing),
    )


# ----------------------------------------------------------------------------
# Manual creation
# ----------------------------------------------------------------------------


def resolve_manual_bracket(
    session: Session,
    event_id: int,
    category_id: str,
    category_name: Optional[str] = None,
    bracket_id: Optional[int] = None,
) -> EventBracket:
    """Pick the bracket a manual match references.

    Order: provided id -> a bracket of the category (BRACKET mode preferred)
    -> any bracket of the event -> a new placeholder bracket.
    """
    if bracket_id is not None:
        bracket = session.get(EventBracket, bracket_id)
        if not bracket or bracket.event_id != event_id:
            raise NotFoundError(f"Bracket {bracket_id} not found for event {event_id}")
        return bracket

    ref = CategoryRef.parse(category_id)
    query = select(EventBracket).where(EventBracket.event_id == event_id)
    if ref is not None and ref.is_uuid:
        query = query.where(EventBracket.category_id == ref.value)
    elif category_name:
        query = query.where(EventBracket.category == category_name)
    else:
        raise ValidationError("Non-UUID Category ID requires 'category_name' field")

    brackets = session.exec(query.order_by(EventBracket.created_at.desc(), EventBracket.id.desc())).all()
    if brackets:
        return next((b for b in brackets if b.mode == MODE_BRACKET), brackets[0])

    any_bracket = session.exec(
        select(EventBracket).where(EventBracket.event_id == event_id).order_by(EventBracket.id)
    ).first()
    if any_bracket:
        return any_bracket

    placeholder = EventBracket(
        event_id=event_id,
        category=category_name or f"Manual Scoreboard - {category_id}",
        category_id=ref.value if ref is not None and ref.is_uuid else None,
        mode=MODE_MEDIA,
        draw_type="bracket",
        round_name=MANUAL_PLACEHOLDER_ROUND,
        bracket_data={"rounds": []},
    )
    session.add(placeholder)
    session.flush()
    logger.info("Created manual placeholder bracket %s for event %s", placeholder.id, event_id)
    return placeholder


def create_manual_match(
    session: Session,
    event_id: int,
    category_id: str,
    round_name: str,
    category_name: Optional[str] = None,
    player_a: Optional[Dict[str, Any]] = None,
    player_b: Optional[Dict[str, Any]] = None,
    bracket_id: Optional[int] = None,
) -> Match:
    """Insert a single SCHEDULED match at the next free index of its round."""
    if not event_id or not category_id or not round_name:
        raise ValidationError("Missing required fields")
    _require_event(session, event_id)

    try:
        bracket = resolve_manual_bracket(session, event_id, category_id, category_name, bracket_id)
        index = next_match_index(session, round_name, bracket_id=bracket.id)

        match = Match(
            event_id=event_id,
            category_id=str(category_id).strip(),
            bracket_id=bracket.id,
            round_name=round_name,
            match_index=index,
            player_a=player_a or {},
            player_b=player_b or {},
            status=STATUS_SCHEDULED,
        )
        session.add(match)
        session.commit()
        session.refresh(match)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Manual match creation failed for event %s", event_id)
        raise UpstreamError("Failed to create match") from exc

    return match
