from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchboard.models.bracket import EventBracket
    from matchboard.models.event import Event

STATUS_SCHEDULED = "SCHEDULED"
STATUS_COMPLETED = "COMPLETED"
MATCH_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED)

LEAGUE_ROUND = "LEAGUE"


def is_league_round(round_name: Optional[str]) -> bool:
    return str(round_name or "").strip().upper() == LEAGUE_ROUND


class Match(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("bracket_id", "round_name", "match_index", name="uq_match_bracket_round_index"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    category_id: Optional[str] = Field(default=None, index=True)  # UUID, numeric string or label
    bracket_id: int = Field(foreign_key="event_bracket.id")  # placeholder bracket for league/manual matches
    round_name: str  # free text; "LEAGUE" marks round-robin matches
    match_index: int

    # Participant snapshots {id, name, group?}, not live references
    player_a: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    player_b: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # {"sets": [{"player1": int, "player2": int}, ...]} once finalized
    score: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    winner: Optional[str] = Field(default=None)  # winning participant id; null for draws
    status: str = Field(default=STATUS_SCHEDULED)  # SCHEDULED | COMPLETED

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    event: "Event" = Relationship(back_populates="matches")
    bracket: "EventBracket" = Relationship(back_populates="matches")

    @property
    def player_a_id(self) -> Optional[str]:
        return _snapshot_id(self.player_a)

    @property
    def player_b_id(self) -> Optional[str]:
        return _snapshot_id(self.player_b)


def _snapshot_id(snapshot: Any) -> Optional[str]:
    if isinstance(snapshot, dict):
        value = snapshot.get("id") or snapshot.get("player_id")
    else:
        value = snapshot
    return str(value) if value not in (None, "") else None
