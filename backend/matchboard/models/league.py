from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchboard.models.event import Event

DEFAULT_LEAGUE_RULES: Dict[str, int] = {
    "pointsWin": 3,
    "pointsLoss": 0,
    "pointsDraw": 1,
}


class League(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("event_id", "category_label", name="uq_league_event_label"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    category_id: Optional[str] = Field(default=None)  # free text: UUID, numeric string or label
    category_label: str

    # [{"id": str, "name": str, "group": Optional[str]}, ...]
    participants: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    rules: Dict[str, Any] = Field(
        default_factory=lambda: dict(DEFAULT_LEAGUE_RULES), sa_column=Column(JSON, nullable=False)
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    event: "Event" = Relationship(back_populates="leagues")
