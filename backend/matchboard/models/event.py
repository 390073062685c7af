from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchboard.models.bracket import EventBracket
    from matchboard.models.league import League
    from matchboard.models.match import Match


class Event(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    sport: Optional[str] = None
    status: str = Field(default="upcoming")  # "upcoming" | "live" | "completed"

    # Category configuration: [{id, name, gender, match_type, setsPerMatch}, ...]
    # Category ids are loosely typed (UUID, numeric string or label).
    categories: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    brackets: List["EventBracket"] = Relationship(back_populates="event")
    leagues: List["League"] = Relationship(back_populates="event")
    matches: List["Match"] = Relationship(back_populates="event")
