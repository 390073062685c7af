from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchboard.models.event import Event
    from matchboard.models.match import Match

MODE_BRACKET = "BRACKET"
MODE_MEDIA = "MEDIA"

LEAGUE_PLACEHOLDER_ROUND = "LEAGUE_PLACEHOLDER"
MANUAL_PLACEHOLDER_ROUND = "Manual"


class EventBracket(SQLModel, table=True):
    __tablename__ = "event_bracket"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    category: str  # category label, e.g. "U-15 - Male - Singles"
    category_id: Optional[str] = Field(default=None, index=True)  # only set when UUID-shaped
    mode: str = Field(default=MODE_BRACKET)  # "BRACKET" | "MEDIA"
    draw_type: str = Field(default="bracket")
    round_name: Optional[str] = Field(default=None)  # "LEAGUE_PLACEHOLDER" | "Manual" for placeholders

    # {"rounds": [{"name": str, "matches": [{"id", "player1", "player2", "winner"}]}]}
    bracket_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    event: "Event" = Relationship(back_populates="brackets")
    matches: List["Match"] = Relationship(back_populates="bracket")

    @property
    def rounds(self) -> List[Dict[str, Any]]:
        return list((self.bracket_data or {}).get("rounds") or [])
