"""
Wire models shared by the routers.

Python attributes stay snake_case; JSON uses camelCase. Requests accept
either spelling.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def coerce_id(v: Any) -> Any:
    """Category and participant ids arrive as strings or bare numbers; store text."""
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(int(v)) if float(v).is_integer() else str(v)
    return v


class MatchOut(CamelModel):
    id: int
    event_id: int
    category_id: Optional[str] = None
    bracket_id: int
    round_name: str
    match_index: int
    player_a: Dict[str, Any]
    player_b: Dict[str, Any]
    score: Optional[Dict[str, Any]] = None
    winner: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublicMatchOut(CamelModel):
    """Display subset served without auth."""

    id: int
    event_id: int
    category_id: Optional[str] = None
    round_name: str
    player_a: Dict[str, Any]
    player_b: Dict[str, Any]
    score: Optional[Dict[str, Any]] = None
    status: str
    winner: Optional[str] = None
    updated_at: Optional[datetime] = None
