from matchboard.models.bracket import EventBracket
from matchboard.models.event import Event
from matchboard.models.league import League
from matchboard.models.match import Match

__all__ = [
    "Event",
    "EventBracket",
    "League",
    "Match",
]
