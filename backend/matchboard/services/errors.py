"""
Scoreboard service errors.

Services raise these; routes translate them into HTTP responses with
translate_error(). Unique-constraint collisions during generation are never
raised: they are folded into skip counters.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class ScoreboardError(Exception):
    """Base exception for scoreboard services"""

    status_code = 500

    def __init__(self, message: str, debug: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.debug = debug

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"success": False, "message": self.message}
        if self.debug is not None:
            detail["debug"] = self.debug
        return detail


class NotFoundError(ScoreboardError):
    """Bracket, league configuration, event or match is absent"""

    status_code = 404


class ValidationError(ScoreboardError):
    """Missing field, invalid score, disallowed draw, too few participants"""

    status_code = 400


class UpstreamError(ScoreboardError):
    """The store failed for a reason other than a unique-key collision"""

    status_code = 500


def translate_error(exc: ScoreboardError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
