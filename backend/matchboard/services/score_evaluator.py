"""
Score evaluation for best-of-N set scoring.

Accepted score payloads:
  {"player1": 6, "player2": 3}                          → legacy single score
  {"sets": [{"player1": 6, "player2": 3}, {...}]}        → set-based score

Both are normalized to {"sets": [{"player1": int, "player2": int}, ...]}.

evaluate_final_score() is the strict path used by round finalize.
lenient_winner_side() is the forgiving path used when a direct score update
marks a match COMPLETED without naming a winner.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from matchboard.models.match import is_league_round
from matchboard.services.errors import ValidationError

SIDE_A = "A"
SIDE_B = "B"

DEFAULT_BEST_OF = 1


@dataclass
class SetTally:
    sets: List[Tuple[int, int]]  # (player1, player2) per set
    player1_sets_won: int
    player2_sets_won: int
    majority_reached: bool  # winner holds at least ceil(best_of / 2) sets


@dataclass
class ScoreOutcome:
    score: Dict[str, Any]  # normalized {"sets": [...]}
    winner_side: Optional[str]  # "A" | "B" | None for a draw
    tally: SetTally

    @property
    def is_draw(self) -> bool:
        return self.winner_side is None


def parse_best_of(value: Any) -> int:
    """setsPerMatch as configured on a category; blank, invalid or < 1 means 1."""
    if value is None or value == "" or isinstance(value, bool):
        return DEFAULT_BEST_OF
    try:
        best_of = int(str(value).strip())
    except ValueError:
        return DEFAULT_BEST_OF
    return best_of if best_of >= 1 else DEFAULT_BEST_OF


def best_of_for_category(categories: Optional[Iterable[Any]], category_id: Any) -> int:
    """Look up setsPerMatch for a category in an event's category configuration."""
    if not categories or category_id in (None, ""):
        return DEFAULT_BEST_OF
    wanted = str(category_id).strip()
    for category in categories:
        if not isinstance(category, dict):
            continue
        cat_id = category.get("id") or category.get("category_id")
        if cat_id is not None and str(cat_id).strip() == wanted:
            return parse_best_of(category.get("setsPerMatch", category.get("sets_per_match")))
    return DEFAULT_BEST_OF


def sets_to_win(best_of: int) -> int:
    return max(1, math.ceil(best_of / 2))


def _strict_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


def _lenient_int(value: Any) -> int:
    parsed = _strict_int(value)
    return parsed if parsed is not None else 0


def _side_value(entry: Dict[str, Any], primary: str, alias: str) -> Any:
    value = entry.get(primary)
    return entry.get(alias) if value is None else value


def normalize_score(raw: Any, match_id: Any = None) -> Dict[str, Any]:
    """Validate a score payload and return it as {"sets": [...]}.

    Raises ValidationError naming the offending set index (1-based) and match id.
    """
    label = f" for match {match_id}" if match_id is not None else ""
    if not isinstance(raw, dict) or not raw:
        raise ValidationError(f"Score is required{label}")

    if "sets" in raw:
        sets = raw.get("sets")
        if not isinstance(sets, list) or not sets:
            raise ValidationError(f"At least one set score is required{label}")
        normalized = []
        for i, entry in enumerate(sets):
            if not isinstance(entry, dict):
                raise ValidationError(f"Invalid scores in set {i + 1}{label}")
            p1 = _strict_int(_side_value(entry, "player1", "player_a"))
            p2 = _strict_int(_side_value(entry, "player2", "player_b"))
            if p1 is None or p2 is None or p1 < 0 or p2 < 0:
                raise ValidationError(f"Invalid scores in set {i + 1}{label}")
            normalized.append({"player1": p1, "player2": p2})
        return {"sets": normalized}

    p1 = _strict_int(_side_value(raw, "player1", "player_a"))
    p2 = _strict_int(_side_value(raw, "player2", "player_b"))
    if p1 is None or p2 is None or p1 < 0 or p2 < 0:
        raise ValidationError(f"Invalid scores{label}")
    return {"sets": [{"player1": p1, "player2": p2}]}


def decide_winner_side(sets: List[Tuple[int, int]], best_of: int) -> Tuple[Optional[str], SetTally]:
    """Majority decision over set scores.

    A side holding ceil(best_of / 2) set wins while the other side holds fewer
    takes the match. Failing that, the strictly higher set count wins. Equal
    counts return None (tied), including both sides reaching the threshold,
    which only happens for an even best_of or inconsistent input.
    A tied set counts for neither side.
    """
    needed = sets_to_win(best_of)
    p1_won = sum(1 for p1, p2 in sets if p1 > p2)
    p2_won = sum(1 for p1, p2 in sets if p2 > p1)

    winner: Optional[str] = None
    if p1_won != p2_won:
        winner = SIDE_A if p1_won > p2_won else SIDE_B

    tally = SetTally(
        sets=list(sets),
        player1_sets_won=p1_won,
        player2_sets_won=p2_won,
        majority_reached=winner is not None and max(p1_won, p2_won) >= needed,
    )
    return winner, tally


def evaluate_final_score(raw: Any, best_of: int, round_name: Optional[str], match_id: Any = None) -> ScoreOutcome:
    """Strict finalize evaluation.

    A tie is recorded as a draw only on LEAGUE rounds; knockout matches cannot
    end undecided and raise ValidationError.
    """
    score = normalize_score(raw, match_id)
    sets = [(s["player1"], s["player2"]) for s in score["sets"]]
    winner, tally = decide_winner_side(sets, best_of)

    if winner is None and not is_league_round(round_name):
        label = f" for match {match_id}" if match_id is not None else ""
        raise ValidationError(f"Draw is not allowed for knockout matches. Please correct the set scores{label}.")

    return ScoreOutcome(score=score, winner_side=winner, tally=tally)


def lenient_sets(score: Any) -> List[Tuple[int, int]]:
    """(player1, player2) per set from a stored score; unparseable values count as 0.

    Non-dict set entries are skipped. A legacy {player1, player2} score is one set.
    """
    if not isinstance(score, dict) or not score:
        return []

    sets_raw = score.get("sets")
    if isinstance(sets_raw, list) and sets_raw:
        return [
            (
                _lenient_int(_side_value(s, "player1", "player_a")),
                _lenient_int(_side_value(s, "player2", "player_b")),
            )
            for s in sets_raw
            if isinstance(s, dict)
        ]
    return [
        (
            _lenient_int(_side_value(score, "player1", "player_a")),
            _lenient_int(_side_value(score, "player2", "player_b")),
        )
    ]


def lenient_winner_side(score: Any, best_of: int, round_name: Optional[str]) -> Optional[str]:
    """Winner side for a direct COMPLETED update; unparseable values count as 0.

    Tied results are a draw (None) on LEAGUE rounds and default to side A elsewhere.
    """
    if not isinstance(score, dict) or not score:
        return None

    winner, _tally = decide_winner_side(lenient_sets(score), best_of)

    if winner is None and not is_league_round(round_name):
        return SIDE_A
    return winner
