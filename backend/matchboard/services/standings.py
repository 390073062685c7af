"""
League standings from completed round-robin matches.

Points follow the league's rules ({pointsWin, pointsLoss, pointsDraw}).
Rows are ranked by points, then set difference, then sets won, then name.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from matchboard.models.league import DEFAULT_LEAGUE_RULES
from matchboard.models.match import STATUS_COMPLETED, Match, is_league_round
from matchboard.services.match_generation import normalize_group
from matchboard.services.score_evaluator import DEFAULT_BEST_OF, decide_winner_side, lenient_sets


@dataclass
class StandingRow:
    participant_id: str
    name: Optional[str]
    group: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    sets_for: int = 0
    sets_against: int = 0
    points: int = 0

    @property
    def set_difference(self) -> int:
        return self.sets_for - self.sets_against


@dataclass
class GroupStandings:
    group: str
    rows: List[StandingRow] = field(default_factory=list)


def _rule(rules: Optional[Dict[str, Any]], key: str) -> int:
    value = (rules or {}).get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return DEFAULT_LEAGUE_RULES[key]


def _sets_won(score: Any) -> Tuple[int, int]:
    _winner, tally = decide_winner_side(lenient_sets(score), DEFAULT_BEST_OF)
    return tally.player1_sets_won, tally.player2_sets_won


def compute_standings(
    participants: Iterable[Dict[str, Any]],
    matches: Iterable[Match],
    rules: Optional[Dict[str, Any]] = None,
) -> List[GroupStandings]:
    """Aggregate COMPLETED LEAGUE matches into per-group standings.

    Every configured participant gets a row, even before playing.
    A completed match with a null winner counts as a draw.
    """
    win_pts = _rule(rules, "pointsWin")
    loss_pts = _rule(rules, "pointsLoss")
    draw_pts = _rule(rules, "pointsDraw")

    rows: Dict[str, StandingRow] = {}
    for p in participants:
        if not isinstance(p, dict) or not p.get("id"):
            continue
        pid = str(p["id"])
        if pid not in rows:
            group = normalize_group(p.get("group") or p.get("group_id") or p.get("groupLabel"))
            rows[pid] = StandingRow(participant_id=pid, name=p.get("name"), group=group)

    for m in matches:
        if m.status != STATUS_COMPLETED or not is_league_round(m.round_name):
            continue
        a_id, b_id = m.player_a_id, m.player_b_id
        if a_id not in rows or b_id not in rows:
            continue
        row_a, row_b = rows[a_id], rows[b_id]
        a_sets, b_sets = _sets_won(m.score)

        row_a.played += 1
        row_b.played += 1
        row_a.sets_for += a_sets
        row_a.sets_against += b_sets
        row_b.sets_for += b_sets
        row_b.sets_against += a_sets

        if m.winner is None:
            row_a.drawn += 1
            row_b.drawn += 1
            row_a.points += draw_pts
            row_b.points += draw_pts
        elif str(m.winner) == a_id:
            row_a.won += 1
            row_b.lost += 1
            row_a.points += win_pts
            row_b.points += loss_pts
        elif str(m.winner) == b_id:
            row_b.won += 1
            row_a.lost += 1
            row_b.points += win_pts
            row_a.points += loss_pts

    groups: Dict[str, GroupStandings] = {}
    for row in rows.values():
        groups.setdefault(row.group, GroupStandings(group=row.group)).rows.append(row)

    for standings in groups.values():
        standings.rows.sort(key=lambda r: (-r.points, -r.set_difference, -r.sets_for, str(r.name or "")))

    return [groups[g] for g in sorted(groups)]
