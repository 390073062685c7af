"""Small builders shared by the test modules."""
from sqlmodel import Session

from matchboard.models.bracket import MODE_BRACKET, EventBracket
from matchboard.models.league import League

CATEGORY_UUID = "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b"
CATEGORY_LABEL = "U-15 - Male - Singles"


def player(pid, name=None, group=None):
    p = {"id": str(pid), "name": name or f"Player {pid}"}
    if group:
        p["group"] = group
    return p


def slot(p1=None, p2=None):
    return {"player1": p1, "player2": p2, "winner": None}


def make_bracket(session: Session, event_id, rounds, category=CATEGORY_LABEL, category_id=CATEGORY_UUID, mode=MODE_BRACKET):
    bracket = EventBracket(
        event_id=event_id,
        category=category,
        category_id=category_id,
        mode=mode,
        bracket_data={"rounds": rounds},
    )
    session.add(bracket)
    session.commit()
    session.refresh(bracket)
    return bracket


def make_league(session: Session, event_id, participants, category_label, category_id=None, rules=None):
    league = League(
        event_id=event_id,
        category_id=category_id,
        category_label=category_label,
        participants=participants,
    )
    if rules is not None:
        league.rules = rules
    session.add(league)
    session.commit()
    session.refresh(league)
    return league
