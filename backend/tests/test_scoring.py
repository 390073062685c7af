"""
Round finalize and direct score edits.

Finalize is all-or-nothing: one bad match rejects the request and leaves
every match of the batch untouched.
"""
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from matchboard.models.match import LEAGUE_ROUND, STATUS_COMPLETED, STATUS_SCHEDULED, Match
from tests.factories import CATEGORY_UUID, make_bracket, player


def _match(session: Session, event_id, bracket_id, index, round_name="Final", category_id=CATEGORY_UUID, a="p1", b="p2"):
    m = Match(
        event_id=event_id,
        category_id=category_id,
        bracket_id=bracket_id,
        round_name=round_name,
        match_index=index,
        player_a=player(a),
        player_b=player(b),
    )
    session.add(m)
    session.commit()
    session.refresh(m)
    return m


def _sets(*pairs):
    return {"sets": [{"player1": p1, "player2": p2} for p1, p2 in pairs]}


def _finalize(client: TestClient, event_id, round_name, entries, category_id=CATEGORY_UUID):
    return client.post(
        f"/api/admin/matches/{event_id}/finalize",
        json={"categoryId": category_id, "roundName": round_name, "matches": entries},
    )


def test_finalize_best_of_three_two_nil(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _finalize(client, event.id, "Final", [{"matchId": m.id, "score": _sets((21, 15), (21, 18))}])

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["finalizedCount"] == 1
    result = data["matches"][0]
    assert result["winner"] == "p1"
    assert result["status"] == STATUS_COMPLETED
    assert result["score"] == _sets((21, 15), (21, 18))


def test_finalize_legacy_score_side_b(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [], category_id=None, category="U-11")
    m = _match(session, event.id, bracket.id, 0, category_id="U-11")

    response = _finalize(
        client, event.id, "Final", [{"matchId": m.id, "score": {"player1": 12, "player2": 21}}], category_id="U-11"
    )

    assert response.status_code == 200
    result = response.json()["matches"][0]
    assert result["winner"] == "p2"
    assert result["score"] == _sets((12, 21))


def test_league_split_sets_is_draw(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [], category_id=None, category="Open League")
    m = _match(session, event.id, bracket.id, 0, round_name=LEAGUE_ROUND, category_id="42")

    response = _finalize(client, event.id, LEAGUE_ROUND, [{"matchId": m.id, "score": _sets((21, 10), (10, 21))}], "42")

    assert response.status_code == 200
    result = response.json()["matches"][0]
    assert result["winner"] is None
    assert result["status"] == STATUS_COMPLETED


def test_knockout_split_sets_rejected_and_untouched(client: TestClient, session: Session, event):
    # "42" is best of 2 in the event config
    bracket = make_bracket(session, event.id, [], category_id=None, category="Open League")
    m = _match(session, event.id, bracket.id, 0, category_id="42")

    response = _finalize(client, event.id, "Final", [{"matchId": m.id, "score": _sets((21, 10), (10, 21))}], "42")

    assert response.status_code == 400
    assert "Draw is not allowed" in response.json()["detail"]["message"]
    session.expire_all()
    untouched = session.get(Match, m.id)
    assert untouched.status == STATUS_SCHEDULED
    assert untouched.score is None
    assert untouched.winner is None


def test_one_invalid_score_rejects_whole_batch(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    good = _match(session, event.id, bracket.id, 0)
    bad = _match(session, event.id, bracket.id, 1, a="p3", b="p4")

    response = _finalize(
        client,
        event.id,
        "Final",
        [
            {"matchId": good.id, "score": _sets((21, 15), (21, 18))},
            {"matchId": bad.id, "score": _sets((21, 15), (-3, 21))},
        ],
    )

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == f"Invalid scores in set 2 for match {bad.id}"
    session.expire_all()
    assert {m.status for m in session.exec(select(Match)).all()} == {STATUS_SCHEDULED}


def test_missing_match_ids_reported(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)
    semi = _match(session, event.id, bracket.id, 0, round_name="Semi Final")

    response = _finalize(
        client,
        event.id,
        "Final",
        [{"matchId": m.id, "score": _sets((21, 1))}, {"matchId": semi.id, "score": _sets((21, 1))}, {"matchId": 999, "score": _sets((21, 1))}],
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["debug"]["missingMatchIds"] == [semi.id, 999]
    session.expire_all()
    assert session.get(Match, m.id).status == STATUS_SCHEDULED


def test_finalize_requires_matches(client: TestClient, event):
    response = _finalize(client, event.id, "Final", [])

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Event ID, round name, and matches array are required"


def test_duplicate_match_ids_rejected(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _finalize(
        client, event.id, "Final", [{"matchId": m.id, "score": _sets((21, 1))}, {"matchId": m.id, "score": _sets((1, 21))}]
    )

    assert response.status_code == 400
    assert response.json()["detail"]["debug"]["duplicateMatchIds"] == [m.id]


def test_refinalize_overwrites_result(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)
    assert _finalize(client, event.id, "Final", [{"matchId": m.id, "score": _sets((21, 1), (21, 2))}]).status_code == 200

    response = _finalize(client, event.id, "Final", [{"matchId": m.id, "score": _sets((1, 21), (2, 21))}])

    assert response.status_code == 200
    assert response.json()["matches"][0]["winner"] == "p2"


# ── Direct score edits ──────────────────────────────────────────────────


def _put_score(client: TestClient, match_id, body):
    return client.put(f"/api/admin/matches/{match_id}/score", json=body)


def test_score_update_keeps_status_when_not_completed(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _put_score(client, m.id, {"score": _sets((11, 5))})

    assert response.status_code == 200
    match = response.json()["match"]
    assert match["score"] == _sets((11, 5))
    assert match["status"] == STATUS_SCHEDULED
    assert match["winner"] is None


def test_completed_without_winner_computes_one(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _put_score(client, m.id, {"score": _sets((5, 21), ("x", 21)), "status": STATUS_COMPLETED})

    assert response.status_code == 200
    match = response.json()["match"]
    assert match["winner"] == "p2"
    assert match["status"] == STATUS_COMPLETED


def test_completed_tie_on_knockout_defaults_to_side_a(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _put_score(client, m.id, {"score": {"player1": 7, "player2": 7}, "status": STATUS_COMPLETED})

    assert response.json()["match"]["winner"] == "p1"


def test_explicit_winner_is_kept(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _put_score(client, m.id, {"score": _sets((21, 5)), "status": STATUS_COMPLETED, "winner": "p2"})

    assert response.json()["match"]["winner"] == "p2"


def test_invalid_status_rejected(client: TestClient, session: Session, event):
    bracket = make_bracket(session, event.id, [])
    m = _match(session, event.id, bracket.id, 0)

    response = _put_score(client, m.id, {"status": "LIVE"})

    assert response.status_code == 400


def test_score_update_unknown_match(client: TestClient, event):
    response = _put_score(client, 12345, {"score": _sets((1, 0))})

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Match not found"
