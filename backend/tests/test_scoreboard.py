"""
Scoreboard reads, round status and match deletes.

League reads compare category ids literally; knockout reads widen the
accepted ids through brackets and the event category configuration.
"""
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from matchboard.models.match import LEAGUE_ROUND, STATUS_COMPLETED, Match
from matchboard.services.errors import ValidationError
from matchboard.services.scoreboard import accepted_category_ids, query_matches
from tests.factories import CATEGORY_LABEL, CATEGORY_UUID, make_bracket, player


def _add(session: Session, event_id, bracket_id, round_name, index, category_id, status="SCHEDULED"):
    m = Match(
        event_id=event_id,
        category_id=category_id,
        bracket_id=bracket_id,
        round_name=round_name,
        match_index=index,
        player_a=player(f"a{index}"),
        player_b=player(f"b{index}"),
        status=status,
    )
    session.add(m)
    session.commit()
    session.refresh(m)
    return m


@pytest.fixture
def board(session: Session, event):
    """Knockout matches stored under the UUID and under the label, plus league
    matches under "42" and under the same label with another id."""
    bracket = make_bracket(session, event.id, [])
    league_bracket = make_bracket(session, event.id, [], category="Open League", category_id=None)
    rows = {
        "qf_uuid": _add(session, event.id, bracket.id, "Quarter Final", 0, CATEGORY_UUID, STATUS_COMPLETED),
        "qf_label": _add(session, event.id, bracket.id, "Quarter Final", 1, CATEGORY_LABEL),
        "sf_uuid": _add(session, event.id, bracket.id, "Semi Final", 0, CATEGORY_UUID),
        "other": _add(session, event.id, bracket.id, "Quarter Final", 2, "U-11"),
        "lg_42": _add(session, event.id, league_bracket.id, LEAGUE_ROUND, 0, "42"),
        "lg_042": _add(session, event.id, league_bracket.id, LEAGUE_ROUND, 1, "042"),
        "lg_label": _add(session, event.id, league_bracket.id, LEAGUE_ROUND, 2, "Open League"),
    }
    return rows


def _ids(matches):
    return {m["id"] if isinstance(m, dict) else m.id for m in matches}


def test_league_query_is_literal(client: TestClient, board, event):
    response = client.get(f"/api/admin/matches/{event.id}", params={"categoryId": "42", "roundName": "LEAGUE"})

    assert response.status_code == 200
    assert _ids(response.json()["matches"]) == {board["lg_42"].id}


def test_league_query_requires_category_id(client: TestClient, board, event):
    response = client.get(f"/api/admin/matches/{event.id}", params={"categoryName": "Open League", "roundName": "league"})

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "categoryId is required for LEAGUE scoreboards"


def test_knockout_query_accepts_uuid_and_label_rows(session: Session, board, event):
    matches = query_matches(session, event.id, CATEGORY_UUID, CATEGORY_LABEL, "Quarter Final")

    assert _ids(matches) == {board["qf_uuid"].id, board["qf_label"].id}


def test_knockout_query_by_name_only(session: Session, board, event):
    matches = query_matches(session, event.id, category_name=CATEGORY_LABEL)

    # label rows directly, UUID rows through the bracket that carries the label
    assert _ids(matches) == {board["qf_uuid"].id, board["qf_label"].id, board["sf_uuid"].id}


def test_unfiltered_query_returns_everything_ordered(session: Session, board, event):
    matches = query_matches(session, event.id)

    assert len(matches) == len(board)
    keys = [(m.round_name, m.match_index) for m in matches]
    assert keys == sorted(keys)


def test_fuzzy_ids_collected_by_base_name(session: Session, event):
    female = make_bracket(session, event.id, [], category="U-15 - Female - Singles", category_id=None)
    exact, fuzzy = accepted_category_ids(
        [female], event.categories, category_id=None, category_name="U-15 - Male - Doubles"
    )
    assert exact == {"U-15 - Male - Doubles"}
    assert CATEGORY_UUID in fuzzy
    assert "U-15 - Female - Singles" in fuzzy


def test_base_name_widening_when_exact_finds_nothing(session: Session, board, event):
    matches = query_matches(session, event.id, category_name="U-15 - Male - Doubles")

    assert _ids(matches) == {board["qf_uuid"].id, board["qf_label"].id, board["sf_uuid"].id}


def test_service_rejects_league_without_category(session: Session, event):
    with pytest.raises(ValidationError):
        query_matches(session, event.id, round_name=LEAGUE_ROUND)


def test_round_status(client: TestClient, board, event):
    response = client.get(
        f"/api/admin/matches/{event.id}/round-status",
        params={"categoryId": CATEGORY_UUID, "roundName": "Quarter Final"},
    )

    assert response.status_code == 200
    data = response.json()
    # the label-keyed row of the same round counts too
    assert data["total"] == 2
    assert data["completed"] == 1
    assert data["scheduled"] == 1
    assert data["isComplete"] is False


def test_public_projection(client: TestClient, board, event):
    response = client.get(f"/api/public/events/{event.id}/matches", params={"categoryId": "42", "roundName": "LEAGUE"})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    match = data["matches"][0]
    assert set(match) == {
        "id",
        "eventId",
        "categoryId",
        "roundName",
        "playerA",
        "playerB",
        "score",
        "status",
        "winner",
        "updatedAt",
    }


def test_public_unknown_event(client: TestClient, session: Session):
    assert client.get("/api/public/events/404/matches").status_code == 404


# ── Deletes ─────────────────────────────────────────────────────────────


def test_delete_single_match(client: TestClient, session: Session, board):
    target_id = board["other"].id

    response = client.delete(f"/api/admin/matches/{target_id}")

    assert response.status_code == 200
    assert response.json()["deletedMatch"]["id"] == target_id
    session.expire_all()
    assert session.get(Match, target_id) is None
    assert client.delete(f"/api/admin/matches/{target_id}").status_code == 404


def test_delete_matches_for_category_round(client: TestClient, session: Session, board, event):
    qf_id, sf_id, other_id = board["qf_uuid"].id, board["sf_uuid"].id, board["other"].id

    response = client.delete(
        f"/api/admin/matches/category/{event.id}",
        params={"categoryId": CATEGORY_UUID, "categoryName": CATEGORY_LABEL, "roundName": "Quarter Final"},
    )

    assert response.status_code == 200
    assert response.json()["deletedCount"] == 2
    session.expire_all()
    remaining = {m.id for m in session.exec(select(Match)).all()}
    assert qf_id not in remaining
    assert sf_id in remaining
    assert other_id in remaining


def test_delete_category_requires_selector(client: TestClient, board, event):
    response = client.delete(f"/api/admin/matches/category/{event.id}")

    assert response.status_code == 400
