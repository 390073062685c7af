"""Manual match creation: bracket reference chain and next match index."""
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from matchboard.models.bracket import MANUAL_PLACEHOLDER_ROUND, MODE_MEDIA, EventBracket
from matchboard.models.match import STATUS_SCHEDULED
from tests.factories import CATEGORY_LABEL, CATEGORY_UUID, make_bracket, player


def _create(client: TestClient, **body):
    return client.post("/api/admin/matches", json=body)


def test_manual_match_uses_category_bracket(client: TestClient, session: Session, event):
    media = make_bracket(session, event.id, [], mode=MODE_MEDIA)
    bracket = make_bracket(session, event.id, [])

    response = _create(
        client,
        eventId=event.id,
        categoryId=CATEGORY_UUID,
        roundName="Final",
        playerA=player("p1"),
        playerB=player("p2"),
    )

    assert response.status_code == 201
    match = response.json()["match"]
    assert match["bracketId"] == bracket.id != media.id
    assert match["matchIndex"] == 0
    assert match["status"] == STATUS_SCHEDULED
    assert match["playerA"] == {"id": "p1", "name": "Player p1"}
    assert match["categoryId"] == CATEGORY_UUID


def test_manual_matches_take_next_index(client: TestClient, session: Session, event):
    make_bracket(session, event.id, [])
    body = dict(eventId=event.id, categoryId=CATEGORY_UUID, roundName="Final")

    indexes = [_create(client, **body).json()["match"]["matchIndex"] for _ in range(3)]
    other_round = _create(client, **{**body, "roundName": "Semi Final"}).json()["match"]["matchIndex"]

    assert indexes == [0, 1, 2]
    assert other_round == 0


def test_manual_match_creates_placeholder_bracket(client: TestClient, session: Session, event):
    response = _create(client, eventId=event.id, categoryId=42, categoryName="Open League", roundName="Round 1")

    assert response.status_code == 201
    match = response.json()["match"]
    assert match["categoryId"] == "42"
    bracket = session.get(EventBracket, match["bracketId"])
    assert bracket.round_name == MANUAL_PLACEHOLDER_ROUND
    assert bracket.category == "Open League"
    assert bracket.category_id is None


def test_manual_match_falls_back_to_any_event_bracket(client: TestClient, session: Session, event):
    other = make_bracket(session, event.id, [], category=CATEGORY_LABEL)

    response = _create(client, eventId=event.id, categoryId="9", categoryName="Veterans", roundName="Round 1")

    assert response.status_code == 201
    assert response.json()["match"]["bracketId"] == other.id
    assert len(session.exec(select(EventBracket)).all()) == 1


def test_non_uuid_category_requires_name(client: TestClient, event):
    response = _create(client, eventId=event.id, categoryId="9", roundName="Round 1")

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Non-UUID Category ID requires 'category_name' field"


def test_missing_fields(client: TestClient, event):
    response = _create(client, eventId=event.id, roundName="Round 1")

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Missing required fields"


def test_unknown_event(client: TestClient, session: Session):
    response = _create(client, eventId=999, categoryId=CATEGORY_UUID, roundName="Final")

    assert response.status_code == 404
