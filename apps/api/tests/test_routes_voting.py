"""Tests for the voting endpoints."""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from blocktrust_api.events import queries

from conftest import auth_headers


def _create_body(now, **overrides):
    body = {
        "action": "create",
        "title": "Board election",
        "description": "Pick one",
        "options": ["Alice", "Bob"],
        "start_time": (now - timedelta(minutes=1)).isoformat(),
        "end_time": (now + timedelta(hours=1)).isoformat(),
    }
    body.update(overrides)
    return body


def _create_event(client, now):
    response = client.post("/v1/voting", json=_create_body(now), headers=auth_headers("admin-1"))
    assert response.status_code == 200
    return response.json()["event"]


def test_missing_token_is_unauthorized(client):
    response = client.get("/v1/voting")
    assert response.status_code == 401
    assert "error" in response.json()


def test_bad_token_is_unauthorized(client):
    response = client.get("/v1/voting", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_create_and_list(client, admin, now):
    event = _create_event(client, now)
    assert event["status"] == "active"
    assert event["options"] == ["Alice", "Bob"]
    assert event["created_by"] == admin.id

    response = client.get("/v1/voting", headers=auth_headers("admin-1"))
    assert response.status_code == 200
    assert [e["id"] for e in response.json()["events"]] == [event["id"]]


def test_create_requires_admin(client, voter, now):
    response = client.post("/v1/voting", json=_create_body(now), headers=auth_headers(voter.id))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_create_with_one_option(client, admin, now):
    response = client.post(
        "/v1/voting", json=_create_body(now, options=["Alice"]), headers=auth_headers(admin.id)
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Need at least 2 options"}


def test_unknown_action_is_bad_request(client, admin):
    response = client.post("/v1/voting", json={"action": "retract"}, headers=auth_headers(admin.id))
    assert response.status_code == 400
    assert "error" in response.json()


def test_vote_and_results(client, admin, voter, now):
    event = _create_event(client, now)

    response = client.post(
        "/v1/voting",
        json={"action": "vote", "voting_event_id": event["id"], "vote_option": "Bob"},
        headers=auth_headers(voter.id),
    )
    assert response.status_code == 200
    vote = response.json()["vote"]
    assert vote["vote_option"] == "Bob"
    assert vote["blockchain_hash"].startswith("0x")

    response = client.get(f"/v1/voting/{event['id']}/results", headers=auth_headers(voter.id))
    assert response.status_code == 200
    results = response.json()
    assert results["tally"] == {"Alice": 0, "Bob": 1}
    assert results["total_votes"] == 1
    assert results["has_voted"] is True
    assert results["time_remaining"]["ended"] is False


def test_duplicate_vote(client, admin, voter, now):
    event = _create_event(client, now)
    body = {"action": "vote", "voting_event_id": event["id"], "vote_option": "Alice"}
    client.post("/v1/voting", json=body, headers=auth_headers(voter.id))

    response = client.post("/v1/voting", json=body, headers=auth_headers(voter.id))
    assert response.status_code == 400
    assert response.json() == {"error": "Already voted on this event"}


def test_results_for_unknown_event(client, voter):
    response = client.get("/v1/voting/missing/results", headers=auth_headers(voter.id))
    assert response.status_code == 404


def test_finalize_before_end(client, admin, now):
    event = _create_event(client, now)
    response = client.post(
        "/v1/voting",
        json={"action": "finalize", "voting_event_id": event["id"]},
        headers=auth_headers(admin.id),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Event has not ended"}


def test_store_fault_on_read_is_unavailable(client, db, admin, voter, now, monkeypatch):
    event = _create_event(client, now)

    def failing_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "get", failing_get)
    response = client.post(
        "/v1/voting",
        json={"action": "vote", "voting_event_id": event["id"], "vote_option": "Alice"},
        headers=auth_headers(voter.id),
    )
    assert response.status_code == 503
    assert response.json() == {"error": "Storage is unavailable"}


def test_store_fault_on_role_lookup_is_unavailable(client, db, voter, monkeypatch):
    def failing_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", failing_query)
    response = client.get("/v1/voting", headers=auth_headers(voter.id))
    assert response.status_code == 503
    assert "SELECT" not in response.text


def test_unexpected_error_hides_details(client, voter, monkeypatch):
    from blocktrust_api.main import app

    def broken_listing(db):
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(queries, "list_active_voting_events", broken_listing)
    response = TestClient(app, raise_server_exceptions=False).get(
        "/v1/voting", headers=auth_headers(voter.id)
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_overlong_option_label(client, admin, now):
    response = client.post(
        "/v1/voting",
        json=_create_body(now, options=["Alice", "B" * 256]),
        headers=auth_headers(admin.id),
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_overlong_results_reference(client, admin, now):
    event = _create_event(client, now)
    response = client.post(
        "/v1/voting",
        json={"action": "finalize", "voting_event_id": event["id"], "results_reference": "r" * 513},
        headers=auth_headers(admin.id),
    )
    assert response.status_code == 400
