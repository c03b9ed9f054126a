"""Tests for the petition endpoints."""

from datetime import timedelta

from conftest import auth_headers


def _create_petition(client, actor_id, start, end, target=3):
    response = client.post(
        "/v1/petitions",
        json={
            "action": "create",
            "title": "More benches",
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "target_signatures": target,
        },
        headers=auth_headers(actor_id),
    )
    assert response.status_code == 200, response.json()
    return response.json()["petition"]


def test_create_sign_and_progress(client, petitioner, open_window):
    start, end = open_window
    petition = _create_petition(client, petitioner.id, start, end)
    assert petition["target_signatures"] == 3

    response = client.post(
        "/v1/petitions",
        json={"action": "sign", "petition_id": petition["id"], "comment": "Yes please"},
        headers=auth_headers(petitioner.id),
    )
    assert response.status_code == 200
    assert response.json()["signature"]["comment"] == "Yes please"

    response = client.get(f"/v1/petitions/{petition['id']}/progress", headers=auth_headers(petitioner.id))
    progress = response.json()
    assert progress["current_signatures"] == 1
    assert round(progress["progress_percent"], 2) == 33.33
    assert progress["target_reached"] is False
    assert progress["has_signed"] is True


def test_list_active_petitions(client, petitioner, open_window):
    start, end = open_window
    petition = _create_petition(client, petitioner.id, start, end)

    response = client.get("/v1/petitions", headers=auth_headers(petitioner.id))
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["petitions"]] == [petition["id"]]


def test_invalid_target(client, petitioner, open_window):
    start, end = open_window
    response = client.post(
        "/v1/petitions",
        json={
            "action": "create",
            "title": "Zero",
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "target_signatures": 0,
        },
        headers=auth_headers(petitioner.id),
    )
    assert response.status_code == 400


def test_reversed_window(client, petitioner, open_window):
    start, end = open_window
    response = client.post(
        "/v1/petitions",
        json={
            "action": "create",
            "title": "Backwards",
            "start_time": end.isoformat(),
            "end_time": start.isoformat(),
        },
        headers=auth_headers(petitioner.id),
    )
    assert response.status_code == 400
    assert "end time must be after start time" in response.json()["error"]


def test_voter_cannot_sign(client, petitioner, voter, open_window):
    start, end = open_window
    petition = _create_petition(client, petitioner.id, start, end)
    response = client.post(
        "/v1/petitions",
        json={"action": "sign", "petition_id": petition["id"]},
        headers=auth_headers(voter.id),
    )
    assert response.status_code == 403


def test_finalize_twice(client, petitioner, now):
    petition = _create_petition(
        client, petitioner.id, now - timedelta(seconds=2000), now - timedelta(seconds=1000)
    )
    body = {"action": "finalize", "petition_id": petition["id"], "results_reference": "ref-1"}

    response = client.post("/v1/petitions", json=body, headers=auth_headers(petitioner.id))
    assert response.status_code == 200
    assert response.json()["petition"]["status"] == "completed"
    assert response.json()["petition"]["results_reference"] == "ref-1"

    response = client.post("/v1/petitions", json=body, headers=auth_headers(petitioner.id))
    assert response.status_code == 409
    assert response.json() == {"error": "Event is already finalized"}


def test_sign_ended_petition(client, petitioner, now):
    petition = _create_petition(
        client, petitioner.id, now - timedelta(seconds=2000), now - timedelta(seconds=1000)
    )
    response = client.post(
        "/v1/petitions",
        json={"action": "sign", "petition_id": petition["id"]},
        headers=auth_headers(petitioner.id),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Event has ended"}


def test_target_above_column_range(client, petitioner, open_window):
    start, end = open_window
    response = client.post(
        "/v1/petitions",
        json={
            "action": "create",
            "title": "Everyone",
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "target_signatures": 2**31,
        },
        headers=auth_headers(petitioner.id),
    )
    assert response.status_code == 400
    assert "target_signatures" in response.json()["error"]
