from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from arcadesim.api.routes import sessions as sessions_routes
from arcadesim.app.main import create_app
from arcadesim.core.config.settings import settings


def _client() -> TestClient:
    return TestClient(create_app())


def test_health() -> None:
    client = _client()
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_stacker_session_over_http() -> None:
    client = _client()

    r = client.post("/api/sessions", json={"game": "stacker"})
    assert r.status_code == 200
    body = r.json()
    sid = body["session_id"]
    assert body["actions"] == ["drop"]

    r = client.post(f"/api/sessions/{sid}/start")
    assert r.status_code == 200
    assert r.json()["session"]["status"] == "running"

    r = client.post(f"/api/sessions/{sid}/advance", json={"elapsed_ms": 2000})
    assert r.json()["current_block"]["x"] == 6

    # block at 6..206 over base 100..300
    r = client.post(f"/api/sessions/{sid}/actions/drop")
    snap = r.json()
    assert snap["session"]["score"] == 53
    assert snap["level"] == 2

    r = client.post(f"/api/sessions/{sid}/actions/jump")
    assert r.status_code == 409

    r = client.get(f"/api/sessions/{sid}")
    assert r.json()["blocks"][-1]["width"] == 106

    r = client.delete(f"/api/sessions/{sid}")
    assert r.status_code == 204
    assert client.get(f"/api/sessions/{sid}").status_code == 404


def test_clicker_results_over_http() -> None:
    client = _client()
    sid = client.post("/api/sessions", json={"game": "clicker", "high_score": 5}).json()["session_id"]

    client.post(f"/api/sessions/{sid}/start")
    for _ in range(25):
        client.post(f"/api/sessions/{sid}/actions/pump")

    r = client.post(f"/api/sessions/{sid}/advance", json={"elapsed_ms": 60_000})
    snap = r.json()
    assert snap["session"]["status"] == "ended"
    assert snap["session"]["tokens_earned"] == 2
    assert snap["session"]["high_score"] == 25

    results = client.get(f"/api/sessions/{sid}/results").json()
    assert results["total_tokens"] == 2
    assert results["results"][0]["new_high_score"] is True

    client.delete(f"/api/sessions/{sid}")


def test_validation_and_unknown_session() -> None:
    client = _client()

    assert client.post("/api/sessions", json={"game": "pinball"}).status_code == 422
    assert client.post("/api/sessions", json={"game": "runner", "high_score": -1}).status_code == 422
    assert client.post("/api/sessions/nope/start").status_code == 404
    assert client.post("/api/sessions/nope/advance", json={"elapsed_ms": -5}).status_code in (404, 422)


def test_live_session_cap_rejects_new_sessions(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client()
    sid = client.post("/api/sessions", json={"game": "clicker"}).json()["session_id"]

    monkeypatch.setattr(settings, "max_live_sessions", len(sessions_routes._live))
    r = client.post("/api/sessions", json={"game": "stacker"})
    assert r.status_code == 409

    client.delete(f"/api/sessions/{sid}")
    assert client.post("/api/sessions", json={"game": "stacker"}).status_code == 200


def test_default_seed_applies_only_when_unseeded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "default_seed", 11)
    client = _client()

    unseeded = client.post("/api/sessions", json={"game": "runner"}).json()["session_id"]
    seeded = client.post("/api/sessions", json={"game": "runner", "seed": 4}).json()["session_id"]

    assert sessions_routes._live[unseeded].spec.seed == 11
    assert sessions_routes._live[seeded].spec.seed == 4

    client.delete(f"/api/sessions/{unseeded}")
    client.delete(f"/api/sessions/{seeded}")


def test_shutdown_closes_live_sessions() -> None:
    with TestClient(create_app()) as client:
        sid = client.post("/api/sessions", json={"game": "clicker"}).json()["session_id"]
        client.post(f"/api/sessions/{sid}/start")
        handle = sessions_routes._live[sid]
        assert handle.scheduler.pending(sid) == 1

    assert sid not in sessions_routes._live
    assert handle.scheduler.pending() == 0

    remaining = handle.engine.snapshot().time_remaining
    handle.advance(5_000)
    assert handle.engine.snapshot().time_remaining == remaining
