import inspect

import pytest
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from intakeflow.config import IntakeConfig
from intakeflow.flows import InMemoryPersistenceAdapter
from intakeflow.server.app.factory import create_app


@pytest.fixture
def adapter():
    return InMemoryPersistenceAdapter()


@pytest.fixture
def client(adapter):
    return TestClient(create_app(config=IntakeConfig(), persistence=adapter))


def _start(client, document):
    resp = client.post("/api/sessions", json={"document": document})
    assert resp.status_code == 200
    return resp.json()


def test_module_level_app_is_built():
    from intakeflow.server.app import app

    assert isinstance(app, FastAPI)


def test_health_and_status(client):
    assert client.get("/health").json() == {"status": "ok"}
    status = client.get("/api/status").json()
    assert status["persistence"] == "InMemoryPersistenceAdapter"
    assert status["sessions"] == 0
    events = client.get("/api/logs").json()["events"]
    assert any(e["event"] == "server_ready" for e in events)


def test_parse_validate_layout_canvas(client, scenario_document):
    parsed = client.post("/api/flows/parse", json={"document": scenario_document}).json()
    assert parsed["format"] == "json"
    assert [n["id"] for n in parsed["flow"]["nodes"]] == ["S", "Q1", "Q2", "E1"]

    report = client.post("/api/flows/validate", json={"document": scenario_document}).json()
    assert report["valid"] is True
    assert report["issues"] == []

    positions = client.post("/api/flows/layout", json={"document": scenario_document}).json()["positions"]
    assert positions["S"] == {"x": 100, "y": 100}

    canvas = client.post("/api/flows/canvas", json={"document": scenario_document}).json()
    assert canvas["status"] == "ok"
    assert len(canvas["edges"]) == 4


def test_parse_error_is_422(client):
    resp = client.post("/api/flows/parse", json={"document": "```json\n{ broken\n```"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "syntax"

    deep = client.post("/api/flows/parse", json={"document": "```json\n" + "[" * 100000 + "]" * 100000 + "\n```"})
    assert deep.status_code == 422
    assert deep.json()["detail"]["kind"] == "syntax"


def test_session_walkthrough(client, adapter, scenario_document):
    session = _start(client, scenario_document)
    session_id = session["session_id"]
    assert session["current_node"]["id"] == "S"
    assert session["status"] == "not_started"

    client.post(f"/api/sessions/{session_id}/advance", json={})
    step = client.post(f"/api/sessions/{session_id}/advance", json={"answer": "Yes"}).json()
    assert step["current_node"]["id"] == "Q2"
    assert step["result"]["success"] is True

    back = client.post(f"/api/sessions/{session_id}/back").json()
    assert back["result"]["restored_answer"] == "Yes"

    bad = client.post(f"/api/sessions/{session_id}/advance", json={"answer": "perhaps"})
    assert bad.status_code == 409
    assert bad.json()["error"]["kind"] == "unresolved_branch"
    assert bad.json()["error"]["node_id"] == "Q1"

    early = client.post(f"/api/sessions/{session_id}/finalize")
    assert early.status_code == 409
    assert early.json()["error"]["kind"] == "not_terminal"

    client.post(f"/api/sessions/{session_id}/advance", json={"answer": "No"})
    done = client.post(f"/api/sessions/{session_id}/finalize").json()
    assert done["status"] == "completed"
    assert done["submission_id"] in adapter.submissions

    assert done["state"]["sealed"] is True
    assert client.get("/api/status").json()["sessions"] == 0
    assert client.post(f"/api/sessions/{session_id}/restart").status_code == 404


def test_draft_and_resume(client, scenario_document):
    session_id = _start(client, scenario_document)["session_id"]
    client.post(f"/api/sessions/{session_id}/advance", json={})
    client.post(f"/api/sessions/{session_id}/advance", json={"answer": "Yes"})
    handle = client.post(f"/api/sessions/{session_id}/draft").json()["draft_handle"]

    resumed = client.post("/api/sessions/resume", json={"document": scenario_document, "draft_handle": handle})
    assert resumed.status_code == 200
    body = resumed.json()
    assert body["session_id"] != session_id
    assert body["current_node"]["id"] == "Q2"
    assert body["state"]["answers"] == {"Q1": "Yes"}

    missing = client.post("/api/sessions/resume", json={"document": scenario_document, "draft_handle": "nope"})
    assert missing.status_code == 404


def test_invalid_flow_cannot_start(client, scenario_data, as_document):
    scenario_data["connections"] = scenario_data["connections"][:1]
    resp = client.post("/api/sessions", json={"document": as_document(scenario_data)})
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["kind"] == "invalid_flow"
    assert {issue["code"] for issue in error["issues"]} >= {"IF-2002", "IF-2003"}


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/does-not-exist").status_code == 404
    assert client.post("/api/sessions/does-not-exist/back").status_code == 404


def test_back_without_history_is_conflict(client, scenario_document):
    session_id = _start(client, scenario_document)["session_id"]
    resp = client.post(f"/api/sessions/{session_id}/back")
    assert resp.status_code == 409
    assert resp.json()["error"]["kind"] == "no_history"


def test_discard_session(client, scenario_document):
    session_id = _start(client, scenario_document)["session_id"]
    assert client.get("/api/status").json()["sessions"] == 1

    resp = client.delete(f"/api/sessions/{session_id}")
    assert resp.status_code == 200
    assert resp.json() == {"session_id": session_id, "discarded": True}
    assert client.get("/api/status").json()["sessions"] == 0
    assert client.get(f"/api/sessions/{session_id}").status_code == 404
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404


def test_mutating_session_routes_run_on_the_event_loop(client):
    endpoints = {
        route.path: route.endpoint
        for route in client.app.routes
        if isinstance(route, APIRoute) and "POST" in route.methods and route.path.startswith("/api/sessions/{session_id}/")
    }
    assert set(endpoints) == {
        "/api/sessions/{session_id}/advance",
        "/api/sessions/{session_id}/back",
        "/api/sessions/{session_id}/restart",
        "/api/sessions/{session_id}/draft",
        "/api/sessions/{session_id}/finalize",
    }
    assert all(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints.values())
