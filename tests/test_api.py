import pytest
from fastapi.testclient import TestClient

from flow_wizard.app.dependencies import get_chat_service
from flow_wizard.app.main import app
from flow_wizard.execution.clock import SessionClock
from flow_wizard.repositories.session import InMemorySessionRepository
from flow_wizard.services.chat import ChatService
from flow_wizard.services.intent_resolver import KeywordIntentResolver


@pytest.fixture
def chat_service(flow_repository, provisioner, manual_loop):
    return ChatService(
        session_repository=InMemorySessionRepository(),
        flow_repository=flow_repository,
        intent_resolver=KeywordIntentResolver(),
        provisioner=provisioner,
        clock_factory=lambda: SessionClock(loop=manual_loop),
    )


@pytest.fixture
def test_client(chat_service):
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(test_client):
    response = test_client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def test_new_session_shows_welcome(test_client):
    response = test_client.post("/sessions")

    body = response.json()
    assert response.status_code == 201
    assert len(body["messages"]) == 1
    assert body["messages"][0]["suggested_actions"][0]["id"] == "create-client"


def test_session_resource_tracks_progress(test_client, session_id, manual_loop):
    response = test_client.post(f"/sessions/{session_id}/flows", json={"flow_id": "create-client"})
    assert response.json()["state"] == "Running"
    manual_loop.run_all()

    response = test_client.post(
        f"/sessions/{session_id}/steps/basic-info/submit",
        json={"values": {"companyName": "Acme", "email": "a@acme.com"}},
    )
    assert response.status_code == 200
    assert response.json()["accepted"] is True
    assert response.json()["current_step_id"] == "delivery-method"

    session = test_client.get(f"/sessions/{session_id}").json()
    assert session["active_flow"]["id"] == "create-client"
    assert session["active_flow"]["completed_steps"] == ["basic-info"]
    assert session["derived_values"]["username"] == "a"


def test_rejected_command_is_not_an_http_error(test_client, session_id, manual_loop):
    test_client.post(f"/sessions/{session_id}/flows", json={"flow_id": "create-client"})
    manual_loop.run_all()

    response = test_client.post(
        f"/sessions/{session_id}/steps/basic-info/submit",
        json={"values": {"companyName": "", "email": "nope"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is False
    assert body["error"] == "InvalidFieldValue"
    assert "email" in body["field_errors"]


def test_free_text_is_echoed_then_answered(test_client, session_id, manual_loop):
    response = test_client.post(f"/sessions/{session_id}/messages", json={"text": "help"})
    assert response.json()["accepted"] is True

    messages = test_client.get(f"/sessions/{session_id}/messages").json()["messages"]
    assert messages[-1]["author"] == "user"

    manual_loop.run_all()
    messages = test_client.get(f"/sessions/{session_id}/messages").json()["messages"]
    assert messages[-1]["author"] == "assistant"
    assert messages[-1]["sources"]


def test_reset_returns_to_welcome(test_client, session_id, manual_loop):
    test_client.post(f"/sessions/{session_id}/actions/create-client")
    manual_loop.run_all()

    response = test_client.post(f"/sessions/{session_id}/reset")

    assert response.json()["state"] == "Idle"
    assert len(test_client.get(f"/sessions/{session_id}/messages").json()["messages"]) == 1


def test_unknown_session_is_404(test_client):
    assert test_client.get("/sessions/does-not-exist").status_code == 404
    assert test_client.post("/sessions/does-not-exist/reset").status_code == 404


def test_unknown_flow_is_404(test_client, session_id):
    response = test_client.post(f"/sessions/{session_id}/flows", json={"flow_id": "carrier-pigeon-setup"})
    assert response.status_code == 404


def test_delete_session(test_client, session_id):
    assert test_client.delete(f"/sessions/{session_id}").status_code == 204
    assert test_client.delete(f"/sessions/{session_id}").status_code == 404
    assert test_client.get(f"/sessions/{session_id}").status_code == 404
