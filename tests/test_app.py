import json

import pytest
from fastapi.testclient import TestClient

from chatdesk.core.config import Settings
from chatdesk.main import create_app
from chatdesk.services import build_services
from chatdesk.tickets import CLOSING_COMMENT
from conftest import FakeUpstream, article


@pytest.fixture
def app_client(settings, zendesk_upstream, search_upstream):
    app = create_app(settings)
    app.state.services = build_services(
        settings,
        zendesk_transport=zendesk_upstream.transport,
        search_transport=search_upstream.transport,
    )
    return TestClient(app)


def test_health_is_served_at_root_and_under_prefix(app_client):
    for path in ("/health", "/api/health"):
        body = app_client.get(path).json()
        assert body["status"] == "OK"
        assert body["service"] == "ChatbotMX Backend"
        assert body["version"] == "1.0.0"


def test_root_lists_endpoints(app_client):
    body = app_client.get("/").json()

    assert body["status"] == "Running"
    assert "POST /api/ticket - Create ticket with optional search" in body["endpoints"]


def test_ticket_flow_against_fake_helpdesk(app_client, zendesk_upstream: FakeUpstream):
    zendesk_upstream.add(
        "GET",
        "/help_center/articles/search.json",
        (200, {"results": [article(1, "Reset your password", "<p>Go to <b>Settings</b></p>")], "count": 1}),
    )
    zendesk_upstream.add("POST", "/tickets.json", (201, {"ticket": {"id": 77, "requester_id": 9, "tags": []}}))
    zendesk_upstream.add("PUT", "/tickets/77.json", (200, {"ticket": {"id": 77}}))

    response = app_client.post(
        "/api/ticket",
        json={"message": "      \U0001F4ACHi, I need help with password reset", "searchQuery": "password reset"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ticketId"] == 77
    assert body["searchPerformed"] is True
    assert body["searchResults"][0]["snippet"] == "Go to Settings"
    assert body["confirmationCommentAdded"] is True
    assert body["tagged"] is True
    assert body["features"]["searchMode"] == "help_center"


def test_webhook_appends_closing_comment_after_ack(app_client, zendesk_upstream: FakeUpstream):
    zendesk_upstream.add("GET", "/tickets/7/comments.json", (200, {"comments": []}))
    zendesk_upstream.add("PUT", "/tickets/7.json", (200, {"ticket": {"id": 7, "status": "solved"}}))

    response = app_client.post(
        "/api/webhook/zendesk",
        json={"ticket": {"id": 7, "status": "solved", "tags": ["chatbot_new_ticket"]}, "previous_ticket": {"status": "open"}},
    )

    assert response.status_code == 200
    (update,) = zendesk_upstream.calls("PUT", "/tickets/7.json")
    assert json.loads(update.content)["ticket"]["comment"]["body"] == CLOSING_COMMENT


def test_user_lookup(app_client, zendesk_upstream: FakeUpstream):
    zendesk_upstream.add(
        "GET",
        "/users/3.json",
        (200, {"user": {"id": 3, "name": "Agent Smith", "email": "smith@acme.test", "role": "agent", "phone": "x"}}),
    )

    response = app_client.get("/api/user/3")

    assert response.json() == {"id": 3, "name": "Agent Smith", "email": "smith@acme.test", "role": "agent"}


def test_user_lookup_forwards_upstream_status(app_client):
    response = app_client.get("/api/user/404")

    assert response.status_code == 404
    assert response.json() == {"error": "Failed to fetch user information", "message": "RecordNotFound"}


def test_federated_search_unavailable_without_configuration(zendesk_upstream):
    settings = Settings(
        _env_file=None,
        zendesk_subdomain="acme",
        zendesk_email="bot@acme.test",
        zendesk_api_token="secret-token",
    )
    app = create_app(settings)
    app.state.services = build_services(settings, zendesk_transport=zendesk_upstream.transport)

    response = TestClient(app).post("/api/search/federated", json={"query": "vpn setup"})

    assert response.status_code == 500
    assert response.json()["error"] == "Federated search service not configured"
    assert zendesk_upstream.requests == []
