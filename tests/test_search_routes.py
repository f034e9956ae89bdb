from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from chatdesk.core.config import Settings
from chatdesk.dependencies import services as deps
from chatdesk.main import create_app
from chatdesk.search import (
    Article,
    InvalidSearchQueryError,
    SearchNotConfiguredError,
    SearchResult,
    SearchUnavailableError,
)
from chatdesk.upstream import UpstreamError


@pytest.fixture
def search_client():
    app = create_app(Settings(_env_file=None, environment="production"))
    search = AsyncMock()
    app.dependency_overrides[deps.get_search_service] = lambda: search

    client = TestClient(app)
    try:
        yield client, search
    finally:
        app.dependency_overrides.clear()


def test_help_center_search_returns_articles(search_client):
    client, search = search_client
    search.search_help_center.return_value = SearchResult(
        query="password reset",
        articles=[Article(id=1, title="Reset", url="u", snippet="Steps", locale="en-us")],
        total=4,
    )

    response = client.post("/api/search-help-center", json={"query": "password reset", "per_page": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total"] == 4
    assert body["locale"] == "en-us"
    assert body["articles"][0]["title"] == "Reset"
    search.search_help_center.assert_awaited_with("password reset", locale="en-us", per_page=2)


def test_help_center_search_uses_default_page_size(search_client):
    client, search = search_client
    search.search_help_center.return_value = SearchResult(query="vpn setup", articles=[], total=0)

    client.post("/api/search-help-center", json={"query": "vpn setup", "locale": "fr"})

    search.search_help_center.assert_awaited_with("vpn setup", locale="fr", per_page=5)


def test_help_center_search_rejects_common_word(search_client):
    client, search = search_client
    search.search_help_center.side_effect = InvalidSearchQueryError("too vague")

    response = client.post("/api/search-help-center", json={"query": "help"})

    assert response.status_code == 400
    assert response.json() == {"error": "too vague", "success": False, "articles": [], "total": 0}


def test_help_center_search_hides_details_outside_development(search_client):
    client, search = search_client
    search.search_help_center.side_effect = UpstreamError("boom", status_code=500)

    response = client.post("/api/search-help-center", json={"query": "password reset"})

    assert response.status_code == 500
    assert response.json()["details"] == "Internal server error"


def test_federated_search_fallback_shape(search_client):
    client, search = search_client
    search.search_federated.return_value = SearchResult(
        query="vpn setup",
        articles=[Article(id=5, title="VPN", url="u", snippet="s", source="zendesk_fallback")],
        total=1,
        sources=["zendesk_fallback"],
        fallback=True,
        original_error="Bad gateway",
    )

    response = client.post("/api/search/federated", json={"query": "vpn setup", "limit": 5})

    body = response.json()
    assert response.status_code == 200
    assert body["fallback"] is True
    assert body["original_error"] == "Bad gateway"
    assert body["results"][0]["source"] == "zendesk_fallback"
    assert body["api_version"] == "federated_v1"
    search.search_federated.assert_awaited_with("vpn setup", limit=5, filters={})


def test_federated_search_total_failure(search_client):
    client, search = search_client
    search.search_federated.side_effect = SearchUnavailableError(
        "vpn setup", UpstreamError("primary down"), UpstreamError("fallback down", status_code=503)
    )

    response = client.post("/api/search/federated", json={"query": "vpn setup"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "All search services unavailable"
    assert body["details"] == {"primary": "primary down", "fallback": "fallback down"}


def test_federated_search_not_configured(search_client):
    client, search = search_client
    search.search_federated.side_effect = SearchNotConfiguredError("Federated search service not configured")

    response = client.post("/api/search/federated", json={"query": "vpn setup"})

    assert response.status_code == 500
    assert response.json()["error"] == "Federated search service not configured"


def test_federated_search_invalid_query(search_client):
    client, search = search_client
    search.search_federated.side_effect = InvalidSearchQueryError("too short")

    response = client.post("/api/search/federated", json={"query": "a"})

    assert response.status_code == 400
    assert response.json()["query"] == "a"
