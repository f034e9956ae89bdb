import base64
import logging

import httpx
import pytest

from chatdesk.core.config import Settings
from chatdesk.core.logging import BACKGROUND_LOGGER, _parse_headers, build_logging_config
from chatdesk.upstream import UpstreamError


@pytest.mark.asyncio
async def test_zendesk_client_authenticates_with_service_credential(zendesk_client, zendesk_upstream):
    zendesk_upstream.add("GET", "/tickets/1.json", (200, {"ticket": {"id": 1, "status": "open"}}))

    ticket = await zendesk_client.get_ticket(1)

    assert ticket == {"id": 1, "status": "open"}
    request = zendesk_upstream.requests[0]
    expected = base64.b64encode(b"bot@acme.test/token:secret-token").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert str(request.url) == "https://acme.zendesk.com/api/v2/tickets/1.json"


@pytest.mark.asyncio
async def test_zendesk_client_raises_upstream_error_with_payload(zendesk_client, zendesk_upstream):
    zendesk_upstream.add(
        "PUT",
        "/tickets/1.json",
        (422, {"error": "RecordInvalid", "description": "Record validation errors"}),
    )

    with pytest.raises(UpstreamError) as excinfo:
        await zendesk_client.update_ticket(1, {"status": "solved"})

    error = excinfo.value
    assert error.status_code == 422
    assert error.message == "RecordInvalid"
    assert str(error) == "[422] RecordInvalid"
    assert error.details() == {"error": "RecordInvalid", "description": "Record validation errors"}


@pytest.mark.asyncio
async def test_zendesk_client_marks_timeouts(zendesk_client, zendesk_upstream):
    zendesk_upstream.add("GET", "/users/1.json", httpx.ConnectTimeout("too slow"))

    with pytest.raises(UpstreamError) as excinfo:
        await zendesk_client.get_user(1)

    assert excinfo.value.timeout is True
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_unified_client_rejects_non_json_body(unified_client, search_upstream):
    search_upstream.add("POST", "/api/search/unified", lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(UpstreamError):
        await unified_client.search("vpn", limit=5)


def test_settings_build_helpdesk_base_url():
    settings = Settings(_env_file=None, zendesk_subdomain="acme", zendesk_email="a@b.c", zendesk_api_token="t")

    assert settings.zendesk_api_base == "https://acme.zendesk.com/api/v2"
    assert settings.zendesk_configured is True
    assert settings.federated_search_configured is False

    override = Settings(_env_file=None, zendesk_base_url="http://localhost:9000/api/v2/")
    assert override.zendesk_api_base == "http://localhost:9000/api/v2"
    assert override.zendesk_configured is False


def test_settings_accept_legacy_search_env_names(monkeypatch):
    monkeypatch.setenv("MXCHATBOT_API_URL", "https://search.example.test")
    monkeypatch.setenv("MXCHATBOT_API_KEY", "k")
    monkeypatch.setenv("COMMENT_STRATEGIES", '["requests_api", "ticket_update"]')

    settings = Settings(_env_file=None)

    assert settings.federated_search_configured is True
    assert settings.comment_strategies == ("requests_api", "ticket_update")


def test_parse_otlp_headers():
    assert _parse_headers("api-key=abc, x-team = core,broken,=nokey") == {"api-key": "abc", "x-team": "core"}
    assert _parse_headers(None) == {}


def test_settings_accept_comma_separated_name_lists(monkeypatch):
    monkeypatch.setenv("COMMENT_STRATEGIES", "requests_api, ticket_update")
    monkeypatch.setenv("FEDERATED_SOURCES", "docs")

    settings = Settings(_env_file=None)

    assert settings.comment_strategies == ("requests_api", "ticket_update")
    assert settings.federated_sources == ("docs",)


def test_logging_config_tags_background_records_and_quiets_clients():
    settings = Settings(_env_file=None, log_level="debug", log_format="%(message)s")

    config = build_logging_config(settings)

    assert config["loggers"]["httpx"]["level"] == logging.WARNING
    assert config["loggers"]["chatdesk"]["level"] == logging.DEBUG
    background = config["loggers"][BACKGROUND_LOGGER]
    assert background["handlers"] == ["background"]
    assert background["propagate"] is False
    assert config["formatters"]["background"]["format"] == "[webhook-background] %(message)s"
