from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from chatdesk.core.config import Settings
from chatdesk.upstream import UnifiedSearchClient, ZendeskClient

ZENDESK_BASE = "https://acme.zendesk.com/api/v2"
SEARCH_BASE = "https://search.example.test"

Reply = tuple[int, Any] | Exception | Callable[[httpx.Request], httpx.Response]


class FakeUpstream:
    """Scripted upstream API backed by ``httpx.MockTransport``.

    Replies queued for a route are consumed in order; the last one repeats.
    Unscripted routes answer 404.
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self.routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *replies: Reply) -> "FakeUpstream":
        self.routes.setdefault((method, path), []).extend(replies)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if (request.method, self._path(request)) == (method, path)]

    @property
    def history(self) -> list[tuple[str, str]]:
        return [(request.method, self._path(request)) for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _path(self, request: httpx.Request) -> str:
        path = request.url.path
        return path[len(self.prefix) :] if path.startswith(self.prefix) else path

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._path(request)))
        if not queue:
            return httpx.Response(404, json={"error": "RecordNotFound", "description": "Not found"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        status, body = reply
        return httpx.Response(status, json=body)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        zendesk_subdomain="acme",
        zendesk_email="bot@acme.test",
        zendesk_api_token="secret-token",
        federated_search_url=SEARCH_BASE,
        federated_search_api_key="search-key",
    )


@pytest.fixture
def zendesk_upstream() -> FakeUpstream:
    return FakeUpstream(prefix="/api/v2")


@pytest.fixture
def search_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def zendesk_client(zendesk_upstream: FakeUpstream) -> ZendeskClient:
    return ZendeskClient(
        ZENDESK_BASE,
        email="bot@acme.test",
        api_token="secret-token",
        transport=zendesk_upstream.transport,
    )


@pytest.fixture
def unified_client(search_upstream: FakeUpstream) -> UnifiedSearchClient:
    return UnifiedSearchClient(SEARCH_BASE, api_key="search-key", transport=search_upstream.transport)


def article(article_id: int, title: str, body: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": article_id,
        "title": title,
        "body": body,
        "html_url": f"https://acme.zendesk.com/hc/articles/{article_id}",
        "score": 1.5,
        "section_id": 10,
        "category_id": 20,
        "locale": "en-us",
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-02-01T00:00:00Z",
        **extra,
    }
