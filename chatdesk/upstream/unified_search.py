"""Client for the external unified search API (multiple knowledge sources)."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx
from opentelemetry import trace

from .errors import UpstreamError, decode_payload, extract_error_message

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

USER_AGENT = "ChatbotMX-Backend/1.0"


class UnifiedSearchClient:
    """Bearer-authenticated client for ``POST /api/search/unified``."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def search(
        self,
        query: str,
        *,
        limit: int,
        filters: Mapping[str, Any] | None = None,
        sources: Sequence[str] = (),
        timeout: float | None = None,
    ) -> dict[str, Any]:
        body = {
            "query": query,
            "limit": limit,
            "filters": dict(filters or {}),
            "sources": list(sources),
            "include_snippets": True,
            "sort_by": "relevance",
        }
        with tracer.start_as_current_span("unified-search POST") as span:
            try:
                response = await self._client.post(
                    "/api/search/unified",
                    json=body,
                    timeout=httpx.USE_CLIENT_DEFAULT if timeout is None else timeout,
                )
            except httpx.TimeoutException as exc:
                logger.warning("Unified search timed out for query %r", query)
                raise UpstreamError("Unified search request timed out", timeout=True) from exc
            except httpx.HTTPError as exc:
                logger.warning("Unified search unreachable: %s", exc)
                raise UpstreamError(f"Unified search request failed: {exc}") from exc
            span.set_attribute("http.status_code", response.status_code)

        payload = decode_payload(response)
        if response.status_code >= 400:
            message = extract_error_message(payload, f"Request failed with status code {response.status_code}")
            raise UpstreamError(message, status_code=response.status_code, payload=payload)
        if not isinstance(payload, dict):
            raise UpstreamError("Unified search returned a non-JSON body", status_code=response.status_code)
        return payload
