"""Async client for the Zendesk Support and Help Center REST APIs."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from opentelemetry import trace

from .errors import UpstreamError, decode_payload, extract_error_message

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ZendeskClient:
    """Thin wrapper over the ticket, request, user and article endpoints.

    Every call authenticates with the service credential unless an explicit
    ``authorization`` header value is supplied (end-user comment posting).
    """

    def __init__(
        self,
        base_url: str,
        *,
        email: str,
        api_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(f"{email}/token", api_token),
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        authorization: str | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        request_kwargs: dict[str, Any] = dict(kwargs)
        if authorization is not None:
            # Replaces the service credential for this call only.
            request_kwargs["auth"] = None
            request_kwargs["headers"] = {"Authorization": authorization}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        with tracer.start_as_current_span(f"zendesk {method}") as span:
            span.set_attribute("http.route", path)
            try:
                response = await self._client.request(method, path, **request_kwargs)
            except httpx.TimeoutException as exc:
                logger.warning("Zendesk %s %s timed out", method, path)
                raise UpstreamError(f"Zendesk request timed out: {method} {path}", timeout=True) from exc
            except httpx.HTTPError as exc:
                logger.warning("Zendesk %s %s failed: %s", method, path, exc)
                raise UpstreamError(f"Zendesk request failed: {exc}") from exc

            span.set_attribute("http.status_code", response.status_code)

        payload = decode_payload(response)
        if response.status_code >= 400:
            message = extract_error_message(payload, f"Request failed with status code {response.status_code}")
            logger.warning("Zendesk %s %s returned %s", method, path, response.status_code)
            raise UpstreamError(message, status_code=response.status_code, payload=payload)

        logger.debug("Zendesk %s %s returned %s", method, path, response.status_code)
        return payload or {}

    # Tickets
    async def create_ticket(self, ticket: Mapping[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/tickets.json", json={"ticket": dict(ticket)})
        return data.get("ticket") or {}

    async def get_ticket(self, ticket_id: int) -> dict[str, Any]:
        data = await self._request("GET", f"/tickets/{ticket_id}.json")
        return data.get("ticket") or {}

    async def update_ticket(self, ticket_id: int, ticket: Mapping[str, Any]) -> dict[str, Any]:
        data = await self._request("PUT", f"/tickets/{ticket_id}.json", json={"ticket": dict(ticket)})
        return data.get("ticket") or {}

    async def list_comments(self, ticket_id: int) -> list[dict[str, Any]]:
        data = await self._request("GET", f"/tickets/{ticket_id}/comments.json")
        return list(data.get("comments") or [])

    # Requests API (end-user view of a ticket)
    async def add_request_comment(
        self,
        ticket_id: int,
        body: str,
        *,
        authorization: str | None = None,
    ) -> dict[str, Any]:
        payload = {"request": {"comment": {"body": body}}}
        data = await self._request("PUT", f"/requests/{ticket_id}.json", json=payload, authorization=authorization)
        return data.get("request") or {}

    # Users
    async def get_user(self, user_id: int) -> dict[str, Any]:
        data = await self._request("GET", f"/users/{user_id}.json")
        return data.get("user") or {}

    # Help Center
    async def search_articles(
        self,
        query: str,
        *,
        locale: str,
        per_page: int,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        params = {"query": query, "locale": locale, "per_page": per_page}
        return await self._request("GET", "/help_center/articles/search.json", params=params, timeout=timeout)
