"""Knowledge-base search: help center and the unified search API with fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from chatdesk.upstream import UnifiedSearchClient, UpstreamError, ZendeskClient

from .models import Article, SearchResult
from .text import is_valid_search_query

logger = logging.getLogger(__name__)

HELP_CENTER_SNIPPET_LENGTH = 200
INLINE_SNIPPET_LENGTH = 150
FALLBACK_SOURCE = "zendesk_fallback"


class SearchError(RuntimeError):
    """Base error raised by the search service."""


class InvalidSearchQueryError(SearchError, ValueError):
    """Raised before any upstream call when a query is empty, too short or a stop-word."""


class SearchNotConfiguredError(SearchError):
    """Raised when the unified search API has no URL or key configured."""


class SearchUnavailableError(SearchError):
    """Raised when both the unified search API and the help-center fallback fail."""

    def __init__(self, query: str, primary: UpstreamError, fallback: UpstreamError) -> None:
        super().__init__("All search services unavailable")
        self.query = query
        self.primary = primary
        self.fallback = fallback


@dataclass(slots=True)
class SearchService:
    zendesk: ZendeskClient
    unified: UnifiedSearchClient | None = None
    default_locale: str = "en-us"
    max_page_size: int = 10
    help_center_timeout: float = 5.0
    federated_max_limit: int = 50
    federated_fallback_max: int = 20
    federated_sources: Sequence[str] = ("zendesk", "docs", "knowledge_base")

    async def search_help_center(
        self,
        query: str,
        *,
        locale: str | None = None,
        per_page: int = 5,
        timeout: float | None = None,
        snippet_length: int = HELP_CENTER_SNIPPET_LENGTH,
    ) -> SearchResult:
        """Search published help-center articles.

        ``per_page`` is capped at ``max_page_size``. Upstream failures are
        raised as :class:`UpstreamError`.
        """

        clean = _require_valid(query)
        page_size = max(1, min(per_page, self.max_page_size))
        data = await self.zendesk.search_articles(
            clean,
            locale=locale or self.default_locale,
            per_page=page_size,
            timeout=timeout if timeout is not None else self.help_center_timeout,
        )
        articles = [
            Article.from_help_center(article, snippet_length=snippet_length)
            for article in data.get("results") or []
        ]
        logger.info("Help center search for %r found %d articles", clean, len(articles))
        return SearchResult(
            query=clean,
            articles=articles,
            total=data.get("count") or len(articles),
            sources=["zendesk"],
        )

    async def search_federated(
        self,
        query: str,
        *,
        limit: int = 10,
        filters: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> SearchResult:
        """Query the unified search API, falling back to the help center.

        The fallback result keeps the unified API's error message in
        ``original_error``. :class:`SearchUnavailableError` is raised only when
        both calls fail. ``timeout`` bounds each of the two calls; without it the
        unified client timeout and ``help_center_timeout`` apply.
        """

        clean = _require_valid(query, min_length=2)
        if self.unified is None:
            raise SearchNotConfiguredError("Federated search service not configured")

        try:
            data = await self.unified.search(
                clean,
                limit=min(limit, self.federated_max_limit),
                filters=filters,
                sources=self.federated_sources,
                timeout=timeout,
            )
        except UpstreamError as primary:
            logger.warning("Unified search failed for %r (%s); falling back to help center", clean, primary)
            return await self._fallback(clean, limit=limit, primary=primary, timeout=timeout)

        articles = [
            Article.from_unified(result, snippet_length=HELP_CENTER_SNIPPET_LENGTH)
            for result in data.get("results") or []
        ]
        logger.info("Unified search for %r found %d results", clean, len(articles))
        return SearchResult(
            query=clean,
            articles=articles,
            total=data.get("total") or len(articles),
            sources=list(data.get("sources") or ["mxchatbot"]),
        )

    async def _fallback(
        self, query: str, *, limit: int, primary: UpstreamError, timeout: float | None = None
    ) -> SearchResult:
        try:
            data = await self.zendesk.search_articles(
                query,
                locale=self.default_locale,
                per_page=min(limit, self.federated_fallback_max),
                timeout=self.help_center_timeout if timeout is None else timeout,
            )
        except UpstreamError as fallback:
            logger.error("Help center fallback also failed for %r: %s", query, fallback)
            raise SearchUnavailableError(query, primary, fallback) from fallback

        articles = [
            Article.from_help_center(article, snippet_length=HELP_CENTER_SNIPPET_LENGTH, source=FALLBACK_SOURCE)
            for article in data.get("results") or []
        ]
        return SearchResult(
            query=query,
            articles=articles,
            total=data.get("count") or len(articles),
            sources=[FALLBACK_SOURCE],
            fallback=True,
            original_error=primary.message,
        )


def _require_valid(query: str, *, min_length: int = 3) -> str:
    if not is_valid_search_query(query, min_length=min_length):
        raise InvalidSearchQueryError(
            f"Search query must be at least {min_length} characters and not a single common word"
        )
    return query.strip()
