from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from chatdesk.api.errors import error_response, timestamp
from chatdesk.dependencies.services import SearchServiceDep, SettingsDep
from chatdesk.search import (
    InvalidSearchQueryError,
    SearchNotConfiguredError,
    SearchResult,
    SearchUnavailableError,
)
from chatdesk.upstream import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


class HelpCenterSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    locale: str | None = None
    per_page: int | None = Field(default=None, ge=1, alias="perPage")


class FederatedSearchRequest(BaseModel):
    query: str | None = None
    limit: int = Field(default=10, ge=1)
    filters: dict[str, Any] = Field(default_factory=dict)


def _articles(result: SearchResult) -> list[dict[str, Any]]:
    return [article.to_dict() for article in result.articles]


@router.post("/search-help-center", summary="Search help center articles")
async def search_help_center(
    payload: HelpCenterSearchRequest,
    search: SearchServiceDep,
    settings: SettingsDep,
) -> Any:
    locale = payload.locale or settings.zendesk_locale
    try:
        result = await search.search_help_center(
            payload.query or "",
            locale=locale,
            per_page=payload.per_page or settings.default_page_size,
        )
    except InvalidSearchQueryError as exc:
        return error_response(400, str(exc), success=False, articles=[], total=0)
    except UpstreamError as exc:
        logger.error("Help center search failed: %s", exc)
        details = exc.message if settings.is_development else "Internal server error"
        return error_response(
            500,
            "Failed to search Help Center articles",
            success=False,
            details=details,
            articles=[],
            total=0,
        )
    return {
        "success": True,
        "query": result.query,
        "articles": _articles(result),
        "total": result.total,
        "locale": locale,
        "search_time": timestamp(),
    }


@router.post("/search/federated", summary="Unified search with help center fallback")
async def search_federated(payload: FederatedSearchRequest, search: SearchServiceDep) -> Any:
    query = payload.query or ""
    try:
        result = await search.search_federated(query, limit=payload.limit, filters=payload.filters)
    except InvalidSearchQueryError as exc:
        return error_response(400, str(exc), success=False, query=query, timestamp=timestamp())
    except SearchNotConfiguredError as exc:
        logger.error("Federated search requested but not configured")
        return error_response(500, str(exc), success=False, timestamp=timestamp())
    except SearchUnavailableError as exc:
        return error_response(
            500,
            str(exc),
            success=False,
            details={"primary": exc.primary.message, "fallback": exc.fallback.message},
            query=query,
            timestamp=timestamp(),
        )
    return {
        "success": True,
        "results": _articles(result),
        "total": result.total,
        "query": result.query,
        "sources": result.sources,
        "fallback": result.fallback,
        "original_error": result.original_error,
        "timestamp": timestamp(),
        "api_version": "federated_v1",
    }
