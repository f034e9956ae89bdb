from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from .text import create_snippet


@dataclass(slots=True)
class Article:
    """Knowledge-base hit reduced to the shape every search route returns."""

    id: Any
    title: str
    url: str | None
    snippet: str
    score: float = 0.0
    source: str = "zendesk"
    section: Any = None
    category: Any = None
    locale: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_help_center(
        cls,
        article: Mapping[str, Any],
        *,
        snippet_length: int,
        source: str = "zendesk",
    ) -> "Article":
        return cls(
            id=article.get("id"),
            title=article.get("title") or "Untitled Article",
            url=article.get("html_url"),
            snippet=create_snippet(article.get("body"), snippet_length),
            score=float(article.get("score") or 0),
            source=source,
            section=article.get("section_id"),
            category=article.get("category_id"),
            locale=article.get("locale"),
            created_at=article.get("created_at"),
            updated_at=article.get("updated_at"),
        )

    @classmethod
    def from_unified(cls, result: Mapping[str, Any], *, snippet_length: int) -> "Article":
        # Upstream snippets are already trimmed; only raw content is snippeted.
        snippet = result.get("snippet") or create_snippet(result.get("content"), snippet_length)
        return cls(
            id=result.get("id"),
            title=result.get("title") or "Untitled Article",
            url=result.get("url"),
            snippet=snippet,
            score=float(result.get("score") or 0),
            source=result.get("source") or "unknown",
            section=result.get("section"),
            category=result.get("category"),
            locale=result.get("locale"),
            created_at=result.get("created_at"),
            updated_at=result.get("last_updated") or result.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchResult:
    """Normalized search response assembled for a single request."""

    query: str
    articles: list[Article]
    total: int
    sources: list[str] = field(default_factory=list)
    fallback: bool = False
    original_error: str | None = None
