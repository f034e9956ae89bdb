"""Knowledge-base search and the text helpers it relies on."""

from .models import Article, SearchResult
from .service import (
    InvalidSearchQueryError,
    SearchError,
    SearchNotConfiguredError,
    SearchService,
    SearchUnavailableError,
)
from .text import create_snippet, extract_search_query, is_valid_search_query

__all__ = [
    "Article",
    "SearchResult",
    "SearchService",
    "SearchError",
    "InvalidSearchQueryError",
    "SearchNotConfiguredError",
    "SearchUnavailableError",
    "create_snippet",
    "extract_search_query",
    "is_valid_search_query",
]
