"""Clients for the external REST APIs the backend relays to."""

from .errors import UpstreamError
from .unified_search import UnifiedSearchClient
from .zendesk import ZendeskClient

__all__ = ["UpstreamError", "UnifiedSearchClient", "ZendeskClient"]
