"""Ticket creation workflow: optional search, create, confirm, tag."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from chatdesk.search import (
    Article,
    SearchError,
    SearchResult,
    SearchService,
    extract_search_query,
    is_valid_search_query,
)
from chatdesk.search.service import INLINE_SNIPPET_LENGTH
from chatdesk.upstream import UpstreamError, ZendeskClient

from .comments import CommentRelay

logger = logging.getLogger(__name__)

SEARCH_UNAVAILABLE_MESSAGE = "Help Center search temporarily unavailable"
SKIPPED_REASON = "Found relevant help articles"


class TicketCreationError(RuntimeError):
    """Raised when the upstream create call fails."""

    def __init__(self, cause: UpstreamError) -> None:
        super().__init__(cause.message)
        self.cause = cause


@dataclass(slots=True)
class TicketRequest:
    message: str
    user: str | None = None
    name: str | None = None
    email: str | None = None
    search_query: str | None = None
    perform_search: bool = True
    skip_ticket_if_results: bool = False


@dataclass(slots=True)
class TicketOutcome:
    ticket_id: Any = None
    requester_id: Any = None
    search_results: list[Article] | None = None
    search_performed: bool = False
    search_query: str | None = None
    search_error: dict[str, Any] | None = None
    ticket_skipped: bool = False
    reason: str | None = None
    confirmation_comment_added: bool = False
    tagged: bool = False
    features: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TicketOrchestrator:
    """Runs search, create, confirmation comment and tagging strictly in sequence.

    Only the create step can fail the request; the others are logged and
    reported through flags on the returned :class:`TicketOutcome`.
    """

    zendesk: ZendeskClient
    relay: CommentRelay
    search: SearchService | None = None
    search_mode: str = "help_center"
    search_page_size: int = 3
    search_timeout: float = 3.0
    derive_search_query: bool = False
    chatbot_tag: str = "chatbot_new_ticket"
    placeholder_email_domain: str = "example.com"

    async def create(self, request: TicketRequest) -> TicketOutcome:
        outcome = TicketOutcome(search_query=request.search_query or None)

        query = self._resolve_query(request)
        if query is not None and request.perform_search and self.search is not None:
            outcome.search_performed = True
            result = await self._search(self.search, query, outcome)
            if result is not None:
                outcome.search_results = result.articles
                if request.skip_ticket_if_results and result.articles:
                    logger.info("Skipping ticket creation: %d search results", len(result.articles))
                    outcome.ticket_skipped = True
                    outcome.reason = SKIPPED_REASON
                    outcome.features = self._features(request, skipped=True)
                    return outcome
        else:
            logger.debug(
                "Skipping inline search (query=%r, perform_search=%s)", query, request.perform_search
            )

        ticket = await self._create_ticket(request)
        ticket_id = ticket.get("id")
        outcome.ticket_id = ticket_id
        outcome.requester_id = ticket.get("requester_id")

        outcome.confirmation_comment_added = await self._confirm(ticket_id)
        outcome.tagged = await self._tag(ticket_id, ticket.get("tags") or [])
        outcome.features = self._features(request, skipped=False)
        return outcome

    def _resolve_query(self, request: TicketRequest) -> str | None:
        """An explicit query is searched as given; a derived one loses chat markers and filler first."""

        if request.search_query and request.search_query.strip():
            query = request.search_query.strip()
        elif self.derive_search_query:
            query = extract_search_query(request.message)
        else:
            return None
        if not is_valid_search_query(query):
            logger.info("Search query %r rejected before search", query)
            return None
        return query

    async def _search(self, search: SearchService, query: str, outcome: TicketOutcome) -> SearchResult | None:
        try:
            if self.search_mode == "federated":
                return await search.search_federated(
                    query,
                    limit=self.search_page_size,
                    timeout=self.search_timeout,
                )
            return await search.search_help_center(
                query,
                per_page=self.search_page_size,
                timeout=self.search_timeout,
                snippet_length=INLINE_SNIPPET_LENGTH,
            )
        except (SearchError, UpstreamError) as exc:
            logger.warning("Inline search failed for %r, continuing with ticket creation: %s", query, exc)
            outcome.search_error = {"message": SEARCH_UNAVAILABLE_MESSAGE, "details": str(exc)}
            return None

    async def _create_ticket(self, request: TicketRequest) -> dict[str, Any]:
        name = request.name or request.user or "Anonymous"
        email = request.email or f"{request.user or 'anon'}@{self.placeholder_email_domain}"
        user_info_tag = "user_info_provided" if request.email else "default_user_info"
        payload = {
            "subject": f"Chat support request from {name}",
            "comment": {"body": request.message},
            "requester": {"name": name, "email": email},
            "tags": [self.chatbot_tag, user_info_tag],
        }
        try:
            ticket = await self.zendesk.create_ticket(payload)
        except UpstreamError as exc:
            logger.error("Ticket creation failed for %s: %s", name, exc)
            raise TicketCreationError(exc) from exc
        logger.info("Created ticket #%s for %s", ticket.get("id"), name)
        return ticket

    async def _confirm(self, ticket_id: Any) -> bool:
        try:
            await self.relay.add_public_comment(ticket_id, f"Ticket number {ticket_id} has been opened for you.")
        except UpstreamError as exc:
            logger.warning("Failed to add confirmation comment to ticket #%s: %s", ticket_id, exc)
            return False
        return True

    async def _tag(self, ticket_id: Any, existing: list[str]) -> bool:
        tags = list(dict.fromkeys([*existing, self.chatbot_tag]))
        try:
            await self.zendesk.update_ticket(ticket_id, {"tags": tags})
        except UpstreamError as exc:
            logger.warning("Failed to tag ticket #%s: %s", ticket_id, exc)
            return False
        return True

    def _features(self, request: TicketRequest, *, skipped: bool) -> dict[str, Any]:
        return {
            "federatedSearch": self.search is not None,
            "searchMode": self.search_mode,
            "conditionalTicketCreation": request.skip_ticket_if_results,
            "autoTagging": not skipped,
            "agentComment": not skipped,
        }
