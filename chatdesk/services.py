"""Construction of the upstream clients and services from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from chatdesk.core.config import Settings
from chatdesk.search import SearchService
from chatdesk.tickets import CommentRelay, TicketOrchestrator, build_comment_strategies
from chatdesk.upstream import UnifiedSearchClient, ZendeskClient
from chatdesk.webhooks import SolvedTicketWebhookHandler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    """Per-process services; every attribute is ``None`` when its upstream is not configured."""

    zendesk: ZendeskClient | None = None
    unified_search: UnifiedSearchClient | None = None
    search: SearchService | None = None
    relay: CommentRelay | None = None
    orchestrator: TicketOrchestrator | None = None
    webhook_handler: SolvedTicketWebhookHandler | None = None

    async def close(self) -> None:
        if self.zendesk is not None:
            await self.zendesk.close()
        if self.unified_search is not None:
            await self.unified_search.close()


def build_services(
    settings: Settings,
    *,
    zendesk_transport: httpx.AsyncBaseTransport | None = None,
    search_transport: httpx.AsyncBaseTransport | None = None,
) -> ServiceContainer:
    container = ServiceContainer()

    if settings.federated_search_configured:
        container.unified_search = UnifiedSearchClient(
            settings.federated_search_url,  # type: ignore[arg-type]
            api_key=settings.federated_search_api_key,  # type: ignore[arg-type]
            timeout=settings.federated_timeout,
            transport=search_transport,
        )
    else:
        logger.warning("Unified search API not configured; federated search is unavailable")

    if not settings.zendesk_configured:
        logger.warning("Zendesk credentials not configured; helpdesk routes will return 503")
        return container

    zendesk = ZendeskClient(
        settings.zendesk_api_base,  # type: ignore[arg-type]
        email=settings.zendesk_email,  # type: ignore[arg-type]
        api_token=settings.zendesk_api_token,  # type: ignore[arg-type]
        timeout=settings.upstream_timeout,
        transport=zendesk_transport,
    )
    relay = CommentRelay(
        zendesk,
        strategies=build_comment_strategies(settings.comment_strategies, author_id=settings.comment_author_id),
    )
    search = SearchService(
        zendesk,
        unified=container.unified_search,
        default_locale=settings.zendesk_locale,
        max_page_size=settings.max_page_size,
        help_center_timeout=settings.help_center_timeout,
        federated_max_limit=settings.federated_max_limit,
        federated_fallback_max=settings.federated_fallback_max,
        federated_sources=settings.federated_sources,
    )

    container.zendesk = zendesk
    container.relay = relay
    container.search = search
    container.orchestrator = TicketOrchestrator(
        zendesk,
        relay,
        search=search,
        search_mode=settings.ticket_search_mode,
        search_page_size=settings.ticket_search_page_size,
        search_timeout=settings.ticket_search_timeout,
        derive_search_query=settings.derive_search_query,
        chatbot_tag=settings.chatbot_tag,
        placeholder_email_domain=settings.placeholder_email_domain,
    )
    container.webhook_handler = SolvedTicketWebhookHandler(zendesk, relay, chatbot_tag=settings.chatbot_tag)
    return container
