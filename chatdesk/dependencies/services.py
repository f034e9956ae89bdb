from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from chatdesk.core.config import Settings
from chatdesk.search import SearchService
from chatdesk.services import ServiceContainer
from chatdesk.tickets import CommentRelay, TicketOrchestrator
from chatdesk.upstream import ZendeskClient
from chatdesk.webhooks import SolvedTicketWebhookHandler


async def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _container(request: Request) -> ServiceContainer:
    return getattr(request.app.state, "services", None) or ServiceContainer()


def _not_configured(name: str) -> HTTPException:
    return HTTPException(status_code=503, detail=f"{name} is not configured")


async def get_zendesk_client(request: Request) -> ZendeskClient:
    client = _container(request).zendesk
    if client is None:
        raise _not_configured("Helpdesk service")
    return client


async def get_search_service(request: Request) -> SearchService:
    service = _container(request).search
    if service is None:
        raise _not_configured("Search service")
    return service


async def get_comment_relay(request: Request) -> CommentRelay:
    relay = _container(request).relay
    if relay is None:
        raise _not_configured("Helpdesk service")
    return relay


async def get_ticket_orchestrator(request: Request) -> TicketOrchestrator:
    orchestrator = _container(request).orchestrator
    if orchestrator is None:
        raise _not_configured("Helpdesk service")
    return orchestrator


async def get_webhook_handler(request: Request) -> SolvedTicketWebhookHandler:
    handler = _container(request).webhook_handler
    if handler is None:
        raise _not_configured("Helpdesk service")
    return handler


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ZendeskDep = Annotated[ZendeskClient, Depends(get_zendesk_client)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
CommentRelayDep = Annotated[CommentRelay, Depends(get_comment_relay)]
TicketOrchestratorDep = Annotated[TicketOrchestrator, Depends(get_ticket_orchestrator)]
WebhookHandlerDep = Annotated[SolvedTicketWebhookHandler, Depends(get_webhook_handler)]
