from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from chatdesk.api.errors import error_response, forwarded_status, timestamp
from chatdesk.dependencies.services import CommentRelayDep, TicketOrchestratorDep, ZendeskDep
from chatdesk.search import Article
from chatdesk.tickets import CommentRelayError, TicketCreationError, TicketOutcome, TicketRequest
from chatdesk.upstream import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ticket", tags=["tickets"])


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, Field(min_length=1), AfterValidator(_require_text)]


class TicketCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: NonBlankStr
    user: str | None = None
    name: str | None = None
    email: str | None = None
    search_query: str | None = Field(default=None, alias="searchQuery")
    perform_search: bool = Field(default=True, alias="performSearch")
    skip_ticket_if_results: bool = Field(default=False, alias="skipTicketIfResults")


class CommentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: NonBlankStr
    user_token: str | None = Field(default=None, alias="userToken")
    user: str | None = None


class PrivateCommentRequest(BaseModel):
    message: NonBlankStr


class ArticleModel(BaseModel):
    id: Any
    title: str
    url: str | None
    snippet: str
    score: float
    source: str
    section: Any = None
    category: Any = None
    locale: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class TicketCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticket_id: Any = Field(default=None, alias="ticketId")
    requester_id: Any = Field(default=None, alias="requesterId")
    search_results: list[ArticleModel] | None = Field(default=None, alias="searchResults")
    search_performed: bool = Field(default=False, alias="searchPerformed")
    search_query: str | None = Field(default=None, alias="searchQuery")
    search_error: dict[str, Any] | None = Field(default=None, alias="searchError")
    ticket_skipped: bool = Field(default=False, alias="ticketSkipped")
    reason: str | None = None
    confirmation_comment_added: bool = Field(default=False, alias="confirmationCommentAdded")
    tagged: bool = False
    timestamp: str
    features: dict[str, Any] = Field(default_factory=dict)


class TicketStatusResponse(BaseModel):
    id: Any
    status: str | None = None
    subject: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    priority: str | None = None
    requester_id: Any = None


class CommentThreadResponse(BaseModel):
    comments: list[dict[str, Any]]
    requester_id: Any = None


def _articles(articles: list[Article] | None) -> list[ArticleModel] | None:
    if articles is None:
        return None
    return [ArticleModel(**article.to_dict()) for article in articles]


def _to_response(outcome: TicketOutcome) -> TicketCreateResponse:
    return TicketCreateResponse(
        ticket_id=outcome.ticket_id,
        requester_id=outcome.requester_id,
        search_results=_articles(outcome.search_results),
        search_performed=outcome.search_performed,
        search_query=outcome.search_query,
        search_error=outcome.search_error,
        ticket_skipped=outcome.ticket_skipped,
        reason=outcome.reason,
        confirmation_comment_added=outcome.confirmation_comment_added,
        tagged=outcome.tagged,
        timestamp=timestamp(),
        features=outcome.features,
    )


@router.post("", response_model=TicketCreateResponse, summary="Create ticket with optional search")
async def create_ticket(
    payload: TicketCreateRequest,
    orchestrator: TicketOrchestratorDep,
) -> Any:
    request = TicketRequest(
        message=payload.message,
        user=payload.user,
        name=payload.name,
        email=payload.email,
        search_query=payload.search_query,
        perform_search=payload.perform_search,
        skip_ticket_if_results=payload.skip_ticket_if_results,
    )
    try:
        outcome = await orchestrator.create(request)
    except TicketCreationError as exc:
        return error_response(
            500,
            str(exc),
            details=exc.cause.details(),
            ticketId=None,
            requesterId=None,
            searchResults=None,
            searchPerformed=False,
            timestamp=timestamp(),
        )
    return _to_response(outcome)


@router.post("/{ticket_id}/comment", summary="Add a public comment")
async def add_comment(ticket_id: int, payload: CommentRequest, relay: CommentRelayDep) -> Any:
    try:
        result = await relay.post_comment(ticket_id, payload.message, user_token=payload.user_token)
    except CommentRelayError as exc:
        logger.error("Failed to add comment to ticket #%s: %s", ticket_id, exc)
        return error_response(
            500,
            str(exc),
            details={"attempts": [attempt.to_dict() for attempt in exc.attempts]},
        )
    except UpstreamError as exc:
        logger.error("Failed to add end-user comment to ticket #%s: %s", ticket_id, exc)
        return error_response(500, exc.message, details=exc.details())
    return {"success": True, "comment": result.comment, "method": result.method}


@router.post("/{ticket_id}/private-comment", summary="Add an internal note")
async def add_private_comment(ticket_id: int, payload: PrivateCommentRequest, relay: CommentRelayDep) -> Any:
    try:
        await relay.add_private_comment(ticket_id, payload.message)
    except UpstreamError as exc:
        logger.error("Failed to add private comment to ticket #%s: %s", ticket_id, exc)
        return error_response(500, exc.message, details=exc.details())
    return {
        "success": True,
        "message": "Private comment added successfully",
        "commentAdded": payload.message,
    }


@router.get("/{ticket_id}", response_model=TicketStatusResponse, summary="Get ticket status")
async def get_ticket(ticket_id: int, zendesk: ZendeskDep) -> Any:
    try:
        ticket = await zendesk.get_ticket(ticket_id)
    except UpstreamError as exc:
        logger.error("Error fetching ticket #%s: %s", ticket_id, exc)
        return error_response(forwarded_status(exc), "Failed to fetch ticket status", details=exc.details())
    return TicketStatusResponse(
        id=ticket.get("id", ticket_id),
        status=ticket.get("status"),
        subject=ticket.get("subject"),
        created_at=ticket.get("created_at"),
        updated_at=ticket.get("updated_at"),
        priority=ticket.get("priority"),
        requester_id=ticket.get("requester_id"),
    )


@router.get("/{ticket_id}/comments", response_model=CommentThreadResponse, summary="Get ticket comments")
async def get_comments(ticket_id: int, relay: CommentRelayDep) -> Any:
    try:
        thread = await relay.fetch_thread(ticket_id)
    except UpstreamError as exc:
        logger.error("Failed to fetch comments for ticket #%s: %s", ticket_id, exc)
        return error_response(500, exc.message, details=exc.details())
    return CommentThreadResponse(comments=thread.comments, requester_id=thread.requester_id)


@router.post("/{ticket_id}/solve", summary="Solve ticket with closing comment")
async def solve_ticket(ticket_id: int, relay: CommentRelayDep) -> Any:
    try:
        ticket = await relay.solve(ticket_id)
    except UpstreamError as exc:
        logger.error("Failed to solve ticket #%s: %s", ticket_id, exc)
        payload = exc.payload if isinstance(exc.payload, dict) else {}
        return error_response(
            500,
            exc.message,
            details=payload.get("details") or exc.details(),
            description=payload.get("description"),
        )
    return {
        "success": True,
        "status": ticket.get("status"),
        "ticket": ticket,
        "message": "Ticket solved with automatic closing comment",
    }
