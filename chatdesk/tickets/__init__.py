"""Ticket workflows relayed to the helpdesk."""

from .comments import (
    CLOSING_COMMENT,
    CommentAttempt,
    CommentPostResult,
    CommentRelay,
    CommentRelayError,
    TicketThread,
    build_comment_strategies,
    has_closing_comment,
)
from .orchestrator import TicketCreationError, TicketOrchestrator, TicketOutcome, TicketRequest

__all__ = [
    "CLOSING_COMMENT",
    "CommentAttempt",
    "CommentPostResult",
    "CommentRelay",
    "CommentRelayError",
    "TicketThread",
    "build_comment_strategies",
    "has_closing_comment",
    "TicketCreationError",
    "TicketOrchestrator",
    "TicketOutcome",
    "TicketRequest",
]
