"""Processing of helpdesk ticket status-change notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from chatdesk.search.text import END_USER_MARKER
from chatdesk.tickets import CommentRelay, has_closing_comment
from chatdesk.upstream import UpstreamError, ZendeskClient

logger = logging.getLogger(__name__)
background_logger = logging.getLogger("chatdesk.webhooks.background")

SOLVED = "solved"
DESCRIPTION_MARKERS: tuple[str, ...] = (END_USER_MARKER, "ENDUSER_MARKER")


class WebhookAction(str, Enum):
    """What processing a status-change event ended up doing."""

    NOT_SOLVED = "not_solved"
    ALREADY_SOLVED = "already_solved"
    NOT_MANAGED = "not_managed"
    DUPLICATE = "duplicate"
    COMMENTED = "commented"
    FAILED = "failed"


@dataclass(slots=True)
class WebhookEvent:
    ticket_id: Any
    status: str | None
    previous_status: str | None = None
    tags: list[str] | None = None
    description: str | None = None
    actor: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WebhookEvent":
        """Build an event; non-object ``previous_ticket``/``current_user`` values count as absent."""

        ticket = _mapping(payload.get("ticket"))
        previous = _mapping(payload.get("previous_ticket"))
        actor = _mapping(payload.get("current_user"))
        tags = ticket.get("tags")
        return cls(
            ticket_id=ticket.get("id"),
            status=ticket.get("status"),
            previous_status=previous.get("status") or payload.get("previous_status"),
            tags=list(tags) if isinstance(tags, list) else None,
            description=ticket.get("description"),
            actor=actor.get("name") or payload.get("actor"),
        )

    @property
    def became_solved(self) -> bool:
        return self.status == SOLVED and self.previous_status != SOLVED


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def is_managed_ticket(
    tags: Iterable[str] | None,
    description: str | None,
    *,
    chatbot_tag: str = "chatbot_new_ticket",
) -> bool:
    """Whether the ticket was opened through the chat widget.

    Tags are checked first; the description markers are used when no tag
    identifies the ticket.
    """

    for tag in tags or ():
        if tag == chatbot_tag or "chatbot" in tag:
            return True
    if description:
        return any(marker in description for marker in DESCRIPTION_MARKERS)
    return False


@dataclass(slots=True)
class SolvedTicketWebhookHandler:
    """Appends the closing comment once when a managed ticket becomes solved.

    Repeated deliveries of the same event are absorbed by checking the
    existing comments for the closing message before posting.
    """

    zendesk: ZendeskClient
    relay: CommentRelay
    chatbot_tag: str = "chatbot_new_ticket"
    _log: logging.Logger = field(default=background_logger, repr=False)

    async def process(self, event: WebhookEvent) -> WebhookAction:
        if event.status != SOLVED:
            self._log.info("Webhook for ticket #%s: status %r needs no action", event.ticket_id, event.status)
            return WebhookAction.NOT_SOLVED
        if not event.became_solved:
            self._log.info("Webhook for ticket #%s: ticket was already solved", event.ticket_id)
            return WebhookAction.ALREADY_SOLVED

        self._log.info("Ticket #%s marked as solved by %s", event.ticket_id, event.actor or "agent")
        if not is_managed_ticket(event.tags, event.description, chatbot_tag=self.chatbot_tag):
            self._log.info("Skipping closing comment for non-chatbot ticket #%s", event.ticket_id)
            return WebhookAction.NOT_MANAGED

        comments = await self.zendesk.list_comments(event.ticket_id)
        if has_closing_comment(comments):
            self._log.info("Closing comment already present on ticket #%s, skipping", event.ticket_id)
            return WebhookAction.DUPLICATE

        await self.relay.solve(event.ticket_id)
        self._log.info("Closing comment added to ticket #%s", event.ticket_id)
        return WebhookAction.COMMENTED

    async def process_safely(self, event: WebhookEvent) -> WebhookAction:
        """Background entry point: failures are logged, never raised."""

        try:
            return await self.process(event)
        except UpstreamError as exc:
            self._log.error("Failed to add closing comment to ticket #%s: %s", event.ticket_id, exc)
        except Exception:
            self._log.exception("Unexpected error processing webhook for ticket #%s", event.ticket_id)
        return WebhookAction.FAILED
