"""Posting and reading ticket comments, and the combined solve call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Sequence

from chatdesk.upstream import UpstreamError, ZendeskClient

logger = logging.getLogger(__name__)

CLOSING_COMMENT = (
    "AGENT CLOSED THIS SUPPORT REQUEST \U0001F6AB ⛔ \U0001F6B7 - "
    "You can re-open this ticket by replying to the last ticket email."
)
CLOSING_COMMENT_MARKER = "AGENT CLOSED THIS SUPPORT REQUEST"
CHAT_ANNOTATION = "[Added via chat interface]"
END_USER_METHOD = "end-user"

CommentStrategy = Callable[[ZendeskClient, int, str], Awaitable[dict[str, Any]]]


def ticket_update_strategy(author_id: int | None = None) -> CommentStrategy:
    """Embed the comment in a ticket update made with the service credential."""

    async def post(client: ZendeskClient, ticket_id: int, message: str) -> dict[str, Any]:
        comment: dict[str, Any] = {"body": message, "public": True}
        if author_id is not None:
            comment["author_id"] = author_id
        return await client.update_ticket(ticket_id, {"comment": comment})

    return post


async def status_update_strategy(client: ZendeskClient, ticket_id: int, message: str) -> dict[str, Any]:
    """Re-assert the open status and embed an annotated comment."""

    comment = {"body": f"{message}\n\n{CHAT_ANNOTATION}", "public": True}
    return await client.update_ticket(ticket_id, {"status": "open", "comment": comment})


async def requests_api_strategy(client: ZendeskClient, ticket_id: int, message: str) -> dict[str, Any]:
    """Use the end-user Requests API, authenticated with the service credential."""

    return await client.add_request_comment(ticket_id, message)


def build_comment_strategies(
    names: Iterable[str],
    *,
    author_id: int | None = None,
) -> list[tuple[str, CommentStrategy]]:
    available: dict[str, CommentStrategy] = {
        "ticket_update": ticket_update_strategy(author_id),
        "status_update": status_update_strategy,
        "requests_api": requests_api_strategy,
    }
    strategies: list[tuple[str, CommentStrategy]] = []
    for name in names:
        if name not in available:
            raise ValueError(f"Unknown comment strategy {name!r}; expected one of {sorted(available)}")
        strategies.append((name, available[name]))
    if not strategies:
        raise ValueError("At least one comment strategy must be configured")
    return strategies


@dataclass(slots=True)
class CommentAttempt:
    strategy: str
    succeeded: bool
    status_code: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "succeeded": self.succeeded,
            "status": self.status_code,
            "error": self.error,
        }


@dataclass(slots=True)
class CommentPostResult:
    method: str
    comment: dict[str, Any]
    attempts: list[CommentAttempt] = field(default_factory=list)


@dataclass(slots=True)
class TicketThread:
    comments: list[dict[str, Any]]
    requester_id: Any


class CommentRelayError(RuntimeError):
    """Raised when every configured comment strategy failed."""

    def __init__(self, ticket_id: int, attempts: Sequence[CommentAttempt]) -> None:
        summary = ", ".join(f"{attempt.strategy}: {attempt.status_code}" for attempt in attempts)
        super().__init__(f"All approaches failed - {summary}")
        self.ticket_id = ticket_id
        self.attempts = list(attempts)


def _default_clock() -> datetime:
    return datetime.now()


class CommentRelay:
    """Relays chat messages to ticket comments and reads threads back."""

    def __init__(
        self,
        client: ZendeskClient,
        *,
        strategies: Sequence[tuple[str, CommentStrategy]],
        clock: Callable[[], datetime] = _default_clock,
    ) -> None:
        self._client = client
        self._strategies = list(strategies)
        self._clock = clock

    @property
    def strategy_names(self) -> list[str]:
        return [name for name, _ in self._strategies]

    async def post_comment(self, ticket_id: int, message: str, *, user_token: str | None = None) -> CommentPostResult:
        """Post a public comment.

        With ``user_token`` the comment is made as the chat user through the
        Requests API and failures propagate as :class:`UpstreamError`.
        Without it the configured strategies run in order until one succeeds.
        """

        if user_token:
            logger.info("Adding end-user comment to ticket #%s", ticket_id)
            comment = await self._client.add_request_comment(
                ticket_id,
                message,
                authorization=f"Basic {user_token}",
            )
            return CommentPostResult(method=END_USER_METHOD, comment=comment)

        attempts: list[CommentAttempt] = []
        for name, strategy in self._strategies:
            try:
                comment = await strategy(self._client, ticket_id, message)
            except UpstreamError as exc:
                logger.warning("Comment strategy %s failed for ticket #%s: %s", name, ticket_id, exc)
                attempts.append(CommentAttempt(name, False, status_code=exc.status_code, error=exc.message))
                continue
            attempts.append(CommentAttempt(name, True))
            logger.info("Comment added to ticket #%s via %s", ticket_id, name)
            return CommentPostResult(method=name, comment=comment, attempts=attempts)

        raise CommentRelayError(ticket_id, attempts)

    async def add_private_comment(self, ticket_id: int, message: str) -> str:
        """Add an internal note prefixed with the current local time; returns the posted body."""

        timestamp = self._clock().strftime("%m/%d/%Y, %I:%M:%S %p")
        body = f"[{timestamp}] {message}"
        await self._client.update_ticket(ticket_id, {"comment": {"body": body, "public": False}})
        logger.info("Private comment added to ticket #%s", ticket_id)
        return body

    async def add_public_comment(self, ticket_id: int, body: str) -> dict[str, Any]:
        return await self._client.update_ticket(ticket_id, {"comment": {"body": body, "public": True}})

    async def fetch_thread(self, ticket_id: int) -> TicketThread:
        comments = await self._client.list_comments(ticket_id)
        ticket = await self._client.get_ticket(ticket_id)
        logger.info("Retrieved %d comments for ticket #%s", len(comments), ticket_id)
        return TicketThread(comments=comments, requester_id=ticket.get("requester_id"))

    async def solve(self, ticket_id: int) -> dict[str, Any]:
        """Set the ticket to solved and add the closing comment in one update."""

        ticket = await self._client.update_ticket(
            ticket_id,
            {"status": "solved", "comment": {"body": CLOSING_COMMENT, "public": True}},
        )
        logger.info("Ticket #%s solved with closing comment", ticket_id)
        return ticket


def has_closing_comment(comments: Iterable[dict[str, Any]]) -> bool:
    return any(CLOSING_COMMENT_MARKER in (comment.get("body") or "") for comment in comments)
