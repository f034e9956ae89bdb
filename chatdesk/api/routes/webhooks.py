from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body

from chatdesk.api.errors import error_response
from chatdesk.dependencies.services import WebhookHandlerDep
from chatdesk.webhooks import WebhookEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


@router.post("", summary="Ticket status-change webhook")
@router.post("/zendesk", include_in_schema=False)
async def ticket_status_webhook(
    background_tasks: BackgroundTasks,
    handler: WebhookHandlerDep,
    payload: dict[str, Any] = Body(...),
) -> Any:
    """Acknowledge at once; the closing-comment logic runs after the response is sent."""

    ticket = payload.get("ticket")
    if not isinstance(ticket, dict) or ticket.get("id") is None:
        logger.warning("Webhook received without ticket data")
        return error_response(400, "No ticket data provided")

    event = WebhookEvent.from_payload(payload)
    logger.info(
        "Webhook for ticket #%s: status=%s previous=%s actor=%s",
        event.ticket_id,
        event.status,
        event.previous_status,
        event.actor or "Unknown",
    )
    background_tasks.add_task(handler.process_safely, event)
    return {
        "success": True,
        "message": "Webhook received and processing",
        "ticketId": event.ticket_id,
        "status": event.status,
    }
