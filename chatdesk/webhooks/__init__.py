"""Helpdesk webhook processing."""

from .handler import SolvedTicketWebhookHandler, WebhookAction, WebhookEvent, is_managed_ticket

__all__ = ["SolvedTicketWebhookHandler", "WebhookAction", "WebhookEvent", "is_managed_ticket"]
