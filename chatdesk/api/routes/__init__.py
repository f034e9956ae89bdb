from . import health, search, tickets, users, webhooks

__all__ = ["health", "search", "tickets", "users", "webhooks"]
