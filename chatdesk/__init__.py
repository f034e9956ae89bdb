"""Chat widget backend relaying support conversations to the helpdesk."""

__version__ = "1.0.0"
