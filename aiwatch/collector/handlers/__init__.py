"""
Source Handlers

Handlers for push-event transports.
Each handler converts source-specific events to a common Message format.

Available Handlers:
- SlackHandler: Slack Events API webhooks
"""

from .base import BaseHandler, Message
from .slack import SlackHandler

__all__ = [
    "BaseHandler",
    "Message",
    "SlackHandler",
]
