"""
Push-event handler interface.

A handler owns one transport: it authenticates the raw request and turns
its envelope into a Message the live ingestor understands.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Message:
    """A single pushed chat message, transport details stripped."""
    text: str
    user: str
    channel: str
    source: str
    timestamp: str  # platform ts, kept as a string for exact identity
    thread_ts: Optional[str] = None
    reply_count: int = 0
    is_bot: bool = False
    raw_data: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @property
    def is_valid(self) -> bool:
        return bool(self.channel and self.timestamp and self.text and self.text.strip())

    @property
    def is_thread_reply(self) -> bool:
        """True for replies; a thread root carries its own ts as thread_ts"""
        return bool(self.thread_ts) and self.thread_ts != self.timestamp


class BaseHandler(ABC):
    """Parses and authenticates events for one push transport."""

    def __init__(self, source_name: str):
        self.source_name = source_name

    @abstractmethod
    async def parse_event(self, raw_data: Dict[str, Any]) -> Optional[Message]:
        """Message for a relevant event, None for anything to ignore"""

    @abstractmethod
    def verify_signature(self, body: bytes, signature: str, timestamp: str) -> bool:
        """Authenticate the raw request body against its signature headers"""

    def should_process(self, message: Message) -> bool:
        """Hand only complete, human-authored messages to the ingestor"""
        return message.is_valid and not message.is_bot
