"""
Message Schemas

Persisted rows (StoredMessage, ProcessedMarker, SummarizedMarker) and the
ephemeral per-run results of the summarizer (Thread, Judgment, SummaryResult).

Persisted layout:
- messages table: partition "CHANNEL#{channel_id}", sort "MSG#{ts}"
- processed table: partition "{message_id}" (ingest marker) or
  "summarized_{message_id}" (summarized marker), empty sort key
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

PROCESSED_TTL = timedelta(days=7)
SUMMARIZED_TTL = timedelta(days=30)

CHANNEL_PREFIX = "CHANNEL#"
MESSAGE_PREFIX = "MSG#"
SUMMARIZED_PREFIX = "summarized_"


def make_message_id(channel_id: str, ts: str) -> str:
    return f"{channel_id}-{ts}"


def channel_partition(channel_id: str) -> str:
    return f"{CHANNEL_PREFIX}{channel_id}"


def message_sort_key(ts: str) -> str:
    return f"{MESSAGE_PREFIX}{ts}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def expiry_epoch(start: datetime, ttl: timedelta) -> int:
    return int((start + ttl).timestamp())


# ============================================================================
# Persisted rows
# ============================================================================

class StoredMessage(BaseModel):
    """A candidate message awaiting summarization"""
    channel_id: str
    ts: str = Field(..., description="Slack message timestamp, exact identity")
    text: str = ""
    user: str = ""
    user_name: str = "Unknown"
    relevance_score: float = Field(ge=0.0, le=1.0, default=0.5)
    is_thread_reply: bool = False
    thread_ts: Optional[str] = None  # root timestamp when part of a thread
    reply_count: int = Field(ge=0, default=0)
    detected_at: datetime = Field(default_factory=utc_now)
    ttl: int = 0  # epoch seconds after which the store may reclaim the row

    def model_post_init(self, __context) -> None:
        if not self.ttl:
            self.ttl = expiry_epoch(self.detected_at, PROCESSED_TTL)

    @property
    def message_id(self) -> str:
        return make_message_id(self.channel_id, self.ts)

    @property
    def timestamp(self) -> float:
        return float(self.ts)

    @property
    def thread_key(self) -> str:
        """Grouping key: the parent thread timestamp, else the message's own"""
        return self.thread_ts or self.ts

    @property
    def partition_key(self) -> str:
        return channel_partition(self.channel_id)

    @property
    def sort_key(self) -> str:
        return message_sort_key(self.ts)

    def to_item(self) -> dict:
        item = self.model_dump(mode="json")
        item.update({
            "PK": self.partition_key,
            "SK": self.sort_key,
            "message_id": self.message_id,
            "timestamp": self.timestamp,
        })
        return item

    @classmethod
    def from_item(cls, item: dict) -> "StoredMessage":
        return cls.model_validate({
            k: v for k, v in item.items()
            if k not in ("PK", "SK", "message_id", "timestamp")
        })


class ProcessedMarker(BaseModel):
    """Idempotency record: existence means "do not re-ingest" """
    message_id: str
    processed_at: datetime = Field(default_factory=utc_now)
    ttl: int = 0

    def model_post_init(self, __context) -> None:
        if not self.ttl:
            self.ttl = expiry_epoch(self.processed_at, PROCESSED_TTL)


class SummarizedMarker(BaseModel):
    """Long-lived record that a message was consumed by a summary"""
    message_id: str
    channel_id: str
    summarized_at: datetime = Field(default_factory=utc_now)
    ttl: int = 0

    def model_post_init(self, __context) -> None:
        if not self.ttl:
            self.ttl = expiry_epoch(self.summarized_at, SUMMARIZED_TTL)

    @property
    def key(self) -> str:
        return f"{SUMMARIZED_PREFIX}{self.message_id}"


# ============================================================================
# Per-run results
# ============================================================================

@dataclass
class Thread:
    """A root message plus its replies, or a singleton un-replied message"""
    key: str
    channel_id: str
    messages: List[StoredMessage] = field(default_factory=list)
    thread_url: str = ""
    urls: List[str] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)


@dataclass
class Judgment:
    """Relevance oracle verdict for one thread"""
    is_relevant: bool
    summary_text: Optional[str] = None
    key_points: List[str] = field(default_factory=list)
    used_fallback: bool = False


class SummaryResult(BaseModel):
    """Publish-ready summary of one relevant thread"""
    thread_url: str
    message_count: int = Field(ge=0)
    summary_text: str = ""
    urls: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0, default=1.0)
