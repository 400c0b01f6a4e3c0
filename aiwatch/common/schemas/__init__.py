"""
AIWatch Message Schemas

Persisted candidate/marker rows and per-run summarizer results.
"""

from .message import (
    StoredMessage,
    ProcessedMarker,
    SummarizedMarker,
    Thread,
    Judgment,
    SummaryResult,
    PROCESSED_TTL,
    SUMMARIZED_TTL,
    make_message_id,
    channel_partition,
    message_sort_key,
)
from .templates import format_summaries, EMPTY_DIGEST_TEXT

__all__ = [
    "StoredMessage",
    "ProcessedMarker",
    "SummarizedMarker",
    "Thread",
    "Judgment",
    "SummaryResult",
    "PROCESSED_TTL",
    "SUMMARIZED_TTL",
    "make_message_id",
    "channel_partition",
    "message_sort_key",
    "format_summaries",
    "EMPTY_DIGEST_TEXT",
]
