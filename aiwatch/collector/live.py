"""
Live Ingestor

Handles single-message events pushed by the Slack Events API.

Per event:
    RECEIVED -> channel not watched        -> DROPPED_UNWATCHED
             -> score below threshold      -> DROPPED_IRRELEVANT
             -> already in the ledger      -> DUPLICATE
             -> ledger.ingest()            -> STORED
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..common.schemas import StoredMessage, make_message_id
from ..common.slack_client import SlackWorkspace
from .handlers.base import Message
from .ledger import IngestionLedger
from .scorer import RelevanceScorer

logger = logging.getLogger("aiwatch.collector.live")


class LiveOutcome(str, Enum):
    """Terminal state of one live event"""
    DROPPED_UNWATCHED = "dropped_unwatched"
    DROPPED_IRRELEVANT = "dropped_irrelevant"
    DUPLICATE = "duplicate"
    STORED = "stored"


@dataclass
class LiveResult:
    outcome: LiveOutcome
    message_id: str
    score: float = 0.0


class LiveIngestor:
    """Scores and persists pushed messages from watched channels."""

    def __init__(
        self,
        ledger: IngestionLedger,
        workspace: SlackWorkspace,
        watched_channels: Iterable[str],
        scorer: Optional[RelevanceScorer] = None,
        threshold: float = 0.3,
    ):
        self._ledger = ledger
        self._workspace = workspace
        self._watched = set(watched_channels)
        self._scorer = scorer or RelevanceScorer()
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    def handle(self, message: Message) -> LiveResult:
        message_id = make_message_id(message.channel, message.timestamp)

        if message.channel not in self._watched:
            logger.debug("Channel %s is not monitored", message.channel)
            return LiveResult(LiveOutcome.DROPPED_UNWATCHED, message_id)

        result = self._scorer.score(message.text)
        if result.score < self._threshold:
            logger.debug("Message %s is not AI-related (score: %.2f)", message_id, result.score)
            return LiveResult(LiveOutcome.DROPPED_IRRELEVANT, message_id, result.score)

        if self._ledger.is_processed(message_id):
            logger.info("Message %s already processed", message_id)
            return LiveResult(LiveOutcome.DUPLICATE, message_id, result.score)

        user_name = self._workspace.user_display_name(message.user)

        stored = StoredMessage(
            channel_id=message.channel,
            ts=message.timestamp,
            text=message.text,
            user=message.user,
            user_name=user_name,
            relevance_score=result.score,
            is_thread_reply=message.is_thread_reply,
            thread_ts=message.thread_ts,
            reply_count=message.reply_count,
        )
        self._ledger.ingest(stored)

        logger.info("Saved AI-related message: %s (score: %.2f)", message_id, result.score)
        return LiveResult(LiveOutcome.STORED, message_id, result.score)
