"""
Ingestion Ledger

Idempotency and candidate storage shared by the live and polling paths.

Two logical tables:
- messages: active candidates keyed by (CHANNEL#{channel}, MSG#{ts})
- processed: ingest markers keyed by message id, plus long-lived
  summarized markers under the "summarized_" prefix

Failure policy:
- reads of a marker fail open (treated as "not processed")
- writes and candidate scans propagate to the caller, which counts them as
  a channel-level error
"""

import logging
from typing import Iterable, List

from ..common.schemas import (
    ProcessedMarker,
    StoredMessage,
    SummarizedMarker,
    channel_partition,
    message_sort_key,
)
from ..common.store import KeyValueStore

logger = logging.getLogger("aiwatch.collector.ledger")

SCAN_PAGE_SIZE = 100


class IngestionLedger:
    """Candidate + processed-marker storage over a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        messages_table: str = "aiwatch_messages",
        processed_table: str = "aiwatch_processed",
    ):
        self._store = store
        self._messages_table = messages_table
        self._processed_table = processed_table

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # ------------------------------------------------------------------
    # Idempotency
    # ------------------------------------------------------------------

    def is_processed(self, message_id: str) -> bool:
        try:
            return self._store.get(self._processed_table, message_id) is not None
        except Exception as e:
            logger.warning("Error checking processed status for %s: %s", message_id, e)
            return False

    def record_processed(self, message_id: str) -> None:
        marker = ProcessedMarker(message_id=message_id)
        self._store.put(
            self._processed_table,
            message_id,
            "",
            marker.model_dump(mode="json"),
            marker.ttl,
        )

    def is_summarized(self, message_id: str) -> bool:
        key = SummarizedMarker(message_id=message_id, channel_id="").key
        try:
            return self._store.get(self._processed_table, key) is not None
        except Exception as e:
            logger.warning("Error checking summarized status for %s: %s", message_id, e)
            return False

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def record_candidate(self, message: StoredMessage) -> None:
        """Upsert a candidate; the same identity simply overwrites"""
        self._store.put(
            self._messages_table,
            message.partition_key,
            message.sort_key,
            message.to_item(),
            message.ttl,
        )

    def ingest(self, message: StoredMessage) -> None:
        """
        Store a candidate and mark it processed.

        Candidate first, marker second: a failed marker write only risks a
        duplicate ingest later.
        """
        self.record_candidate(message)
        self.record_processed(message.message_id)

    def fetch_channel(self, channel_id: str) -> List[StoredMessage]:
        """All active candidates of a channel, ascending by timestamp"""
        partition = channel_partition(channel_id)
        messages: List[StoredMessage] = []
        start_after = None
        while True:
            page = self._store.query(
                self._messages_table,
                partition,
                limit=SCAN_PAGE_SIZE,
                start_after=start_after,
            )
            for item in page.items:
                try:
                    messages.append(StoredMessage.from_item(item))
                except ValueError as e:
                    logger.warning("Skipping malformed row in %s: %s", partition, e)
            if not page.last_key:
                break
            start_after = page.last_key

        messages.sort(key=lambda m: m.timestamp)
        return messages

    def consume(self, channel_id: str, messages: Iterable[StoredMessage]) -> int:
        """
        Remove summarized messages from the active store and leave a 30-day
        summarized marker for each. Not atomic with the publish call: a
        failure part-way leaves the rest eligible for the next run.

        Returns:
            Number of messages consumed
        """
        count = 0
        for message in messages:
            self._store.delete(self._messages_table, channel_partition(channel_id), message_sort_key(message.ts))
            marker = SummarizedMarker(message_id=message.message_id, channel_id=channel_id)
            self._store.put(
                self._processed_table,
                marker.key,
                "",
                marker.model_dump(mode="json"),
                marker.ttl,
            )
            count += 1

        logger.info("Marked %d messages as summarized for channel %s", count, channel_id)
        return count
