"""
Summary Publisher

Drains the ledger's active candidates channel by channel, asks the oracle
about every reconstructed thread and posts one digest per channel with at
least one relevant thread.

Consumption (delete + summarized marker) happens only after the digest was
posted. It is not atomic with the post: a crash in between leaves messages
that will be summarized again on the next run.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

from ..collector.ledger import IngestionLedger
from ..common.schemas import SummaryResult, format_summaries
from ..common.slack_client import SlackWorkspace
from .oracle import RelevanceOracleClient
from .threads import group_threads

logger = logging.getLogger("aiwatch.summarizer.publisher")


@dataclass
class SummaryRunResult:
    """Observational summary of one publishing run"""
    summaries_sent: int = 0
    total_messages: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    channels_processed: List[Dict[str, Any]] = field(default_factory=list)
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("status_code")
        return data


class SummaryPublisher:
    """fetch -> group -> judge -> format -> publish -> consume"""

    def __init__(
        self,
        ledger: IngestionLedger,
        workspace: SlackWorkspace,
        oracle: RelevanceOracleClient,
        target_channel_id: str,
        channel_types: str = "public_channel",
    ):
        self._ledger = ledger
        self._workspace = workspace
        self._oracle = oracle
        self._target_channel_id = target_channel_id
        self._channel_types = channel_types

    def run(self) -> SummaryRunResult:
        logger.info("Starting summary generation...")
        result = SummaryRunResult()

        try:
            channels = self._workspace.list_member_channels(
                exclude=self._target_channel_id,
                types=self._channel_types,
            )
        except Exception as e:
            logger.error("Error fetching bot channels: %s", e)
            result.errors.append({"error": "Failed to fetch channels", "message": str(e)})
            result.status_code = 500
            return result

        logger.info(
            "Found %d channels to summarize (excluding target channel: %s)",
            len(channels), self._target_channel_id,
        )

        for channel in channels:
            try:
                self.publish_channel(channel, result)
            except Exception as e:
                logger.exception("Error processing channel %s (%s)", channel.get("name"), channel.get("id"))
                result.errors.append({"channel": channel.get("name"), "id": channel.get("id"), "error": str(e)})

        logger.info(
            "Summary generation complete: sent=%d messages=%d errors=%d",
            result.summaries_sent, result.total_messages, len(result.errors),
        )
        return result

    def summarize_channel(self, channel_id: str) -> List[SummaryResult]:
        """Relevant-thread summaries for the channel's current candidates"""
        messages = self._ledger.fetch_channel(channel_id)
        return self._summarize(messages)

    def publish_channel(self, channel: Dict[str, Any], result: SummaryRunResult) -> None:
        channel_id = channel["id"]
        channel_name = channel.get("name", channel_id)

        messages = self._ledger.fetch_channel(channel_id)
        if not messages:
            logger.info("No messages found for channel %s (%s)", channel_name, channel_id)
            return

        result.total_messages += len(messages)

        summaries = self._summarize(messages)
        if not summaries:
            logger.info("No AI-related content found in channel %s (%s)", channel_name, channel_id)
            return

        result.channels_processed.append({
            "id": channel_id,
            "name": channel_name,
            "message_count": len(messages),
            "ai_threads": len(summaries),
        })

        self._workspace.post_message(self._target_channel_id, format_summaries(summaries))
        logger.info("Summary sent for channel %s: %d AI-related threads", channel_name, len(summaries))
        result.summaries_sent += 1

        self._ledger.consume(channel_id, messages)

    def _summarize(self, messages) -> List[SummaryResult]:
        summaries: List[SummaryResult] = []
        for thread in group_threads(messages):
            summary = self._oracle.summarize(thread)
            if summary is not None:
                summaries.append(summary)
        return summaries
