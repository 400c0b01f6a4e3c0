"""
Polling Ingestor

Periodic sweep over every channel the bot is a member of. Catches messages
the live path missed (channels outside the allowlist, dropped webhooks) and
pulls in thread replies so whole conversations reach the summarizer.

Per run:
1. List member channels (all pages), excluding the summary target channel
2. Per channel, fetch history newer than now - window
3. Per plain message: skip if already processed, pre-filter the root and
   its replies, persist root + replies when any of them passes
4. Per-channel failures are recorded and the sweep continues
"""

import logging
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional

from slack_sdk.errors import SlackApiError

from ..common.schemas import StoredMessage, make_message_id
from ..common.slack_client import SlackWorkspace, slack_error_code
from .ledger import IngestionLedger
from .prefilter import RelevancePreFilter

logger = logging.getLogger("aiwatch.collector.poller")

DEFAULT_WINDOW_SECONDS = 300
PROVISIONAL_SCORE = 0.5


@dataclass
class PollResult:
    """Observational summary of one poll run (not persisted)"""
    processed: int = 0
    found: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    channels_monitored: List[Dict[str, Any]] = field(default_factory=list)
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("status_code")
        return data


def is_plain_message(message: Dict[str, Any]) -> bool:
    """Plain user messages only: edits, deletions and system events carry a subtype"""
    return message.get("type") == "message" and not message.get("subtype")


class PollingIngestor:
    """Sweeps recent channel history into the ledger."""

    def __init__(
        self,
        ledger: IngestionLedger,
        workspace: SlackWorkspace,
        prefilter: RelevancePreFilter,
        target_channel_id: str,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        provisional_score: float = PROVISIONAL_SCORE,
        channel_types: str = "public_channel",
        clock: Callable[[], float] = time.time,
    ):
        self._ledger = ledger
        self._workspace = workspace
        self._prefilter = prefilter
        self._target_channel_id = target_channel_id
        self._window_seconds = window_seconds
        self._provisional_score = provisional_score
        self._channel_types = channel_types
        self._clock = clock

    def run(self) -> PollResult:
        logger.info("Starting channel monitoring...")
        result = PollResult()

        try:
            channels = self._workspace.list_member_channels(
                exclude=self._target_channel_id,
                types=self._channel_types,
            )
        except Exception as e:
            logger.error("Error fetching bot channels: %s", e)
            result.errors.append({"error": "Failed to fetch bot channels", "message": str(e)})
            result.status_code = 500
            return result

        logger.info(
            "Bot is member of %d channels (excluding target channel: %s)",
            len(channels), self._target_channel_id,
        )
        result.channels_monitored = [
            {"id": ch.get("id"), "name": ch.get("name"), "is_private": ch.get("is_private", False)}
            for ch in channels
        ]

        since = f"{self._clock() - self._window_seconds:.6f}"
        user_names: Dict[str, str] = {}

        for channel in channels:
            try:
                self._process_channel(channel["id"], since, result, user_names)
            except Exception as e:
                logger.exception("Error processing channel %s (%s)", channel.get("name"), channel.get("id"))
                result.errors.append({"channel": channel.get("name"), "id": channel.get("id"), "error": str(e)})

        logger.info(
            "Monitoring complete: processed=%d found=%d errors=%d",
            result.processed, result.found, len(result.errors),
        )
        return result

    # ------------------------------------------------------------------

    def _process_channel(
        self,
        channel_id: str,
        since: str,
        result: PollResult,
        user_names: Dict[str, str],
    ) -> None:
        try:
            info = self._workspace.channel_info(channel_id)
        except Exception as e:
            logger.info("Cannot access channel info for %s: %s", channel_id, e)
            return

        if info.get("is_private") and not info.get("is_member"):
            logger.info("Skipping private channel %s (bot not member)", channel_id)
            return

        try:
            messages = self._workspace.history(channel_id, oldest=since)
        except SlackApiError as e:
            if slack_error_code(e) == "not_in_channel":
                logger.info("Bot not in channel %s, skipping", channel_id)
                return
            raise

        for message in messages:
            if not is_plain_message(message):
                continue

            message_id = make_message_id(channel_id, message["ts"])
            result.processed += 1

            if self._ledger.is_processed(message_id):
                logger.debug("Message %s already processed", message_id)
                continue

            replies = self._fetch_replies(channel_id, message)
            possibly_related = self._prefilter.check(message.get("text"))
            if not possibly_related and not any(self._prefilter.check(r.get("text")) for r in replies):
                continue

            thread_ts = message.get("thread_ts")
            self._ledger.ingest(self._to_stored(channel_id, message, user_names, thread_ts=thread_ts))

            for reply in replies:
                reply_id = make_message_id(channel_id, reply["ts"])
                if self._ledger.is_processed(reply_id):
                    continue
                self._ledger.ingest(
                    self._to_stored(
                        channel_id, reply, user_names,
                        thread_ts=thread_ts or message["ts"],
                        is_thread_reply=True,
                    )
                )

            result.found += 1
            logger.info(
                "Found potentially AI-related message: %s (thread replies: %d)",
                message_id, len(replies),
            )

    def _fetch_replies(self, channel_id: str, message: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Replies of an active thread; a failed fetch counts as no replies"""
        thread_ts = message.get("thread_ts")
        if not thread_ts or not message.get("reply_count"):
            return []
        try:
            return self._workspace.replies(channel_id, thread_ts)
        except Exception as e:
            logger.warning("Error fetching thread for %s: %s", thread_ts, e)
            return []

    def _to_stored(
        self,
        channel_id: str,
        message: Dict[str, Any],
        user_names: Dict[str, str],
        thread_ts: Optional[str] = None,
        is_thread_reply: bool = False,
    ) -> StoredMessage:
        user = message.get("user", "")
        if user not in user_names:
            user_names[user] = self._workspace.user_display_name(user)

        return StoredMessage(
            channel_id=channel_id,
            ts=message["ts"],
            text=message.get("text", ""),
            user=user,
            user_name=user_names[user],
            relevance_score=self._provisional_score,
            is_thread_reply=is_thread_reply,
            thread_ts=thread_ts,
            reply_count=message.get("reply_count", 0) or 0,
        )
