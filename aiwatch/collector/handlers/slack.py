"""
Slack Events API handler.

Request authentication (signing secret v0 scheme):

    basestring = "v0:" + X-Slack-Request-Timestamp + ":" + raw body
    signature  = "v0=" + hex(HMAC-SHA256(signing_secret, basestring))

Requests whose timestamp is more than MAX_REQUEST_AGE_SECONDS away from now
are rejected before any HMAC work, which also defeats replays.
"""

import hashlib
import hmac
import time
from typing import Any, Callable, Dict, Optional

from .base import BaseHandler, Message

MAX_REQUEST_AGE_SECONDS = 300


class SlackHandler(BaseHandler):
    """
    Turns Slack event_callback envelopes into Messages.

    Only plain message events survive parsing: anything with a subtype
    (edits, deletions, joins, topic changes, bot_message) is ignored.
    Messages carrying a bot_id are parsed with is_bot set, and
    should_process() drops them.
    """

    def __init__(self, signing_secret: str = "", clock: Callable[[], float] = time.time):
        super().__init__("slack")
        self._signing_secret = signing_secret
        self._clock = clock

    async def parse_event(self, raw_data: Dict[str, Any]) -> Optional[Message]:
        if raw_data.get("type") != "event_callback":
            return None

        event = raw_data.get("event") or {}
        if event.get("type") != "message" or event.get("subtype"):
            return None

        return Message(
            text=event.get("text", ""),
            user=event.get("user", ""),
            channel=event.get("channel", ""),
            source=self.source_name,
            timestamp=event.get("ts", ""),
            thread_ts=event.get("thread_ts"),
            reply_count=event.get("reply_count") or 0,
            is_bot=bool(event.get("bot_id")),
            raw_data=event,
        )

    def sign(self, body: bytes, timestamp: str) -> str:
        """Signature Slack would attach to this body at this timestamp"""
        basestring = b"v0:" + timestamp.encode() + b":" + body
        digest = hmac.new(self._signing_secret.encode(), basestring, hashlib.sha256).hexdigest()
        return f"v0={digest}"

    def verify_signature(self, body: bytes, signature: str, timestamp: str) -> bool:
        """
        Check X-Slack-Signature against the body.

        False when the secret is unset, a header is missing or malformed,
        the timestamp is stale, or the digests differ.
        """
        if not (self._signing_secret and signature and timestamp):
            return False

        try:
            sent_at = int(timestamp)
        except ValueError:
            return False
        if abs(self._clock() - sent_at) > MAX_REQUEST_AGE_SECONDS:
            return False

        return hmac.compare_digest(self.sign(body, timestamp), signature)

    def is_url_verification(self, raw_data: Dict[str, Any]) -> bool:
        return raw_data.get("type") == "url_verification"

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        """Challenge token to echo during the Events API handshake"""
        if not self.is_url_verification(raw_data):
            return None
        return raw_data.get("challenge")
