"""
Slack Workspace Client

Thin wrapper over slack_sdk.WebClient exposing only the calls the collector
and summarizer need. Pagination is drained here so callers always see
complete lists.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

logger = logging.getLogger("aiwatch.common.slack_client")

UNKNOWN_USER = "Unknown"


def slack_error_code(error: SlackApiError) -> str:
    """Return the Slack error code ("not_in_channel", ...) of an API error"""
    response = getattr(error, "response", None)
    if response is None:
        return ""
    try:
        return response.get("error", "") or ""
    except AttributeError:
        return ""


class SlackWorkspace:
    """Workspace-level operations backed by the Slack Web API."""

    def __init__(
        self,
        client: Optional[WebClient] = None,
        token: str = "",
        timeout: int = 30,
        page_size: int = 100,
    ):
        self._client = client or WebClient(token=token, timeout=timeout)
        self._page_size = page_size

    @property
    def client(self) -> WebClient:
        return self._client

    def list_member_channels(
        self,
        exclude: Optional[str] = None,
        types: str = "public_channel",
    ) -> List[Dict[str, Any]]:
        """
        List non-archived channels the bot is a member of.

        Args:
            exclude: Channel id to leave out (the summary target channel)
            types: Slack conversation types to enumerate

        Returns:
            Channel dicts ({"id", "name", "is_private", ...}) across all pages
        """
        channels: List[Dict[str, Any]] = []
        cursor = None
        while True:
            response = self._client.conversations_list(
                exclude_archived=True,
                types=types,
                limit=self._page_size,
                cursor=cursor,
            )
            for channel in response.get("channels", []) or []:
                if channel.get("is_member") and channel.get("id") != exclude:
                    channels.append(channel)
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
        return channels

    def channel_info(self, channel_id: str) -> Dict[str, Any]:
        response = self._client.conversations_info(channel=channel_id)
        return response.get("channel", {}) or {}

    def history(self, channel_id: str, oldest: str) -> List[Dict[str, Any]]:
        """Messages posted at or after `oldest` (Slack ts string), newest first"""
        messages: List[Dict[str, Any]] = []
        cursor = None
        while True:
            response = self._client.conversations_history(
                channel=channel_id,
                oldest=oldest,
                inclusive=True,
                limit=self._page_size,
                cursor=cursor,
            )
            messages.extend(response.get("messages", []) or [])
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
        return messages

    def replies(self, channel_id: str, thread_ts: str) -> List[Dict[str, Any]]:
        """Replies of a thread, excluding the root message"""
        replies: List[Dict[str, Any]] = []
        cursor = None
        while True:
            response = self._client.conversations_replies(
                channel=channel_id,
                ts=thread_ts,
                limit=self._page_size,
                cursor=cursor,
            )
            for message in response.get("messages", []) or []:
                if message.get("ts") != thread_ts:
                    replies.append(message)
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
        return replies

    def user_display_name(self, user_id: str) -> str:
        """
        Best-effort display name lookup.

        Never raises: any failure resolves to "Unknown" so ingestion proceeds.
        """
        if not user_id:
            return UNKNOWN_USER
        try:
            response = self._client.users_info(user=user_id)
        except SlackApiError as e:
            logger.warning("Error fetching user info for %s: %s", user_id, slack_error_code(e) or e)
            return UNKNOWN_USER
        except Exception as e:
            logger.warning("Error fetching user info for %s: %s", user_id, e)
            return UNKNOWN_USER
        user = response.get("user") or {}
        return user.get("real_name") or user.get("name") or UNKNOWN_USER

    def post_message(self, channel_id: str, text: str) -> Dict[str, Any]:
        response = self._client.chat_postMessage(channel=channel_id, text=text, mrkdwn=True)
        return response.data if hasattr(response, "data") else dict(response)
