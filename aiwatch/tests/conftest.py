"""Shared fixtures: in-memory store, ledger and a Slack workspace fake."""

import pytest
from unittest.mock import Mock

from aiwatch.collector.ledger import IngestionLedger
from aiwatch.common.schemas import StoredMessage
from aiwatch.common.store import InMemoryStore

CONFIG_ENV_VARS = [
    "AIWATCH_CONFIG",
    "SLACK_BOT_TOKEN",
    "SLACK_SIGNING_SECRET",
    "TARGET_CHANNEL_ID",
    "SLACK_CHANNEL_TYPES",
    "MONITOR_CHANNELS",
    "MESSAGES_TABLE",
    "PROCESSED_TABLE",
    "AIWATCH_STORE_BACKEND",
    "AIWATCH_SQLITE_PATH",
    "AIWATCH_LLM_PROVIDER",
    "AIWATCH_PORT",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_MODEL",
    "POLL_SCHEDULE",
    "SUMMARY_SCHEDULE",
]


class FakeClock:
    """Settable epoch-seconds clock"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clean_env(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def ledger(store):
    return IngestionLedger(store, messages_table="messages", processed_table="processed")


@pytest.fixture
def workspace():
    ws = Mock()
    ws.user_display_name.return_value = "Alice"
    ws.list_member_channels.return_value = []
    ws.channel_info.return_value = {"is_member": True}
    ws.history.return_value = []
    ws.replies.return_value = []
    ws.post_message.return_value = {"ok": True}
    return ws


def make_stored(channel_id="C1", ts="1700000000.000100", text="hello", thread_ts=None, **kwargs):
    """StoredMessage with sensible defaults"""
    return StoredMessage(
        channel_id=channel_id,
        ts=ts,
        text=text,
        user=kwargs.pop("user", "U1"),
        user_name=kwargs.pop("user_name", "Alice"),
        thread_ts=thread_ts,
        is_thread_reply=thread_ts is not None and thread_ts != ts,
        **kwargs,
    )
