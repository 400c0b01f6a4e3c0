"""Tests for the polling ingestion path."""

import pytest
from slack_sdk.errors import SlackApiError

from aiwatch.collector.poller import PollingIngestor, is_plain_message
from aiwatch.collector.prefilter import RelevancePreFilter

ROOT_TS = "1700000001.000100"

LUNCH = {"type": "message", "ts": "1700000000.000100", "text": "lunch?", "user": "U1"}
AI_ROOT = {
    "type": "message",
    "ts": ROOT_TS,
    "text": "GPT-4 is out, thoughts?",
    "user": "U2",
    "thread_ts": ROOT_TS,
    "reply_count": 2,
}
JOIN = {"type": "message", "subtype": "channel_join", "ts": "1700000002.000100", "text": "joined", "user": "U3"}
REPLIES = [
    {"type": "message", "ts": "1700000010.000100", "text": "nice", "user": "U1", "thread_ts": ROOT_TS},
    {"type": "message", "ts": "1700000020.000100", "text": "agreed", "user": "U1", "thread_ts": ROOT_TS},
]


@pytest.fixture
def poller(ledger, workspace, clock):
    workspace.list_member_channels.return_value = [{"id": "C1", "name": "general", "is_private": False}]
    workspace.history.return_value = [LUNCH, AI_ROOT, JOIN]
    workspace.replies.return_value = REPLIES
    return PollingIngestor(
        ledger,
        workspace,
        RelevancePreFilter(),
        target_channel_id="CTARGET",
        window_seconds=300,
        clock=clock,
    )


class TestPollRun:
    def test_stores_relevant_thread_with_replies(self, poller, ledger, workspace):
        result = poller.run()

        assert result.status_code == 200
        assert result.processed == 2
        assert result.found == 1
        assert result.errors == []

        stored = ledger.fetch_channel("C1")
        assert [m.ts for m in stored] == [ROOT_TS, "1700000010.000100", "1700000020.000100"]
        assert all(m.thread_key == ROOT_TS for m in stored)
        assert [m.is_thread_reply for m in stored] == [False, True, True]
        assert all(m.relevance_score == 0.5 for m in stored)
        workspace.replies.assert_called_once_with("C1", ROOT_TS)

    def test_user_names_resolved_once_per_user(self, poller, workspace):
        poller.run()
        assert workspace.user_display_name.call_count == 2

    def test_second_run_skips_processed(self, poller):
        poller.run()
        result = poller.run()
        assert result.processed == 2
        assert result.found == 0

    def test_relevant_reply_pulls_in_thread(self, poller, ledger, workspace):
        workspace.history.return_value = [dict(AI_ROOT, text="thoughts on this?")]
        workspace.replies.return_value = [dict(REPLIES[0], text="Claude handles it fine")]

        result = poller.run()

        assert result.found == 1
        assert len(ledger.fetch_channel("C1")) == 2

    def test_history_window(self, poller, workspace):
        poller.run()
        workspace.history.assert_called_once_with("C1", oldest="1699999700.000000")

    def test_target_channel_excluded_from_listing(self, poller, workspace):
        poller.run()
        workspace.list_member_channels.assert_called_once_with(exclude="CTARGET", types="public_channel")

    def test_channel_listing_failure(self, poller, workspace):
        workspace.list_member_channels.side_effect = RuntimeError("invalid_auth")

        result = poller.run()

        assert result.status_code == 500
        assert result.errors[0]["error"] == "Failed to fetch bot channels"

    def test_channel_failure_does_not_stop_sweep(self, poller, ledger, workspace):
        workspace.list_member_channels.return_value = [
            {"id": "C1", "name": "broken"},
            {"id": "C2", "name": "ok"},
        ]

        def history(channel_id, oldest):
            if channel_id == "C1":
                raise RuntimeError("ratelimited")
            return [dict(AI_ROOT, reply_count=0)]

        workspace.history.side_effect = history

        result = poller.run()

        assert result.status_code == 200
        assert result.errors == [{"channel": "broken", "id": "C1", "error": "ratelimited"}]
        assert result.found == 1
        assert len(ledger.fetch_channel("C2")) == 1

    def test_not_in_channel_is_skipped_silently(self, poller, workspace):
        workspace.history.side_effect = SlackApiError(
            "not_in_channel", {"ok": False, "error": "not_in_channel"}
        )
        result = poller.run()
        assert result.errors == []

    def test_private_channel_without_membership_skipped(self, poller, workspace):
        workspace.channel_info.return_value = {"is_private": True, "is_member": False}
        poller.run()
        workspace.history.assert_not_called()

    def test_reply_fetch_failure_keeps_root(self, poller, ledger, workspace):
        workspace.replies.side_effect = RuntimeError("thread_not_found")

        result = poller.run()

        assert result.found == 1
        assert [m.ts for m in ledger.fetch_channel("C1")] == [ROOT_TS]

    def test_to_dict_omits_status(self, poller):
        data = poller.run().to_dict()
        assert set(data) == {"processed", "found", "errors", "channels_monitored"}
        assert data["channels_monitored"] == [{"id": "C1", "name": "general", "is_private": False}]


class TestIsPlainMessage:
    def test_subtypes_are_not_plain(self):
        assert is_plain_message(LUNCH)
        assert not is_plain_message(JOIN)
        assert not is_plain_message({"type": "reaction_added"})
