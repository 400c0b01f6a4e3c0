"""
Summary Publisher Scenario Tests

One channel with a stray non-AI message and an AI thread (root + 2 replies)
goes through fetch -> group -> judge -> publish -> consume.
"""

import pytest
from unittest.mock import Mock

from aiwatch.summarizer.oracle import RelevanceOracleClient
from aiwatch.summarizer.publisher import SummaryPublisher

from conftest import make_stored

ROOT = "1700000010.000100"


def _fake_llm():
    """Positive for anything mentioning Claude, negative otherwise"""
    llm = Mock()

    def generate(prompt, **kwargs):
        if "Claude" in prompt:
            return "AI_RELATED:true\n📝 Key point: Claude vs GPT for code review"
        return "AI_RELATED:false"

    llm.generate.side_effect = generate
    return llm


@pytest.fixture
def seeded_ledger(ledger):
    ledger.ingest(make_stored(ts="1700000000.000100", text="lunch?"))
    ledger.ingest(make_stored(ts=ROOT, thread_ts=ROOT, text="Claude vs GPT for code review?"))
    ledger.ingest(make_stored(ts="1700000020.000100", thread_ts=ROOT, text="see <https://anthropic.com|docs>"))
    ledger.ingest(make_stored(ts="1700000030.000100", thread_ts=ROOT, text="agreed"))
    return ledger


@pytest.fixture
def publisher(seeded_ledger, workspace):
    workspace.list_member_channels.return_value = [{"id": "C1", "name": "dev"}]
    return SummaryPublisher(
        seeded_ledger,
        workspace,
        RelevanceOracleClient(_fake_llm()),
        target_channel_id="CTARGET",
    )


class TestSummaryScenario:
    def test_one_summary_published_and_thread_consumed(self, publisher, seeded_ledger, workspace):
        result = publisher.run()

        assert result.status_code == 200
        assert result.summaries_sent == 1
        assert result.total_messages == 4
        assert result.errors == []
        assert result.channels_processed == [
            {"id": "C1", "name": "dev", "message_count": 4, "ai_threads": 1}
        ]

        workspace.post_message.assert_called_once()
        channel, text = workspace.post_message.call_args.args
        assert channel == "CTARGET"
        assert "(1 thread)" in text
        assert "*Thread 1* | 💬 3 messages" in text
        assert "<https://slack.com/archives/C1/p1700000010000100|View thread>" in text
        assert "Claude vs GPT for code review" in text

        assert seeded_ledger.fetch_channel("C1") == []
        for ts in [ROOT, "1700000020.000100", "1700000030.000100"]:
            assert seeded_ledger.is_summarized(f"C1-{ts}")

    def test_second_run_publishes_nothing(self, publisher, workspace):
        publisher.run()
        result = publisher.run()

        assert result.summaries_sent == 0
        assert result.total_messages == 0
        assert workspace.post_message.call_count == 1

    def test_summarize_channel_has_no_side_effects(self, publisher, seeded_ledger, workspace):
        summaries = publisher.summarize_channel("C1")

        assert len(summaries) == 1
        assert summaries[0].message_count == 3
        assert summaries[0].urls == ["https://anthropic.com"]
        workspace.post_message.assert_not_called()
        assert len(seeded_ledger.fetch_channel("C1")) == 4


class TestSummaryFailures:
    def test_no_relevant_threads_keeps_messages(self, ledger, workspace):
        ledger.ingest(make_stored(text="lunch?"))
        workspace.list_member_channels.return_value = [{"id": "C1", "name": "dev"}]
        publisher = SummaryPublisher(ledger, workspace, RelevanceOracleClient(_fake_llm()), "CTARGET")

        result = publisher.run()

        assert result.summaries_sent == 0
        workspace.post_message.assert_not_called()
        assert len(ledger.fetch_channel("C1")) == 1

    def test_publish_failure_leaves_messages_for_next_run(self, publisher, seeded_ledger, workspace):
        workspace.post_message.side_effect = RuntimeError("channel_not_found")

        result = publisher.run()

        assert result.summaries_sent == 0
        assert result.errors == [{"channel": "dev", "id": "C1", "error": "channel_not_found"}]
        assert len(seeded_ledger.fetch_channel("C1")) == 4

    def test_channel_listing_failure(self, publisher, workspace):
        workspace.list_member_channels.side_effect = RuntimeError("invalid_auth")

        result = publisher.run()

        assert result.status_code == 500
        assert result.errors[0]["error"] == "Failed to fetch channels"

    def test_channel_failure_does_not_stop_run(self, seeded_ledger, workspace):
        workspace.list_member_channels.return_value = [
            {"id": "C0", "name": "broken"},
            {"id": "C1", "name": "dev"},
        ]

        def fetch_channel(channel_id):
            if channel_id == "C0":
                raise RuntimeError("store down")
            return seeded_ledger.fetch_channel(channel_id)

        ledger = Mock(wraps=seeded_ledger)
        ledger.fetch_channel.side_effect = fetch_channel
        publisher = SummaryPublisher(ledger, workspace, RelevanceOracleClient(_fake_llm()), "CTARGET")

        result = publisher.run()

        assert result.summaries_sent == 1
        assert [e["id"] for e in result.errors] == ["C0"]

    def test_llm_outage_falls_back_to_keywords(self, seeded_ledger, workspace):
        llm = Mock()
        llm.generate.side_effect = TimeoutError("timed out")
        workspace.list_member_channels.return_value = [{"id": "C1", "name": "dev"}]
        publisher = SummaryPublisher(seeded_ledger, workspace, RelevanceOracleClient(llm), "CTARGET")

        result = publisher.run()

        assert result.summaries_sent == 1
        _, text = workspace.post_message.call_args.args
        assert "Summary unavailable" in text
