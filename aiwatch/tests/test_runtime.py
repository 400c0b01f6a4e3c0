"""Tests for runtime wiring and job wrappers."""

import pytest
from unittest.mock import Mock

from aiwatch.collector.handlers import Message
from aiwatch.collector.live import LiveOutcome
from aiwatch.common.config import AIWatchConfig
from aiwatch.common.store import InMemoryStore, SqliteStore
from aiwatch.runtime import build_llm_client, build_runtime, build_store, run_poll_job, run_summary_job


class TestBuildStore:
    def test_memory_backend(self):
        config = AIWatchConfig()
        config.store.backend = "memory"
        assert isinstance(build_store(config), InMemoryStore)

    def test_sqlite_backend(self, tmp_path):
        config = AIWatchConfig()
        config.store.sqlite_path = str(tmp_path / "aiwatch.db")
        assert isinstance(build_store(config), SqliteStore)

    def test_unknown_backend(self):
        config = AIWatchConfig()
        config.store.backend = "dynamodb"
        with pytest.raises(ValueError, match="Unsupported store backend"):
            build_store(config)


class TestBuildRuntime:
    def test_components_share_ledger(self, workspace):
        config = AIWatchConfig()
        config.store.backend = "memory"
        config.slack.watched_channels = ["C1"]

        runtime = build_runtime(config, workspace=workspace, llm=Mock())

        assert runtime.ledger.store is runtime.store
        assert runtime.workspace is workspace
        assert runtime.live_ingestor.threshold == 0.3

    @pytest.mark.parametrize("weights,outcome", [
        ({}, LiveOutcome.DROPPED_IRRELEVANT),
        ({"vibe coding": 0.5}, LiveOutcome.STORED),
    ])
    def test_live_keyword_weights_reach_scorer(self, workspace, weights, outcome):
        config = AIWatchConfig()
        config.store.backend = "memory"
        config.slack.watched_channels = ["C1"]
        config.collector.live_keyword_weights = weights
        message = Message(
            text="tried vibe coding on the billing service",
            user="U1",
            channel="C1",
            source="slack",
            timestamp="1700000000.000100",
        )

        runtime = build_runtime(config, workspace=workspace, llm=Mock())

        assert runtime.live_ingestor.handle(message).outcome == outcome

    def test_real_clients_from_config(self):
        config = AIWatchConfig()
        config.store.backend = "memory"
        config.slack.bot_token = "xoxb-test"

        runtime = build_runtime(config)

        assert runtime.oracle.is_available is False

    def test_provider_is_normalised_for_llm_client(self):
        config = AIWatchConfig()
        config.store.backend = "memory"
        config.llm.provider = "OpenAI"
        config.llm.openai_model = "gpt-4o-mini"

        client = build_llm_client(config)

        assert client.provider == "openai"
        assert client.model == "gpt-4o-mini"


class TestJobWrappers:
    @pytest.fixture
    def runtime(self, workspace):
        config = AIWatchConfig()
        config.store.backend = "memory"
        config.slack.target_channel_id = "CTARGET"
        return build_runtime(config, workspace=workspace, llm=Mock())

    def test_poll_job_result(self, runtime):
        status, body = run_poll_job(runtime)
        assert status == 200
        assert body == {"processed": 0, "found": 0, "errors": [], "channels_monitored": []}

    def test_summary_job_result(self, runtime):
        status, body = run_summary_job(runtime)
        assert status == 200
        assert body["summaries_sent"] == 0

    def test_uncaught_exception_becomes_500(self, runtime):
        runtime.publisher = Mock()
        runtime.publisher.run.side_effect = RuntimeError("boom")

        status, body = run_summary_job(runtime)

        assert status == 500
        assert body == {"error": "boom"}
