"""
Runtime Wiring

Builds every external client once at process start and hands them to the
components explicitly. Scheduled jobs take a Runtime and return
(status_code, body) so any caller (HTTP endpoint, CLI, cron wrapper) can
relay the outcome.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .collector.handlers import SlackHandler
from .collector.ledger import IngestionLedger
from .collector.live import LiveIngestor
from .collector.poller import PollingIngestor
from .collector.prefilter import RelevancePreFilter
from .collector.scorer import RelevanceScorer
from .common.config import AIWatchConfig
from .common.llm_client import LLMClient
from .common.slack_client import SlackWorkspace
from .common.store import InMemoryStore, KeyValueStore, SqliteStore
from .summarizer.oracle import RelevanceOracleClient, FALLBACK_EXTRA_KEYWORDS
from .summarizer.publisher import SummaryPublisher

logger = logging.getLogger("aiwatch.runtime")


@dataclass
class Runtime:
    """All wired components of one process"""
    config: AIWatchConfig
    store: KeyValueStore
    ledger: IngestionLedger
    workspace: SlackWorkspace
    slack_handler: SlackHandler
    live_ingestor: LiveIngestor
    polling_ingestor: PollingIngestor
    oracle: RelevanceOracleClient
    publisher: SummaryPublisher


def build_store(config: AIWatchConfig) -> KeyValueStore:
    backend = config.store.backend.lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "sqlite":
        return SqliteStore(config.store.sqlite_path)
    raise ValueError(f"Unsupported store backend: {config.store.backend}")


def build_llm_client(config: AIWatchConfig) -> LLMClient:
    return LLMClient(
        provider=config.llm.provider_name,
        model=config.llm.model,
        anthropic_api_key=config.llm.anthropic_api_key or None,
        openai_api_key=config.llm.openai_api_key or None,
        google_api_key=config.llm.google_api_key or None,
    )


def build_runtime(
    config: AIWatchConfig,
    store: Optional[KeyValueStore] = None,
    workspace: Optional[SlackWorkspace] = None,
    llm: Optional[LLMClient] = None,
) -> Runtime:
    """
    Wire components from config.

    Args:
        config: Loaded, secret-resolved configuration
        store: Override the configured store (tests)
        workspace: Override the Slack workspace client (tests)
        llm: Override the LLM client (tests)
    """
    store = store or build_store(config)
    workspace = workspace or SlackWorkspace(token=config.slack.bot_token, timeout=config.slack.timeout)
    llm = llm or build_llm_client(config)

    ledger = IngestionLedger(
        store,
        messages_table=config.store.messages_table,
        processed_table=config.store.processed_table,
    )
    prefilter = RelevancePreFilter(
        strict_keywords=config.collector.strict_keywords,
        flexible_keywords=config.collector.flexible_keywords,
    )
    oracle = RelevanceOracleClient(
        llm,
        fallback_keywords=prefilter.vocabulary + FALLBACK_EXTRA_KEYWORDS,
        max_tokens=config.llm.max_tokens,
        temperature=config.llm.temperature,
        timeout=config.llm.timeout,
    )

    return Runtime(
        config=config,
        store=store,
        ledger=ledger,
        workspace=workspace,
        slack_handler=SlackHandler(signing_secret=config.slack.signing_secret),
        live_ingestor=LiveIngestor(
            ledger,
            workspace,
            watched_channels=config.slack.watched_channels,
            scorer=RelevanceScorer(extra_keywords=config.collector.live_keyword_weights),
            threshold=config.collector.live_score_threshold,
        ),
        polling_ingestor=PollingIngestor(
            ledger,
            workspace,
            prefilter,
            target_channel_id=config.slack.target_channel_id,
            window_seconds=config.collector.poll_window_seconds,
            provisional_score=config.collector.poll_score,
            channel_types=config.slack.channel_types,
        ),
        oracle=oracle,
        publisher=SummaryPublisher(
            ledger,
            workspace,
            oracle,
            target_channel_id=config.slack.target_channel_id,
            channel_types=config.slack.channel_types,
        ),
    )


def run_poll_job(runtime: Runtime) -> Tuple[int, Dict[str, Any]]:
    try:
        result = runtime.polling_ingestor.run()
    except Exception as e:
        logger.exception("Poll job failed")
        return 500, {"error": str(e)}
    return result.status_code, result.to_dict()


def run_summary_job(runtime: Runtime) -> Tuple[int, Dict[str, Any]]:
    try:
        result = runtime.publisher.run()
    except Exception as e:
        logger.exception("Summary job failed")
        return 500, {"error": str(e)}
    return result.status_code, result.to_dict()
