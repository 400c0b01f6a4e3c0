"""
Configuration Management for AIWatch Agents

Loads configuration from ~/.aiwatch/config.json and environment variables.
Credential values may be literals or secret references (env:NAME, file:/path)
resolved by resolve_config_secrets().
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import ConfigError
from .schedule import parse_schedule_to_minutes
from .secrets import resolve_secret

logger = logging.getLogger("aiwatch.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".aiwatch"
CONFIG_PATH = CONFIG_DIR / "config.json"
DATA_DIR = CONFIG_DIR / "data"

DEFAULT_STRICT_KEYWORDS = ["ai", "gpt", "llm"]
DEFAULT_FLEXIBLE_KEYWORDS = [
    "claude", "chatgpt", "openai", "gemini", "anthropic",
    "machine learning", "artificial intelligence", "機械学習", "人工知能",
]

JOBS = ("webhook", "poll", "summary")


@dataclass
class SlackConfig:
    """Slack workspace configuration"""
    bot_token: str = ""
    signing_secret: str = ""
    target_channel_id: str = ""
    watched_channels: List[str] = field(default_factory=list)  # live path allowlist
    channel_types: str = "public_channel"
    timeout: int = 30


@dataclass
class StoreConfig:
    """Candidate/processed store configuration"""
    backend: str = "sqlite"  # "sqlite" or "memory"
    sqlite_path: str = str(DATA_DIR / "aiwatch.db")
    messages_table: str = "aiwatch_messages"
    processed_table: str = "aiwatch_processed"


@dataclass
class LLMConfig:
    """LLM provider configuration for the relevance oracle"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    temperature: float = 0.3
    max_tokens: int = 500
    timeout: float = 30.0

    @property
    def provider_name(self) -> str:
        return (self.provider or "openai").strip().lower()

    @property
    def api_key(self) -> str:
        return getattr(self, f"{self.provider_name}_api_key", "")

    @property
    def model(self) -> str:
        return getattr(self, f"{self.provider_name}_model", "")


@dataclass
class CollectorConfig:
    """Collector (live + polling ingestion) configuration"""
    webhook_port: int = 8080
    poll_schedule: str = "rate(5 minutes)"
    live_score_threshold: float = 0.3  # high-confidence scorer cut-off for live events
    poll_score: float = 0.5  # provisional score, the oracle decides later
    strict_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_STRICT_KEYWORDS))
    flexible_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_FLEXIBLE_KEYWORDS))
    live_keyword_weights: Dict[str, float] = field(default_factory=dict)  # extra live scorer weights

    @property
    def poll_window_seconds(self) -> int:
        return parse_schedule_to_minutes(self.poll_schedule) * 60


@dataclass
class SummarizerConfig:
    """Summarizer configuration"""
    summary_schedule: str = "rate(1 hour)"


@dataclass
class AIWatchConfig:
    """Main AIWatch configuration"""
    slack: SlackConfig = field(default_factory=SlackConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    summarizer: SummarizerConfig = field(default_factory=SummarizerConfig)


def _split_channels(value) -> List[str]:
    """Accept a list or a comma-separated string of channel ids"""
    if isinstance(value, str):
        value = value.split(",")
    return [c.strip() for c in value or [] if c and c.strip()]


def _parse_slack_config(data: dict) -> SlackConfig:
    """Parse slack section from config dict"""
    slack_data = data.get("slack", {})
    return SlackConfig(
        bot_token=slack_data.get("bot_token", ""),
        signing_secret=slack_data.get("signing_secret", ""),
        target_channel_id=slack_data.get("target_channel_id", ""),
        watched_channels=_split_channels(slack_data.get("watched_channels", [])),
        channel_types=slack_data.get("channel_types", "public_channel"),
        timeout=slack_data.get("timeout", 30),
    )


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store section from config dict"""
    store_data = data.get("store", {})
    return StoreConfig(
        backend=store_data.get("backend", "sqlite"),
        sqlite_path=store_data.get("sqlite_path", str(DATA_DIR / "aiwatch.db")),
        messages_table=store_data.get("messages_table", "aiwatch_messages"),
        processed_table=store_data.get("processed_table", "aiwatch_processed"),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "openai"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4o"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash-exp"),
        temperature=llm_data.get("temperature", 0.3),
        max_tokens=llm_data.get("max_tokens", 500),
        timeout=llm_data.get("timeout", 30.0),
    )


def _parse_collector_config(data: dict) -> CollectorConfig:
    """Parse collector section from config dict"""
    collector_data = data.get("collector", {})
    return CollectorConfig(
        webhook_port=collector_data.get("webhook_port", 8080),
        poll_schedule=collector_data.get("poll_schedule", "rate(5 minutes)"),
        live_score_threshold=collector_data.get("live_score_threshold", 0.3),
        poll_score=collector_data.get("poll_score", 0.5),
        strict_keywords=collector_data.get("strict_keywords", list(DEFAULT_STRICT_KEYWORDS)),
        flexible_keywords=collector_data.get("flexible_keywords", list(DEFAULT_FLEXIBLE_KEYWORDS)),
        live_keyword_weights=collector_data.get("live_keyword_weights", {}),
    )


def _parse_summarizer_config(data: dict) -> SummarizerConfig:
    """Parse summarizer section from config dict"""
    summarizer_data = data.get("summarizer", {})
    return SummarizerConfig(
        summary_schedule=summarizer_data.get("summary_schedule", "rate(1 hour)"),
    )


def load_config() -> AIWatchConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.aiwatch/config.json, or $AIWATCH_CONFIG)
    3. Default values

    Secret references are left as-is; call resolve_config_secrets() before
    handing the config to build_runtime().
    """
    config = AIWatchConfig()

    config_path = Path(os.getenv("AIWATCH_CONFIG") or CONFIG_PATH)
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)

            config.slack = _parse_slack_config(data)
            config.store = _parse_store_config(data)
            config.llm = _parse_llm_config(data)
            config.collector = _parse_collector_config(data)
            config.summarizer = _parse_summarizer_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", config_path, e)

    # Environment variable overrides
    _env_map = {
        "SLACK_BOT_TOKEN": (config.slack, "bot_token"),
        "SLACK_SIGNING_SECRET": (config.slack, "signing_secret"),
        "TARGET_CHANNEL_ID": (config.slack, "target_channel_id"),
        "SLACK_CHANNEL_TYPES": (config.slack, "channel_types"),
        "MESSAGES_TABLE": (config.store, "messages_table"),
        "PROCESSED_TABLE": (config.store, "processed_table"),
        "AIWATCH_STORE_BACKEND": (config.store, "backend"),
        "AIWATCH_SQLITE_PATH": (config.store, "sqlite_path"),
        "AIWATCH_LLM_PROVIDER": (config.llm, "provider"),
        "ANTHROPIC_API_KEY": (config.llm, "anthropic_api_key"),
        "ANTHROPIC_MODEL": (config.llm, "anthropic_model"),
        "OPENAI_API_KEY": (config.llm, "openai_api_key"),
        "OPENAI_MODEL": (config.llm, "openai_model"),
        "GOOGLE_API_KEY": (config.llm, "google_api_key"),
        "GEMINI_API_KEY": (config.llm, "google_api_key"),
        "GOOGLE_MODEL": (config.llm, "google_model"),
        "POLL_SCHEDULE": (config.collector, "poll_schedule"),
        "SUMMARY_SCHEDULE": (config.summarizer, "summary_schedule"),
    }
    for env_var, (section, attr) in _env_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(section, attr, val)

    if os.getenv("MONITOR_CHANNELS"):
        config.slack.watched_channels = _split_channels(os.getenv("MONITOR_CHANNELS"))
    if os.getenv("AIWATCH_PORT"):
        config.collector.webhook_port = int(os.getenv("AIWATCH_PORT"))

    return config


def resolve_config_secrets(config: AIWatchConfig) -> AIWatchConfig:
    """Resolve env:/file: references in credential and channel fields in place"""
    config.slack.bot_token = resolve_secret(config.slack.bot_token)
    config.slack.signing_secret = resolve_secret(config.slack.signing_secret)
    config.slack.target_channel_id = resolve_secret(config.slack.target_channel_id)
    config.llm.anthropic_api_key = resolve_secret(config.llm.anthropic_api_key)
    config.llm.openai_api_key = resolve_secret(config.llm.openai_api_key)
    config.llm.google_api_key = resolve_secret(config.llm.google_api_key)
    return config


def validate_config(config: AIWatchConfig, job: str) -> None:
    """
    Fail fast when a value required by the given job is missing.

    Args:
        config: Loaded (and secret-resolved) configuration
        job: One of "webhook", "poll", "summary"

    Raises:
        ConfigError: Lists every missing setting
    """
    if job not in JOBS:
        raise ValueError(f"Unknown job: {job}")

    missing = []
    if not config.slack.bot_token:
        missing.append("slack.bot_token")
    if not config.store.messages_table:
        missing.append("store.messages_table")
    if not config.store.processed_table:
        missing.append("store.processed_table")

    if job == "webhook":
        if not config.slack.signing_secret:
            missing.append("slack.signing_secret")
        if not config.slack.watched_channels:
            missing.append("slack.watched_channels")
    else:
        if not config.slack.target_channel_id:
            missing.append("slack.target_channel_id")

    if job == "summary" and not config.llm.api_key:
        missing.append(f"llm.{config.llm.provider_name}_api_key")

    if missing:
        raise ConfigError(
            f"Missing required configuration for {job}: {', '.join(missing)}",
            missing=missing,
        )
