"""
AIWatch Common Module

Shared infrastructure for the collector and summarizer.
"""

from .config import AIWatchConfig, load_config, resolve_config_secrets, validate_config
from .errors import AIWatchError, ConfigError, SecretResolutionError, StoreError
from .llm_client import LLMClient
from .slack_client import SlackWorkspace
from .store import KeyValueStore, InMemoryStore, SqliteStore, QueryPage

__all__ = [
    "AIWatchConfig",
    "load_config",
    "resolve_config_secrets",
    "validate_config",
    "AIWatchError",
    "ConfigError",
    "SecretResolutionError",
    "StoreError",
    "LLMClient",
    "SlackWorkspace",
    "KeyValueStore",
    "InMemoryStore",
    "SqliteStore",
    "QueryPage",
]
