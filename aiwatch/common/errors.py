"""Exception types shared across AIWatch components."""


class AIWatchError(Exception):
    """Base class for AIWatch errors."""


class ConfigError(AIWatchError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


class SecretResolutionError(ConfigError):
    """A secret reference (env:/file:) could not be resolved."""


class StoreError(AIWatchError):
    """The key-value store failed a read or write."""
