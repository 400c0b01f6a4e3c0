"""
Secret reference resolution.

Configuration values may hold the secret itself or point at where it lives:

    env:NAME        value of environment variable NAME
    file:/path      contents of the file (trailing whitespace stripped)

Anything else is returned unchanged.
"""

import os
from pathlib import Path

from .errors import SecretResolutionError

ENV_PREFIX = "env:"
FILE_PREFIX = "file:"


def is_secret_reference(value: str) -> bool:
    return bool(value) and value.startswith((ENV_PREFIX, FILE_PREFIX))


def resolve_secret(value: str) -> str:
    """
    Resolve a literal-or-reference configuration value.

    Raises:
        SecretResolutionError: The reference points at nothing usable
    """
    if not is_secret_reference(value):
        return value

    if value.startswith(ENV_PREFIX):
        name = value[len(ENV_PREFIX):]
        resolved = os.getenv(name)
        if not resolved:
            raise SecretResolutionError(f"Environment variable {name} is not set", missing=[name])
        return resolved

    path = Path(value[len(FILE_PREFIX):]).expanduser()
    try:
        resolved = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise SecretResolutionError(f"Cannot read secret file {path}: {e}", missing=[str(path)]) from e
    if not resolved:
        raise SecretResolutionError(f"Secret file {path} is empty", missing=[str(path)])
    return resolved
