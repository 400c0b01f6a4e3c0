"""Schedule expression helpers (rate(...) expressions to minutes)."""

import logging
import re

logger = logging.getLogger("aiwatch.common.schedule")

DEFAULT_MINUTES = 5

_RATE_PATTERNS = [
    (re.compile(r"rate\((\d+)\s*minutes?\)", re.IGNORECASE), 1),
    (re.compile(r"rate\((\d+)\s*hours?\)", re.IGNORECASE), 60),
    (re.compile(r"rate\((\d+)\s*days?\)", re.IGNORECASE), 60 * 24),
]


def parse_schedule_to_minutes(expression: str) -> int:
    """
    Extract the interval in minutes from a rate(N unit) expression.

    Cron expressions and anything unparseable fall back to DEFAULT_MINUTES.
    """
    if not expression:
        return DEFAULT_MINUTES

    for pattern, multiplier in _RATE_PATTERNS:
        match = pattern.search(expression)
        if match:
            return int(match.group(1)) * multiplier

    logger.warning(
        "Unable to parse schedule expression %r, using default %d minutes",
        expression, DEFAULT_MINUTES,
    )
    return DEFAULT_MINUTES
