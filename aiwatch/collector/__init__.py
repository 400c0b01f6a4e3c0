"""
Collector Agent - AI Conversation Intake

Watches Slack for conversations that might be about AI/ML and stores them
as candidates for the summarizer.

Key Components:
- RelevancePreFilter: Cheap keyword gate (recall over precision)
- RelevanceScorer: Weighted keyword score for live events
- IngestionLedger: Idempotent candidate storage with processed markers
- LiveIngestor: Slack Events API path
- PollingIngestor: Periodic history sweep including thread replies
- Handlers: Push-event parsing and signature verification
"""

from .prefilter import RelevancePreFilter, KeywordMatcher
from .scorer import RelevanceScorer, ScoreResult
from .ledger import IngestionLedger
from .live import LiveIngestor, LiveOutcome, LiveResult
from .poller import PollingIngestor, PollResult

__all__ = [
    "RelevancePreFilter",
    "KeywordMatcher",
    "RelevanceScorer",
    "ScoreResult",
    "IngestionLedger",
    "LiveIngestor",
    "LiveOutcome",
    "LiveResult",
    "PollingIngestor",
    "PollResult",
]
