"""
Summarizer Agent - Thread Digests

Rebuilds threads from stored candidates, asks an LLM whether each thread is
AI-related and posts summaries of the relevant ones to the target channel.

Key Components:
- group_threads: Flat candidate log to threads (pure)
- RelevanceOracleClient: LLM judgment with keyword fallback
- SummaryPublisher: Per-channel fetch, judge, publish, consume
"""

from .threads import group_threads, extract_urls, build_thread_url
from .oracle import RelevanceOracleClient, parse_judgment, format_transcript
from .publisher import SummaryPublisher, SummaryRunResult

__all__ = [
    "group_threads",
    "extract_urls",
    "build_thread_url",
    "RelevanceOracleClient",
    "parse_judgment",
    "format_transcript",
    "SummaryPublisher",
    "SummaryRunResult",
]
