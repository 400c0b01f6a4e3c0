"""
AIWatch Agents

Slack workspace monitor that collects AI/ML conversations and posts
periodic thread summaries.

Pipeline:
- Collector: live Slack events + periodic channel polling, cheap keyword
  pre-filter, idempotent candidate storage
- Summarizer: thread reconstruction, LLM relevance judgment with keyword
  fallback, summary publishing and consumption of stored candidates

Usage:
    from aiwatch.common import load_config
    from aiwatch.runtime import build_runtime, run_poll_job, run_summary_job
    from aiwatch.collector import RelevancePreFilter, IngestionLedger
    from aiwatch.summarizer import group_threads, RelevanceOracleClient
"""

__version__ = "0.1.0"
