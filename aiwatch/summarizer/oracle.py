"""
Relevance Oracle: LLM judgment and summary per thread.

Sends one thread transcript to the LLM with a fixed instruction and reads a
structured-but-free-text reply:

    line 1:   AI_RELATED:true | AI_RELATED:false
    line 2+:  summary body (only when relevant)

Any other first line is read as "not relevant". When the call itself fails
(error, timeout, no client) a local keyword check over the transcript
decides instead; there is no retry.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..collector.prefilter import KeywordMatcher
from ..common.config import DEFAULT_FLEXIBLE_KEYWORDS, DEFAULT_STRICT_KEYWORDS
from ..common.llm_client import LLMClient
from ..common.schemas import Judgment, SummaryResult, Thread

logger = logging.getLogger("aiwatch.summarizer.oracle")

POSITIVE_SENTINEL = "AI_RELATED:true"
NEGATIVE_SENTINEL = "AI_RELATED:false"

FALLBACK_SUMMARY = "Summary unavailable: the analysis service could not be reached."
FALLBACK_CONFIDENCE = 0.5

# Superset of the pre-filter vocabulary used when the LLM call fails
FALLBACK_EXTRA_KEYWORDS = ["deep learning", "neural network"]

SYSTEM_PROMPT = """You are an expert at analysing Slack conversations.
Do the following:
1. Decide whether the conversation is about AI / machine learning
2. Only if it is, write a summary of the discussion

Examples of AI-related topics:
- Using AI tools (ChatGPT, Claude, Copilot, ...) and experiences with them
- Technical discussion of machine learning or deep learning
- News about AI companies and services
- Prompt engineering
- AI ethics and impact

Examples of topics that are NOT AI-related:
- Commands like tail or mail (they merely contain "ai")
- General programming topics
- AI keywords that appear by accident without context"""

USER_PROMPT = """Analyse the following thread:

{transcript}

The first line of your reply MUST be exactly one of:
AI_RELATED:true
or
AI_RELATED:false

If AI_RELATED:true, write the summary from the second line on in this format:
📝 Key point: [the discussion in 1-2 sentences]
💡 Highlights:
• [important point 1]
• [important point 2]
• [important point 3]
🔗 References: (if any)
• [URL1]
• [URL2]"""


def _normalize_sentinel(line: str) -> str:
    return "".join(line.split()).strip("*`_").lower()


def parse_judgment(raw: Optional[str]) -> Judgment:
    """
    Parse the oracle reply.

    Grammar: first line in {POSITIVE_SENTINEL, NEGATIVE_SENTINEL}
    (whitespace and case insensitive), body = remaining lines. Anything that
    does not carry the positive sentinel on its first line is not relevant.
    Never raises.
    """
    if not raw or not raw.strip():
        return Judgment(is_relevant=False)

    lines = raw.strip().split("\n")
    first_line = _normalize_sentinel(lines[0])

    if _normalize_sentinel(POSITIVE_SENTINEL) in first_line:
        body = "\n".join(lines[1:]).strip()
        return Judgment(is_relevant=True, summary_text=body or None)

    if _normalize_sentinel(NEGATIVE_SENTINEL) not in first_line:
        logger.warning("Unparseable oracle reply, treating as not relevant: %r", lines[0][:80])
    return Judgment(is_relevant=False)


def format_transcript(thread: Thread) -> str:
    """One line per message: [YYYY-MM-DD HH:MM:SS] name: text"""
    lines = []
    for message in thread.messages:
        when = datetime.fromtimestamp(message.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        lines.append(f"[{when}] {message.user_name or 'Unknown'}: {message.text}")
    return "\n".join(lines)


class RelevanceOracleClient:
    """
    Per-thread relevance judgment backed by an LLM.

    Calls are made once per thread; batching is left to the caller.
    """

    def __init__(
        self,
        llm: LLMClient,
        fallback_keywords: Optional[Iterable[str]] = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        timeout: float = 30.0,
    ):
        self._llm = llm
        if fallback_keywords is None:
            fallback_keywords = (
                list(DEFAULT_STRICT_KEYWORDS) + list(DEFAULT_FLEXIBLE_KEYWORDS) + FALLBACK_EXTRA_KEYWORDS
            )
        self._fallback = KeywordMatcher.from_vocabulary(fallback_keywords)
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout

    @property
    def is_available(self) -> bool:
        return self._llm.is_available

    def judge(self, thread: Thread) -> Judgment:
        transcript = format_transcript(thread)

        try:
            raw = self._llm.generate(
                USER_PROMPT.format(transcript=transcript),
                system=SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning("Error analyzing thread %s, using keyword fallback: %s", thread.thread_url, e)
            return self._fallback_judgment(transcript)

        return parse_judgment(raw)

    def _fallback_judgment(self, transcript: str) -> Judgment:
        if self._fallback.matches(transcript):
            return Judgment(
                is_relevant=True,
                summary_text=FALLBACK_SUMMARY,
                key_points=[],
                used_fallback=True,
            )
        return Judgment(is_relevant=False, used_fallback=True)

    def summarize(self, thread: Thread) -> Optional[SummaryResult]:
        """Judge a thread and build its SummaryResult, or None if not relevant"""
        judgment = self.judge(thread)
        if not judgment.is_relevant:
            return None

        return SummaryResult(
            thread_url=thread.thread_url,
            message_count=thread.message_count,
            summary_text=judgment.summary_text or "",
            urls=list(thread.urls),
            confidence=FALLBACK_CONFIDENCE if judgment.used_fallback else 1.0,
        )
