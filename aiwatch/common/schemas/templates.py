"""
Summary Templates

Renders SummaryResults into the Slack mrkdwn block posted to the target
channel.
"""

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .message import SummaryResult


DIVIDER = "━━━━━━━━━━━━━━━━━━━━━━"
EMPTY_DIGEST_TEXT = "No AI-related topics found."

HEADER_TEMPLATE = "📊 *AI-related thread summaries* ({count} {noun})\n\n"

THREAD_TEMPLATE = """{divider}
*Thread {index}* | 💬 {message_count} {message_noun}
🔗 <{thread_url}|View thread>

{summary}

"""


def _plural(count: int, noun: str) -> str:
    return noun if count == 1 else f"{noun}s"


def format_summaries(summaries: List["SummaryResult"]) -> str:
    """Render relevant-thread summaries as one publish-ready text block"""
    if not summaries:
        return EMPTY_DIGEST_TEXT

    formatted = HEADER_TEMPLATE.format(
        count=len(summaries),
        noun=_plural(len(summaries), "thread"),
    )
    for index, summary in enumerate(summaries, start=1):
        formatted += THREAD_TEMPLATE.format(
            divider=DIVIDER,
            index=index,
            message_count=summary.message_count,
            message_noun=_plural(summary.message_count, "message"),
            thread_url=summary.thread_url,
            summary=summary.summary_text,
        )
    return formatted
