"""
Thread Grouper

Rebuilds conversation threads from the flat, per-channel candidate log.
Pure functions, no I/O.

Grouping key: a message's thread_ts when it belongs to a thread, else its
own ts (un-replied messages form singleton threads). Messages inside a
thread are ordered by timestamp; threads themselves come out in first-seen
order, which callers must not rely on.
"""

import re
from typing import Dict, Iterable, List

from ..common.schemas import StoredMessage, Thread

PERMALINK_BASE = "https://slack.com/archives"

# <https://example.com|label> or <https://example.com>
SLACK_LINK_RE = re.compile(r"<(https?://[^|>\s]+)(?:\|[^>]*)?>")
BARE_URL_RE = re.compile(r"https?://[^\s<>]+", re.IGNORECASE)


def build_thread_url(channel_id: str, thread_ts: str) -> str:
    """Slack permalink for a thread root: p + ts without the dot"""
    return f"{PERMALINK_BASE}/{channel_id}/p{thread_ts.replace('.', '')}"


def extract_urls(text: str) -> List[str]:
    """
    Extract URLs in two passes.

    1. Slack-formatted links, keeping only the URL part
    2. Bare URLs in what remains once those links are stripped

    Returns:
        Deduplicated URLs in first-seen order
    """
    if not text:
        return []

    urls: List[str] = []
    for match in SLACK_LINK_RE.finditer(text):
        if match.group(1) not in urls:
            urls.append(match.group(1))

    remainder = SLACK_LINK_RE.sub(" ", text)
    for url in BARE_URL_RE.findall(remainder):
        if url not in urls:
            urls.append(url)

    return urls


def group_threads(messages: Iterable[StoredMessage]) -> List[Thread]:
    """Group one channel's stored messages into threads"""
    threads: Dict[str, Thread] = {}

    for message in messages:
        key = message.thread_key
        thread = threads.get(key)
        if thread is None:
            thread = Thread(
                key=key,
                channel_id=message.channel_id,
                thread_url=build_thread_url(message.channel_id, key),
            )
            threads[key] = thread
        thread.messages.append(message)

    for thread in threads.values():
        thread.messages.sort(key=lambda m: m.timestamp)
        for message in thread.messages:
            for url in extract_urls(message.text):
                if url not in thread.urls:
                    thread.urls.append(url)

    return list(threads.values())
