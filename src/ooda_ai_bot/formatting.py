"""Slack text formatting for Vectara answers."""

import re
from collections.abc import Sequence

from .models import QueryResult, Source

MAX_SOURCES = 15

# Applied in order, each a single non-greedy pass; nested markup may survive.
_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),  # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),  # italic
    (re.compile(r"`(.*?)`"), r"\1"),  # inline code
    (re.compile(r"_{2}(.*?)_{2}"), r"\1"),  # underscores
    (re.compile(r"^#{1,6}\s", re.MULTILINE), ""),  # headings
]


def cleanup_markdown(text: str) -> str:
    """Strip emphasis, code ticks and heading marks from generated text."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def format_sources(sources: Sequence[Source] | None) -> str:
    """Render up to MAX_SOURCES citation links as a Slack mrkdwn list.

    Order is kept as given. Returns an empty string when there is nothing to cite.
    """
    if not sources:
        return ""

    lines = ["\n\n*Sources:*"]
    for source in sources[:MAX_SOURCES]:
        lines.append(f"\n• <{source.url}|{source.title}>")
    return "".join(lines)


def format_reply(result: QueryResult) -> str:
    """Full Slack message for a query result: cleaned summary followed by sources."""
    return cleanup_markdown(result.summary or "") + format_sources(result.sources)
