"""Shared constants and builders for newsbrief tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from newsbrief.models import Sentiment, Summary


TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
TS_MS = TS.timestamp() * 1000
DAY_MS = 24 * 60 * 60 * 1000


def make_summary(
    summary_id: str,
    topic_id: str = "t1",
    hours: int = 0,
    text: str = "The council approved the budget.",
    tags: list[str] | None = None,
    key_points: list[str] | None = None,
) -> Summary:
    """Build a summary generated *hours* after :data:`TS`."""
    return Summary(
        id=summary_id,
        generated_at=TS + timedelta(hours=hours),
        topic_id=topic_id,
        title=f"Title {summary_id}",
        summary_text=text,
        tags=list(tags or []),
        key_points=list(key_points or []),
        sentiment=Sentiment.NEUTRAL,
        source_count=2,
    )
