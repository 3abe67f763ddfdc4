"""Core domain dataclasses shared across all newsbrief modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from google.protobuf.timestamp_pb2 import Timestamp


class Sentiment(str, Enum):
    """Overall tone of a summarised news cluster."""

    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"


class DiffKind(str, Enum):
    """How a diff segment relates the "before" text to the "after" text."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


@dataclass
class Interest:
    """Interest record for a single tag.

    Attributes:
        score: Raw (undecayed) interest score. Never negative.
        last_interaction: Time of the last interaction or manual
            adjustment, in epoch milliseconds.
    """

    score: float
    last_interaction: float

    def to_dict(self) -> dict[str, float]:
        return {"score": self.score, "lastInteraction": self.last_interaction}

    @classmethod
    def from_dict(cls, data: Any) -> Interest:
        """Build an :class:`Interest` from its persisted form.

        Raises:
            ValueError: If *data* is not a well-formed interest record.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Interest record must be an object, got {data!r}")
        score = data.get("score")
        last = data.get("lastInteraction")
        if not _is_number(score) or not _is_number(last):
            raise ValueError(f"Malformed interest record: {data!r}")
        if score < 0:
            raise ValueError(f"Interest score must be non-negative, got {score!r}")
        return cls(score=float(score), last_interaction=float(last))


@dataclass(frozen=True)
class Summary:
    """An AI-generated synthesis of one news cluster at one point in time.

    Several summaries may share a ``topic_id``; ordered by ``generated_at``
    they form the narrative history of an evolving story.

    Attributes:
        id: Unique identifier of this summary.
        generated_at: When the summary was generated (UTC).
        topic_id: Identifier of the story this summary belongs to.
        title: Neutral headline.
        summary_text: Body of the summary.
        tags: Topic labels; the unit of interest tracking.
        key_points: Short bullet points, positionally comparable across
            revisions.
        sentiment: Overall tone.
        source_count: Number of articles the summary was built from.
    """

    id: str
    generated_at: datetime
    topic_id: str
    title: str
    summary_text: str
    tags: list[str] = field(default_factory=list)
    key_points: list[str] = field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    source_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the persisted (camelCase) field names."""
        return {
            "id": self.id,
            "generatedAt": datetime_to_rfc3339(self.generated_at),
            "topicId": self.topic_id,
            "title": self.title,
            "summary": self.summary_text,
            "tags": list(self.tags),
            "keyPoints": list(self.key_points),
            "sentiment": self.sentiment.value,
            "sourceCount": self.source_count,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Summary:
        """Build a :class:`Summary` from its persisted form.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Summary record must be an object, got {data!r}")
        try:
            return cls(
                id=str(data["id"]),
                generated_at=rfc3339_to_datetime(data["generatedAt"]),
                topic_id=str(data["topicId"]),
                title=str(data.get("title", "")),
                summary_text=str(data.get("summary", "")),
                tags=[str(t) for t in data.get("tags", [])],
                key_points=[str(p) for p in data.get("keyPoints", [])],
                sentiment=Sentiment(data.get("sentiment", Sentiment.NEUTRAL.value)),
                source_count=int(data.get("sourceCount", 0)),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed summary record: {exc}") from exc


@dataclass(frozen=True)
class DiffSegment:
    """A run of text tagged with its diff status."""

    value: str
    kind: DiffKind = DiffKind.UNCHANGED

    def to_dict(self) -> dict[str, str]:
        return {"value": self.value, "kind": self.kind.value}


@dataclass
class ScoredItem:
    """A content item annotated with its interest score.

    Attributes:
        item: The original content item (anything carrying tags).
        score: Sum of decayed interest over the item's tags.
        is_recommended: Whether *score* clears the recommendation threshold.
    """

    item: Any
    score: float
    is_recommended: bool = False


@dataclass
class NarrativeRevision:
    """One summary in a topic's narrative, diffed against its predecessor.

    Attributes:
        summary: The summary being rendered.
        summary_diff: Segments for the summary text.
        key_point_diffs: One segment list per key point, in order.
        is_baseline: ``True`` for the earliest summary, which has no
            predecessor and is rendered undiffed.
    """

    summary: Summary
    summary_diff: list[DiffSegment]
    key_point_diffs: list[list[DiffSegment]]
    is_baseline: bool = False


@dataclass
class NewsArticle:
    source: str
    headline: str
    content: str


@dataclass
class NewsCluster:
    """A group of articles about the same topic, ready for summarisation."""

    id: str
    topic: str
    articles: list[NewsArticle] = field(default_factory=list)


@dataclass
class SummarizationResult:
    """The structured output of an AI summarisation call.

    This is the provider-facing half of a :class:`Summary`; identifiers,
    timestamps and source counts are added by the core.
    """

    title: str
    summary_text: str
    tags: list[str]
    key_points: list[str]
    sentiment: Sentiment


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def datetime_to_rfc3339(dt: datetime) -> str:
    """Format *dt* as an RFC 3339 string (``...Z``); naive values are UTC."""
    ts = Timestamp()
    ts.FromDatetime(dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc))
    return ts.ToJsonString()


def rfc3339_to_datetime(value: Any) -> datetime:
    """Parse an RFC 3339 string into a UTC-aware :class:`datetime`.

    Raises:
        ValueError: If *value* is not a valid RFC 3339 timestamp.
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {value!r}")
    ts = Timestamp()
    ts.FromJsonString(value)
    return ts.ToDatetime(tzinfo=timezone.utc)
