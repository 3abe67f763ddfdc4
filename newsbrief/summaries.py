"""Boundary with the AI summarisation provider.

The provider call itself lives outside this package.  This module defines
what is sent (:func:`build_cluster_prompt`, :data:`SUMMARY_SCHEMA`), how
responses are validated (:func:`parse_summarization_payload`) and how they
become :class:`~newsbrief.models.Summary` records (:func:`build_summary`).

Nothing in the server calls a provider.  :class:`Summarizer`,
:func:`build_cluster_prompt` and :func:`summarize_clusters` are library
entry points for provider adapters, which hand their results to the
``AddSummaries`` RPC or straight to :class:`~newsbrief.history.SummaryHistory`.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Container, Mapping

from newsbrief.clock import Clock, ms_to_datetime, wall_clock_ms
from newsbrief.models import NewsCluster, Sentiment, Summary, SummarizationResult

logger = logging.getLogger(__name__)

SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "A concise, neutral headline for the topic.",
        },
        "summary": {
            "type": "string",
            "description": "A comprehensive summary that integrates the key information from all articles.",
        },
        "tags": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3-5 relevant topic tags (e.g., 'Technology', 'Geopolitics', 'Finance').",
        },
        "keyPoints": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3-5 distinct key bullet points from the summary.",
        },
        "sentiment": {
            "type": "string",
            "enum": [s.value for s in Sentiment],
            "description": "The overall sentiment of the news cluster.",
        },
    },
    "required": ["title", "summary", "tags", "keyPoints", "sentiment"],
}

_PROMPT_TEMPLATE = """You are a sophisticated AI news analyst. Your task is to process a cluster of news articles about a single topic ("{topic}") and generate a synthesized, neutral summary.
From the provided articles below, you must:
1.  Create a concise, neutral headline for the topic.
2.  Write a comprehensive summary that integrates the key information from all articles.
3.  Extract 3-5 distinct key bullet points.
4.  Generate 3-5 relevant topic tags (e.g., 'Technology', 'Geopolitics', 'Finance').
5.  Analyze the overall sentiment of the news cluster: 'Positive', 'Negative', or 'Neutral'.

Respond ONLY with a JSON object that strictly adheres to the provided schema.

ARTICLES:
{articles}
"""


class Summarizer(ABC):
    """Abstract AI provider that turns a news cluster into a summary.

    Library entry point: adapters for a concrete provider subclass this and
    are driven by :func:`summarize_clusters`.
    """

    @abstractmethod
    def summarize(self, cluster: NewsCluster) -> SummarizationResult:
        """Summarise *cluster*.

        Implementations may raise any exception on failure;
        :func:`summarize_clusters` treats a failure as "no summary".
        """


def build_cluster_prompt(cluster: NewsCluster) -> str:
    """Return the provider prompt for *cluster*.

    Library entry point for provider adapters.
    """
    articles = "\n\n---\n\n".join(
        f"Source: {a.source}\nHeadline: {a.headline}\nContent: {a.content}"
        for a in cluster.articles
    )
    return _PROMPT_TEMPLATE.format(topic=cluster.topic, articles=articles)


def parse_summarization_payload(payload: Mapping[str, Any] | str) -> SummarizationResult:
    """Validate a provider response against :data:`SUMMARY_SCHEMA`.

    Args:
        payload: The decoded JSON object, or its raw text.

    Returns:
        The validated :class:`~newsbrief.models.SummarizationResult`.

    Raises:
        ValueError: If the payload is not JSON, misses a required field,
            has a field of the wrong type, or names an unknown sentiment.
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload.strip())
        except json.JSONDecodeError as exc:
            raise ValueError(f"Summarisation payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ValueError("Summarisation payload must be a JSON object")

    missing = [key for key in SUMMARY_SCHEMA["required"] if key not in payload]
    if missing:
        raise ValueError(f"Summarisation payload missing fields: {', '.join(missing)}")

    for key in ("title", "summary", "sentiment"):
        if not isinstance(payload[key], str):
            raise ValueError(f"Field {key!r} must be a string")
    for key in ("tags", "keyPoints"):
        value = payload[key]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"Field {key!r} must be a list of strings")

    try:
        sentiment = Sentiment(payload["sentiment"])
    except ValueError as exc:
        raise ValueError(f"Unknown sentiment {payload['sentiment']!r}") from exc

    return SummarizationResult(
        title=payload["title"],
        summary_text=payload["summary"],
        tags=list(payload["tags"]),
        key_points=list(payload["keyPoints"]),
        sentiment=sentiment,
    )


def build_summary(
    result: SummarizationResult,
    topic_id: str,
    source_count: int,
    clock: Clock = wall_clock_ms,
    taken: Container[str] = (),
) -> Summary:
    """Wrap a provider result into a stored :class:`~newsbrief.models.Summary`.

    The id is ``summary-{topic_id}-{epoch_ms}``.  If that id is already in
    *taken*, a numeric suffix (``-2``, ``-3``, ...) is appended.
    """
    now_ms = clock()
    base_id = f"summary-{topic_id}-{int(now_ms)}"
    summary_id = base_id
    n = 1
    while summary_id in taken:
        n += 1
        summary_id = f"{base_id}-{n}"
    return Summary(
        id=summary_id,
        generated_at=ms_to_datetime(now_ms),
        topic_id=topic_id,
        title=result.title,
        summary_text=result.summary_text,
        tags=list(result.tags),
        key_points=list(result.key_points),
        sentiment=result.sentiment,
        source_count=source_count,
    )


def summarize_clusters(
    clusters: list[NewsCluster],
    summarizer: Summarizer,
    clock: Clock = wall_clock_ms,
) -> list[Summary]:
    """Summarise each cluster, skipping any the provider fails on.

    Args:
        clusters: Clusters to summarise.
        summarizer: The provider.
        clock: Time source for the generated summaries.

    Returns:
        One summary per successfully summarised cluster; possibly empty.
    """
    summaries: list[Summary] = []
    taken: set[str] = set()
    for cluster in clusters:
        try:
            result = summarizer.summarize(cluster)
        except Exception:
            logger.exception("Failed to summarize cluster %r (%s).", cluster.id, cluster.topic)
            continue
        summary = build_summary(result, cluster.id, len(cluster.articles), clock, taken)
        taken.add(summary.id)
        summaries.append(summary)
    logger.info("Summarized %d of %d clusters.", len(summaries), len(clusters))
    return summaries
