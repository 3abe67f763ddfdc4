"""Narrative comparison: how a topic's summaries change from one to the next."""

from __future__ import annotations

import logging

from newsbrief.diff import generate_diff
from newsbrief.history import SummaryHistory
from newsbrief.models import DiffKind, DiffSegment, NarrativeRevision, Summary

logger = logging.getLogger(__name__)


def compare_narrative(topic_id: str, summaries: list[Summary] | None) -> list[NarrativeRevision]:
    """Diff each summary of *topic_id* against the one generated before it.

    Summaries are ordered oldest first.  The oldest is the baseline and is
    rendered undiffed.  Every later summary has its text diffed against its
    predecessor's, and each key point against the predecessor's key point
    at the same position; a key point with no counterpart is entirely
    ``added``.

    Args:
        topic_id: The topic to compare.
        summaries: The summary history (any order, any topics).

    Returns:
        One :class:`~newsbrief.models.NarrativeRevision` per summary of the
        topic, oldest first.  Empty if the topic has no summaries.
    """
    topic_summaries = sorted(
        (s for s in summaries or () if s.topic_id == topic_id),
        key=lambda s: s.generated_at,
    )

    revisions: list[NarrativeRevision] = []
    previous: Summary | None = None
    for summary in topic_summaries:
        if previous is None:
            revisions.append(_baseline(summary))
        else:
            revisions.append(_revision(previous, summary))
        previous = summary

    logger.debug("Compared %d summaries for topic %r", len(revisions), topic_id)
    return revisions


class NarrativeComparison:
    """Reads a :class:`~newsbrief.history.SummaryHistory` and compares topics.

    Args:
        history: The summary history collaborator (read only).
    """

    def __init__(self, history: SummaryHistory) -> None:
        self._history = history

    def compare(self, topic_id: str) -> list[NarrativeRevision]:
        return compare_narrative(topic_id, self._history.get_by_topic(topic_id))


def _baseline(summary: Summary) -> NarrativeRevision:
    return NarrativeRevision(
        summary=summary,
        summary_diff=[DiffSegment(summary.summary_text, DiffKind.UNCHANGED)],
        key_point_diffs=[[DiffSegment(point, DiffKind.UNCHANGED)] for point in summary.key_points],
        is_baseline=True,
    )


def _revision(previous: Summary, summary: Summary) -> NarrativeRevision:
    key_point_diffs = []
    for i, point in enumerate(summary.key_points):
        if i < len(previous.key_points):
            key_point_diffs.append(generate_diff(previous.key_points[i], point))
        else:
            key_point_diffs.append([DiffSegment(point, DiffKind.ADDED)])
    return NarrativeRevision(
        summary=summary,
        summary_diff=generate_diff(previous.summary_text, summary.summary_text),
        key_point_diffs=key_point_diffs,
    )
