"""Summary history: the append-only, persisted record of generated summaries."""

from __future__ import annotations

import logging

from newsbrief.models import Summary
from newsbrief.storage import BlobStore

logger = logging.getLogger(__name__)

SUMMARY_HISTORY_STORAGE_KEY = "aiNewsBriefSummaryHistory"


class SummaryHistory:
    """Holds every summary ever generated, newest first.

    Summaries are immutable; the only mutation is :meth:`add_summaries`,
    which appends and writes the whole history back to *storage*.  As with
    :class:`~newsbrief.interests.InterestStore`, write failures are logged
    and the in-memory history remains authoritative.

    Args:
        storage: The :class:`~newsbrief.storage.BlobStore` to persist to.
    """

    def __init__(self, storage: BlobStore) -> None:
        self._storage = storage
        self._summaries: list[Summary] = []

    def load(self) -> None:
        """Replace the in-memory history with the persisted one.

        Missing, unreadable or malformed data yields an empty history.
        """
        summaries: list[Summary] = []
        try:
            stored = self._storage.get(SUMMARY_HISTORY_STORAGE_KEY)
            if stored is not None:
                if not isinstance(stored, list):
                    raise ValueError("Summary history must be a list")
                summaries = [Summary.from_dict(record) for record in stored]
        except Exception:
            logger.exception("Failed to load summary history; starting empty.")
            summaries = []
        self._summaries = _newest_first(summaries)
        logger.info("Loaded %d summaries from history.", len(self._summaries))

    def save(self) -> bool:
        try:
            self._storage.set(
                SUMMARY_HISTORY_STORAGE_KEY,
                [summary.to_dict() for summary in self._summaries],
            )
        except Exception:
            logger.exception("Failed to persist %d summaries.", len(self._summaries))
            return False
        return True

    def add_summaries(self, summaries: list[Summary]) -> int:
        """Append *summaries* to the history and persist it.

        Returns:
            Number of summaries added.
        """
        if not summaries:
            return 0
        self._summaries = _newest_first(self._summaries + list(summaries))
        self.save()
        logger.debug("Added %d summaries (history size %d).", len(summaries), len(self._summaries))
        return len(summaries)

    def get_all(self) -> list[Summary]:
        """Return a snapshot of the full history, newest first."""
        return list(self._summaries)

    def get(self, summary_id: str) -> Summary | None:
        for summary in self._summaries:
            if summary.id == summary_id:
                return summary
        return None

    def get_by_topic(self, topic_id: str) -> list[Summary]:
        """Return all summaries for *topic_id*, newest first."""
        return [s for s in self._summaries if s.topic_id == topic_id]

    def topic_ids(self) -> list[str]:
        """Return the distinct topic IDs, ordered by most recent summary."""
        seen: dict[str, None] = {}
        for summary in self._summaries:
            seen.setdefault(summary.topic_id, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self._summaries)


def _newest_first(summaries: list[Summary]) -> list[Summary]:
    return sorted(summaries, key=lambda s: s.generated_at, reverse=True)
