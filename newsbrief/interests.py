"""Interest store: per-tag interest scores with exponential time decay."""

from __future__ import annotations

import logging
import math

import numpy as np

from newsbrief.clock import Clock, wall_clock_ms
from newsbrief.models import Interest
from newsbrief.storage import BlobStore

logger = logging.getLogger(__name__)

INTERESTS_STORAGE_KEY = "aiNewsBriefInterests"

RECENCY_BOOST = 5.0        # score added on each interaction
MANUAL_ADJUSTMENT = 2.0    # score added/removed per manual step
HALF_LIFE_DAYS = 14
HALF_LIFE_MS = HALF_LIFE_DAYS * 24 * 60 * 60 * 1000
DECAY_RATE = math.log(2) / HALF_LIFE_MS
PRUNE_THRESHOLD = 0.1      # decayed scores at or below this are hidden

_DEFAULT_INTERESTS: dict[str, Interest] = {}


class InterestStore:
    """In-memory store of :class:`~newsbrief.models.Interest` records by tag.

    The store is the single authoritative source of interest state at
    runtime.  Call :meth:`load` once after construction; every mutation
    then writes the full mapping back to *storage* before replacing the
    in-memory state.  Storage failures are logged and swallowed, so the
    in-memory state stays authoritative for the rest of the session.

    Scores are stored raw.  Decay is applied only when reading through
    :meth:`get_decayed_interests`::

        decayed = score * exp(-DECAY_RATE * (now - last_interaction))

    which halves a score every :data:`HALF_LIFE_DAYS` days of inactivity.

    Args:
        storage: The :class:`~newsbrief.storage.BlobStore` to persist to.
        clock: Time source in epoch milliseconds.
    """

    def __init__(self, storage: BlobStore, clock: Clock = wall_clock_ms) -> None:
        self._storage = storage
        self._clock = clock
        self._interests: dict[str, Interest] = dict(_DEFAULT_INTERESTS)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory state with the persisted mapping.

        A missing blob leaves the built-in defaults in place.  Unreadable or
        malformed data is logged and also falls back to the defaults.
        """
        interests = dict(_DEFAULT_INTERESTS)
        try:
            stored = self._storage.get(INTERESTS_STORAGE_KEY)
            if stored is not None:
                interests.update(_parse_interests(stored))
        except Exception:
            logger.exception("Failed to load interests; starting from defaults.")
            interests = dict(_DEFAULT_INTERESTS)
        self._interests = interests
        logger.info("Loaded %d interest records.", len(interests))

    def save(self, interests: dict[str, Interest] | None = None) -> bool:
        """Persist *interests* (defaults to the current state).

        Returns:
            ``True`` if the write succeeded, ``False`` if it failed.
        """
        if interests is None:
            interests = self._interests
        try:
            self._storage.set(
                INTERESTS_STORAGE_KEY,
                {tag: interest.to_dict() for tag, interest in interests.items()},
            )
        except Exception:
            logger.exception("Failed to persist %d interest records.", len(interests))
            return False
        return True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_interaction(self, tag: str) -> bool:
        """Register an interaction with *tag*.

        Adds :data:`RECENCY_BOOST` to the raw stored score (creating the
        record at that value if absent) and resets its interaction time.
        No decay is applied before the boost is added.

        Args:
            tag: The topic label the user engaged with.

        Returns:
            ``True`` if the record was created or updated, ``False`` for an
            empty tag.
        """
        if not tag:
            logger.debug("Ignoring interaction with empty tag.")
            return False
        existing = self._interests.get(tag)
        base = existing.score if existing else 0.0
        self._commit(tag, Interest(score=base + RECENCY_BOOST, last_interaction=self._clock()))
        return True

    def record_interactions(self, tags: list[str]) -> int:
        """Register an interaction with each of *tags*.

        Returns:
            Number of tags recorded.
        """
        return sum(1 for tag in tags if self.record_interaction(tag))

    def adjust_interest(self, tag: str, direction: int) -> bool:
        """Nudge an existing interest up or down by :data:`MANUAL_ADJUSTMENT`.

        The score is clamped at zero.  Unknown tags and directions other
        than ``+1``/``-1`` are ignored.

        Args:
            tag: The tag to adjust.
            direction: ``1`` to increase, ``-1`` to decrease.

        Returns:
            ``True`` if the record changed, ``False`` for a no-op.
        """
        if direction not in (1, -1):
            logger.debug("Ignoring adjustment of %r with direction %r.", tag, direction)
            return False
        existing = self._interests.get(tag)
        if existing is None:
            logger.debug("Ignoring adjustment of unknown tag %r.", tag)
            return False
        new_score = max(0.0, existing.score + direction * MANUAL_ADJUSTMENT)
        self._commit(tag, Interest(score=new_score, last_interaction=self._clock()))
        return True

    def remove_interest(self, tag: str) -> bool:
        """Delete the record for *tag*.

        Returns:
            ``True`` if a record was removed, ``False`` if none existed.
        """
        if tag not in self._interests:
            return False
        updated = dict(self._interests)
        del updated[tag]
        self.save(updated)
        self._interests = updated
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_decayed_interests(self) -> dict[str, float]:
        """Return ``{tag: decayed_score}`` as of now.

        Records whose decayed score is at or below :data:`PRUNE_THRESHOLD`
        are left out of the result but are not deleted.
        """
        if not self._interests:
            return {}
        tags = list(self._interests)
        scores = np.array([self._interests[t].score for t in tags], dtype=float)
        last = np.array([self._interests[t].last_interaction for t in tags], dtype=float)
        # Clock skew must never inflate a score above its stored value.
        elapsed = np.maximum(self._clock() - last, 0.0)
        decayed = scores * np.exp(-DECAY_RATE * elapsed)
        return {
            tag: float(score)
            for tag, score in zip(tags, decayed)
            if score > PRUNE_THRESHOLD
        }

    def get_ranked_interests(self) -> list[tuple[str, float]]:
        """Return decayed interests as ``(tag, score)`` pairs, highest first."""
        decayed = self.get_decayed_interests()
        return sorted(decayed.items(), key=lambda x: x[1], reverse=True)

    def get_interest(self, tag: str) -> Interest | None:
        """Return the raw stored record for *tag*, or ``None``."""
        return self._interests.get(tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self._interests

    def __len__(self) -> int:
        return len(self._interests)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(self, tag: str, interest: Interest) -> None:
        updated = dict(self._interests)
        updated[tag] = interest
        self.save(updated)
        self._interests = updated


def _parse_interests(data: object) -> dict[str, Interest]:
    """Decode the persisted interest mapping.

    Raises:
        ValueError: If *data* is not a mapping of tag to interest record.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Interest mapping must be an object, got {type(data).__name__}")
    return {str(tag): Interest.from_dict(record) for tag, record in data.items()}
