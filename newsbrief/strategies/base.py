"""Abstract base class for all presentation strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from newsbrief.models import ScoredItem

RECOMMENDATION_THRESHOLD = 4.0  # score above which an item is "For You"


class PresentationStrategy(ABC):
    """Abstract base class for all presentation strategies.

    A strategy turns a list of content items and a decayed-interest snapshot
    into the list of :class:`~newsbrief.models.ScoredItem` to display.
    Strategies hold no scoring state; every call recomputes from scratch.

    Args:
        threshold: Score an item must exceed to count as recommended.
    """

    def __init__(self, threshold: float = RECOMMENDATION_THRESHOLD) -> None:
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    @abstractmethod
    def present(
        self,
        items: Iterable[Any],
        interests: Mapping[str, float],
    ) -> list[ScoredItem]:
        """Score and arrange *items* for display.

        Args:
            items: Content items; each exposes its tags either as a ``tags``
                attribute or under a ``"tags"`` key.
            interests: Decayed interest scores by tag.

        Returns:
            Scored items in display order.
        """

    def score_all(
        self,
        items: Iterable[Any] | None,
        interests: Mapping[str, float],
    ) -> list[ScoredItem]:
        """Score every item, preserving input order."""
        scored = []
        for item in items or ():
            score = score_item(item, interests)
            scored.append(ScoredItem(item=item, score=score, is_recommended=score > self._threshold))
        return scored


def item_tags(item: Any) -> list[str]:
    """Return the tag list of *item*, or an empty list if it has none."""
    if isinstance(item, Mapping):
        tags = item.get("tags")
    else:
        tags = getattr(item, "tags", None)
    return list(tags) if tags else []


def score_item(item: Any, interests: Mapping[str, float]) -> float:
    """Sum the decayed interest of each of *item*'s tags (0 for unknown tags)."""
    return sum(interests.get(tag, 0.0) for tag in item_tags(item))
