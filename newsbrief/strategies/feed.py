"""Feed strategy: every item, in arrival order, flagged if recommended."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from newsbrief.models import ScoredItem
from newsbrief.strategies.base import PresentationStrategy


class FeedStrategy(PresentationStrategy):
    """Returns all items unfiltered and in their original order.

    Each item carries ``is_recommended`` so the feed can highlight the ones
    that would also appear under "For You".
    """

    def present(
        self,
        items: Iterable[Any],
        interests: Mapping[str, float],
    ) -> list[ScoredItem]:
        return self.score_all(items, interests)
