"""Ranking engine: scores content against the user's current interests."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from newsbrief.interests import InterestStore
from newsbrief.models import ScoredItem
from newsbrief.strategies.base import PresentationStrategy
from newsbrief.strategies.feed import FeedStrategy
from newsbrief.strategies.for_you import ForYouStrategy

logger = logging.getLogger(__name__)


class RankingEngine:
    """Applies presentation strategies to content using live interest scores.

    Every call takes a fresh decayed snapshot from the interest store, so
    rankings reflect decay that happened since the previous call.  Nothing
    is cached between calls.

    ===========  =========================================  ==============
    Mode         Filtering                                  Order
    ===========  =========================================  ==============
    For You      ``score > threshold`` only                 score, desc
    Feed         none; ``is_recommended`` flag per item     input order
    ===========  =========================================  ==============

    Args:
        interest_store: The :class:`~newsbrief.interests.InterestStore`.
        for_you_strategy: Strategy for the recommendation list.
        feed_strategy: Strategy for the annotated feed.
    """

    def __init__(
        self,
        interest_store: InterestStore,
        for_you_strategy: PresentationStrategy | None = None,
        feed_strategy: PresentationStrategy | None = None,
    ) -> None:
        self._interest_store = interest_store
        self._for_you_strategy = for_you_strategy or ForYouStrategy()
        self._feed_strategy = feed_strategy or FeedStrategy()

    def recommend(self, items: Iterable[Any] | None) -> list[ScoredItem]:
        """Return the "For You" list for *items*; empty input gives ``[]``."""
        return self._run(self._for_you_strategy, items)

    def feed(self, items: Iterable[Any] | None) -> list[ScoredItem]:
        """Return every item in *items* annotated with its score."""
        return self._run(self._feed_strategy, items)

    def _run(
        self,
        strategy: PresentationStrategy,
        items: Iterable[Any] | None,
    ) -> list[ScoredItem]:
        items = list(items or ())
        if not items:
            return []
        interests = self._interest_store.get_decayed_interests()
        result = strategy.present(items, interests)
        logger.debug(
            "%s ranked %d items into %d results using %d interests",
            type(strategy).__name__,
            len(items),
            len(result),
            len(interests),
        )
        return result
