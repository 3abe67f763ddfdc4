""""For You" strategy: only items the user is likely to care about."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from newsbrief.models import ScoredItem
from newsbrief.strategies.base import PresentationStrategy

logger = logging.getLogger(__name__)


class ForYouStrategy(PresentationStrategy):
    """Keeps items scoring above the threshold, highest score first.

    Ties keep their original relative order.
    """

    def present(
        self,
        items: Iterable[Any],
        interests: Mapping[str, float],
    ) -> list[ScoredItem]:
        recommended = [s for s in self.score_all(items, interests) if s.is_recommended]
        # sorted() is stable, including with reverse=True
        recommended = sorted(recommended, key=lambda s: s.score, reverse=True)
        logger.debug("%d items recommended above threshold %.1f", len(recommended), self._threshold)
        return recommended
