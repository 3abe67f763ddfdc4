"""Shared pytest fixtures for all newsbrief tests."""

from __future__ import annotations

import pytest

from helpers import TS_MS, make_summary
from newsbrief.clock import ManualClock
from newsbrief.models import Summary
from newsbrief.storage import MemoryBlobStore


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(TS_MS)


@pytest.fixture
def storage() -> MemoryBlobStore:
    return MemoryBlobStore()


# ---------------------------------------------------------------------------
# Summary fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def budget_story() -> list[Summary]:
    """Three successive summaries of one evolving story, oldest first."""
    return [
        make_summary(
            "s1",
            hours=0,
            text="The council proposed a new budget.",
            tags=["Politics", "Finance"],
            key_points=["Budget proposed", "Vote next week"],
        ),
        make_summary(
            "s2",
            hours=6,
            text="The council approved a new budget.",
            tags=["Politics", "Finance"],
            key_points=["Budget approved", "Vote held early"],
        ),
        make_summary(
            "s3",
            hours=12,
            text="The council approved a revised budget after protests.",
            tags=["Politics", "Protest"],
            key_points=["Budget approved", "Vote held early", "Protests outside hall"],
        ),
    ]
