"""Tests for newsbrief.interests.InterestStore.

These verify the score accumulation and decay maths that drive all
ranking strategies.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from helpers import DAY_MS, TS_MS
from newsbrief.clock import ManualClock
from newsbrief.interests import (
    HALF_LIFE_MS,
    INTERESTS_STORAGE_KEY,
    MANUAL_ADJUSTMENT,
    PRUNE_THRESHOLD,
    RECENCY_BOOST,
    InterestStore,
)
from newsbrief.models import Interest
from newsbrief.storage import MemoryBlobStore, StorageError


# ---------------------------------------------------------------------------
# Helpers / fixtures
# ---------------------------------------------------------------------------


def _make_store(clock: ManualClock, storage=None) -> InterestStore:
    store = InterestStore(storage if storage is not None else MemoryBlobStore(), clock=clock)
    store.load()
    return store


@pytest.fixture
def store(clock, storage) -> InterestStore:
    return _make_store(clock, storage)


# ---------------------------------------------------------------------------
# record_interaction
# ---------------------------------------------------------------------------


class TestRecordInteraction:
    def test_new_tag_starts_at_boost(self, store) -> None:
        assert store.record_interaction("Tech") is True
        assert store.get_decayed_interests()["Tech"] == pytest.approx(5.0)

    def test_sets_last_interaction_to_now(self, store, clock) -> None:
        store.record_interaction("Tech")
        assert store.get_interest("Tech").last_interaction == TS_MS

    def test_repeat_adds_boost_to_raw_score(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(HALF_LIFE_MS)
        store.record_interaction("Tech")
        # Raw score accumulates without decaying first.
        assert store.get_interest("Tech").score == pytest.approx(2 * RECENCY_BOOST)
        assert store.get_decayed_interests()["Tech"] == pytest.approx(10.0)

    def test_repeat_resets_interaction_time(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(DAY_MS)
        store.record_interaction("Tech")
        assert store.get_interest("Tech").last_interaction == TS_MS + DAY_MS

    def test_empty_tag_is_ignored(self, store) -> None:
        assert store.record_interaction("") is False
        assert len(store) == 0

    def test_record_interactions_counts_tags(self, store) -> None:
        assert store.record_interactions(["Tech", "Finance", ""]) == 2
        assert "Tech" in store
        assert "Finance" in store


# ---------------------------------------------------------------------------
# adjust_interest
# ---------------------------------------------------------------------------


class TestAdjustInterest:
    def test_increase(self, store) -> None:
        store.record_interaction("Tech")
        assert store.adjust_interest("Tech", 1) is True
        assert store.get_interest("Tech").score == pytest.approx(RECENCY_BOOST + MANUAL_ADJUSTMENT)

    def test_decrease(self, store) -> None:
        store.record_interaction("Tech")
        store.adjust_interest("Tech", -1)
        assert store.get_interest("Tech").score == pytest.approx(RECENCY_BOOST - MANUAL_ADJUSTMENT)

    def test_missing_tag_is_noop(self, store) -> None:
        assert store.adjust_interest("Missing", 1) is False
        assert "Missing" not in store
        assert len(store) == 0

    def test_never_goes_below_zero(self, store) -> None:
        store.record_interaction("Tech")
        for _ in range(10):
            store.adjust_interest("Tech", -1)
            assert store.get_interest("Tech").score >= 0
        assert store.get_interest("Tech").score == 0

    def test_resets_interaction_time(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(DAY_MS)
        store.adjust_interest("Tech", 1)
        assert store.get_interest("Tech").last_interaction == TS_MS + DAY_MS

    @pytest.mark.parametrize("direction", [0, 2, -3])
    def test_invalid_direction_is_noop(self, store, direction: int) -> None:
        store.record_interaction("Tech")
        before = store.get_interest("Tech")
        assert store.adjust_interest("Tech", direction) is False
        assert store.get_interest("Tech") == before


# ---------------------------------------------------------------------------
# remove_interest
# ---------------------------------------------------------------------------


class TestRemoveInterest:
    def test_removes_record(self, store) -> None:
        store.record_interaction("Tech")
        assert store.remove_interest("Tech") is True
        assert "Tech" not in store
        assert store.get_decayed_interests() == {}

    def test_missing_tag_is_idempotent(self, store) -> None:
        store.record_interaction("Tech")
        assert store.remove_interest("Other") is False
        assert store.remove_interest("Other") is False
        assert "Tech" in store


# ---------------------------------------------------------------------------
# Decay
# ---------------------------------------------------------------------------


class TestDecay:
    def test_half_life(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(14 * DAY_MS)
        assert store.get_decayed_interests()["Tech"] == pytest.approx(2.5)

    def test_two_half_lives(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(28 * DAY_MS)
        assert store.get_decayed_interests()["Tech"] == pytest.approx(1.25)

    def test_never_exceeds_stored_score(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(-DAY_MS)  # clock moved backwards
        assert store.get_decayed_interests()["Tech"] <= store.get_interest("Tech").score

    def test_prunes_negligible_scores_without_deleting(self, store, clock) -> None:
        store.record_interaction("Tech")
        # 5 * 2**-6 = 0.078 < 0.1
        clock.advance(6 * HALF_LIFE_MS)
        assert "Tech" not in store.get_decayed_interests()
        assert "Tech" in store

    def test_score_exactly_at_threshold_is_pruned(self, clock) -> None:
        storage = MemoryBlobStore()
        storage.set(INTERESTS_STORAGE_KEY, {"Tech": {"score": PRUNE_THRESHOLD, "lastInteraction": TS_MS}})
        store = _make_store(clock, storage)
        assert store.get_decayed_interests() == {}

    def test_read_does_not_mutate(self, store, clock) -> None:
        store.record_interaction("Tech")
        clock.advance(14 * DAY_MS)
        store.get_decayed_interests()
        assert store.get_interest("Tech").score == pytest.approx(RECENCY_BOOST)

    def test_ranked_interests_highest_first(self, store, clock) -> None:
        store.record_interaction("Old")
        clock.advance(7 * DAY_MS)
        store.record_interaction("New")
        ranked = store.get_ranked_interests()
        assert [tag for tag, _ in ranked] == ["New", "Old"]

    def test_empty_store(self, store) -> None:
        assert store.get_decayed_interests() == {}
        assert store.get_ranked_interests() == []


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_each_mutation_persists(self, store, storage) -> None:
        store.record_interaction("Tech")
        assert storage.get(INTERESTS_STORAGE_KEY) == {
            "Tech": {"score": RECENCY_BOOST, "lastInteraction": TS_MS}
        }
        store.adjust_interest("Tech", 1)
        assert storage.get(INTERESTS_STORAGE_KEY)["Tech"]["score"] == RECENCY_BOOST + MANUAL_ADJUSTMENT
        store.remove_interest("Tech")
        assert storage.get(INTERESTS_STORAGE_KEY) == {}

    def test_noop_does_not_persist(self, clock) -> None:
        storage = MagicMock()
        storage.get.return_value = None
        store = _make_store(clock, storage)
        store.adjust_interest("Missing", 1)
        store.remove_interest("Missing")
        storage.set.assert_not_called()

    def test_reload_round_trip(self, store, storage, clock) -> None:
        store.record_interaction("Tech")
        store.record_interaction("Tech")
        reloaded = _make_store(clock, storage)
        assert reloaded.get_interest("Tech") == Interest(score=10.0, last_interaction=TS_MS)

    def test_missing_blob_gives_empty_store(self, store) -> None:
        assert len(store) == 0

    @pytest.mark.parametrize("payload", [
        ["not", "a", "mapping"],
        {"Tech": "five"},
        {"Tech": {"score": -1, "lastInteraction": 0}},
        {"Tech": {"score": 5}},
    ])
    def test_malformed_data_falls_back_to_defaults(self, clock, payload) -> None:
        storage = MemoryBlobStore()
        storage.set(INTERESTS_STORAGE_KEY, payload)
        store = _make_store(clock, storage)
        assert len(store) == 0

    def test_load_does_not_raise_on_storage_error(self, clock) -> None:
        storage = MagicMock()
        storage.get.side_effect = StorageError("disk gone")
        store = _make_store(clock, storage)  # should not raise
        assert len(store) == 0

    def test_save_error_is_swallowed_and_memory_updated(self, clock) -> None:
        storage = MagicMock()
        storage.get.return_value = None
        storage.set.side_effect = StorageError("quota exceeded")
        store = _make_store(clock, storage)
        assert store.record_interaction("Tech") is True
        assert store.adjust_interest("Tech", 1) is True
        assert store.get_interest("Tech").score == pytest.approx(RECENCY_BOOST + MANUAL_ADJUSTMENT)
        assert store.remove_interest("Tech") is True
        assert "Tech" not in store

    def test_save_reports_failure(self, clock) -> None:
        storage = MagicMock()
        storage.get.return_value = None
        storage.set.side_effect = StorageError("quota exceeded")
        store = _make_store(clock, storage)
        assert store.save() is False
