"""Tests for the server wiring in main.py."""

from __future__ import annotations

import grpc
import pytest

from helpers import TS_MS
from main import build_server, load_stores
from newsbrief.interests import INTERESTS_STORAGE_KEY
from newsbrief.service import NewsBriefClient
from newsbrief.storage import MemoryBlobStore


RESULT = {
    "title": "Council passes budget",
    "summary": "The council approved the budget.",
    "tags": ["Politics"],
    "keyPoints": ["Budget approved"],
    "sentiment": "Neutral",
}


class TestLoadStores:
    def test_loads_persisted_interests(self, storage) -> None:
        storage.set(INTERESTS_STORAGE_KEY, {"Tech": {"score": 5.0, "lastInteraction": TS_MS}})
        interest_store, history = load_stores(storage)
        assert "Tech" in interest_store
        assert len(history) == 0

    def test_empty_storage(self) -> None:
        interest_store, history = load_stores(MemoryBlobStore())
        assert len(interest_store) == 0
        assert len(history) == 0


class TestBuildServer:
    def test_serves_calls_end_to_end(self, storage) -> None:
        interest_store, history = load_stores(storage)
        server, port = build_server(interest_store, history, address="localhost:0")
        assert port > 0
        server.start()
        try:
            with grpc.insecure_channel(f"localhost:{port}") as channel:
                client = NewsBriefClient(channel)
                client.call("RecordInteraction", {"tags": ["Politics"]})
                added = client.call("AddSummaries", {"topicId": "t1", "sourceCount": 1, "results": [RESULT]})
                assert len(added["summaries"]) == 1
                items = client.call("GetRecommendations")["items"]
                assert [i["summary"]["title"] for i in items] == [RESULT["title"]]
        finally:
            server.stop(grace=None)
        # Both stores persisted through the shared blob store.
        assert "Politics" in storage.get(INTERESTS_STORAGE_KEY)
        assert len(load_stores(storage)[1]) == 1

    def test_unknown_method_is_unimplemented(self, storage) -> None:
        server, port = build_server(*load_stores(storage), address="localhost:0")
        server.start()
        try:
            with grpc.insecure_channel(f"localhost:{port}") as channel:
                call = channel.unary_unary("/newsbrief.NewsBriefService/AddSummary")
                with pytest.raises(grpc.RpcError) as excinfo:
                    call(b"", timeout=5)
                assert excinfo.value.code() == grpc.StatusCode.UNIMPLEMENTED
        finally:
            server.stop(grace=None)
