"""gRPC servicer: the entry point for all inbound calls from the application.

Requests and responses are ``google.protobuf.Struct`` messages, so the
service is registered through a generic handler (see :func:`build_handler`)
rather than generated stubs.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import grpc
from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct

from newsbrief.clock import Clock, wall_clock_ms
from newsbrief.diff import coalesce
from newsbrief.engine import RankingEngine
from newsbrief.history import SummaryHistory
from newsbrief.interests import InterestStore
from newsbrief.models import DiffSegment, NarrativeRevision, ScoredItem, Summary
from newsbrief.narrative import NarrativeComparison
from newsbrief.summaries import build_summary, parse_summarization_payload

logger = logging.getLogger(__name__)

SERVICE_NAME = "newsbrief.NewsBriefService"

METHODS = (
    "RecordInteraction",
    "AdjustInterest",
    "RemoveInterest",
    "GetInterests",
    "AddSummaries",
    "GetFeed",
    "GetRecommendations",
    "ListTopics",
    "CompareNarrative",
)

_RANKING_WARN_THRESHOLD_MS = 50.0


class NewsBriefServicer:
    """Implements the ``newsbrief.NewsBriefService`` gRPC service.

    Besides delegating to the stores, the servicer owns the session feed:
    the summaries added since start-up, newest first.  Feed and "For You"
    requests rank that list.

    Args:
        interest_store: The :class:`~newsbrief.interests.InterestStore`.
        history: The :class:`~newsbrief.history.SummaryHistory`.
        engine: The :class:`~newsbrief.engine.RankingEngine`.
        comparison: The :class:`~newsbrief.narrative.NarrativeComparison`.
        clock: Time source used to stamp new summaries.
        warn_threshold_ms: Ranking calls slower than this log a warning.
    """

    def __init__(
        self,
        interest_store: InterestStore,
        history: SummaryHistory,
        engine: RankingEngine,
        comparison: NarrativeComparison,
        clock: Clock = wall_clock_ms,
        warn_threshold_ms: float | None = None,
    ) -> None:
        self._store = interest_store
        self._history = history
        self._engine = engine
        self._comparison = comparison
        self._clock = clock
        self._warn_threshold_ms = (
            _RANKING_WARN_THRESHOLD_MS if warn_threshold_ms is None else warn_threshold_ms
        )
        self._latest: list[Summary] = []

    # ------------------------------------------------------------------
    # Interest events
    # ------------------------------------------------------------------

    def RecordInteraction(self, request: Struct, context: Any) -> Struct:
        """Record an interaction with every tag of a summary.

        Request: ``{"tags": [str]}``.  Response: ``{"recorded": int}``.
        """
        try:
            tags = _require_str_list(_args(request), "tags")
            recorded = self._store.record_interactions(tags)
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except Exception:
            logger.exception("Error recording interaction for request %r", _args(request))
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error recording interaction.")
        return _to_struct({"recorded": recorded})

    def AdjustInterest(self, request: Struct, context: Any) -> Struct:
        """Nudge a tag's interest up or down.

        Request: ``{"tag": str, "direction": 1 | -1}``.
        Response: ``{"applied": bool}``; unknown tags are not an error.
        """
        try:
            args = _args(request)
            tag = _require_str(args, "tag")
            direction = _require_number(args, "direction")
            # Fractional directions are not valid steps; the store ignores 0.
            step = int(direction) if float(direction).is_integer() else 0
            applied = self._store.adjust_interest(tag, step)
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except Exception:
            logger.exception("Error adjusting interest for request %r", _args(request))
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error adjusting interest.")
        return _to_struct({"applied": applied})

    def RemoveInterest(self, request: Struct, context: Any) -> Struct:
        """Stop tracking a tag. Request: ``{"tag": str}``."""
        try:
            tag = _require_str(_args(request), "tag")
            applied = self._store.remove_interest(tag)
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except Exception:
            logger.exception("Error removing interest for request %r", _args(request))
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error removing interest.")
        return _to_struct({"applied": applied})

    def GetInterests(self, request: Struct, context: Any) -> Struct:
        """Return ``{"interests": [{"tag", "score"}]}``, highest score first."""
        try:
            ranked = self._store.get_ranked_interests()
        except Exception:
            logger.exception("Error reading interests")
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error reading interests.")
        return _to_struct(
            {"interests": [{"tag": tag, "score": score} for tag, score in ranked]}
        )

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def AddSummaries(self, request: Struct, context: Any) -> Struct:
        """Store AI summarisation results for one topic as new summaries.

        Request: ``{"topicId": str, "sourceCount": int, "results": [{...}]}``
        where each result follows :data:`~newsbrief.summaries.SUMMARY_SCHEMA`.
        Response: ``{"summaries": [{...}]}`` in request order.  One invalid
        result rejects the whole request and nothing is stored.
        """
        try:
            args = _args(request)
            topic_id = _require_str(args, "topicId")
            source_count = int(_require_number(args, "sourceCount"))
            payloads = args.get("results")
            if not isinstance(payloads, list):
                raise ValueError("results must be a list")
            results = [parse_summarization_payload(p) for p in payloads]
            taken = {s.id for s in self._history.get_all()}
            summaries = []
            for result in results:
                summary = build_summary(result, topic_id, source_count, self._clock, taken)
                taken.add(summary.id)
                summaries.append(summary)
            self._history.add_summaries(summaries)
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except Exception:
            logger.exception("Error adding summaries for request %r", _args(request))
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error adding summaries.")
        self._latest[:0] = reversed(summaries)
        logger.info("Added %d summaries for topic %r", len(summaries), topic_id)
        return _to_struct({"summaries": [s.to_dict() for s in summaries]})

    def ListTopics(self, request: Struct, context: Any) -> Struct:
        """Return ``{"topics": [{"topicId", "summaryCount", "latestTitle"}]}``."""
        try:
            topics = []
            for topic_id in self._history.topic_ids():
                summaries = self._history.get_by_topic(topic_id)
                topics.append({
                    "topicId": topic_id,
                    "summaryCount": len(summaries),
                    "latestTitle": summaries[0].title,
                })
        except Exception:
            logger.exception("Error listing topics")
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error listing topics.")
        return _to_struct({"topics": topics})

    def CompareNarrative(self, request: Struct, context: Any) -> Struct:
        """Return the narrative diff for a topic.

        Request: ``{"topicId": str}``.
        Response: ``{"revisions": [...]}``, oldest first; empty for an
        unknown topic.
        """
        try:
            topic_id = _require_str(_args(request), "topicId")
            revisions = self._comparison.compare(topic_id)
        except ValueError as exc:
            return _abort(context, grpc.StatusCode.INVALID_ARGUMENT, str(exc))
        except Exception:
            logger.exception("Error comparing narrative for request %r", _args(request))
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error comparing narrative.")
        return _to_struct({"revisions": [_revision_to_dict(r) for r in revisions]})

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def GetFeed(self, request: Struct, context: Any) -> Struct:
        """Return every session summary with its score and recommended flag."""
        return self._rank("GetFeed", self._engine.feed, context)

    def GetRecommendations(self, request: Struct, context: Any) -> Struct:
        """Return the session summaries that clear the "For You" threshold."""
        return self._rank("GetRecommendations", self._engine.recommend, context)

    def _rank(self, method: str, rank: Any, context: Any) -> Struct:
        start_ms = time.monotonic() * 1000
        try:
            scored = rank(list(self._latest))
        except Exception:
            logger.exception("Unexpected error in %s", method)
            return _abort(context, grpc.StatusCode.INTERNAL, "Internal error ranking summaries.")
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > self._warn_threshold_ms:
                logger.warning("%s took %.1fms", method, elapsed_ms)
            else:
                logger.debug("%s took %.1fms", method, elapsed_ms)
        return _to_struct({"items": [_scored_to_dict(s) for s in scored]})


def build_handler(servicer: NewsBriefServicer) -> grpc.GenericRpcHandler:
    """Return a generic handler routing every method in :data:`METHODS`."""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=Struct.FromString,
            response_serializer=Struct.SerializeToString,
        )
        for name in METHODS
    }
    return grpc.method_handlers_generic_handler(SERVICE_NAME, handlers)


class NewsBriefClient:
    """Minimal client for :data:`SERVICE_NAME` over an existing channel.

    Example::

        client = NewsBriefClient(grpc.insecure_channel("localhost:50061"))
        client.call("RecordInteraction", {"tags": ["Technology"]})
    """

    def __init__(self, channel: grpc.Channel) -> None:
        self._methods = {
            name: channel.unary_unary(
                f"/{SERVICE_NAME}/{name}",
                request_serializer=Struct.SerializeToString,
                response_deserializer=Struct.FromString,
            )
            for name in METHODS
        }

    def call(self, method: str, payload: dict[str, Any] | None = None, timeout: float = 5.0) -> dict[str, Any]:
        """Invoke *method* with *payload* and return the decoded response.

        Raises:
            KeyError: If *method* is not part of the service.
            grpc.RpcError: If the call fails.
        """
        response = self._methods[method](_to_struct(payload or {}), timeout=timeout)
        return json_format.MessageToDict(response)


# ---------------------------------------------------------------------------
# Message helpers
# ---------------------------------------------------------------------------


def _to_struct(payload: dict[str, Any]) -> Struct:
    return json_format.ParseDict(payload, Struct())


def _args(request: Struct) -> dict[str, Any]:
    return json_format.MessageToDict(request)


def _abort(context: Any, code: grpc.StatusCode, details: str) -> Struct:
    context.set_code(code)
    context.set_details(details)
    return Struct()


def _require_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _require_str_list(args: dict[str, Any], key: str) -> list[str]:
    value = args.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return value


def _require_number(args: dict[str, Any], key: str) -> float:
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return value


def _segments_to_list(segments: list[DiffSegment]) -> list[dict[str, str]]:
    return [segment.to_dict() for segment in coalesce(segments)]


def _scored_to_dict(scored: ScoredItem) -> dict[str, Any]:
    return {
        "summary": scored.item.to_dict(),
        "score": scored.score,
        "isRecommended": scored.is_recommended,
    }


def _revision_to_dict(revision: NarrativeRevision) -> dict[str, Any]:
    return {
        "summary": revision.summary.to_dict(),
        "isBaseline": revision.is_baseline,
        "summaryDiff": _segments_to_list(revision.summary_diff),
        "keyPointDiffs": [_segments_to_list(d) for d in revision.key_point_diffs],
    }
