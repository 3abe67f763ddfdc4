"""Entry point: wires all components and starts the gRPC server."""

from __future__ import annotations

import logging
import signal
import sys
from concurrent import futures

import grpc

import config
from newsbrief.engine import RankingEngine
from newsbrief.history import SummaryHistory
from newsbrief.interests import InterestStore
from newsbrief.narrative import NarrativeComparison
from newsbrief.service import NewsBriefServicer, build_handler
from newsbrief.storage import BlobStore, JsonFileBlobStore

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_server(
    interest_store: InterestStore,
    history: SummaryHistory,
    address: str | None = None,
) -> tuple[grpc.Server, int]:
    """Construct and configure the gRPC server with all dependencies wired.

    Args:
        interest_store: The loaded :class:`~newsbrief.interests.InterestStore`.
        history: The loaded :class:`~newsbrief.history.SummaryHistory`.
        address: ``host:port`` to bind; defaults to the configured address.

    Returns:
        A configured but not-yet-started :class:`grpc.Server` and the port
        it is bound to.
    """
    servicer = NewsBriefServicer(
        interest_store=interest_store,
        history=history,
        engine=RankingEngine(interest_store),
        comparison=NarrativeComparison(history),
        warn_threshold_ms=config.RANKING_WARN_THRESHOLD_MS,
    )

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=config.GRPC_MAX_WORKERS)
    )
    server.add_generic_rpc_handlers((build_handler(servicer),))
    port = server.add_insecure_port(
        address or f"{config.GRPC_SERVER_HOST}:{config.GRPC_SERVER_PORT}"
    )
    return server, port


def load_stores(storage: BlobStore) -> tuple[InterestStore, SummaryHistory]:
    """Create both stores over *storage* and load their persisted state."""
    interest_store = InterestStore(storage)
    interest_store.load()
    history = SummaryHistory(storage)
    history.load()
    return interest_store, history


def main() -> None:
    """Initialise all components and start the gRPC server.

    Startup sequence:
    1. Open the JSON blob store in ``DATA_DIR``.
    2. Load interests and summary history.
    3. Build the gRPC server.
    4. Register ``SIGTERM``/``SIGINT`` shutdown handlers.
    5. Start serving.
    """
    logger.info("Opening data directory %s", config.DATA_DIR)
    storage = JsonFileBlobStore(config.DATA_DIR)
    interest_store, history = load_stores(storage)

    server, port = build_server(interest_store, history)

    # Every mutation is already persisted, so shutdown only stops serving.
    def handle_shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down.", sig_name)
        server.stop(grace=5)
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    server.start()
    logger.info(
        "newsbrief gRPC server listening on %s:%d",
        config.GRPC_SERVER_HOST,
        port,
    )
    server.wait_for_termination()


if __name__ == "__main__":
    main()
