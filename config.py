"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
"""

import os

# ---------------------------------------------------------------------------
# gRPC server (the surrounding application connects to us on this address)
# ---------------------------------------------------------------------------

GRPC_SERVER_HOST: str = os.getenv("GRPC_SERVER_HOST", "0.0.0.0")
GRPC_SERVER_PORT: int = int(os.getenv("GRPC_SERVER_PORT", "50061"))

# Thread pool size for the gRPC server.  The stores assume calls arrive one
# at a time, so anything above 1 requires external serialisation.
GRPC_MAX_WORKERS: int = int(os.getenv("GRPC_MAX_WORKERS", "1"))

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

# Directory holding one JSON blob per storage key.
DATA_DIR: str = os.getenv("DATA_DIR", "data")

# ---------------------------------------------------------------------------
# Logging / diagnostics
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Ranking calls slower than this are logged at WARNING.
RANKING_WARN_THRESHOLD_MS: float = float(
    os.getenv("RANKING_WARN_THRESHOLD_MS", "50")
)
