"""Prometheus counters for catalog sync; exposed through the /metrics mount in main."""

from prometheus_client import Counter

SYNC_PAGES = Counter(
    "exercise_sync_pages_total",
    "Catalog pages fetched and applied to the local store",
)
SYNC_UPSERTS = Counter(
    "exercise_sync_upserts_total",
    "Catalog records written to the local store",
    ["outcome"],  # inserted | updated | skipped_custom
)
SYNC_FETCH_FAILURES = Counter(
    "exercise_sync_fetch_failures_total",
    "Failed catalog page fetch attempts",
    ["reason"],  # network | http | decode
)
SYNC_SESSIONS = Counter(
    "exercise_sync_sessions_total",
    "Finished sync sessions",
    ["result"],  # success | error | cancelled
)
