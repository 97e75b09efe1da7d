"""Prometheus metrics for the Gomoku service.

Counters and histograms live here so that the session and the HTTP layer
record telemetry without managing their own metric instances.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


ORACLE_REQUESTS: Final[Counter] = Counter(
    "gomoku_oracle_requests_total",
    (
        "Total number of oracle round-trips, labeled by model and outcome "
        "(success, fallback, error, discarded)."
    ),
    labelnames=("model", "outcome"),
)

ORACLE_LATENCY: Final[Histogram] = Histogram(
    "gomoku_oracle_latency_seconds",
    "Latency of oracle round-trips in seconds, labeled by model.",
    labelnames=("model",),
    # Thinking models routinely take tens of seconds.
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0),
)

MOVES_REJECTED: Final[Counter] = Counter(
    "gomoku_moves_rejected_total",
    "Human actions rejected as no-ops, labeled by reason code.",
    labelnames=("reason",),
)

GAME_OUTCOMES: Final[Counter] = Counter(
    "gomoku_game_outcomes_total",
    "Finished games, labeled by mode and outcome (black, white, draw).",
    labelnames=("mode", "outcome"),
)


def observe_oracle_result(model: str, outcome: str, duration_seconds: float) -> None:
    """Record one oracle round-trip."""
    ORACLE_REQUESTS.labels(model, outcome).inc()
    ORACLE_LATENCY.labels(model).observe(duration_seconds)
