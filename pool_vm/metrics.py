"""
pool_vm.metrics
---------------

Prometheus metrics for the pool runtime.

Tracks:
- Contract calls per function and outcome (ok / revert / error).
- Amounts moved out of contracts by treasury transfers, counted once the
  outermost call commits.
- Attestation syscall outcomes (ok / refused / error).
- Call latency.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram, start_http_server

log = logging.getLogger(__name__)

# --- Namespacing --------------------------------------------------------------------

_NS = "reppool"
_SUB = "runtime"


def _m(name: str) -> str:
    return f"{_NS}_{_SUB}_{name}"


# --- Metric declarations ------------------------------------------------------------

CALLS_TOTAL = Counter(
    _m("calls_total"),
    "Contract calls by function and outcome.",
    labelnames=("function", "outcome"),  # outcome = ok|revert|error
)

REVERTS_TOTAL = Counter(
    _m("reverts_total"),
    "Reverted calls by error code.",
    labelnames=("code",),
)

TRANSFERRED_AMOUNT_TOTAL = Counter(
    _m("transferred_amount_total"),
    "Total amount moved out of contracts by committed treasury transfers.",
)

ATTESTATIONS_TOTAL = Counter(
    _m("attestations_total"),
    "Attestation syscall outcomes.",
    labelnames=("outcome",),  # outcome = ok|refused|error
)

_LAT_BUCKETS_FAST = (0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

CALL_LATENCY_SECONDS = Histogram(
    _m("call_latency_seconds"),
    "Wall time spent executing one contract call (including nested calls).",
    buckets=_LAT_BUCKETS_FAST,
    labelnames=("function",),
)


# --- Helpers ------------------------------------------------------------------------


def observe_call(function: str, outcome: str, code: str = "") -> None:
    CALLS_TOTAL.labels(function=function, outcome=outcome).inc()
    if outcome == "revert" and code:
        REVERTS_TOTAL.labels(code=code).inc()


def observe_transfer(amount: int) -> None:
    TRANSFERRED_AMOUNT_TOTAL.inc(amount)


def observe_attestation(outcome: str) -> None:
    ATTESTATIONS_TOTAL.labels(outcome=outcome).inc()


@contextmanager
def time_call(function: str) -> Iterator[None]:
    t0 = time.perf_counter()
    try:
        yield
    finally:
        CALL_LATENCY_SECONDS.labels(function=function).observe(time.perf_counter() - t0)


def start_metrics_server(port: int, addr: str = "0.0.0.0") -> None:
    """Expose /metrics on `addr:port`."""
    start_http_server(port, addr=addr)
    log.info("metrics server listening on %s:%d", addr, port)


__all__ = [
    "CALLS_TOTAL",
    "REVERTS_TOTAL",
    "TRANSFERRED_AMOUNT_TOTAL",
    "ATTESTATIONS_TOTAL",
    "CALL_LATENCY_SECONDS",
    "observe_call",
    "observe_transfer",
    "observe_attestation",
    "time_call",
    "start_metrics_server",
]
