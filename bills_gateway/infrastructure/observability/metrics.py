"""Prometheus metrics for Bills view aggregation and source adapter health"""

from typing import Iterable

from prometheus_client import Counter, Histogram

# Aggregation metrics
aggregation_counter = Counter(
    "bills_aggregation_total",
    "Total Bills view aggregations",
    ["outcome"],  # complete | partial
)

records_returned_histogram = Histogram(
    "bills_records_returned",
    "Obligation records returned per Bills view",
    buckets=[0, 5, 10, 25, 50, 100, 250, 500],
)

aggregation_latency_histogram = Histogram(
    "bills_aggregation_latency_seconds",
    "Time spent fanning out to source adapters and merging",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Source adapter metrics
adapter_failure_counter = Counter(
    "bills_adapter_failures_total",
    "Source adapter fetches that failed and were left out of the view",
    ["source"],  # recurring_transaction | liability | scheduled_payment | goal_contribution
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_aggregation(partial: bool, record_count: int, failed_sources: Iterable[str]) -> None:
    """Record outcome, size and per-source failures of one aggregation"""
    aggregation_counter.labels(outcome="partial" if partial else "complete").inc()
    records_returned_histogram.observe(record_count)
    for source in failed_sources:
        adapter_failure_counter.labels(source=source).inc()
