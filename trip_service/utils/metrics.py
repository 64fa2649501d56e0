"""Prometheus metrics for the generation pipeline."""

from prometheus_client import Counter, Histogram

generation_latency_ms = Histogram(
    "trip_generation_latency_ms",
    "End-to-end trip generation latency in milliseconds",
    ["outcome"],
    buckets=[500, 1000, 2000, 5000, 10000, 20000, 40000, 80000, 160000],
)

generation_total = Counter(
    "trip_generation_total",
    "Trip generation runs by outcome",
    ["outcome"],
)

geocode_requests_total = Counter(
    "geocode_requests_total",
    "Geocoding lookups by outcome",
    ["outcome"],
)

geocode_wait_ms = Histogram(
    "geocode_rate_gate_wait_ms",
    "Time spent waiting on the geocoding rate gate in milliseconds",
    buckets=[0, 50, 100, 200, 400, 800, 1600, 3200],
)


class PrometheusPipelineMetrics:
    """Prometheus-based pipeline metrics implementation."""

    def record_generation(self, outcome: str, latency_ms: float) -> None:
        """Record one generation run."""
        generation_total.labels(outcome=outcome).inc()
        generation_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def inc_geocode(self, outcome: str) -> None:
        """Increment geocode outcome counter."""
        geocode_requests_total.labels(outcome=outcome).inc()

    def observe_gate_wait(self, wait_ms: float) -> None:
        """Record rate gate wait."""
        geocode_wait_ms.observe(wait_ms)
