"""Metrics collection for the retrieval strategies.

Provides a thin convenience wrapper around ``prometheus_client`` so the
strategy facade and the embedding client record consistent metrics.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- Each collector owns its registry (inject one to share or to test)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Metrics for strategy calls and embedding requests.

    Parameters
    - service_name: Logical name of the process using the strategies
    - registry: Optional custom ``CollectorRegistry``
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.search_requests = Counter(
            'search_strategy_requests_total',
            'Total strategy calls that completed successfully',
            ['strategy'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'search_strategy_duration_seconds',
            'Strategy call duration',
            ['strategy'],
            registry=self.registry
        )

        self.search_failures = Counter(
            'search_strategy_failures_total',
            'Total strategy calls that failed, by failing stage',
            ['strategy', 'stage'],
            registry=self.registry
        )

        self.embedding_requests = Counter(
            'search_embedding_requests_total',
            'Total embedding service requests',
            ['model_name', 'status'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'search_embedding_duration_seconds',
            'Embedding service request duration',
            ['model_name'],
            registry=self.registry
        )

    def record_search(self, strategy: str, duration: float) -> None:
        """Record a successful strategy call.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.search_requests.labels(strategy=strategy).inc()
        self.search_duration.labels(strategy=strategy).observe(duration)

    def record_search_failure(self, strategy: str, stage: str) -> None:
        """Record a failed strategy call and the stage that failed."""
        self.search_failures.labels(strategy=strategy, stage=stage).inc()

    def record_embedding(self, model_name: str, status: str, duration: float) -> None:
        """Record an embedding service request (``status`` is ``ok`` or an error reason)."""
        self.embedding_requests.labels(model_name=model_name, status=status).inc()
        self.embedding_duration.labels(model_name=model_name).observe(duration)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')
