"""Metrics collection for the access service.

A thin wrapper around ``prometheus_client`` so HTTP traffic, store calls and
validation outcomes are recorded with consistent label sets.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- Each collector owns its registry; the app builds one at startup
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name of the owning service
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.store_operations = Counter(
            'embedding_store_operations_total',
            'Total embedding store operations',
            ['operation', 'status'],
            registry=self.registry
        )

        self.validations = Counter(
            'embedding_validations_total',
            'Nearest-match validations partitioned by outcome',
            ['outcome'],
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, endpoint=endpoint, status=status).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_store_operation(self, operation: str, status: str) -> None:
        """Record an embedding store call and its outcome."""
        self.store_operations.labels(operation=operation, status=status).inc()

    def record_validation(self, outcome: str) -> None:
        """Record a validation outcome: ``match`` or ``no_match``."""
        self.validations.labels(outcome=outcome).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')
