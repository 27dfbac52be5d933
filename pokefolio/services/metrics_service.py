"""Business metrics service for OpenTelemetry instrumentation.

- Counters for portfolio mutations and catalog lookups
- Histograms for mutation and dashboard durations
- Consistent tagging with operation, status, language
"""
import time
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Optional

from opentelemetry import metrics

# Meter for business metrics
_meter = metrics.get_meter("Pokefolio.API.Business", "1.0.0")

# Counters
_portfolio_mutations_total = _meter.create_counter(
    name="portfolio_mutations_total",
    description="Total number of portfolio mutation operations (add/update/delete/clear)",
    unit="1"
)

_portfolio_add_outcomes_total = _meter.create_counter(
    name="portfolio_add_outcomes_total",
    description="Additions by outcome (created, merged, converted, appended)",
    unit="1"
)

_catalog_requests_total = _meter.create_counter(
    name="catalog_requests_total",
    description="Total number of card catalog lookups",
    unit="1"
)

_dashboard_requests_total = _meter.create_counter(
    name="dashboard_requests_total",
    description="Total number of dashboard statistics requests",
    unit="1"
)

# Histograms for duration tracking
_portfolio_mutation_duration = _meter.create_histogram(
    name="portfolio_mutation_duration_seconds",
    description="Duration of portfolio mutation operations in seconds",
    unit="s"
)

_dashboard_request_duration = _meter.create_histogram(
    name="dashboard_request_duration_seconds",
    description="Duration of dashboard statistics computations in seconds",
    unit="s"
)


class MetricsService:
    """Service for recording business metrics."""

    def increment_portfolio_mutations(
        self,
        operation: str,
        status: str = "success"
    ) -> None:
        """Increment portfolio mutation counter."""
        _portfolio_mutations_total.add(1, {"operation": operation, "status": status})

    def record_portfolio_mutation_duration(
        self,
        duration_seconds: float,
        operation: str,
        status: str = "success"
    ) -> None:
        """Record portfolio mutation duration."""
        _portfolio_mutation_duration.record(
            duration_seconds,
            {"operation": operation, "status": status}
        )

    def increment_add_outcome(self, outcome: str) -> None:
        """Count how an addition was applied."""
        _portfolio_add_outcomes_total.add(1, {"outcome": outcome})

    def increment_catalog_requests(
        self,
        operation: str,
        language: Optional[str] = None,
        source: str = "catalog"
    ) -> None:
        """Increment catalog lookup counter; ``source`` is cache, catalog or fallback."""
        attributes = {"operation": operation, "source": source}
        if language:
            attributes["language"] = language
        _catalog_requests_total.add(1, attributes)

    def record_dashboard_request_duration(
        self,
        duration_seconds: float,
        report: str,
        status: str = "success"
    ) -> None:
        """Record dashboard computation duration."""
        _dashboard_request_duration.record(
            duration_seconds,
            {"report": report, "status": status}
        )

    @contextmanager
    def track_portfolio_mutation(self, operation: str) -> Generator[None, None, None]:
        """Context manager for tracking portfolio mutation metrics."""
        start_time = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            duration = time.perf_counter() - start_time
            self.increment_portfolio_mutations(operation, status)
            self.record_portfolio_mutation_duration(duration, operation, status)

    @contextmanager
    def track_dashboard_request(self, report: str) -> Generator[None, None, None]:
        """Context manager for tracking dashboard request metrics."""
        _dashboard_requests_total.add(1, {"report": report})
        start_time = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            duration = time.perf_counter() - start_time
            self.record_dashboard_request_duration(duration, report, status)


@lru_cache()
def get_metrics_service() -> MetricsService:
    """Get singleton metrics service instance."""
    return MetricsService()
