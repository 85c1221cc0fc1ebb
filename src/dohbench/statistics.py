"""
Statistical aggregation for DoH benchmark samples.

Accumulates the samples of one provider and derives:
- Basic stats: min, max, average, median
- Tail and spread: p95, standard deviation, jitter
- Reliability: success rate, failed domains

Statistics are recomputed on every access so they can never go stale
after more samples are recorded.
"""

from collections import Counter

import numpy as np

from .models import DEFAULT_TIMEOUT_MS, ProviderStats, QueryStatus, Sample


class ResultAggregator:
    """
    Accumulates samples for one provider.

    Created when the provider's test starts and frozen once it
    completes. When no query succeeded, latency statistics report the
    timeout ceiling so all-failed providers rank last.
    """

    def __init__(self, provider_name: str, timeout_ms: float = DEFAULT_TIMEOUT_MS):
        self.provider_name = provider_name
        self.timeout_ms = float(timeout_ms)
        self.successes: list[float] = []
        self.failed_domains: list[str] = []
        self.total_queries = 0
        self.failure_counts: Counter[QueryStatus] = Counter()
        self._frozen = False

    def __repr__(self) -> str:
        return (
            f"ResultAggregator({self.provider_name!r}, "
            f"total={self.total_queries}, ok={len(self.successes)})"
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Stop accepting samples."""
        self._frozen = True

    def record(self, sample: Sample) -> None:
        """
        Record the outcome of one attempt.

        Raises:
            RuntimeError: if the aggregator has been frozen
        """
        if self._frozen:
            raise RuntimeError(f"Results for {self.provider_name} are frozen")

        if sample.is_success:
            self.successes.append(sample.elapsed_ms)
        else:
            self.failed_domains.append(sample.domain)
            self.failure_counts[sample.status] += 1
        self.total_queries += 1

    @property
    def success_rate(self) -> float:
        """Percentage of successful queries (0 when nothing was attempted)."""
        if self.total_queries == 0:
            return 0.0
        return len(self.successes) / self.total_queries * 100

    @property
    def avg(self) -> float:
        if not self.successes:
            return self.timeout_ms
        return float(np.mean(self.successes))

    @property
    def median(self) -> float:
        """Middle element of the sorted successes (lower one for even counts)."""
        if not self.successes:
            return self.timeout_ms
        ordered = sorted(self.successes)
        return ordered[len(ordered) // 2]

    @property
    def min(self) -> float:
        if not self.successes:
            return self.timeout_ms
        return min(self.successes)

    @property
    def max(self) -> float:
        if not self.successes:
            return self.timeout_ms
        return max(self.successes)

    @property
    def p95(self) -> float:
        if not self.successes:
            return self.timeout_ms
        return float(np.percentile(self.successes, 95))

    @property
    def stddev(self) -> float:
        if not self.successes:
            return 0.0
        return float(np.std(self.successes))

    @property
    def jitter(self) -> float:
        """Average difference between consecutive successful queries."""
        if len(self.successes) < 2:
            return 0.0
        return float(np.mean(np.abs(np.diff(self.successes))))

    def summary(self) -> ProviderStats:
        """Snapshot the current statistics."""
        return ProviderStats(
            provider_name=self.provider_name,
            total_queries=self.total_queries,
            successful_queries=len(self.successes),
            failed_queries=len(self.failed_domains),
            success_rate=self.success_rate,
            median_latency=self.median,
            avg_latency=self.avg,
            min_latency=self.min,
            max_latency=self.max,
            p95_latency=self.p95,
            stddev_latency=self.stddev,
            jitter_ms=self.jitter,
            failed_domains=tuple(self.failed_domains),
        )
