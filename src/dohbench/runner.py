"""
Benchmark runner for DoH providers.

Orchestrates the test matrix (providers x rounds x domains):
- One provider at a time, one query at a time
- A discarded warm-up query per provider to prime the connection
- Cooldown pauses between queries and longer pauses between rounds
- Failed queries are recorded and never abort the run
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional, Sequence

from .client import DohClient
from .models import (
    DEFAULT_COOLDOWN_MS,
    DEFAULT_QUERY_TYPE,
    DEFAULT_TIMEOUT_MS,
    WARMUP_DOMAIN,
    BenchmarkCancelled,
    BenchmarkConfig,
    BenchmarkResult,
    Provider,
    QueryStatus,
    Sample,
)
from .statistics import ResultAggregator

logger = logging.getLogger(__name__)


# Type for progress callback: (message, current query, total queries)
ProgressCallback = Callable[[str, int, int], None]

# Called with each provider's frozen results as soon as its test ends
ProviderCallback = Callable[[ResultAggregator], None]

# Sleep function taking seconds, like time.sleep
Sleeper = Callable[[float], None]


class BenchmarkRunner:
    """
    Runs the benchmark as a single sequential task.

    Queries are never overlapped, within or across providers, so that
    concurrent connections cannot skew the measured latencies.
    """

    def __init__(
        self,
        client: DohClient,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        cooldown_ms: float = DEFAULT_COOLDOWN_MS,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Optional[Sleeper] = None,
        query_type: str = DEFAULT_QUERY_TYPE,
        warmup_domain: str = WARMUP_DOMAIN,
        provider_callback: Optional[ProviderCallback] = None,
    ):
        """
        Initialize the runner.

        Args:
            client: DoH client used for every lookup
            timeout_ms: Timeout ceiling reported for providers with no successes
            cooldown_ms: Pause after each query; rounds are separated by twice this
            progress_callback: Optional callback for progress updates
            sleep: Sleep function in seconds (default waits on the cancel event)
            query_type: DNS record type to query
            warmup_domain: Domain used for the discarded warm-up query
            provider_callback: Optional callback receiving each finished provider
        """
        self.client = client
        self.timeout_ms = timeout_ms
        self.cooldown_ms = cooldown_ms
        self.progress_callback = progress_callback
        self.provider_callback = provider_callback
        self.query_type = query_type
        self.warmup_domain = warmup_domain
        self._cancelled = threading.Event()
        self._sleep = sleep or self._cancelled.wait

    @classmethod
    def from_config(
        cls,
        config: BenchmarkConfig,
        client: DohClient,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Optional[Sleeper] = None,
        provider_callback: Optional[ProviderCallback] = None,
    ) -> "BenchmarkRunner":
        return cls(
            client,
            timeout_ms=config.timeout_ms,
            cooldown_ms=config.cooldown_ms,
            progress_callback=progress_callback,
            sleep=sleep,
            query_type=config.query_type,
            warmup_domain=config.warmup_domain,
            provider_callback=provider_callback,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop the run before its next query. Safe to call from any thread."""
        self._cancelled.set()

    def run(
        self,
        providers: Sequence[Provider],
        domains: Sequence[str],
        rounds: int,
    ) -> list[ResultAggregator]:
        """
        Benchmark every provider in turn with this runner's settings.

        Args:
            providers: Providers to test, in order
            domains: Domains to resolve each round, in order
            rounds: Number of passes over the domain list

        Returns:
            One frozen ResultAggregator per provider, in input order

        Raises:
            ConfigurationError: if there is nothing to run
            BenchmarkCancelled: if cancel() was called during the run
        """
        config = BenchmarkConfig(
            providers=tuple(providers),
            domains=tuple(domains),
            rounds=rounds,
            timeout_ms=self.timeout_ms,
            cooldown_ms=self.cooldown_ms,
            query_type=self.query_type,
            warmup_domain=self.warmup_domain,
        )
        return self._execute(config)

    def run_config(self, config: BenchmarkConfig) -> BenchmarkResult:
        """
        Run a full benchmark configuration and stamp its timing.

        Timeout, cooldown, record type and warm-up domain come from the
        config, not from the runner's constructor arguments.
        """
        started_at = datetime.now()
        aggregates = self._execute(config)
        return BenchmarkResult(
            started_at=started_at,
            completed_at=datetime.now(),
            config=config,
            aggregates=aggregates,
        )

    def _execute(self, config: BenchmarkConfig) -> list[ResultAggregator]:
        config.validate()

        total = config.total_queries
        current = 0
        aggregates = []

        for provider in config.providers:
            logger.info("Testing %s (%s)", provider.name, provider.endpoint)
            aggregate = ResultAggregator(provider.name, timeout_ms=config.timeout_ms)

            self._check_cancelled()
            # Primes connection state; never recorded
            warmup = self._lookup(provider, config.warmup_domain, config.query_type)
            if not warmup.is_success:
                logger.debug("Warm-up for %s failed: %s", provider.name, warmup.error_message)
            self._cooldown(config.cooldown_ms)

            for round_index in range(config.rounds):
                for domain in config.domains:
                    self._check_cancelled()
                    current += 1
                    self._report(
                        f"Testing {provider.name}: {domain} "
                        f"(Round {round_index + 1}/{config.rounds})",
                        current,
                        total,
                    )

                    aggregate.record(self._lookup(provider, domain, config.query_type))
                    self._cooldown(config.cooldown_ms)

                if round_index < config.rounds - 1:
                    self._cooldown(config.cooldown_ms * 2)

            aggregate.freeze()
            logger.info(
                "%s: median %.2fms, success rate %.1f%% (%d/%d)",
                provider.name,
                aggregate.median,
                aggregate.success_rate,
                len(aggregate.successes),
                aggregate.total_queries,
            )
            aggregates.append(aggregate)
            if self.provider_callback:
                self.provider_callback(aggregate)

        return aggregates

    def _lookup(self, provider: Provider, domain: str, query_type: str) -> Sample:
        """Query through the client, turning a misbehaving client's exception into a failure."""
        try:
            return self.client.lookup(provider, domain, query_type)
        except Exception as e:
            logger.warning(
                "DoH client raised while querying %s using %s: %s",
                domain,
                provider.name,
                e,
                exc_info=True,
            )
            return Sample.failure(
                provider.name, domain, QueryStatus.TRANSPORT_ERROR, str(e)
            )

    def _report(self, message: str, current: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(message, current, total)

    def _cooldown(self, milliseconds: float) -> None:
        if milliseconds > 0:
            self._sleep(milliseconds / 1000)

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            logger.info("Benchmark cancelled")
            raise BenchmarkCancelled("Benchmark cancelled")
