"""
Data models for DoH Bench.

Defines structured types for providers, query samples, benchmark
configuration and benchmark outputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

import dns.exception
import dns.name
import dns.rdatatype

if TYPE_CHECKING:
    from .statistics import ResultAggregator


# Worst-case latency substituted when a provider has no successful samples
DEFAULT_TIMEOUT_MS = 3000.0
DEFAULT_COOLDOWN_MS = 100.0
DEFAULT_ROUNDS = 5
DEFAULT_QUERY_TYPE = "A"
WARMUP_DOMAIN = "example.com"


class ConfigurationError(ValueError):
    """Raised when a benchmark is configured with no work to do or bad values."""


class UnsupportedFormatError(ValueError):
    """Raised when a query URL cannot be built for a provider's format."""


class BenchmarkCancelled(Exception):
    """Raised when a running benchmark is cancelled by the operator."""


class QueryFormat(Enum):
    """How a query URL is built for a DoH endpoint."""
    GOOGLE_JSON = "google-json"
    DNS_JSON = "dns-json"
    WIRE = "wire"  # RFC 8484 binary; not supported


class QueryStatus(Enum):
    """Outcome of a single DoH lookup."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    INVALID_JSON = "invalid_json"
    RESOLVER_ERROR = "resolver_error"
    TRANSPORT_ERROR = "transport_error"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Provider:
    """A DoH resolver under test."""
    name: str
    endpoint: str
    query_format: QueryFormat = QueryFormat.DNS_JSON
    description: Optional[str] = None


@dataclass(frozen=True)
class Sample:
    """Result of one (provider, domain) lookup."""
    provider: str
    domain: str
    status: QueryStatus
    elapsed_ms: float = 0.0
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def success(cls, provider: str, domain: str, elapsed_ms: float) -> "Sample":
        return cls(
            provider=provider,
            domain=domain,
            status=QueryStatus.SUCCESS,
            elapsed_ms=max(elapsed_ms, 0.0),
        )

    @classmethod
    def failure(
        cls,
        provider: str,
        domain: str,
        status: QueryStatus,
        error_message: str,
        elapsed_ms: float = 0.0,
    ) -> "Sample":
        if status is QueryStatus.SUCCESS:
            raise ValueError("A failure sample needs a failure status")
        return cls(
            provider=provider,
            domain=domain,
            status=status,
            elapsed_ms=max(elapsed_ms, 0.0),
            error_message=error_message,
        )

    @property
    def is_success(self) -> bool:
        """Check if the lookup succeeded."""
        return self.status == QueryStatus.SUCCESS


@dataclass(frozen=True)
class ProviderStats:
    """Snapshot of a provider's aggregated statistics."""
    provider_name: str
    total_queries: int
    successful_queries: int
    failed_queries: int
    success_rate: float

    # Latency stats (in milliseconds)
    median_latency: float
    avg_latency: float
    min_latency: float
    max_latency: float
    p95_latency: float
    stddev_latency: float
    jitter_ms: float

    failed_domains: tuple[str, ...] = ()


@dataclass(frozen=True)
class BenchmarkConfig:
    """
    Immutable benchmark configuration.

    Supplied once at startup and passed into the runner; never reloaded.
    """
    providers: tuple[Provider, ...]
    domains: tuple[str, ...]
    rounds: int = DEFAULT_ROUNDS
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    cooldown_ms: float = DEFAULT_COOLDOWN_MS
    query_type: str = DEFAULT_QUERY_TYPE
    warmup_domain: str = WARMUP_DOMAIN

    def __post_init__(self):
        # Accept any sequence but store tuples so the value stays immutable
        object.__setattr__(self, "providers", tuple(self.providers))
        object.__setattr__(self, "domains", tuple(self.domains))

    @property
    def total_queries(self) -> int:
        """Number of recorded queries the benchmark will issue."""
        return len(self.providers) * self.rounds * len(self.domains)

    def validate(self) -> None:
        """
        Check the configuration before any query is attempted.

        Raises:
            ConfigurationError: if the benchmark would do no work or a
                value is out of range
        """
        if not self.providers:
            raise ConfigurationError("At least one provider is required")
        if not self.domains:
            raise ConfigurationError("At least one domain is required")
        if self.rounds < 1:
            raise ConfigurationError(f"Round count must be at least 1, got {self.rounds}")
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout_ms}ms")
        if self.cooldown_ms < 0:
            raise ConfigurationError(f"Cooldown cannot be negative, got {self.cooldown_ms}ms")

        seen: set[str] = set()
        for provider in self.providers:
            if not provider.name:
                raise ConfigurationError(f"Provider at {provider.endpoint} has no name")
            if provider.name in seen:
                raise ConfigurationError(f"Duplicate provider name: {provider.name}")
            seen.add(provider.name)

        try:
            dns.rdatatype.from_text(self.query_type)
        except dns.rdatatype.UnknownRdatatype:
            raise ConfigurationError(f"Unknown record type: {self.query_type}")

        for domain in (*self.domains, self.warmup_domain):
            try:
                dns.name.from_text(domain)
            except dns.exception.DNSException as e:
                raise ConfigurationError(f"Invalid domain {domain!r}: {e}")
            if not domain.strip(".") or " " in domain:
                raise ConfigurationError(f"Invalid domain {domain!r}")


@dataclass
class BenchmarkResult:
    """Complete benchmark result for all providers."""
    started_at: datetime
    completed_at: datetime
    config: BenchmarkConfig
    aggregates: list["ResultAggregator"] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Total benchmark duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def ranked(self) -> list["ResultAggregator"]:
        """Aggregates sorted by median latency, fastest first."""
        from .ranking import RankingReporter
        return RankingReporter(self.aggregates).rank()

    @property
    def winner(self) -> Optional["ResultAggregator"]:
        """Provider with the lowest median latency (if any were tested)."""
        from .ranking import RankingReporter
        return RankingReporter(self.aggregates).winner()
