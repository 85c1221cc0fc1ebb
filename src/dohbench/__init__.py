"""
DoH Bench - DNS-over-HTTPS resolver benchmarking tool.

Measures query latency and reliability of public DoH resolvers and
ranks them by median latency.
"""

__version__ = "1.0.0"

from .client import DohClient, HttpxDohClient, build_query_url
from .models import (
    BenchmarkCancelled,
    BenchmarkConfig,
    BenchmarkResult,
    ConfigurationError,
    Provider,
    QueryFormat,
    QueryStatus,
    Sample,
)
from .ranking import RankingReporter
from .runner import BenchmarkRunner
from .statistics import ResultAggregator

__all__ = [
    "__version__",
    "BenchmarkCancelled",
    "BenchmarkConfig",
    "BenchmarkResult",
    "BenchmarkRunner",
    "ConfigurationError",
    "DohClient",
    "HttpxDohClient",
    "Provider",
    "QueryFormat",
    "QueryStatus",
    "RankingReporter",
    "ResultAggregator",
    "Sample",
    "build_query_url",
]
