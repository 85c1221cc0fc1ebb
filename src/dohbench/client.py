"""
DNS-over-HTTPS client.

Performs single DoH lookups against JSON-speaking endpoints and reports
the outcome as a Sample. Every failure mode (HTTP status, bad JSON,
resolver error, timeout, transport fault) is returned, never raised.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlparse

import httpx

from .models import (
    DEFAULT_QUERY_TYPE,
    DEFAULT_TIMEOUT_MS,
    Provider,
    QueryFormat,
    QueryStatus,
    Sample,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

# Hosts that only speak Google's JSON API dialect
GOOGLE_DOH_HOST = "dns.google"

DNS_JSON_HEADERS = {
    "Accept": "application/dns-json",
    "Content-Type": "application/dns-json",
}


def is_google_endpoint(endpoint: str) -> bool:
    """Check if an endpoint is served by Google Public DNS."""
    host = (urlparse(endpoint).hostname or "").lower()
    return host == GOOGLE_DOH_HOST or host.endswith("." + GOOGLE_DOH_HOST)


def effective_format(provider: Provider) -> QueryFormat:
    """Query format actually used for a provider (Google host wins)."""
    if is_google_endpoint(provider.endpoint):
        return QueryFormat.GOOGLE_JSON
    return provider.query_format


def build_query_url(
    provider: Provider,
    domain: str,
    query_type: str = DEFAULT_QUERY_TYPE,
) -> str:
    """
    Build the lookup URL for a domain.

    Args:
        provider: Provider to query
        domain: Domain name to resolve
        query_type: DNS record type name

    Returns:
        Full URL including query parameters

    Raises:
        UnsupportedFormatError: if the provider only speaks wire format
    """
    query_format = effective_format(provider)

    if query_format == QueryFormat.WIRE:
        raise UnsupportedFormatError(
            f"{provider.name} uses wire format, which is not supported"
        )

    params = {"name": domain, "type": query_type}
    if query_format == QueryFormat.DNS_JSON:
        params["ct"] = "application/dns-json"

    return str(httpx.URL(provider.endpoint).copy_merge_params(params))


class DohClient(ABC):
    """Interface for a component that performs one DoH lookup."""

    @abstractmethod
    def lookup(
        self,
        provider: Provider,
        domain: str,
        query_type: str = DEFAULT_QUERY_TYPE,
    ) -> Sample:
        """
        Resolve a domain through a provider.

        Returns:
            A success Sample with elapsed time, or a failure Sample with
            the reason. Implementations must not raise.
        """

    def close(self) -> None:
        """Release any held connections."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class HttpxDohClient(DohClient):
    """DoH client over httpx with HTTP/2 and connection pooling."""

    def __init__(
        self,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        http2: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            timeout_ms: Per-query timeout in milliseconds
            http2: Negotiate HTTP/2 where the endpoint supports it
            transport: Custom httpx transport (tests use MockTransport)
        """
        self.timeout_ms = timeout_ms
        self.http2 = http2
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        """Get or create the pooled HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                http2=self.http2,
                timeout=httpx.Timeout(self.timeout_ms / 1000),
                transport=self._transport,
            )
        return self._client

    def lookup(
        self,
        provider: Provider,
        domain: str,
        query_type: str = DEFAULT_QUERY_TYPE,
    ) -> Sample:
        try:
            url = build_query_url(provider, domain, query_type)
        except UnsupportedFormatError as e:
            return self._failed(provider, domain, QueryStatus.UNSUPPORTED, str(e))

        client = self._get_client()

        start = time.perf_counter_ns()
        try:
            response = client.get(url, headers=DNS_JSON_HEADERS)
            if not response.is_success:
                return self._failed(
                    provider,
                    domain,
                    QueryStatus.HTTP_ERROR,
                    f"HTTP {response.status_code}",
                    _elapsed_ms(start),
                )
            data = response.json()
        except httpx.TimeoutException:
            return self._failed(
                provider,
                domain,
                QueryStatus.TIMEOUT,
                f"Query timed out after {self.timeout_ms:.0f}ms",
                _elapsed_ms(start),
            )
        except httpx.HTTPError as e:
            return self._failed(
                provider,
                domain,
                QueryStatus.TRANSPORT_ERROR,
                f"{type(e).__name__}: {e}",
                _elapsed_ms(start),
            )
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._failed(
                provider,
                domain,
                QueryStatus.INVALID_JSON,
                f"Response is not JSON: {e}",
                _elapsed_ms(start),
            )

        elapsed = _elapsed_ms(start)

        if not isinstance(data, dict) or not data:
            return self._failed(
                provider, domain, QueryStatus.INVALID_JSON, "Invalid DNS response", elapsed
            )
        if "error" in data:
            return self._failed(
                provider, domain, QueryStatus.RESOLVER_ERROR, str(data["error"]), elapsed
            )
        if elapsed > self.timeout_ms:
            return self._failed(
                provider,
                domain,
                QueryStatus.TIMEOUT,
                f"Response took {elapsed:.1f}ms, over the {self.timeout_ms:.0f}ms timeout",
                elapsed,
            )

        return Sample.success(provider.name, domain, elapsed)

    def _failed(
        self,
        provider: Provider,
        domain: str,
        status: QueryStatus,
        message: str,
        elapsed_ms: float = 0.0,
    ) -> Sample:
        logger.debug("Error querying %s using %s: %s", domain, provider.name, message)
        return Sample.failure(provider.name, domain, status, message, elapsed_ms)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None


def _elapsed_ms(start_ns: int) -> float:
    return (time.perf_counter_ns() - start_ns) / 1_000_000
