from typing import Optional

import pytest

from dohbench.client import DohClient
from dohbench.models import Provider, QueryFormat, QueryStatus, Sample


class FakeDohClient(DohClient):
    """
    Scripted DoH client.

    Each provider name maps to a list of latencies consumed in order by
    the recorded (non warm-up) lookups; None means a failed lookup.
    Unscripted providers always fail.
    """

    def __init__(self, script: Optional[dict] = None, warmup_domain: str = "example.com"):
        self.script = {name: list(values) for name, values in (script or {}).items()}
        self.warmup_domain = warmup_domain
        self.calls: list[tuple[str, str, str]] = []
        self.closed = False

    def lookup(self, provider: Provider, domain: str, query_type: str = "A") -> Sample:
        self.calls.append((provider.name, domain, query_type))

        if provider.query_format == QueryFormat.WIRE:
            return Sample.failure(provider.name, domain, QueryStatus.UNSUPPORTED, "wire")
        if domain == self.warmup_domain:
            return Sample.success(provider.name, domain, 1.0)

        values = self.script.get(provider.name)
        latency = values.pop(0) if values else None
        if latency is None:
            return Sample.failure(provider.name, domain, QueryStatus.TIMEOUT, "scripted failure")
        return Sample.success(provider.name, domain, latency)

    def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Sleep replacement that records requested durations in seconds."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def provider_x() -> Provider:
    return Provider(name="X", endpoint="https://x.example/dns-query")


@pytest.fixture
def provider_y() -> Provider:
    return Provider(name="Y", endpoint="https://y.example/dns-query")


@pytest.fixture
def wire_provider() -> Provider:
    return Provider(
        name="Wire",
        endpoint="https://wire.example/dns-query",
        query_format=QueryFormat.WIRE,
    )


@pytest.fixture
def domains() -> list[str]:
    return ["a.example", "b.example", "c.example"]


@pytest.fixture
def make_client():
    return FakeDohClient
