"""
Built-in DoH provider configurations and test domains.

Provides pre-configured profiles for popular public DNS-over-HTTPS
resolvers that answer JSON queries.
"""

from pathlib import Path
from typing import Union

import httpx

from .models import ConfigurationError, Provider, QueryFormat

# Accepted FORMAT suffixes for custom provider definitions
FORMAT_NAMES = [f.value for f in QueryFormat]


# Pre-configured provider profiles
PROVIDERS: dict[str, Provider] = {
    "google": Provider(
        name="Google",
        endpoint="https://dns.google/resolve",
        query_format=QueryFormat.GOOGLE_JSON,
        description="Google Public DNS JSON API",
    ),
    "cloudflare": Provider(
        name="Cloudflare",
        endpoint="https://cloudflare-dns.com/dns-query",
        description="Cloudflare's privacy-focused DNS resolver",
    ),
    "dns0": Provider(
        name="DNS0",
        endpoint="https://zero.dns0.eu/dns-query",
        description="DNS0.eu European public resolver",
    ),
    "nextdns": Provider(
        name="NextDNS",
        endpoint="https://dns.nextdns.io/",
        description="NextDNS (requires configuration ID for full features)",
    ),
    "quad9": Provider(
        name="Quad9",
        endpoint="https://dns.quad9.net:5053/dns-query",
        description="Quad9 with malware blocking",
    ),
    "adguard": Provider(
        name="AdGuard",
        endpoint="https://dns.adguard-dns.com/resolve",
        description="AdGuard DNS with ad blocking",
    ),
    "mullvad": Provider(
        name="Mullvad",
        endpoint="https://dns.mullvad.net/dns-query",
        query_format=QueryFormat.WIRE,  # No JSON API
        description="Mullvad DNS (wire format only)",
    ),
    "opendns": Provider(
        name="OpenDNS",
        endpoint="https://doh.opendns.com/dns-query",
        query_format=QueryFormat.WIRE,  # No JSON API
        description="Cisco OpenDNS (wire format only)",
    ),
}

# Default providers for quick comparison
DEFAULT_PROVIDERS = ["google", "cloudflare", "dns0", "nextdns"]

DEFAULT_DOMAINS = [
    "google.com",
    "gitlab.com",
    "cloudflare.com",
    "microsoft.com",
    "github.com",
    "netflix.com",
    "amazon.com",
    "facebook.com",
    "wikipedia.org",
    "reddit.com",
]


def get_provider(name: str) -> Provider:
    """Get a provider by key (case-insensitive)."""
    key = name.lower()
    if key in PROVIDERS:
        return PROVIDERS[key]
    raise ValueError(f"Unknown provider: {name}. Available: {list(PROVIDERS.keys())}")


def create_custom_provider(
    endpoint: str,
    name: str = "Custom",
    query_format: QueryFormat = QueryFormat.DNS_JSON,
) -> Provider:
    """Create a custom provider configuration."""
    return Provider(
        name=name,
        endpoint=endpoint,
        query_format=query_format,
        description=f"Custom provider at {endpoint}",
    )


def parse_custom_provider(spec: str) -> Provider:
    """
    Parse a ``[NAME=]URL[,FORMAT]`` provider definition.

    A bare URL is named after its host, and may itself contain ``=`` in
    its query string. FORMAT is one of ``google-json``, ``dns-json``
    (default) or ``wire``.
    """
    spec = spec.strip()
    query_format = QueryFormat.DNS_JSON

    head, sep, suffix = spec.rpartition(",")
    if sep and suffix.strip().lower() in FORMAT_NAMES:
        spec = head.strip()
        query_format = QueryFormat(suffix.strip().lower())

    if spec.lower().startswith(("http://", "https://")):
        name, endpoint = "", spec
    else:
        name, sep, endpoint = spec.partition("=")
        if not sep:
            raise ConfigurationError(f"Provider endpoint must be an http(s) URL: {spec!r}")

    endpoint = endpoint.strip()
    if not endpoint.lower().startswith(("http://", "https://")):
        raise ConfigurationError(f"Provider endpoint must be an http(s) URL: {spec!r}")
    try:
        host = httpx.URL(endpoint).host
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid provider endpoint {endpoint!r}: {e}") from e
    if not host:
        raise ConfigurationError(f"Provider endpoint has no host: {endpoint!r}")

    return create_custom_provider(endpoint, name=name.strip() or host, query_format=query_format)


def load_domains(path: Union[str, Path]) -> list[str]:
    """
    Load a domain list from a text file.

    One domain per line; blank lines and lines starting with # are skipped.
    """
    with open(path, "r") as f:
        return [
            line.strip()
            for line in f
            if line.strip() and not line.strip().startswith("#")
        ]


def list_providers() -> list[str]:
    """List all available provider keys."""
    return list(PROVIDERS.keys())
