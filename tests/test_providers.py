import pytest

from dohbench.models import ConfigurationError, QueryFormat
from dohbench.providers import (
    DEFAULT_DOMAINS,
    DEFAULT_PROVIDERS,
    PROVIDERS,
    get_provider,
    list_providers,
    load_domains,
    parse_custom_provider,
)


def test_get_provider_is_case_insensitive():
    assert get_provider("Google") is PROVIDERS["google"]


def test_get_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider"):
        get_provider("nope")


def test_defaults_are_known():
    assert set(DEFAULT_PROVIDERS) <= set(list_providers())
    assert len(set(DEFAULT_DOMAINS)) == len(DEFAULT_DOMAINS)


def test_provider_names_are_unique():
    names = [p.name for p in PROVIDERS.values()]
    assert len(names) == len(set(names))


def test_parse_named_custom_provider():
    provider = parse_custom_provider("Home=https://doh.home.example/dns-query")

    assert provider.name == "Home"
    assert provider.endpoint == "https://doh.home.example/dns-query"
    assert provider.query_format == QueryFormat.DNS_JSON


def test_parse_bare_url_uses_host_as_name():
    provider = parse_custom_provider("https://doh.home.example/dns-query")

    assert provider.name == "doh.home.example"


def test_parse_bare_url_with_query_string():
    provider = parse_custom_provider("https://doh.example/dns-query?token=abc")

    assert provider.name == "doh.example"
    assert provider.endpoint == "https://doh.example/dns-query?token=abc"


def test_parse_named_url_with_query_string():
    provider = parse_custom_provider("Office=https://doh.example/dns-query?token=a=b")

    assert provider.name == "Office"
    assert provider.endpoint == "https://doh.example/dns-query?token=a=b"


@pytest.mark.parametrize("spec,expected", [
    ("Home=https://doh.home.example/resolve,google-json", QueryFormat.GOOGLE_JSON),
    ("https://doh.home.example/dns-query,wire", QueryFormat.WIRE),
    ("Home=https://doh.home.example/dns-query, DNS-JSON", QueryFormat.DNS_JSON),
])
def test_parse_format_suffix(spec, expected):
    provider = parse_custom_provider(spec)

    assert provider.query_format == expected
    assert "," not in provider.endpoint


def test_parse_keeps_unrelated_comma_in_url():
    provider = parse_custom_provider("https://doh.example/dns-query?tags=a,b")

    assert provider.endpoint == "https://doh.example/dns-query?tags=a,b"
    assert provider.query_format == QueryFormat.DNS_JSON


@pytest.mark.parametrize("spec", [
    "Home=tls://doh.home.example",
    "doh.home.example/dns-query",
    "Home=https://",
])
def test_parse_rejects_non_http_endpoint(spec):
    with pytest.raises(ConfigurationError):
        parse_custom_provider(spec)


def test_load_domains(tmp_path):
    path = tmp_path / "domains.txt"
    path.write_text("# popular sites\ngithub.com\n\n  gitlab.com  \n# trailing\n")

    assert load_domains(path) == ["github.com", "gitlab.com"]
