import json

import pytest
from click.testing import CliRunner

from dohbench import cli


@pytest.fixture
def fake_client(monkeypatch, make_client):
    """Replace the network client used by the CLI with a scripted one."""
    clients = []

    def factory(timeout_ms):
        client = make_client({
            "Google": [10.0] * 50,
            "Cloudflare": [5.0] * 50,
        })
        clients.append(client)
        return client

    monkeypatch.setattr(cli, "HttpxDohClient", factory)
    return clients


def test_run_json_output(fake_client):
    result = CliRunner().invoke(cli.main, [
        "run", "-p", "google", "-p", "cloudflare",
        "-d", "github.com", "-d", "gitlab.com",
        "-n", "2", "--cooldown", "0", "--json", "--quiet",
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["ranking"] == ["Cloudflare", "Google"]
    assert data["winner"]["name"] == "Cloudflare"
    assert data["providers"][0]["queries"]["total"] == 4
    assert fake_client[0].closed


def test_run_writes_csv(fake_client, tmp_path):
    path = tmp_path / "out.csv"

    result = CliRunner().invoke(cli.main, [
        "run", "-p", "google", "-d", "github.com",
        "-n", "1", "--cooldown", "0", "--quiet", "-o", str(path),
    ])

    assert result.exit_code == 0, result.output
    assert path.read_text().startswith("rank,provider")


def test_run_reads_domains_file(fake_client, tmp_path):
    domains = tmp_path / "domains.txt"
    domains.write_text("github.com\n# skip\nnetflix.com\n")

    result = CliRunner().invoke(cli.main, [
        "run", "-p", "cloudflare", "--domains-file", str(domains),
        "-n", "1", "--cooldown", "0", "--json", "--quiet",
    ])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["metadata"]["domains"] == ["github.com", "netflix.com"]


def test_unknown_provider_is_an_error(fake_client):
    result = CliRunner().invoke(cli.main, ["run", "-p", "nope", "--quiet"])

    assert result.exit_code == 1
    assert "Unknown provider" in result.output
    assert fake_client == []


def test_invalid_rounds_is_an_error(fake_client):
    result = CliRunner().invoke(cli.main, ["run", "-p", "google", "-n", "0", "--quiet"])

    assert result.exit_code == 1
    assert "Round count" in result.output
    assert fake_client == []


def test_list_available():
    result = CliRunner().invoke(cli.main, ["list-available"])

    assert result.exit_code == 0
    assert "cloudflare" in result.output
    assert "Default providers" in result.output


def test_custom_provider_with_query_string_and_format(fake_client):
    result = CliRunner().invoke(cli.main, [
        "run", "-c", "https://doh.example/dns-query?token=abc,wire",
        "-d", "github.com", "-n", "1", "--cooldown", "0", "--json", "--quiet",
    ])

    assert result.exit_code == 0, result.output
    [entry] = json.loads(result.output)["providers"]
    assert entry["name"] == "doh.example"
    assert entry["queries"]["successful"] == 0
    assert fake_client[0].calls[0] == ("doh.example", "example.com", "A")


def test_run_uses_warmup_domain_option(fake_client):
    result = CliRunner().invoke(cli.main, [
        "run", "-p", "cloudflare", "-d", "github.com", "-n", "1",
        "--cooldown", "0", "--warmup-domain", "warm.example", "--quiet",
    ])

    assert result.exit_code == 0, result.output
    assert fake_client[0].calls[0] == ("Cloudflare", "warm.example", "A")
