"""
Command-line interface for DoH Bench.

Provides a CLI for running DNS-over-HTTPS benchmarks with
various options and output formats.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .client import HttpxDohClient
from .models import (
    DEFAULT_COOLDOWN_MS,
    DEFAULT_QUERY_TYPE,
    DEFAULT_ROUNDS,
    DEFAULT_TIMEOUT_MS,
    WARMUP_DOMAIN,
    BenchmarkCancelled,
    BenchmarkConfig,
    ConfigurationError,
)
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .providers import (
    DEFAULT_DOMAINS,
    DEFAULT_PROVIDERS,
    PROVIDERS,
    get_provider,
    list_providers,
    load_domains,
    parse_custom_provider,
)
from .runner import BenchmarkRunner


def configure_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def create_progress_callback():
    """Create a rich progress bar and the callback that drives it."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=Console(stderr=True),
        transient=True,
    )

    task_id = None

    def callback(message: str, current: int, total: int):
        nonlocal task_id
        if task_id is None:
            task_id = progress.add_task(message, total=total)
        progress.update(task_id, description=message, completed=current)

    return progress, callback


@click.group()
@click.version_option(__version__)
def main():
    """
    DoH Bench - compare DNS-over-HTTPS resolver latency.

    Queries a fixed set of domains through each provider, one query at
    a time, and ranks providers by median latency.
    """
    pass


@main.command()
@click.option(
    "--provider", "-p",
    multiple=True,
    help="Provider to test (can specify multiple). Options: " + ", ".join(list_providers()),
)
@click.option(
    "--custom-provider", "-c",
    multiple=True,
    help=(
        "Extra endpoint as [NAME=]URL[,FORMAT], FORMAT one of "
        "google-json, dns-json (default), wire. Repeatable."
    ),
)
@click.option(
    "--domain", "-d",
    multiple=True,
    help="Domain to resolve (can specify multiple)",
)
@click.option(
    "--domains-file",
    type=click.Path(exists=True, dir_okay=False),
    help="File with one domain per line",
)
@click.option(
    "--rounds", "-n",
    type=int,
    default=DEFAULT_ROUNDS,
    show_default=True,
    help="Number of passes over the domain list",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT_MS,
    show_default=True,
    help="Query timeout in milliseconds",
)
@click.option(
    "--cooldown",
    type=float,
    default=DEFAULT_COOLDOWN_MS,
    show_default=True,
    help="Pause after each query in milliseconds (doubled between rounds)",
)
@click.option(
    "--query-type", "-t",
    default=DEFAULT_QUERY_TYPE,
    show_default=True,
    help="DNS record type to query",
)
@click.option(
    "--warmup-domain",
    default=WARMUP_DOMAIN,
    show_default=True,
    help="Domain queried once per provider before timing starts",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log every query failure",
)
@click.option(
    "--json",
    is_flag=True,
    help="Output results as JSON to stdout",
)
def run(
    provider: tuple,
    custom_provider: tuple,
    domain: tuple,
    domains_file: Optional[str],
    rounds: int,
    timeout: float,
    cooldown: float,
    query_type: str,
    warmup_domain: str,
    output: Optional[str],
    quiet: bool,
    verbose: bool,
    json: bool,
):
    """
    Query every provider with the same domains and rank them by median latency.

    Providers run one after another, never in parallel. Failed queries are
    counted against the provider and the run carries on.
    """
    configure_logging(verbose)

    providers_list = []
    for name in provider:
        try:
            providers_list.append(get_provider(name))
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    for spec in custom_provider:
        try:
            providers_list.append(parse_custom_provider(spec))
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if not providers_list:
        providers_list = [get_provider(name) for name in DEFAULT_PROVIDERS]

    domains_list = list(domain)
    if domains_file:
        domains_list.extend(load_domains(domains_file))
    if not domains_list:
        domains_list = list(DEFAULT_DOMAINS)

    config = BenchmarkConfig(
        providers=tuple(providers_list),
        domains=tuple(domains_list),
        rounds=rounds,
        timeout_ms=timeout,
        cooldown_ms=cooldown,
        query_type=query_type.upper(),
        warmup_domain=warmup_domain,
    )

    try:
        config.validate()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    progress_ctx, progress_callback = None, None
    if not quiet:
        progress_ctx, progress_callback = create_progress_callback()

    with HttpxDohClient(timeout_ms=config.timeout_ms) as client:
        runner = BenchmarkRunner.from_config(
            config,
            client,
            progress_callback=progress_callback,
        )
        try:
            if progress_ctx:
                with progress_ctx:
                    result = runner.run_config(config)
            else:
                result = runner.run_config(config)
        except (KeyboardInterrupt, BenchmarkCancelled):
            click.echo("Benchmark cancelled", err=True)
            sys.exit(130)

    if json:
        click.echo(JSONOutput.format(result))
    elif not quiet:
        RichConsoleOutput.print(result)

    if output:
        path = Path(output)
        if path.suffix.lower() == ".csv":
            CSVOutput.save(result, path)
        else:
            if path.suffix.lower() != ".json":
                path = path.with_suffix(".json")
            JSONOutput.save(result, path)
        if not quiet:
            click.echo(f"Results saved to {path}")


@main.command()
def list_available():
    """List all built-in DoH providers."""
    console = Console()
    table = Table(
        title="Available DoH Providers",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Key", style="green")
    table.add_column("Name")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Format", style="magenta")
    table.add_column("Description")

    for key, entry in sorted(PROVIDERS.items()):
        table.add_row(
            key,
            entry.name,
            entry.endpoint,
            entry.query_format.value,
            entry.description or "",
        )

    console.print(table)
    console.print()
    console.print("[dim]Default providers:[/dim]", ", ".join(DEFAULT_PROVIDERS))


@main.command()
@click.option(
    "--port", "-p",
    type=int,
    default=5000,
    help="Port to run the GUI server on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind the server to",
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Don't automatically open browser",
)
def gui(port: int, host: str, no_browser: bool):
    """Serve the browser front end, streaming progress and per-provider results."""
    from .gui import run_gui

    click.echo("Starting DoH Bench GUI...")
    click.echo(f"Open http://{host}:{port} in your browser")
    click.echo("Press Ctrl+C to stop the server")

    run_gui(host=host, port=port, open_browser=not no_browser)


if __name__ == "__main__":
    main()
