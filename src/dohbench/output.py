"""
Output formatting for DoH benchmark results.

Provides multiple output formats:
- JSON: Machine-readable full results
- CSV: Spreadsheet-compatible per-provider statistics
- Human-readable: plain text and rich terminal tables
"""

import csv
import json
from io import StringIO
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import BenchmarkResult, ProviderStats
from .ranking import RankingReporter


def stats_to_dict(stats: ProviderStats, precision: int = 3) -> dict:
    """Serialize a provider's statistics snapshot."""
    return {
        "name": stats.provider_name,
        "queries": {
            "total": stats.total_queries,
            "successful": stats.successful_queries,
            "failed": stats.failed_queries,
            "success_rate_pct": round(stats.success_rate, 2),
        },
        "latency_ms": {
            "median": round(stats.median_latency, precision),
            "avg": round(stats.avg_latency, precision),
            "min": round(stats.min_latency, precision),
            "max": round(stats.max_latency, precision),
            "p95": round(stats.p95_latency, precision),
            "stddev": round(stats.stddev_latency, precision),
            "jitter": round(stats.jitter_ms, precision),
        },
        "failed_domains": list(stats.failed_domains),
    }


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def to_dict(result: BenchmarkResult) -> dict:
        config = result.config
        reporter = RankingReporter(result.aggregates)
        ranked = reporter.rank()

        data = {
            "metadata": {
                "started_at": result.started_at.isoformat(),
                "completed_at": result.completed_at.isoformat(),
                "duration_seconds": result.duration_seconds,
                "rounds": config.rounds,
                "domains": list(config.domains),
                "query_type": config.query_type,
                "timeout_ms": config.timeout_ms,
                "cooldown_ms": config.cooldown_ms,
            },
            "providers": [stats_to_dict(a.summary()) for a in result.aggregates],
            "ranking": [a.provider_name for a in ranked],
        }

        winner = reporter.winner()
        if winner:
            data["winner"] = {
                "name": winner.provider_name,
                "median_latency_ms": round(winner.median, 3),
                "success_rate_pct": round(winner.success_rate, 2),
                "improvements_pct": {
                    k: round(v, 2) for k, v in reporter.improvements().items()
                },
            }

        return data

    @staticmethod
    def format(result: BenchmarkResult, indent: int = 2) -> str:
        """
        Format benchmark result as JSON.

        Args:
            result: BenchmarkResult to format
            indent: JSON indentation level

        Returns:
            JSON string
        """
        return json.dumps(JSONOutput.to_dict(result), indent=indent)

    @staticmethod
    def save(result: BenchmarkResult, path: Path) -> None:
        """Save benchmark result to JSON file."""
        with open(path, "w") as f:
            f.write(JSONOutput.format(result))


class CSVOutput:
    """CSV output formatter."""

    HEADER = [
        "rank",
        "provider",
        "total_queries",
        "successful",
        "failed",
        "success_rate_pct",
        "median_ms",
        "avg_ms",
        "min_ms",
        "max_ms",
        "p95_ms",
        "stddev_ms",
        "jitter_ms",
        "failed_domains",
    ]

    @staticmethod
    def format(result: BenchmarkResult) -> str:
        """
        Format benchmark result as CSV, one row per provider in ranked order.
        """
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.HEADER)

        for position, aggregate in enumerate(result.ranked, start=1):
            stats = aggregate.summary()
            writer.writerow([
                position,
                stats.provider_name,
                stats.total_queries,
                stats.successful_queries,
                stats.failed_queries,
                round(stats.success_rate, 2),
                round(stats.median_latency, 3),
                round(stats.avg_latency, 3),
                round(stats.min_latency, 3),
                round(stats.max_latency, 3),
                round(stats.p95_latency, 3),
                round(stats.stddev_latency, 3),
                round(stats.jitter_ms, 3),
                ";".join(stats.failed_domains),
            ])

        return output.getvalue()

    @staticmethod
    def save(result: BenchmarkResult, path: Path) -> None:
        """Save benchmark result to CSV file."""
        with open(path, "w", newline="") as f:
            f.write(CSVOutput.format(result))


class ConsoleOutput:
    """Plain text console output formatter."""

    @staticmethod
    def format(result: BenchmarkResult) -> str:
        """
        Format benchmark result as a plain text table sorted by median.
        """
        lines = []
        lines.append("")
        lines.append("Detailed Results (sorted by median speed):")
        lines.append("-" * 80)
        lines.append(
            f"{'Provider':<15} {'Median (ms)':>12} {'Avg (ms)':>10} "
            f"{'Min (ms)':>10} {'Max (ms)':>10} {'Success Rate':>15}"
        )
        lines.append("-" * 80)

        for aggregate in result.ranked:
            lines.append(
                f"{aggregate.provider_name:<15} {aggregate.median:>12.2f} "
                f"{aggregate.avg:>10.2f} {aggregate.min:>10.2f} "
                f"{aggregate.max:>10.2f} {aggregate.success_rate:>14.1f}%"
            )
            if aggregate.failed_domains:
                lines.append(f"    Failed domains: {', '.join(aggregate.failed_domains)}")

        lines.append("-" * 80)

        winner = result.winner
        if winner:
            lines.append("")
            lines.append(
                f"Fastest DNS provider: {winner.provider_name} "
                f"({winner.median:.2f}ms median, "
                f"{winner.success_rate:.1f}% success rate)"
            )
        lines.append("")

        return "\n".join(lines)

    @staticmethod
    def print(result: BenchmarkResult) -> None:
        """Print benchmark result to console."""
        print(ConsoleOutput.format(result))


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def print(result: BenchmarkResult, console: Console = None) -> None:
        """Print benchmark result using rich library."""
        console = console or Console()
        config = result.config

        console.print()
        console.print(Panel.fit(
            "[bold blue]DoH PROVIDER BENCHMARK RESULTS[/bold blue]",
            border_style="blue",
        ))
        console.print()

        console.print(f"  [dim]Duration:[/dim] {result.duration_seconds:.1f}s")
        console.print(f"  [dim]Domains:[/dim] {len(config.domains)} | "
                      f"[dim]Rounds:[/dim] {config.rounds} | "
                      f"[dim]Cooldown:[/dim] {config.cooldown_ms:.0f}ms")
        console.print()

        table = Table(
            title="Provider Performance (sorted by median)",
            box=box.ROUNDED,
            header_style="bold magenta",
        )

        table.add_column("Provider", style="cyan")
        table.add_column("Median (ms)", justify="right", style="green")
        table.add_column("Avg (ms)", justify="right")
        table.add_column("Min (ms)", justify="right")
        table.add_column("Max (ms)", justify="right")
        table.add_column("p95 (ms)", justify="right", style="yellow")
        table.add_column("Success", justify="right")
        table.add_column("Failed domains", style="red")

        for aggregate in result.ranked:
            table.add_row(
                aggregate.provider_name,
                f"{aggregate.median:.2f}",
                f"{aggregate.avg:.2f}",
                f"{aggregate.min:.2f}",
                f"{aggregate.max:.2f}",
                f"{aggregate.p95:.2f}",
                f"{aggregate.success_rate:.1f}%",
                ", ".join(sorted(set(aggregate.failed_domains))),
            )

        console.print(table)
        console.print()

        winner = result.winner
        if winner and winner.successes:
            console.print(Panel(
                f"[bold green]Fastest: {winner.provider_name}[/bold green]\n"
                f"Median Latency: {winner.median:.2f}ms | "
                f"Success Rate: {winner.success_rate:.1f}%",
                border_style="green",
            ))
        else:
            console.print(Panel(
                "[bold yellow]No successful queries - cannot determine winner[/bold yellow]",
                border_style="yellow",
            ))

        console.print()
