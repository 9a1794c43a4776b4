"""
Output formatting for diagnostics results.

Provides multiple output formats:
- JSON: the same shape the GUI shell receives
- CSV: DNS test results for spreadsheets
- Human-readable: Rich terminal tables and panels
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import (
    NOT_AVAILABLE,
    AdapterList,
    DnsTestResponse,
    PingResult,
    SpeedTestReport,
    UpdateCheckResult,
)


class JSONOutput:
    """JSON output formatter for any result with ``to_dict()``."""

    @staticmethod
    def format(result, indent: int = 2) -> str:
        """
        Format a result as JSON.

        Args:
            result: Result object to format
            indent: JSON indentation level

        Returns:
            JSON string
        """
        return json.dumps(result.to_dict(), indent=indent)

    @staticmethod
    def save(result, path: Path, indent: int = 2) -> None:
        """Save a result as a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(JSONOutput.format(result, indent=indent), encoding="utf-8")


class CSVOutput:
    """CSV output formatter for DNS test results."""

    @staticmethod
    def format(response: DnsTestResponse) -> str:
        output = StringIO()
        writer = csv.writer(output)

        writer.writerow(["server", "status", "response_time_ms", "error"])
        for result in response.results:
            writer.writerow([
                result.server,
                "ok" if result.status else "failed",
                result.response_time_ms,
                result.error or "",
            ])

        return output.getvalue()

    @staticmethod
    def save(response: DnsTestResponse, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(CSVOutput.format(response), encoding="utf-8")


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_ping(self, result: PingResult) -> None:
        if result.alive:
            self.console.print(
                f"[green]●[/green] {result.host} is reachable: "
                f"[bold]{result.time:.2f} ms[/bold]"
            )
        else:
            detail = f" [dim]({result.detail})[/dim]" if result.detail else ""
            self.console.print(
                f"[red]●[/red] {result.host} is unreachable: "
                f"[bold red]{result.error}[/bold red]{detail}"
            )

    def print_dns(self, response: DnsTestResponse, domain: str = "") -> None:
        if response.error:
            self.console.print(f"[bold red]DNS test failed:[/bold red] {response.error}")
            return

        table = Table(
            title=f"Resolver results {domain}".strip(),
            box=box.ROUNDED,
            header_style="bold magenta",
        )
        table.add_column("Server", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Time (ms)", justify="right", style="green")
        table.add_column("Error", style="dim")

        for result in response.results:
            table.add_row(
                result.server,
                "[green]✓[/green]" if result.status else "[red]✗[/red]",
                str(result.response_time_ms),
                result.error or "",
            )

        self.console.print(table)

        fastest = response.fastest
        if fastest:
            self.console.print(Panel(
                f"[bold green]Fastest: {fastest.server}[/bold green] "
                f"({fastest.response_time_ms} ms)",
                border_style="green",
            ))
        else:
            self.console.print(Panel(
                "[bold yellow]No resolver answered[/bold yellow]",
                border_style="yellow",
            ))

    def print_speed(self, report: SpeedTestReport) -> None:
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Metric", style="dim")
        table.add_column("Value", justify="right")

        table.add_row("Download", f"[bold green]{report.download_mbps:.2f}[/bold green] Mbps")
        table.add_row("Upload", f"[bold cyan]{report.upload_mbps:.2f}[/bold cyan] Mbps")
        table.add_row("Latency", f"{report.latency_ms:.2f} ms")
        table.add_row("Jitter", f"{report.jitter_ms:.2f} ms")
        table.add_row("IP", report.ip)
        table.add_row("Country", report.country)

        border = "red" if report.error else "blue"
        title = f"Speed test ({report.provider})"
        if report.error:
            title += f" [red]{report.error}[/red]"
        self.console.print(Panel.fit(table, title=title, border_style=border))

        if report.ip == NOT_AVAILABLE and not report.error:
            self.console.print("[dim]Geo lookup unavailable[/dim]")

    def print_update(self, result: UpdateCheckResult) -> None:
        if result.error:
            self.console.print(f"[bold red]Update check failed:[/bold red] {result.error}")
        elif result.update_available:
            kind = " (pre-release)" if result.is_prerelease else ""
            self.console.print(
                f"[bold green]Update available:[/bold green] "
                f"{result.current_version} → {result.latest_version}{kind}"
            )
            self.console.print(f"  {result.url}")
        else:
            self.console.print(f"Up to date ({result.current_version})")

    def print_adapters(self, adapters: AdapterList) -> None:
        if adapters.error:
            self.console.print(f"[bold red]Adapters unavailable:[/bold red] {adapters.error}")
            return

        table = Table(title="DNS adapters", box=box.ROUNDED, header_style="bold cyan")
        table.add_column("Adapter", style="green")
        table.add_column("DNS servers")
        for adapter in adapters.adapters:
            table.add_row(adapter.name, ", ".join(adapter.dns) or "[dim]automatic[/dim]")
        self.console.print(table)
