"""
Command-line interface for PulseNet.

Runs the diagnostics from a terminal and starts the HTTP bridge used by
the GUI shell.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import EngineConfig
from .engine import DiagnosticsEngine
from .logging_config import setup_logging
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .resolvers import BUILTIN_RESOLVERS
from .settings import CloseActionState, PreferenceStore
from .speedtest import PROVIDERS


def create_progress_callback(console: Console):
    """Create a progress callback that drives a rich status spinner."""
    status = console.status("Starting...")

    def callback(message: str, current: int, total: int):
        status.update(f"{message} ({current}/{total})")

    return status, callback


def _engine(ctx: click.Context, **overrides) -> DiagnosticsEngine:
    config: EngineConfig = ctx.obj["config"].with_overrides(**overrides)
    return DiagnosticsEngine(
        config=config,
        close_action=CloseActionState.from_store(ctx.obj["store"]),
    )


def _finish(result, as_json: bool, render, failed: bool) -> None:
    if as_json:
        click.echo(JSONOutput.format(result))
    else:
        render(result)
    if failed:
        sys.exit(1)


@click.group(context_settings={"auto_envvar_prefix": "PULSENET"})
@click.version_option(__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log verbosity (stderr)",
)
@click.option(
    "--preferences",
    type=click.Path(dir_okay=False),
    default=None,
    help="Preference file (default: per-user config directory)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str, preferences: Optional[str]):
    """
    PulseNet - network diagnostics.

    Ping hosts, compare DNS resolvers, measure throughput and check for
    updates.
    """
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower()
    ctx.obj["config"] = EngineConfig()
    ctx.obj["store"] = PreferenceStore(preferences)


@main.command()
@click.argument("host")
@click.option("--timeout", type=float, default=None, help="Echo timeout in seconds")
@click.option("--json", "as_json", is_flag=True, help="Output result as JSON")
@click.pass_context
def ping(ctx: click.Context, host: str, timeout: Optional[float], as_json: bool):
    """Send one ICMP echo to HOST."""
    engine = _engine(ctx, ping_timeout_s=timeout)
    result = asyncio.run(engine.ping(host))
    _finish(result, as_json, RichConsoleOutput().print_ping, not result.alive)


@main.command()
@click.argument("domain")
@click.option(
    "--custom-resolver", "-c",
    multiple=True,
    help="Extra resolver, ip[:port] (can specify multiple)",
)
@click.option("--timeout", type=int, default=None, help="Per-resolver timeout in milliseconds")
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def dns(
    ctx: click.Context,
    domain: str,
    custom_resolver: tuple,
    timeout: Optional[int],
    output: Optional[str],
    as_json: bool,
):
    """
    Resolve DOMAIN against every built-in and custom resolver.

    Examples:

    \b
      # Built-in resolvers only
      pulsenet dns example.com

    \b
      # Add a local resolver and one on a custom port
      pulsenet dns https://example.com/page -c 192.168.1.1 -c 10.0.0.53:5353
    """
    engine = _engine(ctx, dns_timeout_ms=timeout)
    console = Console()

    async def run_test():
        return await engine.test_dns_servers(domain, list(custom_resolver))

    if as_json:
        response = asyncio.run(run_test())
    else:
        with console.status(f"Testing {domain}..."):
            response = asyncio.run(run_test())

    if output:
        path = Path(output)
        if path.suffix.lower() == ".csv":
            CSVOutput.save(response, path)
        else:
            JSONOutput.save(response, path.with_suffix(".json"))

    _finish(
        response,
        as_json,
        lambda r: RichConsoleOutput(console).print_dns(r, domain),
        response.error is not None,
    )


@main.command()
@click.option(
    "--provider", "-p",
    type=click.Choice(sorted(list(PROVIDERS) + [p.alias for p in PROVIDERS.values()]), case_sensitive=False),
    default="cloudflare",
    show_default=True,
    help="Speed test backend",
)
@click.option("--json", "as_json", is_flag=True, help="Output result as JSON")
@click.pass_context
def speedtest(ctx: click.Context, provider: str, as_json: bool):
    """Measure latency, jitter, download and upload throughput."""
    engine = _engine(ctx)
    console = Console(stderr=True)

    if as_json:
        report = asyncio.run(engine.speed_test(provider))
    else:
        status, callback = create_progress_callback(console)
        with status:
            report = asyncio.run(engine.speed_test(provider, callback))

    _finish(report, as_json, RichConsoleOutput().print_speed, report.error is not None)


@main.command()
@click.option("--prerelease", is_flag=True, help="Consider pre-releases")
@click.option("--json", "as_json", is_flag=True, help="Output result as JSON")
@click.pass_context
def update(ctx: click.Context, prerelease: bool, as_json: bool):
    """Check whether a newer release exists."""
    engine = _engine(ctx)
    result = asyncio.run(engine.check_for_updates(prerelease))
    _finish(result, as_json, RichConsoleOutput().print_update, result.error is not None)


@main.group()
def adapters():
    """Inspect and change OS DNS adapter settings (Windows only)."""
    pass


@adapters.command("list")
@click.option("--refresh", is_flag=True, help="Bypass the adapter cache")
@click.option("--json", "as_json", is_flag=True, help="Output result as JSON")
@click.pass_context
def list_adapters(ctx: click.Context, refresh: bool, as_json: bool):
    """List adapters and their DNS servers."""
    engine = _engine(ctx)
    result = asyncio.run(engine.list_dns_adapters(refresh))
    _finish(result, as_json, RichConsoleOutput().print_adapters, result.error is not None)


@adapters.command("set")
@click.argument("adapter_name")
@click.argument("primary")
@click.argument("secondary", required=False)
@click.pass_context
def set_adapter(ctx: click.Context, adapter_name: str, primary: str, secondary: Optional[str]):
    """Point ADAPTER_NAME at PRIMARY (and SECONDARY) DNS servers."""
    engine = _engine(ctx)
    result = asyncio.run(engine.set_adapter_dns(adapter_name, primary, secondary))
    if result.success:
        click.echo(f"✓ DNS of {adapter_name} updated")
    else:
        click.echo(f"✗ {result.error}", err=True)
        sys.exit(1)


@adapters.command("reset")
@click.argument("adapter_name")
@click.pass_context
def reset_adapter(ctx: click.Context, adapter_name: str):
    """Return ADAPTER_NAME to automatic DNS."""
    engine = _engine(ctx)
    result = asyncio.run(engine.reset_adapter_dns(adapter_name))
    if result.success:
        click.echo(f"✓ DNS of {adapter_name} reset")
    else:
        click.echo(f"✗ {result.error}", err=True)
        sys.exit(1)


@main.command("resolvers")
def list_resolvers():
    """List the built-in DNS resolvers."""
    from rich.table import Table
    from rich import box

    table = Table(title="Built-in DNS Resolvers", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Address", style="cyan")
    table.add_column("Description")
    for resolver in BUILTIN_RESOLVERS:
        table.add_row(resolver.name, resolver.address, resolver.description or "")
    Console().print(table)


@main.command("close-action")
@click.argument("value", required=False)
@click.pass_context
def close_action(ctx: click.Context, value: Optional[str]):
    """Show or set the close action (hide, exit or ask)."""
    state = CloseActionState.from_store(ctx.obj["store"])
    if value is not None:
        state.set(value.lower())
    click.echo(state.get().value)


@main.command()
@click.option(
    "--port", "-p",
    type=int,
    default=5000,
    help="Port to run the bridge server on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind the server to",
)
@click.pass_context
def serve(ctx: click.Context, port: int, host: str):
    """
    Serve the diagnostics over HTTP and WebSocket for the GUI shell.

    Examples:

    \b
      pulsenet serve --port 8080
    """
    from .api import run_server

    click.echo(f"PulseNet bridge listening on http://{host}:{port}")
    click.echo("Press Ctrl+C to stop the server")
    run_server(host=host, port=port, engine=_engine(ctx), log_level=ctx.obj["log_level"])


if __name__ == "__main__":
    main()
