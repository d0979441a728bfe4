"""CLI entry point for the SmartUI SDK."""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .client import ServerClient
from .config import load_config, resolve_server_address
from .errors import SmartUIError
from .log import setup_logging
from .tracking.navigation import RESULTS_FILE

console = Console()


@click.group()
@click.version_option(package_name="smartui-sdk")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """SmartUI SDK - snapshot capture for visual regression testing."""
    ctx.ensure_object(dict)

    config = load_config(Path(config_path) if config_path else None)
    ctx.obj["config"] = config
    setup_logging(verbose=verbose or config.verbose)


@main.command()
@click.pass_context
def healthcheck(ctx: click.Context) -> None:
    """Check that the SmartUI server is reachable."""
    config = ctx.obj["config"]

    try:
        address = resolve_server_address(config)
        response = asyncio.run(_check_health(config))
    except SmartUIError as exc:
        console.print(f"[bold red]✗ SmartUI server not reachable:[/] {exc}")
        raise SystemExit(1)

    if not response.cli_version:
        console.print(f"[bold red]✗ SmartUI server at {address} did not report a version[/]")
        raise SystemExit(1)

    console.print(f"[bold green]✓ SmartUI server is running[/] at {address}")
    console.print(f"[dim]CLI version: {response.cli_version}[/]")


@main.command()
@click.option("--context-id", required=True, help="Snapshot context id")
@click.option("--timeout", type=float, default=600, show_default=True, help="Seconds to wait")
@click.pass_context
def status(ctx: click.Context, context_id: str, timeout: float) -> None:
    """Show the processing status of a snapshot context."""
    config = ctx.obj["config"]

    try:
        response = asyncio.run(_snapshot_status(config, context_id, timeout))
    except SmartUIError as exc:
        console.print(f"[bold red]✗ Status request failed:[/] {exc}")
        raise SystemExit(1)

    style = "yellow" if response.status == 408 else "green"
    console.print(f"[{style}]HTTP {response.status}[/]")
    body = response.body if isinstance(response.body, str) else json.dumps(response.body, indent=2)
    console.print(body, markup=False)


@main.command()
@click.argument("path", type=click.Path(path_type=Path), required=False)
@click.pass_context
def navigations(ctx: click.Context, path: Path | None) -> None:
    """Print the navigations saved by a tracker run."""
    config = ctx.obj["config"]
    path = path or config.tracker.results_dir / RESULTS_FILE

    if not path.exists():
        console.print(f"[yellow]No tracking results at {path}[/]")
        raise SystemExit(1)

    data = json.loads(path.read_text())
    entries = data.get("navigations", [])

    table = Table(title=f"Navigations: {data.get('test_name', '-')} ({data.get('session_id', '-')})")
    table.add_column("#", style="dim")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")
    table.add_column("Type", style="magenta")
    table.add_column("Time", style="dim")

    for index, nav in enumerate(entries, start=1):
        table.add_row(
            str(index),
            nav.get("previous_screen") or "-",
            nav.get("current_screen", ""),
            nav.get("navigation_type", ""),
            nav.get("timestamp", ""),
        )

    console.print(table)
    console.print(f"\n[bold]Total:[/] {len(entries)} navigation events\n")


async def _check_health(config):
    async with ServerClient.from_config(config) as client:
        return await client.check_health()


async def _snapshot_status(config, context_id: str, timeout: float):
    async with ServerClient.from_config(config) as client:
        return await client.get_snapshot_status(context_id, timeout=timeout)
