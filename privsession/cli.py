"""Command-line interface for privsession."""

import json
import logging
import os
import sys
import time
import urllib.error
import urllib.request
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from privsession import __version__
from privsession.config import KeeperSettings, get_state_file
from privsession.services.state_store import StateStore, deserialize
from privsession.timing import (
    is_restored_state_usable,
    refresh_delay_for_restored_state,
)
from privsession.utils import format_time

app = typer.Typer(
    name="privsession",
    help="Keep a private-mode session enabled and renewed.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

DEFAULT_PORT = 8765


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]privsession[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """privsession - keep a private-mode session enabled and renewed."""
    pass


def _configure_environment(
    state_file: Path | None,
    app_name: str | None,
    notifications: bool,
) -> dict[str, str]:
    """Build environment variables for the keeper server."""
    env: dict[str, str] = {}
    if state_file:
        env["PRIVSESSION_STATE_FILE"] = str(state_file.expanduser().resolve())
    if app_name:
        env["PRIVSESSION_APP_NAME"] = app_name
    if not notifications:
        env["PRIVSESSION_NOTIFICATIONS"] = "0"
    return env


def _configure_logging(level: str) -> None:
    """Send log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _daemon_request(
    url: str,
    method: str = "GET",
    timeout_seconds: float = 2.0,
) -> dict | None:
    """Call the running keeper API, returning the JSON body or None."""
    request = urllib.request.Request(url, method=method)
    try:
        with urllib.request.urlopen(request, timeout=timeout_seconds) as response:
            return json.loads(response.read().decode("utf-8"))
    except (urllib.error.URLError, TimeoutError, OSError, ValueError):
        return None


def _format_epoch(value: float) -> str:
    return datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M:%S")


@app.command()
def run(
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host to bind the status API to."),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to bind the status API to."),
    ] = DEFAULT_PORT,
    state_file: Annotated[
        Path | None,
        typer.Option(
            "--state-file",
            "-s",
            help="Where to keep the session record (defaults to ~/.privsession).",
        ),
    ] = None,
    app_name: Annotated[
        str | None,
        typer.Option("--app", help="Application to keep in private mode."),
    ] = None,
    notifications: Annotated[
        bool,
        typer.Option(
            "--notifications/--no-notifications",
            help="Show desktop notifications on failures.",
        ),
    ] = True,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Logging level."),
    ] = "INFO",
) -> None:
    """Run the keeper in the foreground.

    Watches the application and system sleep, renews the private session
    before it expires and serves a small status API.
    """
    _configure_logging(log_level)
    os.environ.update(_configure_environment(state_file, app_name, notifications))
    settings = KeeperSettings.from_env()

    console.print(
        Panel(
            f"[bold green]Starting privsession keeper[/bold green]\n\n"
            f"  App: {settings.app_name}\n"
            f"  State file: {settings.state_file}\n"
            f"  Session: {format_time(settings.engine.session_duration)}, "
            f"renew {format_time(settings.engine.renew_before_expiry)} early\n"
            f"  Status API: http://{host}:{port}/api/status",
            title="privsession",
            border_style="blue",
        )
    )

    import uvicorn

    uvicorn.run(
        "privsession.main:app",
        host=host,
        port=port,
        log_config=None,
    )


@app.command()
def status(
    state_file: Annotated[
        Path | None,
        typer.Option("--state-file", "-s", help="Session record to inspect."),
    ] = None,
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host of a running keeper."),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port of a running keeper."),
    ] = DEFAULT_PORT,
) -> None:
    """Show the stored session and the running keeper's status."""
    from rich.table import Table

    config = KeeperSettings.from_env().engine
    path = state_file or get_state_file()
    record = StateStore(path).load()

    table = Table(title="Private Session")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("State file", str(path))

    if record is None:
        table.add_row("Stored session", "none")
    else:
        start, elapsed = deserialize(record, time.time(), config.session_duration)
        table.add_row("Started", _format_epoch(record.start_wall_clock))
        table.add_row("Saved", _format_epoch(record.saved_at_wall_clock))
        if start is None or elapsed is None:
            table.add_row("Stored session", "expired or invalid")
        else:
            table.add_row(
                "Expires in", format_time(config.session_duration - elapsed)
            )
            if is_restored_state_usable(elapsed, config):
                delay = refresh_delay_for_restored_state(elapsed, config)
                table.add_row("Renewal due in", format_time(delay))
            else:
                table.add_row("Renewal due in", "now")

    live = _daemon_request(f"http://{host}:{port}/api/status")
    if live is None:
        table.add_row("Keeper", "not running")
    else:
        table.add_row("Keeper", str(live.get("status", "unknown")))
        if live.get("remaining"):
            table.add_row("Remaining", str(live["remaining"]))
        if live.get("detail"):
            table.add_row("Detail", str(live["detail"]))

    console.print(table)


@app.command()
def check(
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host of a running keeper."),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port of a running keeper."),
    ] = DEFAULT_PORT,
) -> None:
    """Ask the running keeper to check the private session now."""
    result = _daemon_request(f"http://{host}:{port}/api/check", method="POST")
    if result is None:
        console.print(
            f"[red]Error:[/red] No keeper responding on {host}:{port}. "
            "Start one with `privsession run`."
        )
        raise typer.Exit(1)
    console.print("[green]✓[/green] Check queued")


@app.command()
def reset(
    state_file: Annotated[
        Path | None,
        typer.Option("--state-file", "-s", help="Session record to delete."),
    ] = None,
) -> None:
    """Forget the stored session."""
    path = state_file or get_state_file()
    if StateStore(path).clear():
        console.print(f"[green]✓[/green] Removed {path}")
    else:
        console.print(f"[yellow]No stored session at {path}[/yellow]")


@app.command()
def info() -> None:
    """Show the effective configuration."""
    settings = KeeperSettings.from_env()
    engine = settings.engine
    console.print(
        Panel(
            f"[bold blue]privsession[/bold blue] v{__version__}\n\n"
            f"[bold]Python:[/bold] {sys.version}\n"
            f"[bold]App:[/bold] {settings.app_name} ({settings.menu_item})\n"
            f"[bold]State file:[/bold] {settings.state_file}\n"
            f"[bold]Session duration:[/bold] {format_time(engine.session_duration)}\n"
            f"[bold]Renew before expiry:[/bold] "
            f"{format_time(engine.renew_before_expiry)}\n"
            f"[bold]Wake verification delay:[/bold] "
            f"{format_time(engine.wake_verification_delay)}\n"
            f"[bold]Debounce interval:[/bold] {engine.debounce_interval:g}s\n"
            f"[bold]Short sleep threshold:[/bold] "
            f"{format_time(engine.short_sleep_threshold)}",
            title="Configuration",
            border_style="blue",
        )
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
