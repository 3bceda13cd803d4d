"""
weathercache CLI - Main entry point.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from weathercache import __app_name__, __version__
from weathercache.core.config import write_default_config
from weathercache.core.config.loader import DEFAULT_CONFIG_PATH

# Load environment variables from .env (if present)
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Cache-aside weather forecast fetcher",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """weathercache - forecasts with retry-on-throttle and stale fallback."""


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import cache, forecast  # noqa: E402

app.add_typer(forecast.app, name="forecast", help="Fetch forecasts through the cache")
app.add_typer(cache.app, name="cache", help="Cache store operations")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Where to write app.yaml",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configuration file."""
    if not write_default_config(config_path, force=force):
        err_console.print(f"[yellow]{config_path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]OK - wrote {config_path}[/bold green]\n\n"
        "Next steps:\n"
        "  1. Set [cyan]WEATHERCACHE_API_BASE_URL[/cyan] or edit upstream.base_url\n"
        "  2. For a shared cache set cache.backend to sql and run "
        "[yellow]weathercache cache init[/yellow]\n"
        "  3. Fetch: [yellow]weathercache forecast get --lat 52.52 --lon 13.41[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
