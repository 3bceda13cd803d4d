"""
Forecast commands.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from weathercache.core.config import AppConfig, ConfigError, load_app_config
from weathercache.core.envelope import (
    CoordinateError,
    error_envelope,
    forecast_params,
    success_envelope,
    validate_coordinates,
)
from weathercache.core.logging import setup_logging
from weathercache.core.service import FetchFailure, ForecastService

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Fetch forecasts through the cache",
    no_args_is_help=True,
)

EXIT_FETCH_FAILED = 1
EXIT_BAD_COORDINATES = 2


def _load_config(path: Path | None) -> AppConfig:
    try:
        return load_app_config(path)
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


async def _fetch(config: AppConfig, latitude: float, longitude: float):
    async with ForecastService.from_config(config) as service:
        return await service.fetch(forecast_params(latitude, longitude))


def _print_envelope(envelope: dict) -> None:
    style = "yellow" if envelope["source"] == "cache" else "green"

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Source", f"[{style}]{envelope['source']}[/{style}]")
    table.add_row("Cached at", envelope["cached_at"] or "-")
    table.add_row("Expires in", f"{envelope['cache_expires_in_seconds']}s")
    table.add_row("Stale", "yes" if envelope["is_stale"] else "no")
    table.add_row("Timestamp", envelope["timestamp"])

    data = envelope["data"]
    current = data.get("current", {}) if isinstance(data, dict) else {}
    if "temperature_2m" in current:
        units = data.get("current_units", {}).get("temperature_2m", "")
        table.add_row("Temperature", f"{current['temperature_2m']}{units}")

    console.print(Panel.fit(table, title=envelope["message"], border_style=style))


@app.command("get")
def get_forecast(
    latitude: Optional[str] = typer.Option(
        None,
        "--latitude",
        "--lat",
        help="Latitude between -90 and 90 (default 52.52)",
    ),
    longitude: Optional[str] = typer.Option(
        None,
        "--longitude",
        "--lon",
        help="Longitude between -180 and 180 (default 13.41)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw JSON envelope",
    ),
) -> None:
    """Fetch the forecast for a coordinate pair."""
    try:
        lat, lon = validate_coordinates(latitude, longitude)
    except CoordinateError as e:
        envelope, _ = error_envelope(e)
        if as_json:
            console.print_json(orjson.dumps(envelope).decode("utf-8"))
        else:
            err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_BAD_COORDINATES)

    config = _load_config(config_path)
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
        console_output=not as_json,
    )

    try:
        result = asyncio.run(_fetch(config, lat, lon))
    except FetchFailure as e:
        envelope, _ = error_envelope(e)
        if as_json:
            console.print_json(orjson.dumps(envelope).decode("utf-8"))
        else:
            err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_FETCH_FAILED)

    envelope = success_envelope(result)
    if as_json:
        console.print_json(orjson.dumps(envelope).decode("utf-8"))
    else:
        _print_envelope(envelope)
