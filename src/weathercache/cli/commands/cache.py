"""
Cache store management commands.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from weathercache.core.cache import SqlCacheStore
from weathercache.core.config import CacheBackendType, load_app_config
from weathercache.persistence.db import drop_db

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Cache store operations",
    no_args_is_help=True,
)


async def _prepare_schema(url: str, drop_existing: bool) -> None:
    store = SqlCacheStore.from_url(url)
    try:
        if drop_existing:
            await drop_db(store.engine)
        await store.create_schema()
    finally:
        await store.close()


@app.command("init")
def init_cache(
    drop_existing: bool = typer.Option(
        False,
        "--drop",
        help="Drop the cache table before creating it",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Create the SQL cache table.

    Only meaningful for the sql backend; the memory backend needs no setup.
    """
    config = load_app_config(config_path)

    if config.cache.backend != CacheBackendType.SQL:
        console.print("[dim]Memory cache backend configured - nothing to initialize.[/dim]")
        return

    if drop_existing:
        if not typer.confirm("This will DELETE ALL CACHED DATA. Continue?", default=False):
            raise typer.Abort()
        console.print("[yellow]Dropping cache table...[/yellow]")

    asyncio.run(_prepare_schema(config.cache.database_url, drop_existing))
    console.print(f"[green]OK[/green] Cache schema ready at [cyan]{config.cache.database_url}[/cyan]")
