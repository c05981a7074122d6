"""Read-side commands: show, watch, status, init, digest."""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from ._common import HOME_OPTION, console, render_snapshot, run_with_page
from ..auth import compute_digest
from ..config import CONFIG_FILE, PageConfig, load_config, save_config
from ..page import PageController
from ..sync.cache import LocalCache


def _format_stamp(stamp: int) -> str:
    if not stamp:
        return "never"
    return datetime.fromtimestamp(stamp / 1000, tz=timezone.utc).isoformat(timespec="seconds")


def register_page_commands(main: click.Group) -> None:
    """Register the read-side commands on the main CLI group."""

    @main.command()
    @HOME_OPTION
    @click.option("--json-out", is_flag=True, help="Print the snapshot as JSON.")
    def show(home: str, json_out: bool):
        """Show the page content as the first snapshot delivers it."""

        async def _current(page: PageController):
            return page.data, page.coordinator.source

        data, source = run_with_page(home, _current)
        if json_out:
            click.echo(json.dumps(data.to_wire(), indent=2, ensure_ascii=False))
            return
        console.print(f"  [dim]source: {source.value if source else 'unknown'}[/]")
        render_snapshot(data)

    @main.command()
    @HOME_OPTION
    def watch(home: str):
        """Print every snapshot as it arrives. Ctrl-C to stop."""

        async def _watch() -> None:
            async with PageController.from_config(Path(home).expanduser()) as page:
                async for snapshot in page.subscribe():
                    source = page.coordinator.source
                    console.print(
                        f"  [cyan]{_format_stamp(snapshot.last_updated)}[/] "
                        f"[dim]{source.value if source else ''}[/] "
                        f"{snapshot.profile.name}: {len(snapshot.schedule)} schedule, "
                        f"{len(snapshot.rank)} rank, {len(snapshot.moderators)} mods, "
                        f"{len(snapshot.gallery)} gallery"
                    )

        try:
            asyncio.run(_watch())
        except KeyboardInterrupt:
            console.print("\n  [dim]Stopped.[/]")

    @main.command()
    @HOME_OPTION
    def status(home: str):
        """Show configuration and local cache state. No network access."""
        home_path = Path(home).expanduser()
        config = load_config(home_path)
        cache = LocalCache(config.cache_path(home_path))

        remote = config.remote
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("Home", str(home_path))
        table.add_row(
            "Remote",
            f"[green]{remote.database_url}[/] ({remote.path})"
            if remote.is_configured
            else "[yellow]not configured, local cache only[/]",
        )
        table.add_row("Fallback", f"{config.fallback_seconds:.1f}s")
        table.add_row("Cache", str(cache.path))
        if cache.exists():
            table.add_row("Cached at", _format_stamp(cache.load().last_updated))
        else:
            table.add_row("Cached at", "[dim]no snapshot[/]")

        console.print()
        console.print(Panel(table, title="creatorpage", border_style="bright_blue"))
        console.print()

    @main.command()
    @HOME_OPTION
    @click.option("--force", is_flag=True, help="Overwrite an existing config.")
    def init(home: str, force: bool):
        """Write a config template with a placeholder credential."""
        home_path = Path(home).expanduser()
        if (home_path / CONFIG_FILE).exists() and not force:
            console.print(f"[yellow]Config already exists:[/] {home_path / CONFIG_FILE}")
            sys.exit(1)
        path = save_config(PageConfig(), home_path)
        console.print(f"  [green]Config written:[/] {path}")
        console.print("  Set remote.api_key and remote.database_url to enable sync.")

    @main.command()
    @click.argument("password")
    @HOME_OPTION
    @click.option("--salt", default=None, help="Salt to use instead of the configured one.")
    def digest(password: str, home: str, salt: Optional[str]):
        """Print the salted digest of PASSWORD, for admin.digest in the config."""
        if salt is None:
            salt = load_config(Path(home).expanduser()).admin.salt
        click.echo(compute_digest(password, salt))
