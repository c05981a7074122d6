"""Shared utilities for all CLI command modules.

Provides the Rich console instance, number formatting, snapshot
rendering and the async runners the command groups share.
"""

from __future__ import annotations

import asyncio
import math
import sys
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.table import Table

from .. import PAGE_HOME
from ..errors import ConnectivityError, CredentialError, WriteError
from ..models import AppData, CollectionKind
from ..page import PageController

console = Console()

T = TypeVar("T")

# Seconds an admin edit waits for the remote value before giving up.
EDIT_SYNC_TIMEOUT = 10.0

COLLECTION_CHOICE = click.Choice([kind.value for kind in CollectionKind])


def format_number(num: float) -> str:
    """Compact audience count: 1200000 -> '1.2M', 12500 -> '12.5K'."""
    if isinstance(num, float) and math.isnan(num):
        return "0"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


def render_snapshot(data: AppData) -> None:
    """Print a snapshot as Rich tables."""
    p = data.profile
    console.print(f"\n  [bold]{p.name}[/]  [dim]{p.tagline}[/]")
    console.print(
        f"  Subscribers [cyan]{format_number(data.stats.subscribers)}[/]  "
        f"Followers [cyan]{format_number(data.stats.followers)}[/]  "
        f"Views [cyan]{format_number(data.stats.total_views)}[/]\n"
    )

    schedule = Table(title="Schedule", show_header=True, header_style="bold", box=None, padding=(0, 2))
    schedule.add_column("#", style="dim")
    schedule.add_column("Day", style="bold")
    schedule.add_column("Activity")
    schedule.add_column("Time", style="cyan")
    schedule.add_column("Badge", style="yellow")
    for i, item in enumerate(data.schedule):
        schedule.add_row(str(i), item.day, item.activity, item.time, item.badge)
    console.print(schedule)

    for title, items in (("Rank", data.rank), ("Moderators", data.moderators)):
        table = Table(title=title, show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("#", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Handle", style="dim")
        table.add_column("Points", justify="right", style="cyan")
        for item in items:
            table.add_row(str(item.rank), item.name, item.youtube_handle or "", format_number(item.points))
        console.print(table)

    console.print(f"  Gallery: {len(data.gallery)} image(s)\n")


def run_with_page(home: str, action: Callable[[PageController], Awaitable[T]]) -> T:
    """Open a controller, wait for the first snapshot, run ``action``."""

    async def _run() -> T:
        async with PageController.from_config(Path(home).expanduser()) as page:
            await page.subscribe().first_snapshot
            result = await action(page)
            await page.coordinator.wait_pending()
            return result

    return asyncio.run(_run())


def run_as_admin(
    home: str,
    password: str,
    action: Callable[[PageController], Awaitable[T]],
    show_digest: bool = False,
) -> T:
    """Like run_with_page(), after logging in. Exits non-zero on failure.

    With a remote store configured, the edit waits until the remote value
    has arrived, so a stale cache snapshot is never pushed over it.
    """

    async def _admin_action(page: PageController) -> T:
        if not page.login(password):
            raise page.session.last_error or CredentialError("Wrong password!")
        coordinator = page.coordinator
        if coordinator.remote is not None and not await coordinator.wait_synced(EDIT_SYNC_TIMEOUT):
            raise ConnectivityError(
                f"Remote store did not answer within {EDIT_SYNC_TIMEOUT:g}s; "
                "not editing on top of the local cache."
            )
        return await action(page)

    try:
        return run_with_page(home, _admin_action)
    except CredentialError as exc:
        console.print(f"[bold red]Denied:[/] {exc}")
        if show_digest and exc.computed_digest:
            console.print(f"  [dim]Digest of what you typed: {exc.computed_digest}[/]")
        sys.exit(1)
    except ConnectivityError as exc:
        console.print(f"[bold red]Offline:[/] {exc}")
        sys.exit(1)
    except WriteError as exc:
        console.print(
            "[bold yellow]Saved locally, but the remote write failed.[/] "
            "Other viewers will not see this change yet."
        )
        console.print(f"  [dim]{exc}[/]")
        sys.exit(1)
    except (IndexError, ValueError) as exc:
        console.print(f"[bold red]Invalid edit:[/] {exc}")
        sys.exit(1)


HOME_OPTION = click.option("--home", default=PAGE_HOME, type=click.Path(), help="Page home directory.")
PASSWORD_OPTION = click.option(
    "--password", prompt=True, hide_input=True, help="Admin password."
)
