"""Admin edit commands: add, delete, set, update, reset."""

from __future__ import annotations

import click
from pydantic.alias_generators import to_snake

from ._common import (
    COLLECTION_CHOICE,
    HOME_OPTION,
    PASSWORD_OPTION,
    console,
    run_as_admin,
)
from ..models import CollectionKind, RecordKind
from ..page import PageController

RECORD_CHOICE = click.Choice([kind.value for kind in RecordKind])
SHOW_DIGEST_OPTION = click.option(
    "--show-digest", is_flag=True, help="On a failed login, print the digest of what was typed."
)


def register_edit_commands(main: click.Group) -> None:
    """Register the admin edit commands on the main CLI group."""

    @main.command()
    @click.argument("kind", type=COLLECTION_CHOICE)
    @HOME_OPTION
    @PASSWORD_OPTION
    @SHOW_DIGEST_OPTION
    def add(kind: str, home: str, password: str, show_digest: bool):
        """Append a blank item to a collection."""
        collection = CollectionKind(kind)

        async def _add(page: PageController):
            return await page.add_item(collection)

        data = run_as_admin(home, password, _add, show_digest)
        item = data.collection(collection)[-1]
        console.print(f"  [green]Added[/] {kind} item [bold]{item.id}[/]")

    @main.command()
    @click.argument("kind", type=COLLECTION_CHOICE)
    @click.argument("index", type=int)
    @HOME_OPTION
    @PASSWORD_OPTION
    @SHOW_DIGEST_OPTION
    @click.option("--force", is_flag=True, help="Skip confirmation.")
    def delete(kind: str, index: int, home: str, password: str, show_digest: bool, force: bool):
        """Delete the item at INDEX (0-based) from a collection."""
        if not force and not click.confirm(f"Delete {kind}[{index}] permanently?"):
            console.print("[yellow]Aborted.[/]")
            return
        collection = CollectionKind(kind)

        async def _delete(page: PageController):
            return await page.delete_item(collection, index)

        data = run_as_admin(home, password, _delete, show_digest)
        console.print(f"  [green]Deleted[/] {kind}[{index}], {len(data.collection(collection))} left")

    @main.command("set")
    @click.argument("section", type=RECORD_CHOICE)
    @click.argument("field")
    @click.argument("value")
    @HOME_OPTION
    @PASSWORD_OPTION
    @SHOW_DIGEST_OPTION
    def set_field(section: str, field: str, value: str, home: str, password: str, show_digest: bool):
        """Set FIELD of the profile, content or stats record."""
        record = RecordKind(section)
        name = to_snake(field)

        async def _set(page: PageController):
            return await page.update_record(record, **{name: value})

        run_as_admin(home, password, _set, show_digest)
        console.print(f"  [green]Updated[/] {section}.{name}")

    @main.command()
    @click.argument("kind", type=COLLECTION_CHOICE)
    @click.argument("index", type=int)
    @click.argument("field")
    @click.argument("value")
    @HOME_OPTION
    @PASSWORD_OPTION
    @SHOW_DIGEST_OPTION
    def update(kind: str, index: int, field: str, value: str, home: str, password: str, show_digest: bool):
        """Set FIELD of the item at INDEX in a collection."""
        collection = CollectionKind(kind)
        name = to_snake(field)

        async def _update(page: PageController):
            return await page.update_item(collection, index, **{name: value})

        run_as_admin(home, password, _update, show_digest)
        console.print(f"  [green]Updated[/] {kind}[{index}].{name}")

    @main.command()
    @HOME_OPTION
    @PASSWORD_OPTION
    @SHOW_DIGEST_OPTION
    @click.option("--force", is_flag=True, help="Skip confirmation.")
    def reset(home: str, password: str, show_digest: bool, force: bool):
        """Discard every customization, locally and remotely."""
        if not force and not click.confirm("Reset all page data to defaults?"):
            console.print("[yellow]Aborted.[/]")
            return

        async def _reset(page: PageController):
            return page.reset()

        run_as_admin(home, password, _reset, show_digest)
        console.print("  [green]Page data reset to defaults.[/]")
