"""
creatorpage CLI -- inspect and edit the landing page content.

Read-side commands live in page_cmd, admin edits in edit_cmd.
Both register onto the main Click group defined here.

Entry point: creatorpage.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="creatorpage")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def main(verbose: bool):
    """creatorpage -- landing page content, synced.

    Remote store first, local cache when it is silent.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .page_cmd import register_page_commands
from .edit_cmd import register_edit_commands

register_page_commands(main)
register_edit_commands(main)
