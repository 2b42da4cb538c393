"""Subcommand modules for cubectl.

Provides register_commands() which uses deferred imports to keep
``cubectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from cubectl.commands.metadata import metadata

    cli.add_command(metadata)

    # --- Subcube operations ---
    from cubectl.commands.calculate import allocate, calc_epu, calculate, consolidate, translate

    cli.add_command(allocate)
    cli.add_command(calculate)
    cli.add_command(translate)
    cli.add_command(consolidate)
    cli.add_command(calc_epu)

    # --- Standalone commands ---
    from cubectl.commands.load import load
    from cubectl.commands.status import status

    cli.add_command(status)
    cli.add_command(load)
