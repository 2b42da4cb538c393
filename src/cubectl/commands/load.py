"""Command: load an application outline into the sandbox."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from cubectl.commands._base import CubeCommand

if TYPE_CHECKING:
    from cubectl.commands._context import AppContext


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl load outline.toml
  cubectl load outline.toml --replace
  cubectl -c other/cubectl.toml load demo.toml""",
)
@click.argument("outline", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--replace", is_flag=True, help="Replace an application that is already loaded.")
@click.pass_obj
def load(app: AppContext, outline: Path, replace: bool) -> None:
    """Load the dimensions, lists and status in OUTLINE (TOML)."""
    from cubectl.services.load import LoadService

    app.emit(LoadService(app.app).load(outline, replace=replace))
