"""Command: calculation status per POV."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cubectl.commands._base import CubeCommand, collect_axis_specs, member_options
from cubectl.domain.dimensions import ALL_AXES, Axis

if TYPE_CHECKING:
    from cubectl.commands._context import AppContext


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl status --scenario Actual --year 2024 --period Jan --entity {Group.[Hierarchy]}
  cubectl status --scenario Actual --year 2024 --period {[Base]} --entity UK \\
      --value "<Entity Currency>"
  cubectl --json status --scenario Actual --year 2024 --period Jan --entity Group""",
)
@member_options(ALL_AXES[:4])
@member_options([Axis.VALUE], required=False)
@click.pass_obj
def status(app: AppContext, **axis_values: tuple[str, ...]) -> None:
    """Show the calculation status of every POV in the slice.

    Value is optional; without it, status is shown per entity.
    """
    from cubectl.services.metadata import MetadataQueryService

    svc = MetadataQueryService(app.app)
    app.emit(svc.status(collect_axis_specs(**axis_values)))
