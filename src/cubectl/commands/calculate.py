"""Commands: subcube operations (allocate, calculate, translate, consolidate, calc-epu)."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from cubectl.commands._base import CubeCommand, collect_axis_specs, member_options
from cubectl.domain.dimensions import ALL_AXES
from cubectl.domain.types import ConsolidationType
from cubectl.services.executor import CONSOLIDATION_AXES, EPU_AXES

if TYPE_CHECKING:
    from cubectl.commands._context import AppContext
    from cubectl.services.result import ServiceResult

_CONSOLIDATION_CHOICES = [t.option_name for t in ConsolidationType]

max_povs_option = click.option(
    "--max-povs",
    type=click.IntRange(min=0),
    default=None,
    help="Stop after this many POVs (0 = no limit).",
)
force_option = click.option(
    "--force", is_flag=True, help="Run even where the status says it is not needed."
)


def _run_subcube(
    app: AppContext,
    operation: Callable[..., ServiceResult],
    max_povs: int | None,
    axis_values: dict[str, tuple[str, ...]],
    **kwargs: Any,
) -> None:
    from cubectl.output.progress import CancellationToken, cancel_on_interrupt

    axis_specs = collect_axis_specs(**axis_values)
    token = CancellationToken()
    progress = app.progress_sink(token, max_povs=max_povs)
    with cancel_on_interrupt(token):
        result = operation(axis_specs, progress=progress, **kwargs)
    app.emit(result)


def _service(app: AppContext) -> Any:
    from cubectl.services.calculate import CalculateService

    return CalculateService(app.app)


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl allocate --scenario Actual --year 2024 --period Jan \\
      --entity Group.UK --value "<Entity Currency>"
  cubectl allocate --scenario Actual --year 2024 --period {Quarter1} \\
      --entity {Group.[Base]} --value "<Entity Currency>\"""",
)
@member_options(ALL_AXES)
@max_povs_option
@click.pass_obj
def allocate(app: AppContext, max_povs: int | None, **axis_values: tuple[str, ...]) -> None:
    """Run allocations for every POV of the slice."""
    _run_subcube(app, _service(app).allocate, max_povs, axis_values)


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl calculate --scenario Actual --year 2024 --period Jan,Feb \\
      --entity {[Base]} --value "<Entity Currency>"
  cubectl calculate --force --scenario Budget --year 2025 --period {[Base]} \\
      --entity UK --value "<Entity Currency>\"""",
)
@member_options(ALL_AXES)
@force_option
@max_povs_option
@click.pass_obj
def calculate(
    app: AppContext, force: bool, max_povs: int | None, **axis_values: tuple[str, ...]
) -> None:
    """Run chart logic for every POV of the slice."""
    _run_subcube(app, _service(app).calculate, max_povs, axis_values, force=force)


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl translate --scenario Actual --year 2024 --period Jan \\
      --entity {Group.[Descendants]} --value "<Parent Currency>"
  cubectl translate --force --scenario Actual --year 2024 --period Jan \\
      --entity Group.UK --value USD""",
)
@member_options(ALL_AXES)
@force_option
@click.option(
    "--apply-rates/--no-apply-rates",
    default=None,
    help="Apply exchange rates (default from [translate] apply_rates).",
)
@max_povs_option
@click.pass_obj
def translate(
    app: AppContext,
    force: bool,
    apply_rates: bool | None,
    max_povs: int | None,
    **axis_values: tuple[str, ...],
) -> None:
    """Translate every POV of the slice."""
    _run_subcube(
        app,
        _service(app).translate,
        max_povs,
        axis_values,
        force=force,
        apply_rates=apply_rates,
    )


@click.command(
    cls=CubeCommand,
    examples="""\
  cubectl consolidate --scenario Actual --year 2024 --period Jan --entity Group
  cubectl consolidate --type all --scenario Actual --year 2024 \\
      --period {[Base]} --entity {Group.[Hierarchy]}
  cubectl --json consolidate --scenario Actual --year 2024 --period Jan,Feb --entity Group""",
)
@member_options(CONSOLIDATION_AXES)
@click.option(
    "--type",
    "consolidation_type",
    type=click.Choice(_CONSOLIDATION_CHOICES, case_sensitive=False),
    default=None,
    help="Consolidation type (default from [consolidation] default_type).",
)
@max_povs_option
@click.pass_obj
def consolidate(
    app: AppContext,
    consolidation_type: str | None,
    max_povs: int | None,
    **axis_values: tuple[str, ...],
) -> None:
    """Consolidate every Scenario/Year/Period/Entity POV of the slice.

    With the default "impacted" type, POVs that do not need consolidation
    are skipped.
    """
    resolved = ConsolidationType.from_option(consolidation_type) if consolidation_type else None
    _run_subcube(
        app, _service(app).consolidate, max_povs, axis_values, consolidation_type=resolved
    )


@click.command(
    "calc-epu",
    cls=CubeCommand,
    examples="""\
  cubectl calc-epu --scenario Actual --year 2024 --period Jan
  cubectl calc-epu --force --scenario Actual --year 2024 --period {[Base]}""",
)
@member_options(EPU_AXES)
@force_option
@max_povs_option
@click.pass_obj
def calc_epu(
    app: AppContext, force: bool, max_povs: int | None, **axis_values: tuple[str, ...]
) -> None:
    """Run equity pick-up for every Scenario/Year/Period of the slice."""
    _run_subcube(app, _service(app).calculate_epu, max_povs, axis_values, force=force)
