"""Custom Click base classes and shared options.

:class:`CubeCommand` and :class:`CubeGroup` accept an ``examples``
parameter; ``--examples`` prints them and exits, keeping ``--help`` short.
:func:`member_options` adds one repeatable ``--<axis>`` option per POV
axis a command needs.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import click

from cubectl.domain.dimensions import Axis
from cubectl.domain.specs import split_spec_args


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class CubeCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class CubeGroup(click.Group):
    """Click Group whose subcommands default to :class:`CubeCommand`."""

    command_class = CubeCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


# ---------------------------------------------------------------------------
# Member options
# ---------------------------------------------------------------------------

_AXIS_HELP: dict[Axis, str] = {
    Axis.SCENARIO: "Scenario members, e.g. Actual or {Scenarios}.",
    Axis.YEAR: "Year members, e.g. 2024.",
    Axis.PERIOD: "Period members, e.g. Jan or {Quarter1}.",
    Axis.ENTITY: "Entity members, e.g. Group.UK or {Group.[Base]}.",
    Axis.VALUE: "Value members, e.g. <Entity Currency>.",
}


def member_options(
    axes: Sequence[Axis], *, required: bool = True
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Add a repeatable, comma-splittable ``--<axis>`` option per axis.

    The command receives each as a tuple keyword named after the axis.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        for axis in reversed(axes):
            name = axis.value.lower()
            func = click.option(
                f"--{name}",
                name,
                multiple=True,
                required=required,
                metavar="SPEC",
                help=_AXIS_HELP[axis],
            )(func)
        return func

    return decorator


def collect_axis_specs(**values: Sequence[str]) -> dict[str, list[str]]:
    """Map axis names to their specs, splitting comma-separated values.

    Axes given no value are left out.
    """
    specs: dict[str, list[str]] = {}
    for key, raw in values.items():
        if raw:
            specs[Axis.parse(key).value] = split_spec_args(list(raw))
    return specs
