"""Command group: read-only metadata queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cubectl.commands._base import CubeGroup
from cubectl.domain.specs import split_spec_args
from cubectl.services.metadata import MetadataQueryService

if TYPE_CHECKING:
    from cubectl.commands._context import AppContext

_METADATA_EXAMPLES = """\
  cubectl metadata dimensions
  cubectl metadata members Entity --filter "U*"
  cubectl metadata lists Period
  cubectl metadata expand Entity "{Group.[Base]}"
  cubectl --json metadata expand Period Jan,{Quarter2}"""


@click.group(cls=CubeGroup, examples=_METADATA_EXAMPLES)
@click.pass_obj
def metadata(app: AppContext) -> None:
    """Browse dimensions, members and member lists."""


@metadata.command(
    examples="""\
  cubectl metadata dimensions
  cubectl -q metadata dimensions"""
)
@click.pass_obj
def dimensions(app: AppContext) -> None:
    """List the application's dimensions."""
    app.emit(MetadataQueryService(app.app).dimensions())


@metadata.command(
    examples="""\
  cubectl metadata members Period
  cubectl metadata members Entity --filter "*land*"
  cubectl metadata members account --filter "Q?_*\""""
)
@click.argument("dimension")
@click.option(
    "--filter",
    "pattern",
    default=None,
    help="Case-insensitive wildcard (* and ?) on member labels.",
)
@click.pass_obj
def members(app: AppContext, dimension: str, pattern: str | None) -> None:
    """List members of DIMENSION."""
    app.emit(MetadataQueryService(app.app).members(dimension, pattern=pattern))


@metadata.command(
    examples="""\
  cubectl metadata lists Entity"""
)
@click.argument("dimension")
@click.pass_obj
def lists(app: AppContext, dimension: str) -> None:
    """List the member lists defined for DIMENSION."""
    app.emit(MetadataQueryService(app.app).lists(dimension))


@metadata.command(
    examples="""\
  cubectl metadata expand Entity UK.London
  cubectl metadata expand Entity "{[Hierarchy]}"
  cubectl metadata expand Period Jan Feb,{Quarter2}"""
)
@click.argument("dimension")
@click.argument("specs", nargs=-1, required=True)
@click.pass_obj
def expand(app: AppContext, dimension: str, specs: tuple[str, ...]) -> None:
    """Resolve member SPECS of DIMENSION to members, in order."""
    app.emit(MetadataQueryService(app.app).expand(dimension, split_spec_args(specs)))
