"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich output, colors, progress
bars) or machines (--json).  The formatter layer picks the mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cubectl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output flags resolved from the CLI."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON wins over quiet, quiet wins over the Rich renderers.
    """
    from cubectl.output.renderers import render_quiet, render_result

    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2, exclude_none=True)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
