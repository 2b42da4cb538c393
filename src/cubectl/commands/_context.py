"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Application initialization, the
progress sink for subcube commands and centralized result emission
(stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from cubectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from cubectl.config.settings import CubeSettings
    from cubectl.infrastructure.application import Application
    from cubectl.output.progress import CancellationToken, NullProgressSink
    from cubectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The application is
    lazily initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: CubeSettings) -> None:
        self.settings = settings
        self._app: Application | None = None

        # Configure structured logging
        from cubectl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from cubectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def app(self) -> Application:
        """The application instance (created lazily on first access)."""
        if self._app is None:
            from cubectl.infrastructure.application import Application

            plugins = None
            if self.settings.plugins.enabled:
                from cubectl.plugins.manager import PluginManager

                plugins = PluginManager()
                plugins.discover_and_load()
            self._app = Application(self.settings, plugins=plugins)
        return self._app

    def progress_sink(
        self,
        token: CancellationToken,
        *,
        max_povs: int | None = None,
    ) -> NullProgressSink:
        """Progress sink for one subcube command.

        The bar is drawn only for human output on an interactive stderr.
        """
        from cubectl.output.progress import NullProgressSink, RichProgressSink

        limit = self.settings.progress.max_povs if max_povs is None else max_povs
        stall = self.settings.progress.stall_warning_seconds
        show = not (
            self.settings.no_progress
            or self.settings.json_output
            or self.settings.quiet
            or not sys.stderr.isatty()
        )
        sink_cls = RichProgressSink if show else NullProgressSink
        return sink_cls(token, max_povs=limit, stall_warning_seconds=stall)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def close(self) -> None:
        if self._app is not None:
            self._app.close()
            self._app = None
