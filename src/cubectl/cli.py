"""Root CLI group for cubectl with global flags and command registration."""

from __future__ import annotations

import click

from cubectl import __version__
from cubectl.commands import register_commands
from cubectl.commands._context import AppContext
from cubectl.config.settings import CubeSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="cubectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-progress", is_flag=True, help="Do not draw progress bars.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_progress: bool,
    config_path: str | None,
) -> None:
    """cubectl — bulk subcube operations across a financial cube."""
    ctx.ensure_object(dict)
    settings = CubeSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        no_progress=no_progress,
    )
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
