"""Root CLI group for rentctl with global flags and command registration."""

from __future__ import annotations

import click

from rentctl import __version__
from rentctl.commands import register_commands
from rentctl.commands._context import AppContext
from rentctl.config.settings import ConfigError, RentSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="rentctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--token", default=None, envvar="RENTCTL_TOKEN", help="Sign-in credential.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    token: str | None,
) -> None:
    """rentctl — instrument rental agreements with a live administrator view."""
    ctx.ensure_object(dict)
    try:
        settings = RentSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            token=token,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
