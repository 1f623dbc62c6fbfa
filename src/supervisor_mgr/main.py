"""Main CLI entry point for supervisor-mgr.

This module provides the command-line interface for inspecting and
controlling processes on one or more remote supervisord servers.
"""

import functools
import sys
import traceback
from typing import Any, Dict, Optional, Sequence

import click
import structlog

from . import __version__
from .config import ConfigurationError, ConfigurationManager, configure_logging, load_settings
from .management import ServerError, ServerRegistry
from .management.commands import build_command_table
from .management.rpc_client import SupervisorClient
from .reporting import ClickOutputSink

logger = structlog.get_logger()


class CLIError(Exception):
    """Base CLI error with user-friendly messages."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)


class CLIContext:
    """Global CLI context management."""

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        overrides = overrides or {}
        self.verbose = verbose
        self.quiet = quiet
        self.settings = load_settings()
        self.config_file = config_file or self.settings.config
        self.client_factory = overrides.get("client_factory") or functools.partial(
            SupervisorClient, timeout=self.settings.rpc.timeout
        )
        self.clock = overrides.get("clock")
        self._registry: Optional[ServerRegistry] = None

    @property
    def log_level(self) -> str:
        if self.verbose:
            return "DEBUG"
        if self.quiet:
            return "ERROR"
        return self.settings.logging.level

    def get_registry(self) -> ServerRegistry:
        """Load the server list once per invocation.

        Raises:
            ConfigurationError: If the configuration file is missing or invalid
        """
        if self._registry is None:
            self._registry = ConfigurationManager().load_registry(self.config_file)
        return self._registry


def handle_cli_error(error: Exception, ctx: Optional[click.Context] = None):
    """Global CLI error handler."""
    try:
        if isinstance(error, CLIError):
            click.echo(f"Error: {error.message}", err=True)
            if error.suggestion:
                click.echo(f"Suggestion: {error.suggestion}", err=True)
        elif isinstance(error, click.ClickException):
            error.show()
        else:
            verbose = False
            if ctx and ctx.obj:
                verbose = ctx.obj.get("verbose", False)

            click.echo(f"Unexpected error: {str(error)}", err=True)
            if verbose:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo(
                    "Run with --verbose for detailed error information", err=True
                )

        sys.exit(1)
    except Exception as handler_error:
        # Fallback if error handler itself fails
        click.echo(f"Critical error in error handler: {handler_error}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="supervisor-mgr")
@click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=False),
    help="Server list file (YAML format, default: config.yaml)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output with detailed logging",
)
@click.option(
    "--quiet", "-q", is_flag=True, help="Only log errors"
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool, quiet: bool):
    """Manage processes on remote supervisord servers.

    Servers are read from a YAML file holding a ``servers`` list with
    name, url, username and password for each supervisord XML-RPC endpoint.

    \b
    Examples:
      supervisor-mgr status
      supervisor-mgr -c prod.yaml status web db
      supervisor-mgr status_json
      supervisor-mgr start web nginx php-fpm
      supervisor-mgr stop web nginx
    """
    if verbose and quiet:
        raise click.BadParameter("Cannot use both --verbose and --quiet options")

    ctx.ensure_object(dict)
    cli_context = CLIContext(
        verbose=verbose, quiet=quiet, config_file=config, overrides=ctx.obj
    )

    ctx.obj["cli_context"] = cli_context
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    configure_logging(
        level=cli_context.log_level,
        log_file=cli_context.settings.logging.file_path,
        json_logs=cli_context.settings.logging.json_format,
    )


@cli.command("status")
@click.argument("server_names", nargs=-1)
@click.pass_context
def status(ctx: click.Context, server_names: Sequence[str]):
    """Show process status as a table.

    Queries every configured server when no SERVER_NAMES are given.
    A failing server is reported and the remaining servers are still shown.

    \b
    Examples:
      supervisor-mgr status
      supervisor-mgr status web db
    """
    _run_command(ctx, "status", server_names)


@cli.command("status_json")
@click.argument("server_names", nargs=-1)
@click.option(
    "--ignore-field",
    "ignore_fields",
    multiple=True,
    help="Drop a top-level key from every document (repeatable)",
)
@click.pass_context
def status_json(ctx: click.Context, server_names: Sequence[str], ignore_fields: Sequence[str]):
    """Show process status as JSON, one document per server per line.

    \b
    Document shape:
      {"server_name": ..., "now_ts": ..., "services": [
        {"Name": ..., "State": ..., "Pid": ..., "Started_ts": ..., "Uptime_seconds": ...}]}
    """
    _run_command(ctx, "status_json", server_names, ignore_fields=ignore_fields)


@cli.command("start")
@click.argument("args", nargs=-1, metavar="SERVER_NAME PROCESS_NAME...")
@click.pass_context
def start(ctx: click.Context, args: Sequence[str]):
    """Start processes on a server, stopping at the first failure."""
    _run_command(ctx, "start", args)


@cli.command("stop")
@click.argument("args", nargs=-1, metavar="SERVER_NAME PROCESS_NAME...")
@click.pass_context
def stop(ctx: click.Context, args: Sequence[str]):
    """Stop processes on a server, stopping at the first failure."""
    _run_command(ctx, "stop", args)


def _run_command(
    ctx: click.Context,
    name: str,
    args: Sequence[str],
    ignore_fields: Sequence[str] = (),
):
    """Load the registry and execute one command from the command table."""
    cli_context = ctx.obj["cli_context"]

    try:
        registry = cli_context.get_registry()
        options = {"ignore_fields": ignore_fields}
        if cli_context.clock is not None:
            options["clock"] = cli_context.clock

        commands = build_command_table(
            registry,
            ClickOutputSink(),
            ClickOutputSink(err=True),
            cli_context.client_factory,
            **options,
        )
        commands[name].execute(list(args))

    except ConfigurationError as error:
        _handle_configuration_error(error)
    except ServerError as error:
        _handle_server_error(error, ctx)
    except Exception as error:
        handle_cli_error(error, ctx)


def _handle_configuration_error(error: ConfigurationError):
    """Report a fatal configuration error and exit."""
    if error.config_file:
        click.echo(f"Configuration error: {error.message}: {error.config_file}", err=True)
    else:
        click.echo(f"Configuration error: {error.message}", err=True)
    for key, value in error.details.items():
        if key == "validation_errors" and isinstance(value, list):
            for err in value:
                click.echo(f"   - {err}", err=True)
        elif key == "suggestion":
            click.echo(f"Suggestion: {value}", err=True)
        else:
            click.echo(f"   {key}: {value}", err=True)
    sys.exit(1)


def _handle_server_error(error: ServerError, ctx: Optional[click.Context]):
    """Exit after a failed command.

    Command handlers print their own failure messages; only the suggestion
    and, with --verbose, the error details are added here.
    """
    logger.debug("Command failed", error=error.message, **error.details)
    if error.suggestion:
        click.echo(f"Suggestion: {error.suggestion}", err=True)
    if error.details and ctx and ctx.obj.get("verbose"):
        for key, value in error.details.items():
            click.echo(f"   {key}: {value}", err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
