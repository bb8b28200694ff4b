"""Typer application and CLI entry point for n8nctl.

This module wires together the top-level Typer application and registers
the built-in command groups (``workflows``, ``executions``, ``tags``,
``credentials``, ``variables``, ``config``) and single commands (``audit``,
``ping``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app.
Errors raised by the request engine are handled inside each command;
anything that still escapes is written to a crash log under the data
directory.

See Also:
    :mod:`n8nctl.config`: Connection profile resolution.
    :mod:`n8nctl.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from n8nctl import __version__
from n8nctl.commands.config import config_app
from n8nctl.commands.executions import executions_app
from n8nctl.commands.resources import (
    audit_command,
    credentials_app,
    ping_command,
    tags_app,
    variables_app,
)
from n8nctl.commands.workflows import workflows_app
from n8nctl.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="n8nctl",
    help="Manage n8n workflows and executions through the n8n REST API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(workflows_app, name="workflows", help="List, deploy, run, and manage workflows.")
app.add_typer(executions_app, name="executions", help="Inspect, retry, and stop executions.")
app.add_typer(tags_app, name="tags", help="Workflow tags.")
app.add_typer(credentials_app, name="credentials", help="Credentials (read-only).")
app.add_typer(variables_app, name="variables", help="Instance variables.")
app.add_typer(config_app, name="config", help="Connection configuration.")
app.command("audit")(audit_command)
app.command("ping")(ping_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"n8nctl {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log requests, retries, and fallbacks to stderr."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~n8nctl.output.OutputManager` from
    CLI flags, and stores shared options (``verbose``, ``force``, ``quiet``)
    in the Typer context so that sub-commands can read them via
    ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug logging of HTTP traffic.
        force: Skip interactive confirmations.
    """
    from n8nctl.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["quiet"] = quiet
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from n8nctl.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``n8nctl`` console script.

    Unhandled :class:`~n8nctl.exceptions.N8nctlError` instances are printed
    in friendly form and exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from n8nctl.diagnostics import to_friendly_error
        from n8nctl.exceptions import N8nctlError
        from n8nctl.output import error

        if isinstance(exc, N8nctlError):
            error(to_friendly_error(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
