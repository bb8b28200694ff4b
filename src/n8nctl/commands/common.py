"""Helpers shared by every command module.

Each command that talks to the server runs inside :func:`open_client`,
which resolves the connection profile, turns on debug logging when asked,
and converts any :class:`~n8nctl.exceptions.N8nctlError` into a friendly
message on stderr plus the error's exit code. Commands that only touch
local files use :func:`cli_errors` directly.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from n8nctl.client import N8nClient
from n8nctl.config import resolve_profile
from n8nctl.diagnostics import to_friendly_error
from n8nctl.exceptions import N8nctlError
from n8nctl.log import setup_logging
from n8nctl.models import ConnectionProfile
from n8nctl.output import error, info


def create_client(profile: ConnectionProfile) -> N8nClient:
    """Build the client used by commands. Tests replace this to inject a transport."""
    return N8nClient(profile)


def ctx_flag(ctx: Optional[typer.Context], name: str) -> bool:
    """Read a global boolean option stored by the root callback."""
    if ctx is None:
        return False
    root = ctx.find_root()
    obj = root.obj if isinstance(root.obj, dict) else {}
    return bool(obj.get(name, False))


@contextmanager
def cli_errors() -> Iterator[None]:
    """Print n8nctl errors in friendly form and exit with their code."""
    try:
        yield
    except N8nctlError as exc:
        error(to_friendly_error(exc))
        raise typer.Exit(code=exc.exit_code) from None


@contextmanager
def open_client(ctx: Optional[typer.Context] = None) -> Iterator[N8nClient]:
    """Resolve the profile and yield a ready client.

    Example::

        with open_client(ctx) as client:
            client.activate_workflow(workflow_id)
    """
    with cli_errors():
        profile = resolve_profile()
        setup_logging(ctx_flag(ctx, "verbose") or profile.debug)
        with create_client(profile) as client:
            yield client


def confirm(ctx: Optional[typer.Context], prompt: str) -> None:
    """Ask for confirmation unless ``--force`` was given; exit 0 if declined."""
    if ctx_flag(ctx, "force"):
        return
    if not typer.confirm(prompt):
        info("Cancelled.")
        raise typer.Exit()
