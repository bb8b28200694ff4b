"""Config commands -- view the active connection profile and edit local settings.

Provides the ``n8nctl config`` sub-command group. ``show`` reports where
the profile was resolved from without ever printing the API key; ``set``
edits ``config/n8n-config.local.json`` in the working directory.
"""

from __future__ import annotations

import typer

from n8nctl.commands.common import cli_errors
from n8nctl.output import format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the resolved connection settings.

    Example::

        n8nctl config show
        n8nctl --json config show
    """
    from n8nctl.config import locate_profile

    with cli_errors():
        profile, origin = locate_profile()

    format_response(
        {
            "baseUrl": profile.base_url,
            "projectId": profile.project_id or "(none)",
            "source": origin,
            "timeoutMs": profile.timeout_ms,
            "retries": profile.retries,
            "rejectUnauthorized": profile.reject_unauthorized,
        }
    )


@config_app.command("set")
def config_set(
    field: str = typer.Argument(help="Setting to change: endpoint, apikey, or project."),
    value: str = typer.Argument(help="New value. Use 'none' to clear the project."),
) -> None:
    """Set a value in config/n8n-config.local.json.

    The file is created from config/n8n-config.example.json when it does
    not exist yet.

    Example::

        n8nctl config set endpoint https://n8n.example.com
        n8nctl config set project none
    """
    from n8nctl.config import save_local_setting

    with cli_errors():
        path = save_local_setting(field, value)

    if field.lower() == "apikey":
        success(f"Updated {field} in {path}")
    else:
        success(f"Updated {field} = {value.strip() or '(none)'} in {path}")
    info("Run `n8nctl ping` to check the connection.")
