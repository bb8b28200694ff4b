"""Instance-level commands -- tags, credentials, variables, audit, ping.

Some instances do not expose every endpoint: community editions answer
``GET /credentials`` with 405, and variables are a licensed feature that
answers 403 mentioning ``feat:variables``. Both are reported as notices
rather than failures.
"""

from __future__ import annotations

from typing import Optional

import typer

from n8nctl.commands.common import open_client
from n8nctl.exceptions import ApiError
from n8nctl.exit_codes import EXIT_GENERIC_FAILURE
from n8nctl.output import error, format_response, info, print_data, print_table, success, warning


tags_app = typer.Typer(no_args_is_help=True)
credentials_app = typer.Typer(no_args_is_help=True)
variables_app = typer.Typer(no_args_is_help=True)


@tags_app.command("list")
def tags_list(ctx: typer.Context) -> None:
    """List tags."""
    with open_client(ctx) as client:
        tags = client.list_tags()
    if not tags:
        info("No tags found.")
        return
    print_table(
        ["ID", "Name"],
        [[str(t.get("id", "")), str(t.get("name", ""))] for t in tags],
        title="Tags",
    )
    info(f"Total: {len(tags)}")


@tags_app.command("create")
def tags_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="Tag name."),
) -> None:
    """Create a tag and print its ID."""
    with open_client(ctx) as client:
        tag = client.create_tag(name) or {}
    success(f"Created: {tag.get('name', name)} ({tag.get('id', '?')})")
    if tag.get("id"):
        print_data(str(tag["id"]))


@credentials_app.command("list")
def credentials_list(ctx: typer.Context) -> None:
    """List credentials (names and types only)."""
    with open_client(ctx) as client:
        try:
            credentials = client.list_credentials()
        except ApiError as exc:
            if exc.status != 405 and "GET method not allowed" not in exc.detail:
                raise
            warning("Credentials API not available on this n8n instance (405).")
            info("Credentials are managed in the n8n UI under Settings -> Credentials.")
            return

    if not credentials:
        info("No credentials (or the API does not expose them).")
        return
    print_table(
        ["ID", "Name", "Type"],
        [[str(c.get("id", "")), str(c.get("name", "")), str(c.get("type", ""))] for c in credentials],
        title="Credentials",
    )
    info(f"Total: {len(credentials)}")


@variables_app.command("list")
def variables_list(ctx: typer.Context) -> None:
    """List instance variables."""
    with open_client(ctx) as client:
        try:
            variables = client.list_variables()
        except ApiError as exc:
            if exc.status != 403 or "feat:variables" not in str(exc):
                raise
            warning("Variables API not available (premium feature).")
            return

    if not variables:
        info("No variables found.")
        return
    print_table(
        ["ID", "Key", "Value"],
        [[str(v.get("id", "")), str(v.get("key", "")), str(v.get("value", ""))] for v in variables],
        title="Variables",
    )
    info(f"Total: {len(variables)}")


def audit_command(
    ctx: typer.Context,
    days_abandoned: Optional[int] = typer.Option(
        None, "--days-abandoned", help="Days without runs before a workflow counts as abandoned."
    ),
    categories: Optional[list[str]] = typer.Option(
        None,
        "--category",
        "-c",
        help="Audit category (credentials, database, nodes, filesystem, instance). Repeatable.",
    ),
) -> None:
    """Run a security audit and print the report."""
    info("Running security audit...")
    with open_client(ctx) as client:
        report = client.audit(days_abandoned_workflow=days_abandoned, categories=categories or None)
    format_response(report)


def ping_command(ctx: typer.Context) -> None:
    """Check that n8n is reachable and the API key is accepted."""
    info("Pinging n8n...")
    with open_client(ctx) as client:
        reachable = client.ping()
    if not reachable:
        error("n8n not reachable or API key invalid")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    success("n8n reachable, API key valid")
