"""Execution commands -- inspect, retry, stop, and delete executions.

Provides the ``n8nctl executions`` sub-command group. Execution endpoints
are never project-scoped.
"""

from __future__ import annotations

from typing import Optional

import typer

from n8nctl.commands.common import confirm, open_client
from n8nctl.models import ExecutionStatus
from n8nctl.output import (
    execution_summary,
    format_response,
    info,
    print_data,
    print_executions,
    success,
    suggest,
)


executions_app = typer.Typer(no_args_is_help=True)


@executions_app.command("list")
def executions_list(
    ctx: typer.Context,
    workflow: Optional[str] = typer.Argument(None, help="Workflow ID or name."),
    status: Optional[ExecutionStatus] = typer.Option(None, "--status", "-s", help="Filter by status."),
    limit: int = typer.Option(20, "--limit", help="Rows to show; 0 shows all."),
) -> None:
    """List recent executions, optionally for one workflow.

    Example::

        n8nctl executions list "Nightly import" --status error
    """
    label = f" (status: {status.value})" if status else ""
    info(f"Listing executions{label}...")
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow) if workflow else None
        executions = client.list_executions(workflow_id=workflow_id, status=status)
    print_executions(executions, limit)


@executions_app.command("errors")
def executions_errors(
    ctx: typer.Context,
    workflow: Optional[str] = typer.Argument(None, help="Workflow ID or name."),
    limit: int = typer.Option(20, "--limit", help="Rows to show; 0 shows all."),
) -> None:
    """List failed executions."""
    info("Listing executions (status: error)...")
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow) if workflow else None
        executions = client.list_executions(workflow_id=workflow_id, status=ExecutionStatus.ERROR)
    print_executions(executions, limit)


@executions_app.command("status")
def executions_status(
    ctx: typer.Context,
    execution_id: Optional[str] = typer.Argument(
        None, help="Execution ID. Lists recent executions when omitted."
    ),
) -> None:
    """Show one execution's status, or the status of recent executions."""
    with open_client(ctx) as client:
        if execution_id is None:
            executions = client.list_executions()
        else:
            execution = client.get_execution(execution_id)

    if execution_id is None:
        print_executions(executions, 30)
        return

    format_response(execution_summary(execution, execution_id))


@executions_app.command("retry")
def executions_retry(
    ctx: typer.Context,
    execution_id: str = typer.Argument(help="ID of the failed execution."),
) -> None:
    """Retry a failed execution and print the new execution ID."""
    with open_client(ctx) as client:
        info(f"Retrying execution {execution_id}...")
        started = client.retry_execution(execution_id)
    success(f"Retry started: {started.execution_id}")
    print_data(started.execution_id)
    suggest(f"Check status: n8nctl executions status {started.execution_id}")


@executions_app.command("stop")
def executions_stop(
    ctx: typer.Context,
    execution_id: str = typer.Argument(help="Execution ID."),
) -> None:
    """Stop a running execution."""
    with open_client(ctx) as client:
        info(f"Stopping execution {execution_id}...")
        client.stop_execution(execution_id)
    success("Execution stopped")


@executions_app.command("delete")
def executions_delete(
    ctx: typer.Context,
    execution_id: str = typer.Argument(help="Execution ID."),
) -> None:
    """Delete an execution. Asks for confirmation unless --force is given."""
    confirm(ctx, f"Delete execution {execution_id}?")
    with open_client(ctx) as client:
        client.delete_execution(execution_id)
    success("Execution deleted")
