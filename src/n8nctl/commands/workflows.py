"""Workflow commands -- list, inspect, deploy, and manage workflows.

Provides the ``n8nctl workflows`` sub-command group. Every command that
takes a workflow accepts either its ID or its exact name; names are
resolved against the first page of workflows.

Primary data (workflow JSON, IDs, tables) goes to stdout; progress and
status lines go to stderr.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from n8nctl.client import BatchResult
from n8nctl.commands.common import cli_errors, confirm, open_client
from n8nctl.exceptions import InvalidUsageError, N8nctlError
from n8nctl.exit_codes import EXIT_GENERIC_FAILURE
from n8nctl.output import (
    error,
    format_response,
    info,
    print_data,
    print_diff,
    print_table,
    print_workflows,
    success,
    suggest,
    warning,
)
from n8nctl.workflow_files import (
    deploy_payload,
    diff_workflows,
    dump_workflow,
    load_workflow_file,
    prepare_clone,
    sanitize_filename,
    saved_dir,
    strip_for_import,
    timestamped_filename,
    validate_workflow,
    webhook_urls,
    write_workflow_file,
)


workflows_app = typer.Typer(no_args_is_help=True)


def _show_workflows(ctx: typer.Context, active: Optional[bool], name: Optional[str], fetch_all: bool) -> None:
    label = "active" if active is True else "inactive" if active is False else "all"
    if name:
        label += f' name~"{name}"'
    info(f"Listing workflows ({label})...")

    with open_client(ctx) as client:
        if fetch_all:
            workflows = client.list_workflows_all(active=active, name=name)
        else:
            workflows = client.list_workflows(active=active, name=name)

    print_workflows(workflows)


@workflows_app.command("list")
def workflows_list(
    ctx: typer.Context,
    active: Optional[bool] = typer.Option(
        None, "--active/--inactive", help="Only active (or only inactive) workflows."
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Filter by name."),
    fetch_all: bool = typer.Option(False, "--all", help="Follow pagination to the last page."),
) -> None:
    """List workflows.

    Example::

        n8nctl workflows list --active
        n8nctl --json workflows list --all
    """
    _show_workflows(ctx, active, name, fetch_all)


@workflows_app.command("search")
def workflows_search(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name filter."),
) -> None:
    """Search workflows by name."""
    _show_workflows(ctx, None, name, False)


@workflows_app.command("get")
def workflows_get(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
) -> None:
    """Show a workflow as JSON."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        data = client.get_workflow(workflow_id)
    format_response(data)


@workflows_app.command("export")
def workflows_export(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    file: Optional[Path] = typer.Argument(None, help="Output file. Prints to stdout when omitted."),
) -> None:
    """Export a workflow's JSON to a file or stdout."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        data = client.get_workflow(workflow_id)
        if file is None:
            print_data(dump_workflow(data))
            return
        path = write_workflow_file(file.resolve(), data)
    success(f"Exported to {path}")


@workflows_app.command("save")
def workflows_save(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    file: Optional[Path] = typer.Argument(
        None, help="Output file. Defaults to workflows/saved/<name>-<timestamp>.json."
    ),
) -> None:
    """Save a workflow to a timestamped file under workflows/saved/."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        data = client.get_workflow(workflow_id)
        name = str(data.get("name") or workflow_id)
        target = file.resolve() if file else saved_dir() / timestamped_filename(name)
        write_workflow_file(target, data)
    success(f"Saved: {name}")
    print_data(str(target))


@workflows_app.command("save-all")
def workflows_save_all(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Argument(None, help="Output directory. Defaults to workflows/saved/."),
) -> None:
    """Save every workflow to <name>.json in a directory."""
    target_dir = directory.resolve() if directory else saved_dir()
    info(f"Saving all workflows to {target_dir}...")

    failures = 0
    count = 0
    with open_client(ctx) as client:
        for summary in client.list_workflows_all():
            name = str(summary.get("name") or summary.get("id"))
            try:
                data = client.get_workflow(summary["id"])
                write_workflow_file(target_dir / f"{sanitize_filename(name)}.json", data)
            except N8nctlError as exc:
                error(f"{name}: {exc}")
                failures += 1
                continue
            success(f"  ✓ {name}")
            count += 1

    info(f"Total: {count} workflow(s) saved")
    if failures:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


@workflows_app.command("activate")
def workflows_activate(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
) -> None:
    """Activate a workflow."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f"Activating workflow {workflow_id}...")
        client.activate_workflow(workflow_id)
    success("Workflow activated")


@workflows_app.command("deactivate")
def workflows_deactivate(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
) -> None:
    """Deactivate a workflow."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f"Deactivating workflow {workflow_id}...")
        client.deactivate_workflow(workflow_id)
    success("Workflow deactivated")


def _report_batch(results: list[BatchResult], verb: str, empty_message: str) -> None:
    if not results:
        info(empty_message)
        return
    for result in results:
        name = str(result.workflow.get("name") or result.workflow.get("id"))
        if result.ok:
            success(f"  ✓ {name}")
        else:
            error(f"{name}: {result.error}")
    ok = sum(1 for r in results if r.ok)
    info(f"{verb} {ok}/{len(results)} workflow(s)")
    if ok < len(results):
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


@workflows_app.command("activate-all")
def workflows_activate_all(ctx: typer.Context) -> None:
    """Activate every inactive workflow."""
    info("Activating all workflows...")
    with open_client(ctx) as client:
        results = client.activate_all()
    _report_batch(results, "Activated", "No inactive workflows to activate.")


@workflows_app.command("deactivate-all")
def workflows_deactivate_all(ctx: typer.Context) -> None:
    """Deactivate every active workflow."""
    info("Deactivating all workflows...")
    with open_client(ctx) as client:
        results = client.deactivate_all()
    _report_batch(results, "Deactivated", "No active workflows to deactivate.")


@workflows_app.command("delete")
def workflows_delete(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
) -> None:
    """Delete a workflow. Asks for confirmation unless --force is given."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        confirm(ctx, f"Delete workflow {workflow_id}?")
        client.delete_workflow(workflow_id)
    success("Workflow deleted")


@workflows_app.command("rename")
def workflows_rename(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    new_name: str = typer.Argument(help="New workflow name."),
) -> None:
    """Rename a workflow."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f'Renaming {workflow_id} to "{new_name}"...')
        result = client.rename_workflow(workflow_id, new_name)
    success(f"Renamed: {result.get('name', new_name)} ({result.get('id', workflow_id)})")


@workflows_app.command("clone")
def workflows_clone(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    new_name: str = typer.Argument(help="Name of the copy."),
) -> None:
    """Copy a workflow under a new name with fresh node IDs."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        original = client.get_workflow(workflow_id)
        created = client.create_workflow(prepare_clone(original, new_name)) or {}
    success(f"Created: {created.get('name', new_name)} ({created.get('id', '?')})")
    if created.get("id"):
        print_data(str(created["id"]))


@workflows_app.command("import")
def workflows_import(
    ctx: typer.Context,
    file: Path = typer.Argument(help="Workflow JSON file."),
    name: Optional[str] = typer.Argument(None, help="Override the workflow name."),
) -> None:
    """Create a new workflow from a JSON file."""
    with cli_errors():
        workflow = load_workflow_file(file)
    info(f"Importing workflow from {file}...")
    with open_client(ctx) as client:
        created = client.create_workflow(strip_for_import(workflow, name)) or {}
    success(f"Imported: {created.get('name', name or '')} ({created.get('id', '?')})")
    if created.get("id"):
        print_data(str(created["id"]))


@workflows_app.command("deploy")
def workflows_deploy(
    ctx: typer.Context,
    file: Path = typer.Argument(help="Workflow JSON file."),
) -> None:
    """Create or update a workflow by name from a JSON file, then activate it.

    Example::

        n8nctl workflows deploy ./workflows/nightly-import.json
    """
    with cli_errors():
        payload = deploy_payload(load_workflow_file(file))

    with open_client(ctx) as client:
        info(f"Deploying {payload['name']} to {client.profile.base_url}...")
        result = client.deploy_workflow(payload)

    state = "created" if result.created else "updated"
    success(f"  ✓ {result.name} (ID: {result.workflow_id}) [{state}]")
    if result.activation_error is None:
        success("  ✓ Workflow activated")
    else:
        warning(f"Could not activate: {result.activation_error}. Activate manually in n8n.")
    print_data(result.workflow_id)


@workflows_app.command("diff")
def workflows_diff(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    file: Path = typer.Argument(help="Local workflow JSON file to compare."),
) -> None:
    """Compare a remote workflow with a local JSON file."""
    with cli_errors():
        local = load_workflow_file(file)

    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f"Comparing n8n workflow {workflow_id} with {file}...")
        remote = client.get_workflow(workflow_id)

    diff_text = diff_workflows(local, remote, str(file), f"n8n:{workflow_id}")
    if not diff_text:
        success("No differences")
        return
    print_diff(diff_text)


@workflows_app.command("validate")
def workflows_validate(
    file: Path = typer.Argument(help="Workflow JSON file."),
) -> None:
    """Check that a workflow file has nodes and connections."""
    info(f"Validating {file}...")
    with cli_errors():
        nodes, connections = validate_workflow(load_workflow_file(file))
    success("Valid workflow JSON")
    info(f"Nodes: {nodes}")
    info(f"Connections: {connections}")


@workflows_app.command("webhook")
def workflows_webhook(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
) -> None:
    """Show production and test URLs of the workflow's webhook nodes."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        data = client.get_workflow(workflow_id)
        urls = webhook_urls(data, client.profile.base_url)

    if not urls:
        info("No webhook nodes in this workflow.")
        return
    print_table(["Node", "Production", "Test"], [list(row) for row in urls], title="Webhooks")


@workflows_app.command("tags")
def workflows_tags(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    tag_ids: Optional[str] = typer.Argument(
        None, help="Comma-separated tag IDs to set. Shows current tags when omitted."
    ),
) -> None:
    """Show or replace a workflow's tags."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        if tag_ids is None:
            tags = client.get_workflow_tags(workflow_id)
        else:
            ids = [t.strip() for t in tag_ids.split(",") if t.strip()]
            info(f"Updating tags for {workflow_id}...")
            tags = client.update_workflow_tags(workflow_id, ids)

    if not tags:
        info("No tags.")
        return
    print_table(
        ["ID", "Name"],
        [[str(t.get("id", "")), str(t.get("name", ""))] for t in tags],
        title="Tags",
    )


@workflows_app.command("transfer")
def workflows_transfer(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    project_id: str = typer.Argument(help="Destination project ID."),
) -> None:
    """Move a workflow to another project."""
    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f"Transferring {workflow_id} to project {project_id}...")
        client.transfer_workflow(workflow_id, project_id)
    success("Workflow transferred")


@workflows_app.command("run")
def workflows_run(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow ID or name."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON object passed as input data."),
) -> None:
    """Start a workflow execution and print its ID.

    Example::

        n8nctl workflows run "Nightly import" --data '{"date": "2024-01-01"}'
    """
    with cli_errors():
        input_data = _parse_data(data)

    with open_client(ctx) as client:
        workflow_id = client.find_workflow_id(workflow)
        info(f"Running workflow {workflow_id}...")
        started = client.run_workflow(workflow_id, input_data)

    success(f"Execution started: {started.execution_id}")
    print_data(started.execution_id)
    suggest(f"Check status: n8nctl executions status {started.execution_id}")


def _parse_data(data: Optional[str]) -> Optional[dict]:
    if data is None:
        return None
    try:
        parsed = json.loads(data)
    except ValueError as exc:
        raise InvalidUsageError(f"--data must be a JSON object: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InvalidUsageError("--data must be a JSON object")
    return parsed
