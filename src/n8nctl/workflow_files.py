"""Local workflow JSON files: read, write, validate, and prepare for upload.

The n8n API rejects server-managed fields (``id``, ``createdAt``,
``updatedAt``) on create, and node IDs must be unique within an instance.
The helpers here turn an exported workflow into something the API accepts
and compare a remote workflow with a local copy.

None of these functions talk to the network.
"""

from __future__ import annotations

import copy
import difflib
import json
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from n8nctl.config import atomic_write
from n8nctl.exceptions import WorkflowFileError

SERVER_FIELDS = ("id", "createdAt", "updatedAt")
WEBHOOK_NODE_TYPES = ("n8n-nodes-base.webhook", "@n8n/n8n-nodes-base.webhook")
DEFAULT_WORKFLOW_NAME = "Unnamed Workflow"

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
MAX_FILENAME_LENGTH = 80


# --- Reading and writing ---


def load_workflow_file(path: Path) -> dict[str, Any]:
    """Read a workflow JSON file.

    Raises:
        WorkflowFileError: If the file cannot be read, is not valid JSON, or
            does not contain a JSON object.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise WorkflowFileError(f"Could not read {path}: {exc.strerror or exc}") from exc

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise WorkflowFileError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise WorkflowFileError(f"{path} must contain a JSON object")
    return data


def dump_workflow(workflow: Any) -> str:
    return json.dumps(workflow, indent=2, ensure_ascii=False)


def write_workflow_file(path: Path, workflow: Any) -> Path:
    """Write *workflow* as indented JSON, creating parent directories.

    Raises:
        WorkflowFileError: If the file or its directory cannot be written.
    """
    try:
        atomic_write(path, dump_workflow(workflow))
    except OSError as exc:
        raise WorkflowFileError(f"Could not write {path}: {exc.strerror or exc}") from exc
    return path


def sanitize_filename(name: str) -> str:
    """Make a workflow name safe to use as a file name."""
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", name)
    cleaned = _WHITESPACE.sub("-", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH]


def saved_dir(cwd: Optional[Path] = None) -> Path:
    return (cwd or Path.cwd()) / "workflows" / "saved"


def timestamped_filename(name: str, now: Optional[datetime] = None) -> str:
    """``<sanitized-name>-YYYY-MM-DDTHH-MM-SS.json`` in UTC."""
    moment = now or datetime.now(timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S")
    return f"{sanitize_filename(name)}-{stamp}.json"


# --- Payload preparation ---


def strip_for_import(workflow: dict[str, Any], name: Optional[str] = None) -> dict[str, Any]:
    """Return a copy of *workflow* without server-managed fields.

    Args:
        workflow: An exported workflow.
        name: Optional replacement for the workflow name.
    """
    payload = {k: v for k, v in workflow.items() if k not in SERVER_FIELDS}
    if name:
        payload["name"] = name
    return payload


def prepare_clone(workflow: dict[str, Any], new_name: str) -> dict[str, Any]:
    """Deep-copy *workflow* under *new_name* with fresh node IDs."""
    clone = strip_for_import(copy.deepcopy(workflow), new_name)
    for node in clone.get("nodes") or []:
        if isinstance(node, dict):
            node["id"] = f"node-{uuid.uuid4().hex[:9]}"
    return clone


def deploy_payload(workflow: dict[str, Any]) -> dict[str, Any]:
    """Reduce a workflow file to the fields the create/update endpoints accept."""
    return {
        "name": workflow.get("name") or DEFAULT_WORKFLOW_NAME,
        "nodes": workflow.get("nodes"),
        "connections": workflow.get("connections"),
        "settings": workflow.get("settings") or {},
    }


def validate_workflow(workflow: dict[str, Any]) -> tuple[int, int]:
    """Check the minimal structure n8n needs to import a workflow.

    Returns:
        ``(node_count, connection_count)``.

    Raises:
        WorkflowFileError: If ``nodes`` is missing or empty, or
            ``connections`` is not an object.
    """
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list) or not nodes:
        raise WorkflowFileError("Missing or empty nodes array")
    connections = workflow.get("connections")
    if not isinstance(connections, dict):
        raise WorkflowFileError("Missing connections object")
    return len(nodes), len(connections)


# --- Comparison ---


def deep_sort_keys(value: Any) -> Any:
    """Recursively sort dict keys so that equal workflows serialise identically."""
    if isinstance(value, dict):
        return {key: deep_sort_keys(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [deep_sort_keys(item) for item in value]
    return value


def diff_workflows(
    local: Any,
    remote: Any,
    local_label: str = "local",
    remote_label: str = "remote",
) -> str:
    """Unified diff of two workflows after key sorting; empty when equal."""
    local_lines = dump_workflow(deep_sort_keys(local)).splitlines(keepends=True)
    remote_lines = dump_workflow(deep_sort_keys(remote)).splitlines(keepends=True)
    return "".join(
        difflib.unified_diff(local_lines, remote_lines, fromfile=local_label, tofile=remote_label)
    )


# --- Webhooks ---


def webhook_urls(workflow: dict[str, Any], base_url: str) -> list[tuple[str, str, str]]:
    """List ``(node_name, production_url, test_url)`` for each webhook node."""
    base = base_url.rstrip("/")
    urls: list[tuple[str, str, str]] = []
    for node in workflow.get("nodes") or []:
        if not isinstance(node, dict) or node.get("type") not in WEBHOOK_NODE_TYPES:
            continue
        path = (node.get("parameters") or {}).get("path") or "webhook"
        urls.append(
            (
                str(node.get("name", "")),
                f"{base}/webhook/{path}",
                f"{base}/webhook-test/{path}",
            )
        )
    return urls
