"""Resource operations for the n8n public API.

:class:`N8nClient` maps each logical operation (list workflows, activate,
run, retry an execution, ...) onto one or two calls to
:meth:`~n8nctl.client.sync_client.SyncClient.send`.

* Workflow operations are decorated with
  :func:`~n8nctl.client.scoping.scoped` and honour the profile's
  ``project_id`` with a per-call fallback to the global collection.
* Execution, tag, credential, variable, and audit operations are never
  scoped.
* Pagination helpers and batch operations run strictly one request at a
  time, in server order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from n8nctl.client.extractors import (
    RETRY_EXECUTION_ID,
    RUN_EXECUTION_ID,
    extract_execution_id,
)
from n8nctl.client.scoping import scoped
from n8nctl.client.sync_client import SyncClient
from n8nctl.exceptions import N8nctlError, ProtocolError
from n8nctl.models import ConnectionProfile, ExecutionStarted, ExecutionStatus, Page

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one item in a batch activate / deactivate run."""

    workflow: dict[str, Any]
    error: Optional[N8nctlError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DeployResult:
    """Outcome of :meth:`N8nClient.deploy_workflow`."""

    workflow_id: str
    name: str
    created: bool
    activation_error: Optional[N8nctlError] = None


class N8nClient:
    """High-level client for workflows, executions, and instance resources.

    Args:
        profile: The resolved connection profile.
        transport: Optional httpx transport, forwarded to
            :class:`~n8nctl.client.sync_client.SyncClient`.

    Example::

        with N8nClient(resolve_profile()) as client:
            for workflow in client.list_workflows_all(active=True):
                print(workflow["id"], workflow["name"])
    """

    def __init__(
        self,
        profile: ConnectionProfile,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = SyncClient(profile, transport=transport)

    @property
    def profile(self) -> ConnectionProfile:
        return self._http.profile

    def send(self, method: str, path: str, body: Any = None, params: Optional[dict[str, Any]] = None) -> Any:
        """Low-level escape hatch; see :meth:`SyncClient.send`."""
        return self._http.send(method, path, body=body, params=params)

    def __enter__(self) -> N8nClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------ #
    # Workflows (project-scoped)
    # ------------------------------------------------------------------ #

    @scoped
    def list_workflows_paginated(
        self,
        collection: str,
        active: Optional[bool] = None,
        cursor: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Page:
        """Fetch one page of workflows, optionally filtered by state and name."""
        params = {
            "active": None if active is None else str(active).lower(),
            "cursor": cursor or None,
            "name": name or None,
        }
        return _page(self._http.send("GET", collection, params=params))

    def list_workflows(self, active: Optional[bool] = None, name: Optional[str] = None) -> list[dict[str, Any]]:
        """Return the first page of workflows."""
        return self.list_workflows_paginated(active=active, name=name).data

    def list_workflows_all(self, active: Optional[bool] = None, name: Optional[str] = None) -> list[dict[str, Any]]:
        """Return every workflow, following ``nextCursor`` until it is absent."""
        records: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            page = self.list_workflows_paginated(active=active, cursor=cursor, name=name)
            records.extend(page.data)
            cursor = page.next_cursor
            if not cursor:
                return records

    @scoped
    def get_workflow(self, collection: str, workflow_id: str) -> dict[str, Any]:
        return _record(self._http.send("GET", f"{collection}/{workflow_id}"), f"workflow {workflow_id}")

    @scoped
    def create_workflow(self, collection: str, workflow: dict[str, Any]) -> dict[str, Any]:
        """Create a workflow. Not idempotent: a retried 5xx may create it twice."""
        return self._http.send("POST", collection, workflow)

    @scoped
    def update_workflow(self, collection: str, workflow_id: str, workflow: dict[str, Any]) -> dict[str, Any]:
        return self._http.send("PUT", f"{collection}/{workflow_id}", workflow)

    @scoped
    def delete_workflow(self, collection: str, workflow_id: str) -> None:
        self._http.send("DELETE", f"{collection}/{workflow_id}")

    @scoped
    def activate_workflow(self, collection: str, workflow_id: str) -> None:
        self._http.send("POST", f"{collection}/{workflow_id}/activate", {})

    @scoped
    def deactivate_workflow(self, collection: str, workflow_id: str) -> None:
        self._http.send("POST", f"{collection}/{workflow_id}/deactivate", {})

    def rename_workflow(self, workflow_id: str, new_name: str) -> dict[str, Any]:
        """Fetch the workflow and write it back under *new_name*."""
        workflow = self.get_workflow(workflow_id)
        return self.update_workflow(workflow_id, {**workflow, "name": new_name})

    def find_workflow_id(self, id_or_name: str) -> str:
        """Resolve a workflow ID or exact name to an ID.

        Matches by ID first, then by name, among the first page of workflows.
        Unknown input is returned unchanged so that the next call reports the
        server's own 404.
        """
        if not id_or_name:
            return ""
        workflows = self.list_workflows()
        for workflow in workflows:
            if workflow.get("id") == id_or_name:
                return id_or_name
        for workflow in workflows:
            if workflow.get("name") == id_or_name:
                return str(workflow["id"])
        return id_or_name

    def activate_all(self) -> list[BatchResult]:
        """Activate every inactive workflow, one at a time."""
        return self._batch(self.list_workflows_all(active=False), self.activate_workflow)

    def deactivate_all(self) -> list[BatchResult]:
        """Deactivate every active workflow, one at a time."""
        return self._batch(self.list_workflows_all(active=True), self.deactivate_workflow)

    def _batch(self, workflows: list[dict[str, Any]], operation: Any) -> list[BatchResult]:
        results: list[BatchResult] = []
        for workflow in workflows:
            try:
                operation(workflow["id"])
            except N8nctlError as exc:
                logger.debug("%s failed for %s: %s", operation.__name__, workflow.get("id"), exc)
                results.append(BatchResult(workflow, exc))
            else:
                results.append(BatchResult(workflow))
        return results

    def deploy_workflow(self, payload: dict[str, Any]) -> DeployResult:
        """Create or update a workflow by name, then try to activate it.

        A workflow with the same name is updated in place; otherwise a new
        one is created. Activation failures are reported on the result
        rather than raised, since the deploy itself succeeded.
        """
        name = payload.get("name") or "Unnamed Workflow"
        existing = next(
            (w for w in self.list_workflows_all(name=name) if w.get("name") == name),
            None,
        )
        if existing is not None:
            workflow_id = str(existing["id"])
            self.update_workflow(workflow_id, payload)
            created = False
        else:
            response = self.create_workflow(payload) or {}
            workflow_id = str(response.get("id", ""))
            name = response.get("name", name)
            created = True
            if not workflow_id:
                raise ProtocolError("Workflow create returned no ID")

        result = DeployResult(workflow_id=workflow_id, name=name, created=created)
        try:
            self.activate_workflow(workflow_id)
        except N8nctlError as exc:
            result.activation_error = exc
        return result

    # ------------------------------------------------------------------ #
    # Workflow tags and transfer (global paths only)
    # ------------------------------------------------------------------ #

    def get_workflow_tags(self, workflow_id: str) -> list[dict[str, Any]]:
        return _records(self._http.send("GET", f"workflows/{workflow_id}/tags"))

    def update_workflow_tags(self, workflow_id: str, tag_ids: list[str]) -> list[dict[str, Any]]:
        return _records(
            self._http.send("PUT", f"workflows/{workflow_id}/tags", {"tagIds": tag_ids})
        )

    def transfer_workflow(self, workflow_id: str, destination_project_id: str) -> None:
        self._http.send(
            "PUT",
            f"workflows/{workflow_id}/transfer",
            {"destinationProjectId": destination_project_id},
        )

    # ------------------------------------------------------------------ #
    # Run
    # ------------------------------------------------------------------ #

    def run_workflow(self, workflow_id: str, data: Optional[dict[str, Any]] = None) -> ExecutionStarted:
        """Start a workflow execution.

        Tries ``POST workflows/{id}/run`` first. If that fails or answers
        without an execution ID, tries ``POST executions``. Errors from the
        second endpoint propagate.

        Raises:
            ProtocolError: If neither endpoint yields an execution ID.
        """
        body: dict[str, Any] = {"data": data} if data else {}

        execution_id: Optional[str] = None
        try:
            response = self._http.send("POST", f"workflows/{workflow_id}/run", body)
            execution_id = extract_execution_id(response, RUN_EXECUTION_ID)
        except N8nctlError as exc:
            logger.debug("Run endpoint failed for %s: %s", workflow_id, exc)

        if not execution_id:
            response = self._http.send("POST", "executions", {"workflowId": workflow_id, **body})
            execution_id = extract_execution_id(response, RUN_EXECUTION_ID)

        if not execution_id:
            raise ProtocolError(
                "Workflow run returned no execution ID. "
                f"Check {self.profile.api_url}/docs for the correct endpoint."
            )
        return ExecutionStarted(execution_id=execution_id)

    # ------------------------------------------------------------------ #
    # Executions (never scoped)
    # ------------------------------------------------------------------ #

    def list_executions_paginated(
        self,
        workflow_id: Optional[str] = None,
        cursor: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
    ) -> Page:
        params = {
            "workflowId": workflow_id or None,
            "cursor": cursor or None,
            "status": ExecutionStatus(status).value if status else None,
        }
        return _page(self._http.send("GET", "executions", params=params))

    def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
    ) -> list[dict[str, Any]]:
        return self.list_executions_paginated(workflow_id=workflow_id, status=status).data

    def list_executions_all(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
    ) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            page = self.list_executions_paginated(workflow_id=workflow_id, cursor=cursor, status=status)
            records.extend(page.data)
            cursor = page.next_cursor
            if not cursor:
                return records

    def get_execution(self, execution_id: str) -> dict[str, Any]:
        return _record(self._http.send("GET", f"executions/{execution_id}"), f"execution {execution_id}")

    def retry_execution(self, execution_id: str) -> ExecutionStarted:
        """Retry a failed execution.

        Raises:
            ProtocolError: If the response carries no execution ID.
        """
        response = self._http.send("POST", f"executions/{execution_id}/retry", {})
        new_id = extract_execution_id(response, RETRY_EXECUTION_ID)
        if not new_id:
            raise ProtocolError("Retry returned no execution ID")
        return ExecutionStarted(execution_id=new_id)

    def stop_execution(self, execution_id: str) -> None:
        self._http.send("POST", f"executions/{execution_id}/stop", {})

    def delete_execution(self, execution_id: str) -> None:
        self._http.send("DELETE", f"executions/{execution_id}")

    # ------------------------------------------------------------------ #
    # Instance resources
    # ------------------------------------------------------------------ #

    def list_credentials(self) -> list[dict[str, Any]]:
        return _records(self._http.send("GET", "credentials"))

    def create_credential(
        self, name: str, credential_type: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        return self._http.send(
            "POST", "credentials", {"name": name, "type": credential_type, "data": data}
        )

    def list_tags(self) -> list[dict[str, Any]]:
        return _records(self._http.send("GET", "tags"))

    def create_tag(self, name: str) -> dict[str, Any]:
        return self._http.send("POST", "tags", {"name": name})

    def list_variables(self) -> list[dict[str, Any]]:
        return _records(self._http.send("GET", "variables"))

    def audit(
        self,
        days_abandoned_workflow: Optional[int] = None,
        categories: Optional[list[str]] = None,
    ) -> Any:
        """Generate a security audit report."""
        options: dict[str, Any] = {}
        if days_abandoned_workflow is not None:
            options["daysAbandonedWorkflow"] = days_abandoned_workflow
        if categories:
            options["categories"] = categories
        return self._http.send("POST", "audit", {"additionalOptions": options} if options else {})

    def ping(self) -> bool:
        """Return ``True`` if the server is reachable and accepts the API key."""
        try:
            self.list_workflows_paginated()
        except N8nctlError as exc:
            logger.debug("Ping failed: %s", exc)
            return False
        return True


def _page(response: Any) -> Page:
    if not isinstance(response, dict):
        return Page()
    try:
        return Page.model_validate(response)
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected list response: {exc}") from exc


def _record(response: Any, what: str) -> dict[str, Any]:
    if not isinstance(response, dict):
        raise ProtocolError(f"Empty or non-JSON response for {what}")
    return response


def _records(response: Any) -> list[dict[str, Any]]:
    """Normalise list endpoints that answer with either ``[...]`` or ``{"data": [...]}``."""
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        return response.get("data") or []
    return []
