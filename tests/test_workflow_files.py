"""Tests for local workflow file helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from n8nctl.exceptions import WorkflowFileError
from n8nctl.workflow_files import (
    MAX_FILENAME_LENGTH,
    deep_sort_keys,
    deploy_payload,
    diff_workflows,
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


EXPORTED = {
    "id": "wf-1",
    "name": "Daily Report",
    "createdAt": "2024-01-01T00:00:00.000Z",
    "updatedAt": "2024-02-01T00:00:00.000Z",
    "active": True,
    "nodes": [
        {"id": "a", "name": "Start", "type": "n8n-nodes-base.manualTrigger"},
        {"id": "b", "name": "Send", "type": "n8n-nodes-base.slack"},
    ],
    "connections": {"Start": {"main": [[{"node": "Send", "type": "main", "index": 0}]]}},
    "settings": {"executionOrder": "v1"},
}


class TestLoadAndWrite:
    def test_round_trip_on_disk(self, tmp_path: Path) -> None:
        path = write_workflow_file(tmp_path / "out" / "wf.json", {"name": "Größe"})
        assert path.read_text(encoding="utf-8") == '{\n  "name": "Größe"\n}'
        assert load_workflow_file(path) == {"name": "Größe"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(WorkflowFileError, match="Could not read"):
            load_workflow_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        with pytest.raises(WorkflowFileError, match="Invalid JSON"):
            load_workflow_file(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(WorkflowFileError, match="must contain a JSON object"):
            load_workflow_file(path)

    def test_unwritable_target(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(WorkflowFileError, match="Could not write"):
            write_workflow_file(blocker / "wf.json", {})


class TestFilenames:
    def test_sanitize(self) -> None:
        assert sanitize_filename('My: "Flow" / v2?') == "My---Flow----v2-"

    def test_sanitize_truncates(self) -> None:
        assert len(sanitize_filename("x" * 200)) == MAX_FILENAME_LENGTH

    def test_timestamped(self) -> None:
        moment = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
        assert timestamped_filename("Daily Report", moment) == "Daily-Report-2024-03-05T14-07-09.json"

    def test_saved_dir(self, tmp_path: Path) -> None:
        assert saved_dir(tmp_path) == tmp_path / "workflows" / "saved"


class TestPayloads:
    def test_strip_for_import(self) -> None:
        payload = strip_for_import(EXPORTED)
        assert "id" not in payload
        assert "createdAt" not in payload
        assert "updatedAt" not in payload
        assert payload["name"] == "Daily Report"
        assert EXPORTED["id"] == "wf-1"

    def test_strip_for_import_renames(self) -> None:
        assert strip_for_import(EXPORTED, "Copy")["name"] == "Copy"

    def test_prepare_clone(self) -> None:
        clone = prepare_clone(EXPORTED, "Daily Report (copy)")
        assert clone["name"] == "Daily Report (copy)"
        assert "id" not in clone
        ids = [node["id"] for node in clone["nodes"]]
        assert all(i.startswith("node-") and len(i) == 14 for i in ids)
        assert len(set(ids)) == 2
        assert [n["id"] for n in EXPORTED["nodes"]] == ["a", "b"]

    def test_deploy_payload(self) -> None:
        assert deploy_payload(EXPORTED) == {
            "name": "Daily Report",
            "nodes": EXPORTED["nodes"],
            "connections": EXPORTED["connections"],
            "settings": {"executionOrder": "v1"},
        }

    def test_deploy_payload_defaults(self) -> None:
        payload = deploy_payload({"nodes": [], "connections": {}})
        assert payload["name"] == "Unnamed Workflow"
        assert payload["settings"] == {}


class TestValidate:
    def test_counts(self) -> None:
        assert validate_workflow(EXPORTED) == (2, 1)

    @pytest.mark.parametrize("nodes", [None, [], "x"])
    def test_missing_nodes(self, nodes: object) -> None:
        with pytest.raises(WorkflowFileError, match="Missing or empty nodes array"):
            validate_workflow({"nodes": nodes, "connections": {}})

    def test_missing_connections(self) -> None:
        with pytest.raises(WorkflowFileError, match="Missing connections object"):
            validate_workflow({"nodes": [{}]})


class TestDiff:
    def test_key_order_is_ignored(self) -> None:
        local = {"b": 1, "a": {"y": 2, "x": 1}}
        remote = {"a": {"x": 1, "y": 2}, "b": 1}
        assert diff_workflows(local, remote) == ""

    def test_changes_are_reported(self) -> None:
        diff = diff_workflows({"name": "old"}, {"name": "new"}, "wf.json", "remote:1")
        assert diff.startswith("--- wf.json\n+++ remote:1\n")
        assert '-  "name": "old"' in diff
        assert '+  "name": "new"' in diff

    def test_deep_sort_keys_keeps_list_order(self) -> None:
        assert deep_sort_keys([{"b": 1, "a": 2}, 3]) == [{"a": 2, "b": 1}, 3]
        assert list(deep_sort_keys({"b": 1, "a": 2})) == ["a", "b"]


class TestWebhookUrls:
    def test_lists_webhook_nodes(self) -> None:
        workflow = {
            "nodes": [
                {"name": "Hook", "type": "n8n-nodes-base.webhook", "parameters": {"path": "orders"}},
                {"name": "Other", "type": "n8n-nodes-base.set"},
                {"name": "Bare", "type": "n8n-nodes-base.webhook"},
            ]
        }
        assert webhook_urls(workflow, "https://n8n.example.com/") == [
            (
                "Hook",
                "https://n8n.example.com/webhook/orders",
                "https://n8n.example.com/webhook-test/orders",
            ),
            (
                "Bare",
                "https://n8n.example.com/webhook/webhook",
                "https://n8n.example.com/webhook-test/webhook",
            ),
        ]

    def test_no_nodes(self) -> None:
        assert webhook_urls({}, "https://x") == []

