"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode suppression rules
- JSON and plain rendering of payloads and tables
- Diff printing
- Workflow and execution listings
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from n8nctl import output as output_module
from n8nctl.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    execution_row,
    execution_summary,
    get_output,
    reset_output,
    set_output,
    workflow_row,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("n8nctl.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("n8nctl.output._is_tty", lambda: True)


@pytest.fixture()
def plain(non_tty):
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain_on_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, plain):
        plain.print_data("wf-123")
        captured = capfd.readouterr()
        assert captured.out == "wf-123\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("info", "Workflow activated\n"),
            ("success", "Workflow activated\n"),
            ("warning", "Warning: Workflow activated\n"),
            ("error", "Error: Workflow activated\n"),
            ("suggest", "→ Workflow activated\n"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capfd, plain, method, expected):
        getattr(plain, method)("Workflow activated")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == expected

    def test_markup_is_not_interpreted(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.error("bad [red]name[/red]")
        assert "[red]name[/red]" in capfd.readouterr().err


class TestQuietMode:
    @pytest.fixture()
    def quiet(self, non_tty):
        return OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)

    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_suppressed(self, capfd, quiet, method):
        getattr(quiet, method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_never_suppressed(self, capfd, quiet, method):
        getattr(quiet, method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_data_still_printed(self, capfd, quiet):
        quiet.print_data("exec-1")
        assert capfd.readouterr().out == "exec-1\n"


# ------------------------------------------------------------------ #
# Rendering
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.format_response({"id": "wf-1", "name": "Größe"})
        out = capfd.readouterr().out
        assert json.loads(out) == {"id": "wf-1", "name": "Größe"}
        assert "Größe" in out

    def test_plain_dict(self, capfd, plain):
        plain.format_response({"id": "wf-1", "tags": [{"id": "t1"}]})
        assert capfd.readouterr().out == 'id\twf-1\ntags\t[{"id": "t1"}]\n'

    def test_plain_list(self, capfd, plain):
        plain.format_response([{"id": "e1", "status": "error"}, "raw"])
        assert capfd.readouterr().out == "e1\terror\nraw\n"

    def test_plain_none(self, capfd, plain):
        plain.format_response(None)
        assert capfd.readouterr().out == ""

    def test_rich(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.format_response({"id": "wf-1"})
        assert '"wf-1"' in capfd.readouterr().out


class TestPrintTable:
    HEADERS = ["ID", "Name", "Status"]
    ROWS = [["1", "Daily Report", "active"], ["2", "Sync", "inactive"]]

    def test_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS)
        assert json.loads(capfd.readouterr().out) == [
            {"ID": "1", "Name": "Daily Report", "Status": "active"},
            {"ID": "2", "Name": "Sync", "Status": "inactive"},
        ]

    def test_plain(self, capfd, plain):
        plain.print_table(self.HEADERS, self.ROWS)
        assert capfd.readouterr().out == "1\tDaily Report\tactive\n2\tSync\tinactive\n"

    def test_rich(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS, title="Workflows")
        out = capfd.readouterr().out
        assert "Daily Report" in out
        assert "Status" in out


class TestPrintDiff:
    def test_plain(self, capfd, plain):
        plain.print_diff("--- a\n+++ b\n-x\n+y\n")
        assert capfd.readouterr().out == "--- a\n+++ b\n-x\n+y\n"

    def test_rich(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_diff("-old\n+new\n")
        out = capfd.readouterr().out
        assert "-old" in out
        assert "+new" in out


# ------------------------------------------------------------------ #
# n8n listings
# ------------------------------------------------------------------ #


class TestRows:
    def test_workflow_row(self):
        assert workflow_row({"id": 7, "name": "Sync", "active": True}) == ["7", "Sync", "active"]
        assert workflow_row({"id": "8"}) == ["8", "", "inactive"]

    @pytest.mark.parametrize(
        ("execution", "expected"),
        [
            (
                {"id": "e1", "workflowId": "1", "status": "error", "startedAt": "2024-03-01T10:00:00Z"},
                ["e1", "1", "error", "2024-03-01T10:00:00Z"],
            ),
            ({"id": "e2", "workflowData": {"name": "Sync"}, "finished": True}, ["e2", "Sync", "done", ""]),
            ({"id": "e3"}, ["e3", "", "running", ""]),
        ],
    )
    def test_execution_row(self, execution, expected):
        assert execution_row(execution) == expected

    def test_execution_summary_drops_absent_fields(self):
        summary = execution_summary({"status": "success", "workflowData": {"name": "Sync"}}, "e1")
        assert summary == {"id": "e1", "status": "success", "workflow": "Sync"}


class TestListings:
    WORKFLOWS = [{"id": "1", "name": "Daily Report", "active": True}, {"id": "2", "name": "Sync"}]

    def test_workflows_plain(self, capfd, plain):
        plain.print_workflows(self.WORKFLOWS)
        captured = capfd.readouterr()
        assert captured.out == "1\tDaily Report\tactive\n2\tSync\tinactive\n"
        assert captured.err == "Total: 2 workflow(s)\n"

    def test_workflows_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True, quiet=True)
        mgr.print_workflows(self.WORKFLOWS)
        assert json.loads(capfd.readouterr().out)[0] == {"ID": "1", "Name": "Daily Report", "Status": "active"}

    def test_no_workflows(self, capfd, plain):
        plain.print_workflows([])
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == "No workflows found.\n"

    def test_executions_limit(self, capfd, plain):
        plain.print_executions([{"id": f"e{i}", "status": "success"} for i in range(3)], limit=2)
        captured = capfd.readouterr()
        assert captured.out.splitlines() == ["e0\t\tsuccess\t", "e1\t\tsuccess\t"]
        assert captured.err == "... and 1 more\nTotal: 3 execution(s)\n"

    def test_rich_keeps_brackets_in_names(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_workflows([{"id": "1", "name": "[prod] Import", "active": False}])
        out = capfd.readouterr().out
        assert "[prod] Import" in out
        assert "inactive" in out


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_delegate(self, capfd, plain):
        set_output(plain)
        output_module.print_data("out")
        output_module.info("note")
        output_module.warning("careful")
        captured = capfd.readouterr()
        assert captured.out == "out\n"
        assert captured.err == "note\nWarning: careful\n"
