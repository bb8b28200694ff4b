"""Terminal output for n8nctl.

Anything a script might consume goes to stdout: workflow JSON, execution
IDs, listings. Progress lines, warnings and hints go to stderr, so
``n8nctl workflows export 12 > wf.json`` writes nothing but the workflow.

Rendering follows the ``--json`` / ``--plain`` flags. Without either, a
colour-capable terminal gets rich tables and highlighted JSON, and a pipe
gets tab-separated rows. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` turn
colour off.

Commands call the module-level functions. :func:`~n8nctl.app.main_callback`
builds the :class:`OutputManager` for the process and installs it with
:func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How stdout data is rendered. ``AUTO`` picks ``RICH`` or ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


WORKFLOW_COLUMNS = ["ID", "Name", "Status"]
EXECUTION_COLUMNS = ["ID", "Workflow", "Status", "Started"]

# Index of the Status column in both listings.
_STATUS_COLUMN = 2

_STATUS_STYLES = {
    "active": "green",
    "inactive": "dim",
    "success": "green",
    "done": "green",
    "error": "bold red",
    "crashed": "bold red",
    "running": "yellow",
    "waiting": "yellow",
    "new": "yellow",
    "canceled": "dim",
}


# ------------------------------------------------------------------ #
# n8n rows
# ------------------------------------------------------------------ #


def workflow_row(workflow: dict[str, Any]) -> list[str]:
    status = "active" if workflow.get("active") else "inactive"
    return [str(workflow.get("id", "")), str(workflow.get("name", "")), status]


def execution_status(execution: dict[str, Any]) -> str:
    """The reported status, or ``done``/``running`` from ``finished`` on older servers."""
    return str(execution.get("status") or ("done" if execution.get("finished") else "running"))


def execution_workflow(execution: dict[str, Any]) -> Optional[str]:
    """Name of the workflow an execution ran, falling back to its ID."""
    return (execution.get("workflowData") or {}).get("name") or execution.get("workflowId")


def execution_row(execution: dict[str, Any]) -> list[str]:
    return [
        str(execution.get("id", "")),
        str(execution_workflow(execution) or ""),
        execution_status(execution),
        str(execution.get("startedAt") or ""),
    ]


def execution_summary(execution: dict[str, Any], execution_id: str) -> dict[str, Any]:
    """The fields ``executions status`` shows for one execution. Absent fields are left out."""
    summary = {
        "id": execution.get("id", execution_id),
        "status": execution.get("status"),
        "finished": execution.get("finished"),
        "mode": execution.get("mode"),
        "startedAt": execution.get("startedAt"),
        "stoppedAt": execution.get("stoppedAt"),
        "workflow": execution_workflow(execution),
    }
    return {key: value for key, value in summary.items() if value is not None}


class OutputManager:
    """Holds the output settings of one CLI invocation.

    Args:
        format: Requested format; ``AUTO`` is resolved here from TTY detection.
        no_color: Disable colour even on a terminal.
        quiet: Drop info, success and suggestion lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write an API payload: indented JSON, ``key<TAB>value`` lines, or highlighted JSON."""
        if self._format == OutputFormat.PLAIN:
            self._print_plain(data)
            return
        rendered = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.JSON:
            self.print_data(rendered)
        else:
            self._stdout.print(Syntax(rendered, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
        status_column: Optional[int] = None,
    ) -> None:
        """Write rows as a JSON array of objects, TSV lines, or a rich table.

        In rich mode the cells of *status_column* are coloured by value
        (``active`` green, ``error`` red, and so on).
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for row in rows:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(
                *(
                    Text(cell, style=_STATUS_STYLES.get(cell, "") if index == status_column else "")
                    for index, cell in enumerate(row)
                )
            )
        self._stdout.print(table)

    def print_workflows(self, workflows: list[dict[str, Any]]) -> None:
        """Workflow listing on stdout, with the total on stderr."""
        if not workflows:
            self.info("No workflows found.")
            return
        self.print_table(
            WORKFLOW_COLUMNS,
            [workflow_row(w) for w in workflows],
            title="Workflows",
            status_column=_STATUS_COLUMN,
        )
        self.info(f"Total: {len(workflows)} workflow(s)")

    def print_executions(self, executions: list[dict[str, Any]], limit: int = 0) -> None:
        """Execution listing capped at *limit* rows (0 shows all)."""
        if not executions:
            self.info("No executions found.")
            return
        shown = executions[:limit] if limit > 0 else executions
        self.print_table(
            EXECUTION_COLUMNS,
            [execution_row(e) for e in shown],
            title="Executions",
            status_column=_STATUS_COLUMN,
        )
        hidden = len(executions) - len(shown)
        if hidden:
            self.info(f"... and {hidden} more")
        self.info(f"Total: {len(executions)} execution(s)")

    def print_diff(self, diff_text: str) -> None:
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(diff_text, "diff", theme="monokai"))
        else:
            self.print_data(diff_text.rstrip("\n"))

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, label="Warning:", label_style="yellow")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, label="Error:", label_style="bold red")

    def suggest(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(f"→ {message}", style="dim")

    def _diagnostic(self, message: str, style: str = "", label: str = "", label_style: str = "") -> None:
        # Rendered as Text: server messages may contain "[...]".
        if self._no_color:
            print(f"{label} {message}" if label else message, file=sys.stderr, flush=True)
            return
        text = Text(message, style=style)
        if label:
            text = Text.assemble((label, label_style), " ", text)
        self._stderr.print(text, highlight=False)

    def _print_plain(self, data: Any) -> None:
        if data is None:
            return
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, even empty, or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Tests call this between runs."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def print_workflows(workflows: list[dict[str, Any]]) -> None:
    get_output().print_workflows(workflows)


def print_executions(executions: list[dict[str, Any]], limit: int = 0) -> None:
    get_output().print_executions(executions, limit)


def print_diff(diff_text: str) -> None:
    get_output().print_diff(diff_text)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
