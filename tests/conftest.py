"""Shared test fixtures for n8nctl.

Provides reusable fixtures for isolating the process environment, wiring
an :class:`httpx.MockTransport` into CLI commands, resetting output and
logging state, and running CLI commands. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import pytest

from n8nctl.client import N8nClient
from n8nctl.models import ConnectionProfile
from n8nctl.output import reset_output


BASE_URL = "https://n8n.example.com"
API_KEY = "test-api-key"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_n8nctl_logger() -> None:
    """Drop handlers installed by ``setup_logging`` so caplog keeps working."""
    yield
    logger = logging.getLogger("n8nctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def backoff_delays(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping.

    Request the fixture by name to inspect the recorded delays.
    """
    delays: list[float] = []
    monkeypatch.setattr("n8nctl.client.sync_client.time.sleep", delays.append)
    return delays


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears every N8N_* variable, points XDG_DATA_HOME into tmp_path, and
    changes the working directory to tmp_path so config discovery and
    saved workflow files never touch the real filesystem.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in [
        "N8N_BASE_URL",
        "N8N_API_KEY",
        "N8N_PROJECT_ID",
        "N8N_REJECT_UNAUTHORIZED",
        "N8N_CONFIG_FILE",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def env_profile(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Provide a profile through N8N_BASE_URL + N8N_API_KEY."""
    monkeypatch.setenv("N8N_BASE_URL", BASE_URL)
    monkeypatch.setenv("N8N_API_KEY", API_KEY)
    return isolated_env


# ---------------------------------------------------------------------------
# Fake n8n server for CLI tests
# ---------------------------------------------------------------------------


class FakeServer:
    """Route table for :class:`httpx.MockTransport`.

    Routes are keyed by ``(method, path)`` where *path* is relative to
    ``/api/v1``. A route value is either a response body (served as JSON
    with status 200), an :class:`httpx.Response`, or a callable taking the
    request. Unrouted requests answer 404. Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1/")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"/api/v1/{path}"
        ]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


@pytest.fixture
def fake_server(env_profile: Path, monkeypatch: pytest.MonkeyPatch) -> FakeServer:
    """Route every CLI command's client to a :class:`FakeServer`."""
    server = FakeServer()

    def _create_client(profile: ConnectionProfile) -> N8nClient:
        return N8nClient(profile, transport=httpx.MockTransport(server.handler))

    monkeypatch.setattr("n8nctl.commands.common.create_client", _create_client)
    return server


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()



@pytest.fixture
def run_cli(cli_runner):
    """Invoke the n8nctl app with colour disabled.

    Usage::

        result = run_cli("workflows", "list")
        result = run_cli("--force", "workflows", "delete", "1")
    """
    from n8nctl.app import app

    def _run(*args: str, input: str | None = None):
        return cli_runner.invoke(app, ["--no-color", *args], input=input)

    return _run
