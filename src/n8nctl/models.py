"""Canonical Pydantic models shared across n8nctl modules.

The models fall into two groups:

**Configuration models** -- loaded from environment variables or a JSON
config file: :class:`ConnectionProfile`.

**Response envelopes** -- the few response shapes the client interprets:
:class:`Page` and :class:`ExecutionStarted`. Everything else the server
returns (workflows, executions, tags, credentials, variables) is passed
through as plain ``dict`` records.

Field names are snake_case in Python and camelCase on the wire; every model
sets ``populate_by_name`` so both spellings are accepted on input.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Connection profile ---


class ConnectionProfile(BaseModel):
    """Resolved connection settings for one n8n server.

    Built by :func:`~n8nctl.config.resolve_profile` and owned by exactly one
    :class:`~n8nctl.client.SyncClient`. The profile is frozen: a project-path
    fallback never changes ``project_id``.

    Unknown keys from a config file (``webhookUrl``, ``webhookHeaderAuth``,
    ...) are preserved in ``model_extra`` and written back by
    ``model_dump(by_alias=True)``.

    Example::

        ConnectionProfile(baseUrl="https://n8n.example.com/", apiKey="secret")
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    base_url: str = Field(alias="baseUrl", description="Server address, no trailing slash")
    api_key: str = Field(alias="apiKey", description="Value of the X-N8N-API-KEY header")
    project_id: Optional[str] = Field(
        default=None, alias="projectId", description="Project that scopes workflow calls"
    )
    reject_unauthorized: bool = Field(
        default=True,
        alias="rejectUnauthorized",
        description="Verify TLS certificates; disable for self-signed internal servers",
    )
    timeout_ms: int = Field(
        default=30000, alias="timeoutMs", ge=1, description="Per-attempt timeout in milliseconds"
    )
    retries: int = Field(default=3, ge=0, description="Extra attempts on transient failures")
    debug: bool = Field(default=False, description="Log requests, responses, and retries")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("project_id")
    @classmethod
    def _blank_project_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def api_url(self) -> str:
        """The versioned API root, e.g. ``https://n8n.example.com/api/v1``."""
        return f"{self.base_url}/api/v1"


# --- Filters ---


class ExecutionStatus(str, enum.Enum):
    """Values accepted by the ``status`` filter of ``GET /executions``."""

    ERROR = "error"
    SUCCESS = "success"
    RUNNING = "running"
    CANCELED = "canceled"
    WAITING = "waiting"


# --- Response envelopes ---


class Page(BaseModel):
    """One page of a cursor-paginated list endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[Any] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ExecutionStarted(BaseModel):
    """Result of starting or retrying an execution."""

    model_config = ConfigDict(populate_by_name=True)

    execution_id: str = Field(alias="executionId")
