"""Execution-ID extraction from heterogeneous response bodies.

Depending on the n8n version, starting or retrying an execution answers
with ``{"data": {"executionId": ...}}``, ``{"data": {"id": ...}}``,
``{"id": ...}`` or ``{"executionId": ...}``. Each shape is handled by one
small extractor; an ordered tuple of extractors is tried in sequence and
the first non-empty value wins.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

Extractor = Callable[[Any], Optional[str]]


def _as_id(value: Any) -> Optional[str]:
    if value is None or value == "" or isinstance(value, (dict, list, bool)):
        return None
    return str(value)


def from_data(key: str) -> Extractor:
    """Extractor reading ``body["data"][key]``."""

    def extract(body: Any) -> Optional[str]:
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            return None
        return _as_id(body["data"].get(key))

    extract.__name__ = f"data.{key}"
    return extract


def from_root(key: str) -> Extractor:
    """Extractor reading ``body[key]``."""

    def extract(body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        return _as_id(body.get(key))

    extract.__name__ = key
    return extract


RUN_EXECUTION_ID: tuple[Extractor, ...] = (
    from_data("executionId"),
    from_data("id"),
    from_root("id"),
)
"""Shapes answered by ``POST workflows/{id}/run`` and ``POST executions``."""

RETRY_EXECUTION_ID: tuple[Extractor, ...] = (
    from_data("id"),
    from_data("executionId"),
    from_root("id"),
    from_root("executionId"),
)
"""Shapes answered by ``POST executions/{id}/retry``."""


def extract_execution_id(body: Any, extractors: Sequence[Extractor]) -> Optional[str]:
    """Return the first identifier produced by *extractors*, or ``None``."""
    for extractor in extractors:
        value = extractor(body)
        if value:
            return value
    return None
