"""Response decoding -- maps :class:`httpx.Response` to Python values or errors.

The n8n API is not consistent about bodies: deletes and activations may
answer with an empty body or a non-JSON content type, and errors come back
either as ``{"message": ...}``, ``{"error": {"message": ...}}``, or plain
text. The helpers here absorb those differences so the client only deals
with parsed values and :class:`~n8nctl.exceptions.ApiError`.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from n8nctl.exceptions import ApiError, ProtocolError


def raise_for_status(response: httpx.Response) -> None:
    """Raise :class:`~n8nctl.exceptions.ApiError` for any non-2xx response."""
    if 200 <= response.status_code < 300:
        return
    raise ApiError(response.status_code, extract_error_message(response))


def extract_error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response.

    Tries the JSON body's ``message`` field, then ``error.message``, and
    falls back to the raw response text when neither is present or the body
    is not JSON.
    """
    text = response.text
    try:
        body = json.loads(text)
    except ValueError:
        return text

    if isinstance(body, dict):
        message = body.get("message")
        if message is None and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        if message is not None:
            return str(message)
    return text


def parse_success_body(response: httpx.Response) -> Any:
    """Decode a 2xx response.

    Returns:
        The parsed JSON value when the content type is JSON and the body is
        non-empty, otherwise ``None``.

    Raises:
        ProtocolError: If the server claims JSON but the body does not parse.
    """
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        return None

    text = response.text
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ProtocolError(
            f"Invalid JSON in response from {response.request.method} {response.request.url}: {exc}"
        ) from exc
