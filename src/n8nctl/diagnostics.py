"""Friendly remediation messages for errors raised by the request engine.

:func:`to_friendly_error` is what the CLI prints when a command fails. It is
a pure function of the error's message and its optional cause (``code`` and
``message``), so it works equally for n8nctl's own exceptions, raw httpx
errors, and plain strings.
"""

from __future__ import annotations

import re
from typing import Any

CONFIG_HINT = "n8n-config.local.json or N8N_API_KEY"
URL_HINT = "n8n-config.local.json or N8N_BASE_URL"

_STATUS_401 = re.compile(r"\b401\b")
_STATUS_403 = re.compile(r"\b403\b")
_STATUS_404 = re.compile(r"\b404\b")


def to_friendly_error(err: Any) -> str:
    """Turn a raised error into a message telling the user what to fix.

    Checks, in order: rejected API key (401), missing permission (403),
    wrong URL (404), unresolvable hostname, refused connection,
    self-signed certificate, timeout, any other n8n API error, and any
    other transport failure. Unrecognised errors return their message
    unchanged; non-exception values return ``str(err)``.

    Never raises.
    """
    if not isinstance(err, BaseException):
        return err if isinstance(err, str) else _safe_str(err)

    msg = _safe_str(err)
    lowered = msg.lower()
    cause = getattr(err, "cause", None)
    cause_code = _safe_str(getattr(cause, "code", "") or "") if cause is not None else ""
    cause_msg = _cause_message(cause)

    if _STATUS_401.search(msg) or "unauthorized" in lowered:
        return (
            f"Invalid API key. Update apiKey in your config ({CONFIG_HINT}).\n"
            "  Create an API key in n8n: Settings -> API."
        )

    if _STATUS_403.search(msg) or "forbidden" in lowered:
        return (
            "Access denied (403). Check that your API key has the required permissions.\n"
            "  Create or regenerate an API key in n8n: Settings -> API."
        )

    if _STATUS_404.search(msg) or "not found" in lowered:
        return (
            f"n8n instance not found. Check baseUrl in your config ({URL_HINT}).\n"
            "  Ensure the URL is correct and n8n is running."
        )

    if cause_code == "ENOTFOUND" or "ENOTFOUND" in cause_msg or "getaddrinfo" in msg:
        return (
            f"Cannot resolve n8n hostname. Check baseUrl in your config ({URL_HINT}).\n"
            "  Ensure the URL is correct and reachable from your network."
        )

    if cause_code == "ECONNREFUSED" or "ECONNREFUSED" in cause_msg:
        return (
            f"Cannot connect to n8n. Is it running? Check baseUrl in your config ({URL_HINT}).\n"
            "  For local: start n8n with `npx n8n` (default port 5678)."
        )

    if (
        cause_code == "SELF_SIGNED_CERT_IN_CHAIN"
        or "SELF_SIGNED_CERT" in cause_msg
        or "self-signed" in msg
    ):
        return (
            "Self-signed certificate rejected. For corporate/internal n8n instances:\n"
            "  Set rejectUnauthorized: false in config, or N8N_REJECT_UNAUTHORIZED=false."
        )

    if "timed out" in msg or "AbortError" in msg:
        return "Request timed out. Check baseUrl and network. Increase timeoutMs in config if needed."

    if "n8n API error" in msg:
        return msg + "\n  Check baseUrl and apiKey in your config."

    if "fetch failed" in msg or cause_msg:
        return (
            f"Connection failed: {cause_msg or msg}\n"
            "  Check baseUrl and apiKey in your config (n8n-config.local.json or env vars)."
        )

    return msg


def _cause_message(cause: Any) -> str:
    if cause is None:
        return ""
    message = getattr(cause, "message", None)
    if isinstance(message, str):
        return message
    return _safe_str(cause)


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)
