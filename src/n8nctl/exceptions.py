"""Exception hierarchy for n8nctl.

All exceptions inherit from :class:`N8nctlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`n8nctl.exit_codes`.
The request engine raises these unchanged; only the CLI boundary turns them
into remediation text via :func:`n8nctl.diagnostics.to_friendly_error`.

Subclass hierarchy::

    N8nctlError (exit 1)
    +-- ConfigNotFoundError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ApiError            (exit 3 / 4 / 5 / 1, by HTTP status)
    +-- TimeoutError_       (exit 6)
    +-- TransportError      (exit 6)
    +-- ProtocolError       (exit 1)
    +-- WorkflowFileError   (exit 1)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from n8nctl.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class N8nctlError(Exception):
    """Base exception for all n8nctl errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigNotFoundError(N8nctlError):
    """Raised when neither the environment nor any config file yields a usable profile."""


class InvalidUsageError(N8nctlError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ApiError(N8nctlError):
    """Raised when the n8n API answers with a non-2xx status.

    The string form is ``"n8n API error <status>: <message>"``; the
    diagnostics module keys off that prefix.

    Args:
        status: The HTTP status code.
        message: Best-effort message extracted from the response body.
    """

    def __init__(self, status: int, message: str):
        super().__init__(f"n8n API error {status}: {message}", _exit_code_for_status(status))
        self.status = status
        self.detail = message


class TimeoutError_(N8nctlError):
    """Raised when a single attempt exceeds the profile's ``timeout_ms``.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


@dataclass(frozen=True)
class TransportCause:
    """The low-level reason behind a :class:`TransportError`.

    ``code`` is an errno-style label (``ECONNREFUSED``, ``ENOTFOUND``,
    ``ECONNRESET``, ``SELF_SIGNED_CERT_IN_CHAIN``, ``CERT_VERIFY_FAILED``) or
    an empty string when nothing more specific is known.
    """

    code: str
    message: str


class TransportError(N8nctlError):
    """Raised on network-level failures (DNS, refused or reset connections, TLS).

    Args:
        message: Summary of the failed request.
        cause: The classified low-level reason.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, cause: Optional[TransportCause] = None):
        super().__init__(message)
        self.cause = cause


class ProtocolError(N8nctlError):
    """Raised when a successful response cannot be used (bad JSON, missing execution ID)."""


class WorkflowFileError(N8nctlError):
    """Raised when a local workflow JSON file cannot be read, parsed, or validated."""


def _exit_code_for_status(status: int) -> int:
    if status in (401, 403):
        return EXIT_AUTH_FAILURE
    if status == 404:
        return EXIT_NOT_FOUND
    if status >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE
