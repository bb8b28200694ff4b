"""Synchronous HTTP request engine with timeout, retry, and error mapping.

This module provides :class:`SyncClient`, the single primitive every n8n
operation goes through. It wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- ``X-N8N-API-KEY`` and ``Accept: application/json``
  on every request, ``Content-Type: application/json`` when a body is sent.
- **Timeouts** -- each attempt, from connect to the last body byte, is
  bounded by the profile's ``timeout_ms`` and surfaces as
  :class:`~n8nctl.exceptions.TimeoutError_`.
- **Retry with backoff** -- 429, 5xx, timeouts, and network failures are
  retried up to ``retries`` times with exponential delay (1 s, 2 s, 4 s, ...
  capped at 10 s).
- **Error mapping** -- non-2xx responses become
  :class:`~n8nctl.exceptions.ApiError`; transport failures become
  :class:`~n8nctl.exceptions.TransportError` carrying a classified
  :class:`~n8nctl.exceptions.TransportCause`.

See Also:
    :class:`~n8nctl.client.api.N8nClient` for the resource operations built
    on top of :meth:`SyncClient.send`.
"""

from __future__ import annotations

import logging
import socket
import ssl
import time
from typing import Any, Iterator, Optional

import httpx

from n8nctl.client.response import parse_success_body, raise_for_status
from n8nctl.exceptions import (
    ApiError,
    N8nctlError,
    TimeoutError_,
    TransportCause,
    TransportError,
)
from n8nctl.models import ConnectionProfile

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"

BACKOFF_BASE_MS = 1000
BACKOFF_CAP_MS = 10000


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retrying after the 0-based *attempt* failed."""
    return min(BACKOFF_BASE_MS * 2**attempt, BACKOFF_CAP_MS) / 1000


def is_retryable(exc: Exception) -> bool:
    """Return ``True`` for failures worth another attempt.

    Rate limiting (429), server errors (5xx), timeouts, and network-level
    failures qualify. Other 4xx responses, undecodable bodies, and requests
    httpx refuses to send (no URL scheme, illegal header) do not.
    """
    if isinstance(exc, ApiError):
        return exc.status == 429 or 500 <= exc.status < 600
    return isinstance(exc, (TimeoutError_, TransportError))


class SyncClient:
    """Synchronous HTTP client for the n8n public API.

    One client owns one :class:`~n8nctl.models.ConnectionProfile` and one
    :class:`httpx.Client` for its lifetime. It can be used as a context
    manager or closed explicitly with :meth:`close`.

    Args:
        profile: The resolved connection profile.
        transport: Optional httpx transport, mainly for tests
            (:class:`httpx.MockTransport`).

    Example::

        with SyncClient(profile) as client:
            page = client.send("GET", "workflows", params={"active": "true"})
    """

    def __init__(
        self,
        profile: ConnectionProfile,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._client = httpx.Client(
            base_url=profile.api_url,
            timeout=profile.timeout_ms / 1000,
            verify=profile.reject_unauthorized,
            transport=transport,
        )

    @property
    def profile(self) -> ConnectionProfile:
        """The profile this client was built from."""
        return self._profile

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._client.close()

    # ------------------------------------------------------------------ #
    # Public request method
    # ------------------------------------------------------------------ #

    def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send one logical request, retrying transient failures.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            path: Path relative to ``/api/v1`` (leading slash optional).
            body: JSON-serialisable request body, or ``None`` for no body.
            params: Query parameters; ``None`` values are dropped.

        Returns:
            The decoded JSON body, or ``None`` for empty / non-JSON responses.

        Raises:
            ApiError: On a non-2xx response (after retries for 429 / 5xx).
            TimeoutError_: When the last attempt timed out.
            TransportError: When the last attempt failed at the network level.
            ProtocolError: When a 2xx JSON response cannot be decoded.
            N8nctlError: When httpx rejects the request itself, e.g. a base
                URL without a scheme. Not retried.
        """
        headers = {"Accept": "application/json", API_KEY_HEADER: self._profile.api_key}
        if body is not None:
            headers["Content-Type"] = "application/json"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        relative = path.lstrip("/")

        max_retries = self._profile.retries
        for attempt in range(max_retries + 1):
            try:
                return self._attempt(method, relative, headers, query, body)
            except (ApiError, TimeoutError_, TransportError) as exc:
                if attempt >= max_retries or not is_retryable(exc):
                    raise
                delay = backoff_delay(attempt)
                logger.debug(
                    "Retry %d/%d in %dms: %s", attempt + 1, max_retries, delay * 1000, exc
                )
                time.sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _attempt(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        body: Any,
    ) -> Any:
        """Run a single HTTP exchange and decode the outcome.

        httpx bounds each connect/read/write step separately, so the body is
        streamed and checked against one deadline covering the whole attempt.
        """
        logger.debug("%s %s", method, path)
        kwargs: dict[str, Any] = {"headers": headers, "params": params}
        if body is not None:
            kwargs["json"] = body

        deadline = time.monotonic() + self._profile.timeout_ms / 1000
        try:
            with self._client.stream(method, path, **kwargs) as streamed:
                self._check_deadline(deadline)
                chunks = []
                for chunk in streamed.iter_bytes():
                    chunks.append(chunk)
                    self._check_deadline(deadline)
                response = _buffered(streamed, b"".join(chunks))
        except httpx.TimeoutException as exc:
            raise self._timed_out() from exc
        except (httpx.UnsupportedProtocol, httpx.LocalProtocolError) as exc:
            raise N8nctlError(f"{method} {path} failed: {exc}") from exc
        except httpx.TransportError as exc:
            cause = classify_transport_error(exc)
            raise TransportError(f"{method} {path} failed: {cause.message}", cause) from exc

        raise_for_status(response)
        data = parse_success_body(response)
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return data

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise self._timed_out()

    def _timed_out(self) -> TimeoutError_:
        return TimeoutError_(f"n8n API request timed out after {self._profile.timeout_ms}ms")


def _buffered(streamed: httpx.Response, content: bytes) -> httpx.Response:
    """Rebuild *streamed* around its already-decoded body."""
    headers = [
        (key, value)
        for key, value in streamed.headers.multi_items()
        if key.lower() not in ("content-encoding", "content-length", "transfer-encoding")
    ]
    return httpx.Response(
        streamed.status_code, headers=headers, content=content, request=streamed.request
    )


# ---------------------------------------------------------------------- #
# Transport error classification
# ---------------------------------------------------------------------- #


def classify_transport_error(exc: BaseException) -> TransportCause:
    """Derive an errno-style code for a transport failure.

    Walks the exception chain (httpx wraps httpcore, which wraps the
    ``OSError`` raised by the socket layer) and falls back to matching the
    message text when the original exception is not reachable.
    """
    for link in _exception_chain(exc):
        if isinstance(link, ssl.SSLCertVerificationError):
            return TransportCause(_certificate_code(str(link)), str(link))
        if isinstance(link, socket.gaierror):
            return TransportCause("ENOTFOUND", f"getaddrinfo ENOTFOUND: {link}")
        if isinstance(link, ConnectionRefusedError):
            return TransportCause("ECONNREFUSED", f"ECONNREFUSED: {link}")
        if isinstance(link, ConnectionResetError):
            return TransportCause("ECONNRESET", f"ECONNRESET: {link}")

    message = str(exc) or type(exc).__name__
    lowered = message.lower()
    if "certificate" in lowered:
        return TransportCause(_certificate_code(lowered), message)
    if any(
        marker in lowered
        for marker in (
            "name or service not known",
            "nodename nor servname",
            "temporary failure in name resolution",
            "getaddrinfo failed",
        )
    ):
        return TransportCause("ENOTFOUND", f"getaddrinfo ENOTFOUND: {message}")
    if "connection refused" in lowered:
        return TransportCause("ECONNREFUSED", f"ECONNREFUSED: {message}")
    if "connection reset" in lowered:
        return TransportCause("ECONNRESET", f"ECONNRESET: {message}")
    return TransportCause("", message)


def _certificate_code(text: str) -> str:
    lowered = text.lower()
    if "self-signed" in lowered or "self signed" in lowered:
        return "SELF_SIGNED_CERT_IN_CHAIN"
    return "CERT_VERIFY_FAILED"


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__
