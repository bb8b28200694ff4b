"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~n8nctl.exceptions.N8nctlError` subclass.
Shell scripts can inspect the exit code to tell a rejected API key from an
unreachable server without parsing stderr.

Example::

    $ n8nctl workflows list
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the API key was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The server rejected the API key (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The n8n server returned an HTTP 5xx error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, TLS)."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
