"""n8nctl -- command-line client and thin SDK for the n8n REST API.

This package talks to an n8n server's public API (``/api/v1``) to list,
deploy, run, and manage workflows and their executions. A *connection
profile* is resolved from environment variables or a JSON config file, and
every command goes through the same request engine, which handles
project-scoped paths, timeouts, retry with backoff, and error translation.

Typical workflow::

    export N8N_BASE_URL=https://n8n.example.com
    export N8N_API_KEY=...
    n8nctl workflows list
    n8nctl workflows run "Nightly import"

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Connection profile resolution and local config editing.
    client: HTTP request engine and resource operations.
    diagnostics: Friendly remediation messages for raised errors.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
