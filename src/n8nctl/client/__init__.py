"""HTTP request engine for the n8n public API.

Classes:
    :class:`SyncClient` -- the ``send`` primitive: auth headers, timeout,
        retry with backoff, and error mapping over :class:`httpx.Client`.
    :class:`N8nClient` -- workflow, execution, tag, credential, variable,
        and audit operations built on ``SyncClient``.

Both are context managers and accept an optional httpx transport, which the
test suite uses to plug in :class:`httpx.MockTransport`.

Example::

    from n8nctl.client import N8nClient
    from n8nctl.config import resolve_profile

    with N8nClient(resolve_profile()) as client:
        started = client.run_workflow("wf-1")
"""

from n8nctl.client.api import BatchResult, DeployResult, N8nClient
from n8nctl.client.sync_client import SyncClient

__all__ = ["SyncClient", "N8nClient", "BatchResult", "DeployResult"]
