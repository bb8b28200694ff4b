"""Project-scoped workflow paths with fallback to the global collection.

n8n instances with projects expose workflows under
``projects/{projectId}/workflows``; older or community instances only know
``workflows``. The :func:`scoped` decorator lets each workflow operation be
written once against a *collection* path and takes care of choosing the
path and retrying once without the project when the scoped call 404s.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from n8nctl.exceptions import ApiError

logger = logging.getLogger(__name__)

UNSCOPED_COLLECTION = "workflows"

F = TypeVar("F", bound=Callable[..., Any])


def scoped_collection(project_id: str) -> str:
    """Collection path for workflows inside *project_id*."""
    return f"projects/{project_id}/{UNSCOPED_COLLECTION}"


def scoped(func: F) -> F:
    """Inject the workflow collection path as the first argument after ``self``.

    The decorated method must have the signature
    ``method(self, collection, *args, **kwargs)``; callers omit
    ``collection``. The owning object must expose ``profile.project_id``.

    Without a project the method runs once against ``workflows``. With a
    project it runs against ``projects/{id}/workflows`` first; if that call
    raises :class:`~n8nctl.exceptions.ApiError` with status 404 the method
    runs exactly once more against ``workflows`` and that outcome, success
    or failure, is returned. Any other error propagates untouched.
    """

    @functools.wraps(func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        project_id = self.profile.project_id
        if not project_id:
            return func(self, UNSCOPED_COLLECTION, *args, **kwargs)

        try:
            return func(self, scoped_collection(project_id), *args, **kwargs)
        except ApiError as exc:
            if exc.status != 404:
                raise
            logger.debug(
                "%s: project %s returned 404, retrying without project",
                func.__name__,
                project_id,
            )
        return func(self, UNSCOPED_COLLECTION, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
