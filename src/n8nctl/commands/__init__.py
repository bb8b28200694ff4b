"""Built-in CLI sub-commands for n8nctl.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~n8nctl.commands.workflows` -- list, deploy, run, and manage
  workflows.
* :mod:`~n8nctl.commands.executions` -- inspect, retry, stop, and delete
  executions.
* :mod:`~n8nctl.commands.resources` -- tags, credentials, variables,
  ``audit`` and ``ping``.
* :mod:`~n8nctl.commands.config` -- show the resolved profile and edit
  local settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``workflows``) or a plain callback function
registered directly on the root app (for single commands like ``ping``).
Shared plumbing lives in :mod:`~n8nctl.commands.common`.
"""
