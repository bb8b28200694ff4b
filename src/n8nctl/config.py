"""Connection profile resolution and local config editing.

This module turns the process environment into a
:class:`~n8nctl.models.ConnectionProfile`:

* **Environment first** -- ``N8N_BASE_URL`` + ``N8N_API_KEY`` (with optional
  ``N8N_PROJECT_ID`` and ``N8N_REJECT_UNAUTHORIZED``) build a profile
  directly.
* **Config files second** -- ``N8N_CONFIG_FILE`` or
  ``config/n8n-config.local.json`` / ``config/n8n-config.json`` searched in
  the working directory, its parent, and two levels above this package.

All environment and filesystem access goes through a :class:`ConfigSource`,
so tests can resolve profiles from a plain dict and a temporary directory
without touching ``os.environ``.

:func:`save_local_setting` backs ``n8nctl config set`` and writes
``config/n8n-config.local.json`` atomically (temp file + rename).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from pydantic import ValidationError

from n8nctl.exceptions import ConfigNotFoundError, InvalidUsageError
from n8nctl.models import ConnectionProfile

logger = logging.getLogger(__name__)

ENV_BASE_URL = "N8N_BASE_URL"
ENV_API_KEY = "N8N_API_KEY"
ENV_PROJECT_ID = "N8N_PROJECT_ID"
ENV_REJECT_UNAUTHORIZED = "N8N_REJECT_UNAUTHORIZED"
ENV_CONFIG_FILE = "N8N_CONFIG_FILE"

LOCAL_CONFIG_NAME = "config/n8n-config.local.json"
SHARED_CONFIG_NAME = "config/n8n-config.json"
EXAMPLE_CONFIG_NAME = "config/n8n-config.example.json"

SETTING_FIELDS = {
    "endpoint": "baseUrl",
    "apikey": "apiKey",
    "project": "projectId",
}
"""``config set`` field names mapped to their JSON keys."""


# --- Environment / filesystem boundary ---


class ConfigSource(Protocol):
    """What the resolver needs from the outside world."""

    env: Mapping[str, str]

    def search_dirs(self) -> list[Path]:
        """Directories to search for config files, in priority order."""
        ...

    def read_text(self, path: Path) -> str:
        """Return the file's contents; raise ``OSError`` if unreadable."""
        ...


class SystemConfigSource:
    """:class:`ConfigSource` backed by the real process environment.

    Args:
        env: Environment mapping. Defaults to ``os.environ``.
        cwd: Working directory. Defaults to ``Path.cwd()``.
        module_dir: Directory the relative package search starts from.
            Defaults to this module's directory.
    """

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        module_dir: Optional[Path] = None,
    ) -> None:
        self.env = os.environ if env is None else env
        self._cwd = cwd or Path.cwd()
        self._module_dir = module_dir or Path(__file__).resolve().parent

    def search_dirs(self) -> list[Path]:
        return [
            self._cwd,
            self._cwd.parent,
            self._module_dir.parent,
            self._module_dir.parent.parent,
        ]

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


# --- Resolution ---


def resolve_profile(source: Optional[ConfigSource] = None) -> ConnectionProfile:
    """Resolve the connection profile for this process.

    Args:
        source: Where to read environment and files from. Defaults to a
            :class:`SystemConfigSource`.

    Returns:
        The first usable :class:`~n8nctl.models.ConnectionProfile`.

    Raises:
        ConfigNotFoundError: If neither the environment nor any candidate
            file provides both a base URL and an API key.
    """
    profile, _ = locate_profile(source)
    return profile


def locate_profile(
    source: Optional[ConfigSource] = None,
) -> tuple[ConnectionProfile, str]:
    """Like :func:`resolve_profile`, but also describe where the profile came from.

    Returns:
        A tuple of ``(profile, origin)`` where *origin* is either
        ``"N8N_BASE_URL + N8N_API_KEY"`` or the path of the config file used.
    """
    source = source or SystemConfigSource()
    env = source.env

    profile = _profile_from_env(env)
    if profile is not None:
        return profile, f"{ENV_BASE_URL} + {ENV_API_KEY}"

    override = (env.get(ENV_CONFIG_FILE) or "").strip()
    names = [override] if override else [LOCAL_CONFIG_NAME, SHARED_CONFIG_NAME]

    for root in source.search_dirs():
        for name in names:
            path = Path(name) if Path(name).is_absolute() else root / name
            profile = _profile_from_file(source, path)
            if profile is not None:
                return profile, str(path)

    message = (
        f"Failed to load n8n config. Use {ENV_BASE_URL} + {ENV_API_KEY} env vars, "
        f'or create {LOCAL_CONFIG_NAME} with {{ "baseUrl": "...", "apiKey": "..." }}. '
        f"Use {ENV_CONFIG_FILE} for a specific config file."
    )
    if override:
        message += f" ({ENV_CONFIG_FILE}={override} could not be loaded.)"
    raise ConfigNotFoundError(message)


def _profile_from_env(env: Mapping[str, str]) -> Optional[ConnectionProfile]:
    """Build a profile from environment variables, or ``None`` if incomplete."""
    base_url = (env.get(ENV_BASE_URL) or "").strip()
    api_key = (env.get(ENV_API_KEY) or "").strip()
    if not base_url or not api_key:
        return None
    return ConnectionProfile(
        base_url=base_url,
        api_key=api_key,
        project_id=(env.get(ENV_PROJECT_ID) or "").strip() or None,
        reject_unauthorized=env.get(ENV_REJECT_UNAUTHORIZED) != "false",
    )


def _profile_from_file(source: ConfigSource, path: Path) -> Optional[ConnectionProfile]:
    """Parse one candidate file, returning ``None`` when it is unusable."""
    try:
        data = json.loads(source.read_text(path))
    except (OSError, ValueError):
        return None

    if not isinstance(data, dict) or not data.get("baseUrl") or not data.get("apiKey"):
        logger.debug("Skipping %s: must contain baseUrl and apiKey", path)
        return None

    try:
        profile = ConnectionProfile.model_validate(data)
    except ValidationError as exc:
        logger.debug("Skipping %s: %s", path, exc)
        return None

    logger.debug("Loaded config from %s", path)
    return profile


# --- Local config editing ---


def save_local_setting(field: str, value: str, cwd: Optional[Path] = None) -> Path:
    """Set one field in ``config/n8n-config.local.json``.

    The file is seeded from the existing local config, else from
    ``config/n8n-config.example.json``, else from an empty object. Setting
    ``project`` to ``""`` or ``"none"`` removes ``projectId``.

    Args:
        field: One of ``endpoint``, ``apikey``, ``project`` (case-insensitive).
        value: The new value; surrounding whitespace is stripped.
        cwd: Directory containing ``config/``. Defaults to ``Path.cwd()``.

    Returns:
        The path that was written.

    Raises:
        InvalidUsageError: If *field* is not a known setting.
    """
    key = SETTING_FIELDS.get(field.lower())
    if key is None:
        allowed = ", ".join(SETTING_FIELDS)
        raise InvalidUsageError(f'Unknown field: "{field}". Allowed: {allowed}')

    root = cwd or Path.cwd()
    local_path = root / LOCAL_CONFIG_NAME
    config = _read_json_object(local_path)
    if config is None:
        config = _read_json_object(root / EXAMPLE_CONFIG_NAME) or {}

    cleaned = value.strip()
    if key == "projectId" and cleaned.lower() in ("", "none"):
        config.pop("projectId", None)
    else:
        config[key] = cleaned

    atomic_write(local_path, json.dumps(config, indent=2) + "\n")
    return local_path


def _read_json_object(path: Path) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the original is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Data directory (crash logs) ---

_APP_NAME = "n8nctl"


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/n8nctl/`` (default ``~/.local/share/n8nctl/``).
    On macOS/Windows: ``~/.n8nctl/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path
