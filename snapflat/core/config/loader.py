"""
Settings loader — reads snapflat.yml into InstallerSettings.

The settings file is optional. Lookup order:

    SNAPFLAT_CONFIG env var  >  /etc/snapflat/snapflat.yml  >  built-in defaults

``SNAPFLAT_DRY_RUN`` overrides the file's ``dry_run`` value when set.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from snapflat.core.errors import SettingsError
from snapflat.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "SNAPFLAT_CONFIG"
DRY_RUN_ENV_VAR = "SNAPFLAT_DRY_RUN"
DEFAULT_SETTINGS_PATH = Path("/etc/snapflat/snapflat.yml")

_TRUTHY = {"1", "true", "yes", "on"}


def find_settings_file(environ: Mapping[str, str] | None = None) -> Path | None:
    """Return the settings file to load, or None to use defaults.

    An explicit ``SNAPFLAT_CONFIG`` is returned even if it does not
    exist, so that ``load_settings`` can report it.
    """
    env = os.environ if environ is None else environ
    explicit = env.get(SETTINGS_ENV_VAR, "").strip()
    if explicit:
        return Path(explicit)
    if DEFAULT_SETTINGS_PATH.is_file():
        return DEFAULT_SETTINGS_PATH
    return None


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> InstallerSettings:
    """Load and validate installer settings.

    Args:
        path: Explicit settings file. If None, uses ``find_settings_file``.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated InstallerSettings.

    Raises:
        SettingsError: If the file is missing, unreadable or invalid.
    """
    env = os.environ if environ is None else environ
    if path is None:
        path = find_settings_file(env)

    data: dict = {}
    if path is not None:
        data = _read_yaml(path)

    dry_run = env.get(DRY_RUN_ENV_VAR)
    if dry_run is not None and dry_run.strip():
        data["dry_run"] = dry_run.strip().lower() in _TRUTHY

    try:
        settings = InstallerSettings.model_validate(data)
    except Exception as e:
        raise SettingsError(f"Invalid settings{f' in {path}' if path else ''}: {e}") from e

    if settings.dry_run:
        logger.info("Dry-run enabled: no command will be executed")
    return settings


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        raise SettingsError(f"Settings file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may wrap everything under a "snapflat" key or be flat
    if "snapflat" in data and isinstance(data["snapflat"], dict):
        return dict(data["snapflat"])
    return data
