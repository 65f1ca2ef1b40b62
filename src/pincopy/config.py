"""
Run settings -- which stores to talk to and with which credentials.

Values come from an optional YAML file and from the environment, the
environment winning. Source credentials are always required; target
credentials and folder only for store-to-store runs:

    SRC_API_URL  SRC_USERNAME  SRC_PASSWORD  [SRC_FOLDER]
    DST_API_URL  DST_USERNAME  DST_PASSWORD  DST_FOLDER

The YAML file mirrors the same keys:

    source:
      api_url: https://source.example:5001
      username: alice
      password: secret
      folder: /
    target:
      api_url: https://target.example:5001
      username: bob
      password: secret
      folder: /backup
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from . import SOURCE_ENV_PREFIX, TARGET_ENV_PREFIX
from .errors import ConfigurationError

logger = logging.getLogger("pincopy.config")

_FIELDS = ("api_url", "username", "password")


class StoreSettings(BaseModel):
    """How to reach one store."""

    api_url: str
    username: str
    password: str = Field(repr=False)
    folder: str = "/"


class Settings(BaseModel):
    """Everything a run needs before it touches the network."""

    source: StoreSettings
    target: Optional[StoreSettings] = None

    @property
    def remote(self) -> bool:
        """True for store-to-store runs."""
        return self.target is not None


def _load_file(config_file: Path) -> dict[str, Any]:
    """Read the YAML settings file.

    Raises:
        ConfigurationError: Unreadable file or not a mapping.
    """
    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {config_file}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_file} must contain a mapping")
    return data


def _section(
    prefix: str,
    file_values: Mapping[str, Any],
    environ: Mapping[str, str],
    require_folder: bool,
    missing: list[str],
) -> dict[str, str]:
    values: dict[str, str] = {}
    keys = _FIELDS + ("folder",)
    for key in keys:
        env_name = f"{prefix}_{key.upper()}"
        value = environ.get(env_name) or file_values.get(key)
        if value:
            values[key] = str(value)
        elif key in _FIELDS or (key == "folder" and require_folder):
            missing.append(env_name)
    return values


def _check_folder(env_name: str, folder: str) -> None:
    if not folder.startswith("/"):
        raise ConfigurationError(f"{env_name} must start with / but was: {folder}")


def load_settings(
    remote: bool,
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> Settings:
    """Assemble settings for a run.

    Args:
        remote: True for store-to-store (target settings required).
        environ: Environment mapping. Defaults to ``os.environ``.
        config_file: Optional YAML file with ``source``/``target`` sections.

    Returns:
        Settings: Validated settings.

    Raises:
        ConfigurationError: Missing values (all of them listed at once),
            folders not starting with ``/``, or an unreadable config file.
    """
    environ = os.environ if environ is None else environ
    file_data: dict[str, Any] = {}
    if config_file is not None:
        file_data = _load_file(config_file)
        logger.debug("Loaded settings file %s", config_file)

    missing: list[str] = []
    source = _section(
        SOURCE_ENV_PREFIX, file_data.get("source") or {}, environ, False, missing,
    )
    target = None
    if remote:
        target = _section(
            TARGET_ENV_PREFIX, file_data.get("target") or {}, environ, True, missing,
        )

    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing)
        )

    _check_folder(f"{SOURCE_ENV_PREFIX}_FOLDER", source.get("folder", "/"))
    if target is not None:
        _check_folder(f"{TARGET_ENV_PREFIX}_FOLDER", target["folder"])

    return Settings(
        source=StoreSettings(**source),
        target=StoreSettings(**target) if target is not None else None,
    )
