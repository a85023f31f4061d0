"""Завантаження YAML конфігурацій."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

# <repo>/config — used when no --config-dir is given
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


class ConfigError(ValueError):
    """Raised when a configuration file is present but semantically invalid."""


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Зчитує YAML файл та повертає його вміст як dict.

    Raises:
        FileNotFoundError: Якщо файл не знайдено.
        ConfigError: If the top level of the document is not a mapping.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{p.name}: top level must be a mapping")
    log.debug("Loaded config %s (%d top-level keys)", p.name, len(data or {}))
    return data or {}


def config_path(config_dir: str | Path | None, name: str) -> Path:
    """Return ``<config_dir>/<name>``, defaulting to the repository config dir."""
    base = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
    return base / name
