"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from duocache.core.config.models import CacheConfig
from duocache.core.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("cache.json")
        'json'
        >>> detect_format("cache.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_raw_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)
    text = path.read_text(encoding="utf-8")

    if fmt == "json":
        try:
            content = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        # safe_load returns None for empty files
        if content is None:
            content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return content


def load_config(path: str | Path | None = None) -> CacheConfig:
    """Load and validate cache configuration.

    Args:
        path: Path to config file (.json, .yaml, or .yml). None gives defaults.

    Returns:
        Validated CacheConfig instance

    Raises:
        ValidationError: If config is invalid

    Example:
        >>> config = load_config("cache.yaml")
        >>> config.directory
        PosixPath('files')
    """
    if path is None:
        return CacheConfig()

    config = CacheConfig.model_validate(load_raw_config(path))
    logger.debug(f"Loaded cache config from {path}: directory={config.directory}")
    return config


def apply_logging(config: CacheConfig) -> None:
    """Configure process-wide logging from a loaded config."""
    configure_logging(
        level=config.logging.level,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )
