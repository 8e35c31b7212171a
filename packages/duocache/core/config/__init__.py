"""Configuration for duocache."""

from duocache.core.config.loader import (
    apply_logging,
    detect_format,
    load_config,
    load_raw_config,
)
from duocache.core.config.models import CacheConfig, LoggingConfig

__all__ = [
    "CacheConfig",
    "LoggingConfig",
    "apply_logging",
    "detect_format",
    "load_config",
    "load_raw_config",
]
