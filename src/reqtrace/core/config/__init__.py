"""Configuration: bundled YAML defaults, project overlays, environment overrides."""
from __future__ import annotations

from .manager import ENV_PREFIX, ConfigManager
from .sections import (
    AAAConfig,
    BaseSectionConfig,
    CheckSettings,
    LoggingConfig,
    PatternsConfig,
    ScanConfig,
    SRSConfig,
)

__all__ = [
    "ENV_PREFIX",
    "ConfigManager",
    "AAAConfig",
    "BaseSectionConfig",
    "CheckSettings",
    "LoggingConfig",
    "PatternsConfig",
    "ScanConfig",
    "SRSConfig",
]
