"""Typed accessors for the configuration sections.

Usage::

    cfg = ScanConfig(repo_root=Path("/path/to/project"))
    print(cfg.max_workers)

All accessors built from the same ``ConfigManager`` share one loaded document.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .manager import ConfigManager


class BaseSectionConfig(ABC):
    """Base class for section accessors."""

    def __init__(
        self,
        repo_root: Optional[Path] = None,
        *,
        manager: Optional[ConfigManager] = None,
    ) -> None:
        self._mgr = manager or ConfigManager(repo_root=repo_root)
        self._config = self._mgr.load_config()

    @property
    def repo_root(self) -> Path:
        return self._mgr.repo_root

    @abstractmethod
    def _config_section(self) -> str:
        """Top-level key of this section."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        return self._config.get(self._config_section(), {}) or {}

    def _list(self, key: str) -> List[str]:
        value = self.section.get(key) or []
        return [str(item) for item in value]


class ScanConfig(BaseSectionConfig):
    def _config_section(self) -> str:
        return "scan"

    @cached_property
    def include(self) -> List[str]:
        return self._list("include")

    @cached_property
    def exclude(self) -> List[str]:
        return self._list("exclude")

    @cached_property
    def test_file_patterns(self) -> List[str]:
        return self._list("test_file_patterns")

    @cached_property
    def max_workers(self) -> int:
        return int(self.section.get("max_workers", 4))

    @cached_property
    def timeout_seconds(self) -> Optional[float]:
        value = self.section.get("timeout_seconds")
        return float(value) if value is not None else None


class AAAConfig(BaseSectionConfig):
    def _config_section(self) -> str:
        return "aaa"

    @cached_property
    def enabled(self) -> bool:
        return bool(self.section.get("enabled", True))

    @cached_property
    def test_anchors(self) -> List[str]:
        return self._list("test_anchors") or ["TEST_FUNCTION", "CTEST_FUNCTION"]

    @cached_property
    def delegate_to_helpers(self) -> bool:
        return bool(self.section.get("delegate_to_helpers", True))


class SRSConfig(BaseSectionConfig):
    def _config_section(self) -> str:
        return "srs"

    @cached_property
    def enabled(self) -> bool:
        return bool(self.section.get("enabled", True))

    @cached_property
    def requirements(self) -> List[str]:
        return self._list("requirements")

    @cached_property
    def placement(self) -> bool:
        return bool(self.section.get("placement", True))

    @cached_property
    def test_tags(self) -> bool:
        return bool(self.section.get("test_tags", True))

    @cached_property
    def report_unknown_ids(self) -> bool:
        return bool(self.section.get("report_unknown_ids", False))


class PatternsConfig(BaseSectionConfig):
    def _config_section(self) -> str:
        return "patterns"

    @cached_property
    def enable_mocks(self) -> bool:
        return bool(self.section.get("enable_mocks", True))

    @cached_property
    def vld_include(self) -> bool:
        return bool(self.section.get("vld_include", True))


class LoggingConfig(BaseSectionConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level") or "WARNING").upper()

    @cached_property
    def file(self) -> Optional[Path]:
        value = self.section.get("file")
        if not value:
            return None
        path = Path(value)
        return path if path.is_absolute() else self.repo_root / path


@dataclass(frozen=True)
class CheckSettings:
    """Immutable per-run settings handed to the engine and its workers."""

    include: Tuple[str, ...] = ("**/*.c", "**/*.h", "**/*.cpp", "**/*.hpp")
    exclude: Tuple[str, ...] = ()
    test_file_patterns: Tuple[str, ...] = ("*_ut.c", "*_ut.cpp", "*_int.c", "*_int.cpp", "*_ut/*", "*_int/*")
    max_workers: int = 4
    timeout_seconds: Optional[float] = None
    aaa_enabled: bool = True
    test_anchors: Tuple[str, ...] = ("TEST_FUNCTION", "CTEST_FUNCTION")
    delegate_to_helpers: bool = True
    srs_enabled: bool = True
    requirements: Tuple[str, ...] = ()
    placement: bool = True
    test_tags: bool = True
    report_unknown_ids: bool = False
    enable_mocks: bool = True
    vld_include: bool = True

    @classmethod
    def from_manager(cls, manager: ConfigManager) -> "CheckSettings":
        scan = ScanConfig(manager=manager)
        aaa = AAAConfig(manager=manager)
        srs = SRSConfig(manager=manager)
        patterns = PatternsConfig(manager=manager)
        return cls(
            include=tuple(scan.include),
            exclude=tuple(scan.exclude),
            test_file_patterns=tuple(scan.test_file_patterns),
            max_workers=scan.max_workers,
            timeout_seconds=scan.timeout_seconds,
            aaa_enabled=aaa.enabled,
            test_anchors=tuple(aaa.test_anchors),
            delegate_to_helpers=aaa.delegate_to_helpers,
            srs_enabled=srs.enabled,
            requirements=tuple(srs.requirements),
            placement=srs.placement,
            test_tags=srs.test_tags,
            report_unknown_ids=srs.report_unknown_ids,
            enable_mocks=patterns.enable_mocks,
            vld_include=patterns.vld_include,
        )

    def with_overrides(self, **changes: Any) -> "CheckSettings":
        """Copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = [
    "BaseSectionConfig",
    "ScanConfig",
    "AAAConfig",
    "SRSConfig",
    "PatternsConfig",
    "LoggingConfig",
    "CheckSettings",
]
