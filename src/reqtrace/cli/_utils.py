"""Shared plumbing for the check commands.

Every command goes through :func:`run_checks`: it loads configuration for the
repository, configures logging, loads the canonical requirement text, runs the
engine, and renders the report.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from reqtrace.core.config import CheckSettings, ConfigManager, LoggingConfig
from reqtrace.core.discovery import discover_files
from reqtrace.core.engine import CheckRunner
from reqtrace.core.exceptions import ReqtraceError
from reqtrace.core.logging_setup import configure_logging, suppress_lastresort_in_json_mode
from reqtrace.core.models import RunReport
from reqtrace.core.srs.canonical import load_canonical_requirements, resolve_requirement_files

from ._output import OutputFormatter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get repository root from args or auto-detect.

    Args:
        args: Parsed arguments with optional repo_root attribute

    Returns:
        Path: Repository root path
    """
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return ConfigManager.find_repo_root()


def setup_logging(args: argparse.Namespace, manager: ConfigManager, json_mode: bool) -> None:
    """Configure logging from ``--log-level``/``--log-file`` or the ``logging`` section."""
    section = LoggingConfig(manager=manager)
    level = getattr(args, "log_level", None) or section.level
    log_file = getattr(args, "log_file", None)
    log_path = Path(log_file) if log_file else section.file
    if json_mode and log_path is None:
        suppress_lastresort_in_json_mode()
        return
    configure_logging(level, log_path)


def load_settings(args: argparse.Namespace, manager: ConfigManager, **overrides: Any) -> CheckSettings:
    """Build run settings from configuration plus command-line overrides."""
    settings = CheckSettings.from_manager(manager)
    requirements = getattr(args, "requirements", None)
    return settings.with_overrides(
        max_workers=getattr(args, "workers", None),
        timeout_seconds=getattr(args, "timeout", None),
        requirements=tuple(requirements) if requirements else None,
        **overrides,
    )


def load_canonical(root: Path, settings: CheckSettings) -> Dict[str, str]:
    if not settings.srs_enabled:
        return {}
    files = resolve_requirement_files(root, settings.requirements)
    if not files:
        logger.warning("no requirement documents match %s", ", ".join(settings.requirements) or "<none>")
    return load_canonical_requirements(files)


def render_report(formatter: OutputFormatter, run: RunReport) -> None:
    if formatter.json_mode:
        formatter.json_output(run.to_dict())
        return
    for violation in run.all_violations:
        formatter.text(violation.format())
    for anomaly in run.all_anomalies:
        formatter.warning(anomaly.format())
    summary = run.summary()
    line = f"{summary['violations']} violation(s) in {summary['files']} file(s)"
    if summary["fixed_files"]:
        line += f"; fixed {summary['fixed_files']} file(s)"
    formatter.text(line)


def run_checks(args: argparse.Namespace, **overrides: Any) -> int:
    """Run the checks selected by ``overrides`` and report.

    Returns:
        0 when no violations were found, 1 when some were, 2 on a
        configuration or requirement-document error.
    """
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        root = get_repo_root(args)
        config_path: Optional[str] = getattr(args, "config", None)
        manager = ConfigManager(repo_root=root, config_path=Path(config_path) if config_path else None)
        manager.load_config()
        setup_logging(args, manager, formatter.json_mode)

        settings = load_settings(args, manager, **overrides)
        canonical = load_canonical(root, settings)
        paths = [Path(p) for p in getattr(args, "paths", None) or []]
        files = discover_files(root, settings, paths or None)
    except ReqtraceError as exc:
        formatter.error(exc, error_code=type(exc).__name__)
        return EXIT_ERROR

    runner = CheckRunner(settings, canonical, fix=getattr(args, "fix", False))
    run = runner.run(files)
    render_report(formatter, run)
    return EXIT_OK if run.ok else EXIT_VIOLATIONS


__all__ = [
    "EXIT_OK",
    "EXIT_VIOLATIONS",
    "EXIT_ERROR",
    "get_repo_root",
    "setup_logging",
    "load_settings",
    "load_canonical",
    "render_report",
    "run_checks",
]
