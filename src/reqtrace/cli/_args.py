"""Common CLI argument registration utilities.

This module provides reusable argument registration functions so every
check command accepts the same paths and flags.
"""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for repository root override.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override repository root path",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        help="Extra configuration file layered over the project config",
    )


def add_paths_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files or directories to check (default: the repository root)",
    )


def add_fix_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Rewrite files with the available automatic fixes",
    )


def add_requirements_arg(parser: argparse.ArgumentParser) -> None:
    """Add --requirements for requirement document globs.

    Args:
        parser: ArgumentParser to add the argument to
    """
    parser.add_argument(
        "--requirements",
        nargs="+",
        metavar="GLOB",
        help="Requirement Markdown files or globs, relative to the repository root "
        "(overrides srs.requirements)",
    )


def add_run_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of files checked in parallel (overrides scan.max_workers)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Whole-run timeout in seconds (overrides scan.timeout_seconds)",
    )


def add_check_flags(parser: argparse.ArgumentParser, *, requirements: bool = True) -> None:
    """Add the flags shared by every check command.

    Adds: paths, --fix, --workers, --timeout, --config, --json, --repo-root,
    and --requirements unless ``requirements`` is False.
    """
    add_paths_arg(parser)
    add_fix_flag(parser)
    if requirements:
        add_requirements_arg(parser)
    add_run_flags(parser)
    add_config_flag(parser)
    add_json_flag(parser)
    add_repo_root_flag(parser)


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_config_flag",
    "add_paths_arg",
    "add_fix_flag",
    "add_requirements_arg",
    "add_run_flags",
    "add_check_flags",
]
