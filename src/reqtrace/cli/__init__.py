"""
reqtrace CLI package.

Commands are auto-discovered from ``cli/commands``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared run/report plumbing
"""
from ._args import (
    add_check_flags,
    add_config_flag,
    add_fix_flag,
    add_json_flag,
    add_paths_arg,
    add_repo_root_flag,
    add_requirements_arg,
    add_run_flags,
)
from ._output import OutputFormatter
from ._utils import EXIT_ERROR, EXIT_OK, EXIT_VIOLATIONS, get_repo_root, run_checks

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_check_flags",
    "add_config_flag",
    "add_fix_flag",
    "add_json_flag",
    "add_paths_arg",
    "add_repo_root_flag",
    "add_requirements_arg",
    "add_run_flags",
    # Utilities
    "EXIT_OK",
    "EXIT_VIOLATIONS",
    "EXIT_ERROR",
    "get_repo_root",
    "run_checks",
]
