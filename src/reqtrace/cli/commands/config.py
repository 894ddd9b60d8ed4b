"""
reqtrace config command.

SUMMARY: Show the merged configuration and validate it against the schema

Prints the configuration that a check run in this repository would use, after
bundled defaults, the project file, ``--config`` and ``REQTRACE_*`` overrides
are layered.
"""

from __future__ import annotations

import argparse

import yaml

from reqtrace.cli import (
    EXIT_ERROR,
    EXIT_OK,
    OutputFormatter,
    add_config_flag,
    add_json_flag,
    add_repo_root_flag,
    get_repo_root,
)
from reqtrace.core.config import ConfigManager
from reqtrace.core.exceptions import ConfigError

SUMMARY = "Show the merged configuration and validate it against the schema"

_MISSING = object()


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "key",
        nargs="?",
        help="Dot-separated key to show (e.g. scan.max_workers)",
    )
    add_config_flag(parser)
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        manager = ConfigManager(get_repo_root(args), config_path=args.config)
        config = manager.load_config(validate=True)
    except ConfigError as e:
        formatter.error(e, error_code="config_error")
        return EXIT_ERROR

    value = manager.get(args.key, _MISSING) if args.key else config
    if value is _MISSING:
        formatter.error(KeyError(args.key), f"Unknown configuration key: {args.key}", error_code="unknown_key")
        return EXIT_ERROR

    if formatter.json_mode:
        formatter.json_output(value)
    elif isinstance(value, (dict, list)):
        formatter.text(yaml.safe_dump(value, sort_keys=False).rstrip())
    else:
        formatter.text(str(value))
    return EXIT_OK
