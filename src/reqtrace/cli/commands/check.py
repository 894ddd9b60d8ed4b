"""
reqtrace check command.

SUMMARY: Run every enabled check (AAA markers, requirement tags, deprecated patterns)
"""

from __future__ import annotations

import argparse

from reqtrace.cli import add_check_flags, run_checks

SUMMARY = "Run every enabled check (AAA markers, requirement tags, deprecated patterns)"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_check_flags(parser)


def main(args: argparse.Namespace) -> int:
    return run_checks(args)
