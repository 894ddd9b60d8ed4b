"""
reqtrace aaa command.

SUMMARY: Check Arrange/Act/Assert markers in test functions
"""

from __future__ import annotations

import argparse

from reqtrace.cli import add_check_flags, run_checks

SUMMARY = "Check Arrange/Act/Assert markers in test functions"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_check_flags(parser, requirements=False)
    parser.add_argument(
        "--no-delegation",
        dest="delegate_to_helpers",
        action="store_false",
        default=None,
        help="Do not credit markers found in helpers called by a test",
    )


def main(args: argparse.Namespace) -> int:
    return run_checks(
        args,
        aaa_enabled=True,
        delegate_to_helpers=args.delegate_to_helpers,
        srs_enabled=False,
        enable_mocks=False,
        vld_include=False,
    )
