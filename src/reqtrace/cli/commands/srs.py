"""
reqtrace srs command.

SUMMARY: Reconcile requirement tags with the requirement documents
"""

from __future__ import annotations

import argparse

from reqtrace.cli import add_check_flags, run_checks

SUMMARY = "Reconcile requirement tags with the requirement documents"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_check_flags(parser)
    parser.add_argument(
        "--report-unknown",
        dest="report_unknown_ids",
        action="store_true",
        default=None,
        help="Report tags whose id has no canonical text",
    )


def main(args: argparse.Namespace) -> int:
    return run_checks(
        args,
        aaa_enabled=False,
        srs_enabled=True,
        report_unknown_ids=args.report_unknown_ids,
        enable_mocks=False,
        vld_include=False,
    )
