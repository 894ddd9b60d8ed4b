"""
reqtrace patterns command.

SUMMARY: Find deprecated ENABLE_MOCKS defines and vld.h includes
"""

from __future__ import annotations

import argparse

from reqtrace.cli import add_check_flags, run_checks

SUMMARY = "Find deprecated ENABLE_MOCKS defines and vld.h includes"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_check_flags(parser, requirements=False)


def main(args: argparse.Namespace) -> int:
    return run_checks(args, aaa_enabled=False, srs_enabled=False)
