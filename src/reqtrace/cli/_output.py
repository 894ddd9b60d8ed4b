"""Unified CLI output formatting utilities.

All reqtrace commands report through :class:`OutputFormatter`, which supports
a text mode for humans and CI logs and a JSON mode for tooling.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

from reqtrace.core.exceptions import ReqtraceError


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output an error result on stderr.

        Args:
            error: The exception that occurred
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            if isinstance(error, ReqtraceError):
                output["details"] = error.to_json_error()
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        print(message)

    def warning(self, message: str) -> None:
        """Text-mode notice on stderr; silent in JSON mode."""
        if not self.json_mode:
            print(f"warning: {message}", file=sys.stderr)


__all__ = ["OutputFormatter"]
