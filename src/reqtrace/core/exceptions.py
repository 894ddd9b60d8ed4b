from __future__ import annotations

from typing import Any, Dict, Mapping


class ReqtraceError(Exception):
    """Base exception for reqtrace."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigError(ReqtraceError, ValueError):
    """Raised when configuration cannot be loaded or fails schema validation."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ReqtraceError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class CanonicalSpecError(ReqtraceError):
    """Raised when requirement documents cannot be read."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if path:
            ctx["path"] = path
        super().__init__(message, context=ctx)


class SourceReadError(ReqtraceError, OSError):
    """Raised when a source file cannot be read."""

    def __init__(self, message: str = "", *, path: str | None = None) -> None:
        ReqtraceError.__init__(self, message, context={"path": path} if path else None)
        OSError.__init__(self, message)


__all__ = [
    "ReqtraceError",
    "ConfigError",
    "CanonicalSpecError",
    "SourceReadError",
]
