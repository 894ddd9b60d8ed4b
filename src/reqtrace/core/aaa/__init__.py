"""Arrange/Act/Assert marker checks."""
from __future__ import annotations

from .validator import AAAValidator, FunctionVerdict, Stage, validate_aaa

__all__ = ["AAAValidator", "FunctionVerdict", "Stage", "validate_aaa"]
