"""
reqtrace - requirement traceability checks for C codebases

reqtrace keeps inline ``Codes_SRS_`` / ``Tests_SRS_`` requirement tags in sync
with the canonical requirement documents and verifies that unit tests carry
Arrange/Act/Assert markers.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
