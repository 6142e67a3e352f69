"""
Data models for install-tar.

This package provides Pydantic data models describing an install request
and the deterministic on-disk layout derived from it.
"""

from .install_request import (
    InstallRequest,
    MARKER_PREFIX,
)

__all__ = [
    "InstallRequest",
    "MARKER_PREFIX",
]
