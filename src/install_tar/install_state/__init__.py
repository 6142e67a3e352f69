"""
Existing-install detection.

This package handles:
1. Inspecting the destination without following symlinks
2. Refusing to touch destinations that are not symlinks
3. Deciding whether the completion marker for the requested digest is reachable
"""

from .state_checker import InstallState, check_existing_install

__all__ = ["InstallState", "check_existing_install"]
