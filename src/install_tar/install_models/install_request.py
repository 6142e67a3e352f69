"""
Pydantic data model for a single install-tar invocation.

The on-disk layout is a pure function of the request:

    <dirname(dst)>/.<basename(dst)>-<version>-<sha256>/                        install directory
    <dirname(dst)>/.<basename(dst)>-<version>-<sha256>/.install-tar-<sha256>   marker
    <dst> -> <dirname(dst)>/.<basename(dst)>-<version>-<sha256>                symlink
"""

import os

from pydantic import BaseModel, Field, field_validator

MARKER_PREFIX = ".install-tar-"


def _strip_trailing_sep(path: str) -> str:
    return path.rstrip(os.sep) or path


class InstallRequest(BaseModel):
    """
    The four inputs of an install: where to link, what to fetch, what it must hash to, and its version label.

    The URL and digest are not checked syntactically; malformed values surface
    later as fetch or verify failures.
    """

    destination: str = Field(..., description="Path that is, or will become, the symlink")
    url: str = Field(..., description="URL serving the tar archive")
    sha256: str = Field(..., description="Expected hex digest of the downloaded bytes")
    version: str = Field(..., description="Opaque label used to namespace the install directory")

    class Config:
        extra = "forbid"
        frozen = True

    @field_validator("sha256")
    @classmethod
    def lowercase_digest(cls, value: str) -> str:
        return value.lower()

    @property
    def link_path(self) -> str:
        """The destination without trailing separators, so it names the link itself."""
        return _strip_trailing_sep(self.destination)

    @property
    def package_name(self) -> str:
        """Base name of the destination, used as the install directory prefix."""
        return os.path.basename(self.link_path)

    @property
    def marker_name(self) -> str:
        """Name of the completion marker written inside the install directory."""
        return f"{MARKER_PREFIX}{self.sha256}"

    @property
    def install_dir(self) -> str:
        """
        The hidden sibling directory holding this (version, digest) pair.
        """
        parent = os.path.dirname(self.link_path)
        return os.path.join(
            parent, f".{self.package_name}-{self.version}-{self.sha256}"
        )

    @property
    def marker_path(self) -> str:
        """Marker path inside the install directory."""
        return os.path.join(self.install_dir, self.marker_name)

    @property
    def linked_marker_path(self) -> str:
        """Marker path as seen through the destination symlink."""
        return os.path.join(self.link_path, self.marker_name)

    @classmethod
    def from_args(cls, dst: str, url: str, sha256: str, version: str) -> "InstallRequest":
        """
        Build a request from the four positional command line arguments.
        """
        return cls(destination=dst, url=url, sha256=sha256, version=version)
