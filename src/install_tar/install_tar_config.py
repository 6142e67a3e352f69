"""
Configuration parameters for install-tar.

Defaults reproduce the plain behaviour of the tool: shell out to `tar`,
strip one leading path component, no request timeout and no size cap.
An optional TOML file can override them under an `[install_tar]` table:

    [install_tar]
    extractor = "native"
    request_timeout = 60
    max_download_bytes = 1073741824
"""

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from install_tar.install_tar_exceptions import PreconditionError

CONFIG_ENV_VAR = "INSTALL_TAR_CONFIG"

EXTRACTORS = ("command", "native")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class InstallTarConfig:
    """
    Configuration parameters
    """

    extractor: str = "command"
    tar_command: str = "tar"
    strip_components: int = 1
    chunk_size: int = 64 * 1024
    request_timeout: Optional[float] = None
    check_status: bool = True
    max_download_bytes: Optional[int] = None
    scratch_dir: Optional[str] = None
    install_dir_mode: int = 0o777

    def __post_init__(self) -> None:
        if self.extractor not in EXTRACTORS:
            raise PreconditionError(
                f"Unknown extractor {self.extractor!r}, expected one of {', '.join(EXTRACTORS)}"
            )
        if not isinstance(self.tar_command, str) or not self.tar_command:
            raise PreconditionError("tar_command must be a non-empty string")
        if not _is_int(self.strip_components) or self.strip_components < 0:
            raise PreconditionError("strip_components must be a non-negative integer")
        if not _is_int(self.chunk_size) or self.chunk_size <= 0:
            raise PreconditionError("chunk_size must be a positive integer")
        if self.request_timeout is not None and (
            not _is_number(self.request_timeout) or self.request_timeout <= 0
        ):
            raise PreconditionError("request_timeout must be a positive number of seconds")
        if not isinstance(self.check_status, bool):
            raise PreconditionError("check_status must be true or false")
        if self.max_download_bytes is not None and (
            not _is_int(self.max_download_bytes) or self.max_download_bytes <= 0
        ):
            raise PreconditionError("max_download_bytes must be a positive integer")
        if self.scratch_dir is not None and not isinstance(self.scratch_dir, str):
            raise PreconditionError("scratch_dir must be a string")
        if not _is_int(self.install_dir_mode) or not 0 <= self.install_dir_mode <= 0o7777:
            raise PreconditionError("install_dir_mode must be an integer file mode")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InstallTarConfig":
        """
        Create an InstallTarConfig instance from a dictionary.

        Args:
            d: Either the whole document loaded from TOML or its `install_tar` table

        Returns:
            InstallTarConfig instance

        Raises:
            PreconditionError: If the dictionary holds unknown keys
        """
        section = d.get("install_tar", d)
        if not isinstance(section, dict):
            raise PreconditionError("[install_tar] must be a table")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            raise PreconditionError(f"Unknown config keys: {', '.join(unknown)}")

        try:
            return cls(**section)
        except TypeError as e:
            raise PreconditionError(f"Invalid config value: {e}")

    @classmethod
    def from_toml_file(cls, path: str) -> "InstallTarConfig":
        """
        Load configuration from a TOML file.
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise PreconditionError(f"Load config {path} err: {e}")
        return cls.from_dict(toml_dict)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "InstallTarConfig":
        """
        Load configuration from `path`, falling back to $INSTALL_TAR_CONFIG and then to defaults.
        """
        path = path or os.environ.get(CONFIG_ENV_VAR)
        if not path:
            return cls()
        return cls.from_toml_file(path)
