"""
install-tar: idempotent installation of tarball artifacts behind a stable symlink.
"""

from install_tar.install_models import InstallRequest
from install_tar.install_tar_config import InstallTarConfig
from install_tar.install_tar_exceptions import InstallTarException
from install_tar.install_tar_logger import InstallTarLogger
from install_tar.installer import InstallOutcome, InstallResult, TarInstaller

__version__ = "0.1.0"

__all__ = [
    "InstallRequest",
    "InstallTarConfig",
    "InstallTarException",
    "InstallTarLogger",
    "InstallOutcome",
    "InstallResult",
    "TarInstaller",
]
