"""
Provides the install workflow: check the destination, fetch and verify the
artifact, extract it into its install directory and publish it through the
destination symlink.
"""

import dataclasses
import logging
import os
import shutil
from typing import Optional

from install_tar.archive_extractor import ArchiveExtractor, create_extractor
from install_tar.artifact_downloader import ArtifactDownloader, FetchedArtifact
from install_tar.install_models import InstallRequest, MARKER_PREFIX
from install_tar.install_state import InstallState, check_existing_install
from install_tar.install_tar_config import InstallTarConfig
from install_tar.install_tar_exceptions import PreconditionError
from install_tar.install_tar_logger import InstallTarLogger


class InstallOutcome:
    """Enumeration of install outcomes."""

    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"


@dataclasses.dataclass
class InstallResult:
    """
    Outcome of a single install run
    """

    outcome: str
    install_dir: str
    link_path: str


class TarInstaller:
    """
    Installs a verified tarball into a versioned directory and points a symlink at it.

    Runs strictly in sequence, with no locking: concurrent runs against the same
    destination can interleave.
    """

    def __init__(
        self,
        config: InstallTarConfig,
        logger: InstallTarLogger,
        downloader: Optional[ArtifactDownloader] = None,
        extractor: Optional[ArchiveExtractor] = None,
    ):
        """
        Creates a new TarInstaller.

        Args:
            config: Install settings
            logger: Logger for progress messages
            downloader: Artifact downloader, built from config if not given
            extractor: Archive extractor, built from config if not given
        """
        self.config = config
        self.logger = logger
        self.downloader = downloader or ArtifactDownloader(config, logger)
        self.extractor = extractor or create_extractor(config, logger)

    def install(self, request: InstallRequest) -> InstallResult:
        """
        Make the destination a symlink to a verified, fully extracted copy of the artifact.

        Returns immediately, without touching the network, if the destination already
        resolves to a completed install of the expected digest.
        """
        state = check_existing_install(request, self.logger)
        if state == InstallState.CURRENT:
            return InstallResult(
                outcome=InstallOutcome.ALREADY_INSTALLED,
                install_dir=request.install_dir,
                link_path=request.link_path,
            )

        with self.downloader.fetch(request) as artifact:
            self.publish(request, artifact)

        self.logger.log(
            f"Installed {request.url} at {request.install_dir}", logging.INFO
        )
        return InstallResult(
            outcome=InstallOutcome.INSTALLED,
            install_dir=request.install_dir,
            link_path=request.link_path,
        )

    def publish(self, request: InstallRequest, artifact: FetchedArtifact) -> None:
        """
        Extract a verified artifact into its install directory, mark it complete and link it.

        The symlink is only repointed once the marker exists. Nothing is rolled back
        if linking fails; the install directory stays valid for a later run.
        """
        install_dir = request.install_dir

        try:
            if os.path.islink(install_dir) or not os.path.isdir(install_dir):
                os.remove(install_dir)
            else:
                shutil.rmtree(install_dir)
            self.logger.log(
                f"Removed partial install at {install_dir}", logging.INFO
            )
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PreconditionError(
                f"Existing partial install found at {install_dir}, could not clean up: {e}"
            )

        try:
            os.makedirs(install_dir, mode=self.config.install_dir_mode, exist_ok=True)
        except OSError as e:
            raise PreconditionError(f"Mkdir err {install_dir}: {e}")

        self.extractor.extract(
            artifact.path, install_dir, self.config.strip_components
        )

        self.write_marker(install_dir, artifact.sha256)
        self.link(install_dir, request.link_path)

    def write_marker(self, install_dir: str, sha256: str) -> str:
        """
        Create the empty completion marker for `sha256` inside `install_dir`.
        """
        marker = os.path.join(install_dir, f"{MARKER_PREFIX}{sha256}")
        try:
            with open(marker, "wb"):
                pass
        except OSError as e:
            raise PreconditionError(f"create marker err: {e}")
        return marker

    def link(self, install_dir: str, link_path: str) -> None:
        """
        Point `link_path` at `install_dir`, replacing whatever link was there.

        A temporary sibling link is renamed over the destination, so the
        destination never disappears part-way through.
        """
        target = os.path.abspath(install_dir)
        tmp_link = os.path.join(
            os.path.dirname(link_path),
            f".{os.path.basename(link_path)}.install-tar-link-{os.getpid()}",
        )

        try:
            os.remove(tmp_link)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.log(f"Could not remove stale {tmp_link}: {e}", logging.DEBUG)

        try:
            os.symlink(target, tmp_link)
            os.replace(tmp_link, link_path)
        except OSError as e:
            if os.path.lexists(tmp_link):
                os.remove(tmp_link)
            raise PreconditionError(f"Link error: {e}")

        self.logger.log(f"Linked {link_path} -> {target}", logging.INFO)
