"""
Archive extractor implementations.

Both implementations extract a tar archive into a directory while discarding
the leading path components of every entry, as released tarballs are
conventionally wrapped in a single top-level directory.
"""

import abc
import copy
import dataclasses
import logging
import os
import subprocess
import tarfile

from install_tar.install_tar_config import InstallTarConfig
from install_tar.install_tar_exceptions import ExtractionError
from install_tar.install_tar_logger import InstallTarLogger

# Python versions with extraction filters warn unless one is chosen.
_EXTRACT_KWARGS = {"filter": "tar"} if hasattr(tarfile, "tar_filter") else {}


@dataclasses.dataclass
class ExtractionOutput:
    """
    Result of a successful extraction.
    """

    dest_dir: str
    output: str = ""


class ArchiveExtractor(abc.ABC):
    """
    Extracts a tar archive into a directory.
    """

    def __init__(self, logger: InstallTarLogger):
        self.logger = logger

    @abc.abstractmethod
    def extract(
        self, archive_path: str, dest_dir: str, strip_components: int
    ) -> ExtractionOutput:
        """
        Extract `archive_path` into `dest_dir`, dropping `strip_components` leading path components.

        Raises:
            ExtractionError: If the archive cannot be extracted
        """


class TarCommandExtractor(ArchiveExtractor):
    """
    Shells out to a `tar` executable. Compression is whatever that tar auto-detects.
    """

    def __init__(self, logger: InstallTarLogger, tar_command: str = "tar"):
        super().__init__(logger)
        self.tar_command = tar_command

    def extract(
        self, archive_path: str, dest_dir: str, strip_components: int
    ) -> ExtractionOutput:
        cmd = [
            self.tar_command,
            "-C",
            dest_dir,
            f"--strip-components={strip_components}",
            "-xf",
            archive_path,
        ]
        self.logger.log(f"Running {' '.join(cmd)}", logging.INFO)

        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as e:
            raise ExtractionError(f"untar err: {e}")

        output = proc.stdout.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            summary = "; ".join(line for line in output.splitlines() if line.strip())
            raise ExtractionError(
                f"untar err: exit status {proc.returncode}, {summary}", output
            )

        return ExtractionOutput(dest_dir=dest_dir, output=output)


class TarfileExtractor(ArchiveExtractor):
    """
    Extracts in-process with the tarfile module.
    """

    def extract(
        self, archive_path: str, dest_dir: str, strip_components: int
    ) -> ExtractionOutput:
        self.logger.log(
            f"Extracting {archive_path} into {dest_dir} with tarfile", logging.INFO
        )
        root = os.path.realpath(dest_dir)

        try:
            with tarfile.open(archive_path, "r:*") as tar:
                members = []
                for member in tar.getmembers():
                    stripped = self._strip(member, strip_components)
                    if stripped is None:
                        continue
                    target = os.path.realpath(os.path.join(root, stripped.name))
                    if os.path.commonpath([root, target]) != root:
                        raise ExtractionError(
                            f"untar err: {member.name} escapes {dest_dir}"
                        )
                    members.append(stripped)
                tar.extractall(root, members=members, **_EXTRACT_KWARGS)
        except (tarfile.TarError, OSError) as e:
            raise ExtractionError(f"untar err: {e}")

        return ExtractionOutput(dest_dir=dest_dir)

    @staticmethod
    def _strip(member: tarfile.TarInfo, strip_components: int):
        """
        Return a copy of `member` without its leading components, or None if nothing is left.
        """
        parts = [p for p in member.name.split("/") if p not in ("", ".")]
        if len(parts) <= strip_components:
            return None
        stripped = copy.copy(member)
        stripped.name = "/".join(parts[strip_components:])

        if stripped.islnk():
            link_parts = [p for p in stripped.linkname.split("/") if p not in ("", ".")]
            if len(link_parts) <= strip_components:
                return None
            stripped.linkname = "/".join(link_parts[strip_components:])
        return stripped


def create_extractor(
    config: InstallTarConfig, logger: InstallTarLogger
) -> ArchiveExtractor:
    """
    Build the extractor selected by `config.extractor`.
    """
    if config.extractor == "native":
        return TarfileExtractor(logger)
    return TarCommandExtractor(logger, config.tar_command)
