"""
Existing-install check.

The check is keyed on the digest, not the version: the same version with a
different digest always reinstalls, and an identical (version, digest) pair
is a no-op whatever the symlink currently targets.
"""

import logging
import os
import stat

from install_tar.install_models import InstallRequest
from install_tar.install_tar_exceptions import PreconditionError
from install_tar.install_tar_logger import InstallTarLogger


class InstallState:
    """Enumeration of existing-install states."""

    ABSENT = "absent"
    STALE = "stale"
    CURRENT = "current"


def check_existing_install(
    request: InstallRequest, logger: InstallTarLogger
) -> str:
    """
    Inspect the destination and report whether an install is needed.

    Args:
        request: The install request
        logger: Logger for progress messages

    Returns:
        InstallState.ABSENT if nothing is at the destination,
        InstallState.CURRENT if the destination resolves to a completed install of the expected digest,
        InstallState.STALE if the destination is a symlink to anything else

    Raises:
        PreconditionError: If the destination exists but is not a symlink, or cannot be inspected
    """
    dst = request.link_path
    try:
        st = os.lstat(dst)
    except FileNotFoundError:
        logger.log(f"{dst} does not exist yet", logging.INFO)
        return InstallState.ABSENT
    except OSError as e:
        raise PreconditionError(f"stat {dst} err: {e}")

    if not stat.S_ISLNK(st.st_mode):
        raise PreconditionError(f"dst {dst} exists but is not a symlink")

    if os.path.exists(request.linked_marker_path):
        logger.log(
            f"{dst} already provides sha256 {request.sha256}", logging.INFO
        )
        return InstallState.CURRENT

    logger.log(
        f"{dst} is a symlink without marker {request.marker_name}, reinstalling",
        logging.INFO,
    )
    return InstallState.STALE
