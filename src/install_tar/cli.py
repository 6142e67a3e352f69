"""
Command line entry point for install-tar.

    install-tar [--config PATH] [-v] <dst> <url> <sha256> <version>

Exits 0 when the destination links to a verified install (whether this run
installed it or it was already there) and 1 on any failure, after printing a
single diagnostic line to stderr.
"""

import argparse
import logging
import sys
from typing import List, NoReturn, Optional

from install_tar.install_models import InstallRequest
from install_tar.install_tar_config import CONFIG_ENV_VAR, InstallTarConfig
from install_tar.install_tar_exceptions import InstallTarException, UsageError
from install_tar.install_tar_logger import InstallTarLogger
from install_tar.installer import InstallOutcome, TarInstaller

PROG = "install-tar"
USAGE = f"usage {PROG}: <dst> <url> <sha256> <version>"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(f"{USAGE} ({message})")


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=PROG,
        description="Idempotently install a tarball into a versioned directory behind a symlink",
    )
    p.add_argument("dst", help="Path that is, or will become, a symlink to the install")
    p.add_argument("url", help="URL serving the tar archive")
    p.add_argument("sha256", help="Expected SHA-256 of the downloaded bytes (hex, any case)")
    p.add_argument("version", help="Version label used to name the install directory")
    p.add_argument(
        "--config",
        default=None,
        help=f"TOML configuration file (defaults to ${CONFIG_ENV_VAR})",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress to stderr"
    )
    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run install-tar with `argv` (without the program name) and return the exit status.
    """
    argv = sys.argv[1:] if argv is None else argv
    logger = InstallTarLogger()

    try:
        args = _build_parser().parse_args(argv)
        _configure_logging(args.verbose)

        config = InstallTarConfig.load(args.config)
        request = InstallRequest.from_args(args.dst, args.url, args.sha256, args.version)
        result = TarInstaller(config, logger).install(request)
    except InstallTarException as e:
        message = " ".join(e.message.splitlines())
        logger.log(f"{PROG} failed: {message}", logging.DEBUG)
        print(f"{PROG}: {message}", file=sys.stderr)
        return e.exit_code

    if result.outcome == InstallOutcome.ALREADY_INSTALLED:
        logger.log(f"{result.link_path} is up to date", logging.INFO)
    return 0


def entry_point() -> NoReturn:
    """Console script entry point."""
    raise SystemExit(main())


if __name__ == "__main__":
    entry_point()
