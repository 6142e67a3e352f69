"""
Artifact downloader implementation.

Downloads the artifact once, hashing it on the way to disk, and only hands
the scratch file to the caller after the digest has been verified.
"""

import contextlib
import dataclasses
import hashlib
import logging
import os
import tempfile
from typing import IO, Iterator, Tuple

import requests
import urllib3

from install_tar.install_models import InstallRequest
from install_tar.install_tar_config import InstallTarConfig
from install_tar.install_tar_exceptions import (
    FetchError,
    IntegrityError,
    PreconditionError,
)
from install_tar.install_tar_logger import InstallTarLogger

RAW_BODY_HEADERS = {"Accept-Encoding": "identity"}


@dataclasses.dataclass
class FetchedArtifact:
    """
    A downloaded artifact whose digest matched the expected value.
    """

    path: str
    sha256: str
    size: int


class ArtifactDownloader:
    """
    Fetches an artifact into a scratch file and verifies its SHA-256 digest.
    """

    def __init__(self, config: InstallTarConfig, logger: InstallTarLogger):
        """
        Initialize the artifact downloader.

        Args:
            config: Settings for chunk size, timeout, status checking and size cap
            logger: Logger for progress and error messages
        """
        self.config = config
        self.logger = logger

    @contextlib.contextmanager
    def fetch(self, request: InstallRequest) -> Iterator[FetchedArtifact]:
        """
        Download and verify the artifact named by the request.

        The scratch file only exists for the duration of the `with` block and is
        removed however the block is left.

        Raises:
            FetchError: If the request fails or the body cannot be read
            PreconditionError: If the scratch file cannot be created, written or closed
            IntegrityError: If the digest does not match
        """
        scratch = self._create_scratch_file()
        try:
            with scratch:
                digest, size = self._download_into(request.url, scratch)
                self._close_scratch(scratch)

            self.logger.log(
                f"Fetched {size} bytes from {request.url}, sha256 {digest}",
                logging.INFO,
            )

            if digest != request.sha256:
                raise IntegrityError(digest, request.sha256)

            yield FetchedArtifact(path=scratch.name, sha256=digest, size=size)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(scratch.name)

    def _create_scratch_file(self) -> IO[bytes]:
        try:
            return tempfile.NamedTemporaryFile(
                prefix="install-tar", dir=self.config.scratch_dir, delete=False
            )
        except OSError as e:
            raise PreconditionError(f"tmpfile err: {e}")

    def _download_into(self, url: str, scratch: IO[bytes]) -> Tuple[str, int]:
        """
        Stream the body of `url` into `scratch`, returning the hex digest and byte count.
        """
        self.logger.log(f"Downloading {url} to {scratch.name}", logging.INFO)

        try:
            response = requests.get(
                url,
                stream=True,
                timeout=self.config.request_timeout,
                headers=RAW_BODY_HEADERS,
            )
        except requests.RequestException as e:
            raise FetchError(f"Fetch {url} err: {e}")

        with response:
            if self.config.check_status:
                try:
                    response.raise_for_status()
                except requests.HTTPError as e:
                    raise FetchError(f"Fetch {url} err: {e}")

            shaer = hashlib.sha256()
            size = 0
            for chunk in self._iter_body(response, url):
                size += len(chunk)
                if (
                    self.config.max_download_bytes is not None
                    and size > self.config.max_download_bytes
                ):
                    raise FetchError(
                        f"Read {url} err: body exceeds {self.config.max_download_bytes} bytes"
                    )
                shaer.update(chunk)
                try:
                    scratch.write(chunk)
                except OSError as e:
                    raise PreconditionError(f"Write {scratch.name} err: {e}")

        return shaer.hexdigest(), size

    def _close_scratch(self, scratch: IO[bytes]) -> None:
        try:
            scratch.close()
        except OSError as e:
            raise PreconditionError(f"Close {scratch.name} err: {e}")

    def _iter_body(self, response: requests.Response, url: str) -> Iterator[bytes]:
        """
        Yield the body exactly as sent. Any Content-Encoding is left undecoded so
        the digest covers the bytes on the wire.
        """
        try:
            for chunk in response.raw.stream(
                self.config.chunk_size, decode_content=False
            ):
                if chunk:
                    yield chunk
        except (urllib3.exceptions.HTTPError, requests.RequestException) as e:
            raise FetchError(f"Read {url} err: {e}")
