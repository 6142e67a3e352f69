"""
Tests for fetching and verifying artifacts. No real network calls are made.
"""

import gzip
import os
from unittest.mock import patch

import pytest
import requests
import urllib3

from install_tar.artifact_downloader import ArtifactDownloader
from install_tar.install_models import InstallRequest
from install_tar.install_tar_config import InstallTarConfig
from install_tar.install_tar_exceptions import (
    FetchError,
    IntegrityError,
    PreconditionError,
)
from install_tar.install_tar_logger import InstallTarLogger
from tests.test_utils import FakeResponse, sha256_hex

BODY = b"pretend this is a tarball" * 10
URL = "http://example/tool-1.2.tar.gz"

GET = "install_tar.artifact_downloader.downloader.requests.get"


def _request(tmp_path, sha256=None):
    return InstallRequest.from_args(
        str(tmp_path / "tool"), URL, sha256 or sha256_hex(BODY), "1.2"
    )


def _downloader(tmp_path, **overrides):
    config = InstallTarConfig(scratch_dir=str(tmp_path), **overrides)
    return ArtifactDownloader(config, InstallTarLogger())


def _scratch_files(tmp_path):
    return [p for p in os.listdir(tmp_path) if p.startswith("install-tar")]


def test_fetch_verifies_and_removes_scratch_file(tmp_path):
    downloader = _downloader(tmp_path)
    with patch(GET, return_value=FakeResponse(BODY)) as get:
        with downloader.fetch(_request(tmp_path)) as artifact:
            with open(artifact.path, "rb") as f:
                assert f.read() == BODY
            assert artifact.sha256 == sha256_hex(BODY)
            assert artifact.size == len(BODY)

    get.assert_called_once_with(
        URL, stream=True, timeout=None, headers={"Accept-Encoding": "identity"}
    )
    assert not os.path.exists(artifact.path)
    assert _scratch_files(tmp_path) == []


def test_uppercase_expected_digest_matches(tmp_path):
    downloader = _downloader(tmp_path)
    request = _request(tmp_path, sha256=sha256_hex(BODY).upper())
    with patch(GET, return_value=FakeResponse(BODY)):
        with downloader.fetch(request) as artifact:
            assert artifact.sha256 == request.sha256


def test_digest_mismatch_reports_both_values(tmp_path):
    downloader = _downloader(tmp_path)
    expected = "0" * 64
    with patch(GET, return_value=FakeResponse(BODY)):
        with pytest.raises(IntegrityError) as excinfo:
            with downloader.fetch(_request(tmp_path, sha256=expected)):
                pytest.fail("body must not be handed out on mismatch")

    assert excinfo.value.actual == sha256_hex(BODY)
    assert excinfo.value.expected == expected
    assert f"got={sha256_hex(BODY)} expect={expected}" in excinfo.value.message
    assert _scratch_files(tmp_path) == []


def test_connection_error_is_fetch_error(tmp_path):
    downloader = _downloader(tmp_path)
    with patch(GET, side_effect=requests.ConnectionError("refused")):
        with pytest.raises(FetchError, match=f"Fetch {URL} err: refused"):
            with downloader.fetch(_request(tmp_path)):
                pass
    assert _scratch_files(tmp_path) == []


def test_body_read_error_is_fetch_error(tmp_path):
    downloader = _downloader(tmp_path)
    response = FakeResponse(BODY, read_error=requests.exceptions.ChunkedEncodingError("reset"))
    with patch(GET, return_value=response):
        with pytest.raises(FetchError, match=f"Read {URL} err: reset"):
            with downloader.fetch(_request(tmp_path)):
                pass
    assert response.closed
    assert _scratch_files(tmp_path) == []


def test_http_error_status_is_fetch_error(tmp_path):
    downloader = _downloader(tmp_path)
    with patch(GET, return_value=FakeResponse(b"not found", status_code=404)):
        with pytest.raises(FetchError, match="404"):
            with downloader.fetch(_request(tmp_path)):
                pass


def test_status_check_can_be_disabled(tmp_path):
    body = b"error page"
    downloader = _downloader(tmp_path, check_status=False)
    with patch(GET, return_value=FakeResponse(body, status_code=500)):
        with downloader.fetch(_request(tmp_path, sha256=sha256_hex(body))) as artifact:
            assert artifact.size == len(body)


def test_size_cap(tmp_path):
    downloader = _downloader(tmp_path, max_download_bytes=10)
    with patch(GET, return_value=FakeResponse(BODY)):
        with pytest.raises(FetchError, match="exceeds 10 bytes"):
            with downloader.fetch(_request(tmp_path)):
                pass
    assert _scratch_files(tmp_path) == []


def test_timeout_is_passed_through(tmp_path):
    downloader = _downloader(tmp_path, request_timeout=12.5)
    with patch(GET, return_value=FakeResponse(BODY)) as get:
        with downloader.fetch(_request(tmp_path)):
            pass
    get.assert_called_once_with(
        URL, stream=True, timeout=12.5, headers={"Accept-Encoding": "identity"}
    )


def test_scratch_file_removed_when_caller_fails(tmp_path):
    downloader = _downloader(tmp_path)
    with patch(GET, return_value=FakeResponse(BODY)):
        with pytest.raises(RuntimeError):
            with downloader.fetch(_request(tmp_path)):
                raise RuntimeError("extraction blew up")
    assert _scratch_files(tmp_path) == []


def test_missing_scratch_dir_is_precondition_error(tmp_path):
    downloader = _downloader(tmp_path)
    downloader.config.scratch_dir = str(tmp_path / "missing")
    with patch(GET) as get:
        with pytest.raises(PreconditionError, match="tmpfile err"):
            with downloader.fetch(_request(tmp_path)):
                pass
    get.assert_not_called()


def test_digest_covers_encoded_bytes_as_served(tmp_path):
    served = gzip.compress(BODY)
    response = FakeResponse(served)
    downloader = _downloader(tmp_path)
    with patch(GET, return_value=response):
        with downloader.fetch(_request(tmp_path, sha256=sha256_hex(served))) as artifact:
            with open(artifact.path, "rb") as f:
                assert f.read() == served

    assert response.decode_content is False


def test_urllib3_read_error_is_fetch_error(tmp_path):
    downloader = _downloader(tmp_path)
    response = FakeResponse(
        BODY, read_error=urllib3.exceptions.ProtocolError("connection broken")
    )
    with patch(GET, return_value=response):
        with pytest.raises(FetchError, match="Read .* err: connection broken"):
            with downloader.fetch(_request(tmp_path)):
                pass
    assert _scratch_files(tmp_path) == []


class _CloseFailsOnce:
    """Scratch file whose first close() reports a write-back failure."""

    def __init__(self, path):
        self.name = str(path)
        self._file = open(self.name, "wb")
        self._failed = False

    def write(self, data):
        return self._file.write(data)

    def close(self):
        if not self._failed:
            self._failed = True
            raise OSError("No space left on device")
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False


def test_scratch_close_error_is_precondition_error(tmp_path):
    downloader = _downloader(tmp_path)
    scratch = _CloseFailsOnce(tmp_path / "install-tar-scratch")
    with patch.object(downloader, "_create_scratch_file", return_value=scratch):
        with patch(GET, return_value=FakeResponse(BODY)):
            with pytest.raises(PreconditionError, match="Close .* err: No space left"):
                with downloader.fetch(_request(tmp_path)):
                    pytest.fail("artifact must not be handed out when close fails")

    assert not os.path.exists(scratch.name)
