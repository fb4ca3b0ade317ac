import io
import stat
from pathlib import Path

import pytest

from craftbridge.installer import docker_binary_path, download_url, ensure_docker_binary


def test_binary_path_default_directory():
    assert docker_binary_path("1.9.1") == Path("/bin/docker-1.9.1")


def test_binary_path_custom_directory(tmp_path):
    assert docker_binary_path("1.9.1", tmp_path) == tmp_path / "docker-1.9.1"


def test_download_url():
    assert download_url("1.9.1") == "https://get.docker.com/builds/Linux/x86_64/docker-1.9.1"


def test_downloads_missing_binary(tmp_path):
    requested = []

    def opener(url):
        requested.append(url)
        return io.BytesIO(b"binary-content")

    path = ensure_docker_binary("1.9.1", tmp_path, opener)
    assert path == docker_binary_path("1.9.1", tmp_path)
    assert requested == [download_url("1.9.1")]
    assert path.read_bytes() == b"binary-content"
    assert stat.S_IMODE(path.stat().st_mode) == 0o700


def test_existing_binary_is_kept(tmp_path):
    existing = docker_binary_path("1.9.1", tmp_path)
    existing.write_bytes(b"old")
    requested = []

    def opener(url):
        requested.append(url)
        return io.BytesIO(b"new")

    assert ensure_docker_binary("1.9.1", tmp_path, opener) == existing
    assert requested == []
    assert existing.read_bytes() == b"old"


def test_download_failure_propagates(tmp_path):
    def opener(url):
        raise OSError("network down")

    with pytest.raises(OSError, match="network down"):
        ensure_docker_binary("1.9.1", tmp_path, opener)
    assert docker_binary_path("1.9.1", tmp_path).read_bytes() == b""