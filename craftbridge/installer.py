"""Make sure a client binary matching the daemon's version is installed."""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import sys
import urllib.request
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from .client import DockerClient
from .errors import DockerError

logger = logging.getLogger(__name__)

DOCKER_SOCKET = "unix:///var/run/docker.sock"
BIN_DIR = "/bin"
DOWNLOAD_BASE = "https://get.docker.com/builds/Linux/x86_64/docker-"


def docker_binary_path(version: str, bin_dir: Union[str, Path] = BIN_DIR) -> Path:
    """Return where the client binary for ``version`` lives."""
    return Path(bin_dir) / f"docker-{version}"


def download_url(version: str) -> str:
    """Return the URL the client binary for ``version`` is downloaded from."""
    return DOWNLOAD_BASE + version


def ensure_docker_binary(
    version: str,
    bin_dir: Union[str, Path] = BIN_DIR,
    opener: Callable[[str], Any] = urllib.request.urlopen,
) -> Path:
    """Download the client binary for ``version`` unless it is already there.

    ``opener`` takes a URL and returns a readable response usable as a
    context manager. Returns the binary's path.
    """
    path = docker_binary_path(version, bin_dir)
    try:
        path.stat()
    except FileNotFoundError:
        pass
    except OSError:
        return path
    else:
        return path
    logger.info("docker binary (version %s) not found.", version)
    logger.info("downloading %s ...", path.name)
    with path.open("wb") as out:
        with opener(download_url(version)) as response:
            shutil.copyfileobj(response, out)
    os.chmod(path, 0o700)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Install the client binary that matches the local daemon."""
    logging.basicConfig(level=logging.INFO)
    try:
        docker = DockerClient(DOCKER_SOCKET)
        version = docker.version().version
        logger.info("looking for docker binary named: docker-%s", version)
        ensure_docker_binary(version)
    except (DockerError, OSError, ValueError, TypeError, http.client.HTTPException) as exc:
        logger.critical("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())