"""Errors raised when talking to the container daemon."""

from __future__ import annotations


class DockerError(Exception):
    """Base class for every error reported by the daemon client."""


class APIError(DockerError):
    """The daemon answered with an error status code."""

    def __init__(self, status_code: int, status: str, message: str) -> None:
        super().__init__(f"{status}: {message}")
        self.status_code = status_code
        self.status = status
        self.message = message


class NotFoundError(DockerError):
    """The requested object does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class ImageNotFoundError(NotFoundError):
    """The requested image does not exist."""

    def __init__(self, message: str = "Image not found") -> None:
        super().__init__(message)