"""Connections to the daemon over TCP, TLS or a Unix socket."""

from __future__ import annotations

import http.client
import socket
import ssl
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

UNIX_HOST = "unix.sock"


class UnixHTTPConnection(http.client.HTTPConnection):
    """An HTTP connection carried over a Unix domain socket."""

    def __init__(self, socket_path: str, timeout: Optional[float] = None) -> None:
        super().__init__(UNIX_HOST, timeout=timeout)
        self.socket_path = socket_path

    def connect(self) -> None:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.timeout)
            sock.connect(self.socket_path)
        except OSError:
            sock.close()
            raise
        # The timeout only bounds dialling; streams may stay open indefinitely.
        sock.settimeout(None)
        self.sock = sock


class _DialTimeoutHTTPConnection(http.client.HTTPConnection):
    def connect(self) -> None:
        super().connect()
        self.sock.settimeout(None)


class _DialTimeoutHTTPSConnection(http.client.HTTPSConnection):
    def connect(self) -> None:
        super().connect()
        self.sock.settimeout(None)


@dataclass
class Endpoint:
    """Where the daemon listens and how to reach it."""

    scheme: str
    host: str
    path: str = ""
    socket_path: Optional[str] = None
    tls_context: Optional[ssl.SSLContext] = None

    def base_url(self) -> str:
        """Return the URL that request paths are appended to."""
        return f"{self.scheme}://{self.host}{self.path}"

    def connection(self, timeout: Optional[float]) -> http.client.HTTPConnection:
        """Open a new connection; ``timeout`` bounds only the dialling."""
        if self.socket_path is not None:
            return UnixHTTPConnection(self.socket_path, timeout=timeout)
        if self.scheme == "https":
            return _DialTimeoutHTTPSConnection(self.host, timeout=timeout, context=self.tls_context)
        if self.scheme == "http":
            return _DialTimeoutHTTPConnection(self.host, timeout=timeout)
        raise ValueError(f"unsupported protocol scheme {self.scheme!r}")


def parse_daemon_url(daemon_url: str, tls_context: Optional[ssl.SSLContext] = None) -> Endpoint:
    """Turn a daemon address such as ``unix:///var/run/docker.sock`` into an Endpoint."""
    parts = urlsplit(daemon_url)
    scheme = parts.scheme
    if scheme in ("", "tcp"):
        scheme = "https" if tls_context is not None else "http"
    if scheme == "unix":
        return Endpoint(
            scheme="http",
            host=UNIX_HOST,
            path="",
            socket_path=parts.path,
            tls_context=tls_context,
        )
    return Endpoint(scheme=scheme, host=parts.netloc, path=parts.path, tls_context=tls_context)