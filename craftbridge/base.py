"""Low-level daemon client: raw requests, containers, events and stats."""

from __future__ import annotations

import codecs
import http.client
import io
import json
import socket
import ssl
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional
from urllib.parse import urlencode

from .errors import APIError, DockerError, ImageNotFoundError, NotFoundError
from .transport import parse_daemon_url
from .types import (
    Container,
    ContainerChanges,
    ContainerConfig,
    ContainerInfo,
    Event,
    EventOrError,
    ExecConfig,
    HostConfig,
    LogOptions,
    MonitorEventsOptions,
    Stats,
    WaitResult,
    from_api,
    to_api,
)

API_VERSION = "v1.15"
DEFAULT_TIMEOUT = 30.0

_CHUNK = 8192
_STREAM_ERRORS = (OSError, ValueError, TypeError, EOFError, http.client.HTTPException)

EventCallback = Callable[..., Any]
StatsCallback = Callable[..., Any]


class _ResponseStream(io.RawIOBase):
    """A readable HTTP response body that owns its connection."""

    def __init__(
        self,
        connection: http.client.HTTPConnection,
        response: http.client.HTTPResponse,
        sock: Optional[socket.socket],
    ) -> None:
        super().__init__()
        self._connection = connection
        self._response = response
        self._sock = sock
        self.status = response.status
        self.reason = response.reason
        self.headers = response.headers

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        data = self._response.read1(len(buffer))
        size = len(data)
        buffer[:size] = data
        return size

    def close(self) -> None:
        if not self.closed:
            if self._sock is not None:
                # Wakes up a reader blocked in another thread.
                try:
                    self._sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
            try:
                self._response.close()
            finally:
                self._connection.close()
        super().close()


def _json_bytes(obj: Any) -> bytes:
    return json.dumps(to_api(obj), separators=(",", ":")).encode("utf-8")


def _flag(value: bool) -> int:
    return 1 if value else 0


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _lookup(data: Any, key: str, default: Any) -> Any:
    """Fetch ``key`` from a decoded JSON object, matching case-insensitively."""
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    if key in data:
        return data[key]
    for name, value in data.items():
        if str(name).lower() == key.lower():
            return value
    return default


def _is_refused(exc: BaseException) -> bool:
    return isinstance(exc, ConnectionRefusedError) or "connection refused" in str(exc).lower()


def _report(error_queue: Any, exc: BaseException) -> None:
    if error_queue is not None:
        error_queue.put(exc)


def _iter_json(stream: io.RawIOBase) -> Iterator[Any]:
    """Yield consecutive JSON values from a stream; raise EOFError at its end."""
    decoder = json.JSONDecoder()
    text_decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    eof = False
    while True:
        buffer = buffer.lstrip()
        if buffer:
            try:
                value, end = decoder.raw_decode(buffer)
            except json.JSONDecodeError:
                if eof:
                    raise
            else:
                complete = end < len(buffer) or eof or isinstance(value, (dict, list, str))
                if complete:
                    buffer = buffer[end:]
                    yield value
                    continue
        elif eof:
            raise EOFError("end of JSON stream")
        chunk = stream.read(_CHUNK)
        if not chunk:
            eof = True
            buffer += text_decoder.decode(b"", final=True)
        else:
            buffer += text_decoder.decode(chunk)


def _close_when_set(stop_event: threading.Event, stream: io.RawIOBase) -> None:
    while not stop_event.wait(0.2):
        if stream.closed:
            return
    stream.close()


class ContainerAPI:
    """Client for the container part of the daemon's remote API."""

    def __init__(
        self,
        daemon_url: str,
        tls_context: Optional[ssl.SSLContext] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        self.endpoint = parse_daemon_url(daemon_url, tls_context)
        self.tls_context = tls_context
        self.timeout = timeout
        self._monitor_stats = threading.Event()
        self._event_stop: Optional[threading.Event] = None

    # -- raw requests -------------------------------------------------

    def _open(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> _ResponseStream:
        connection = self.endpoint.connection(self.timeout)
        try:
            connection.request(method, self.endpoint.path + path, body=body, headers=dict(headers or {}))
            sock = connection.sock
            response = connection.getresponse()
        except BaseException:
            connection.close()
            raise
        return _ResponseStream(connection, response, sock)

    def do_stream_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> _ResponseStream:
        """Send a request and return the open response body; raise on error statuses."""
        if method in ("POST", "PUT") and body is None:
            body = b""
        all_headers = {"Content-Type": "application/json"}
        all_headers.update(headers or {})
        try:
            stream = self._open(method, path, body, all_headers)
        except (OSError, http.client.HTTPException) as exc:
            if not _is_refused(exc) and self.tls_context is None:
                raise DockerError(
                    f"{exc}. Are you trying to connect to a TLS-enabled daemon without TLS?"
                ) from exc
            raise
        if stream.status == 404:
            with stream:
                try:
                    data = stream.read()
                except (OSError, http.client.HTTPException) as exc:
                    raise NotFoundError() from exc
            text = data.decode("utf-8", "replace")
            if text:
                if "No such image" in text:
                    raise ImageNotFoundError()
                raise NotFoundError(text)
            raise NotFoundError()
        if stream.status >= 400:
            with stream:
                data = stream.read()
            raise APIError(
                stream.status, f"{stream.status} {stream.reason}", data.decode("utf-8", "replace")
            )
        return stream

    def do_request(
        self,
        method: str,
        path: str,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        """Send a request and return the whole response body."""
        with self.do_stream_request(method, path, body if body is not None else b"", headers) as stream:
            return stream.read()

    def _get_json(self, path: str) -> Any:
        return json.loads(self.do_request("GET", path))

    # -- containers ---------------------------------------------------

    def list_containers(self, all_containers: bool = False, size: bool = False, filters: str = "") -> List[Container]:
        """List containers; ``filters`` is passed through verbatim."""
        uri = f"/{API_VERSION}/containers/json?all={_flag(all_containers)}&size={_flag(size)}"
        if filters:
            uri += "&filters=" + filters
        return from_api(List[Container], self._get_json(uri)) or []

    def inspect_container(self, container_id: str) -> ContainerInfo:
        return from_api(ContainerInfo, self._get_json(f"/{API_VERSION}/containers/{container_id}/json"))

    def create_container(self, config: Optional[ContainerConfig], name: str = "") -> str:
        """Create a container and return its id."""
        uri = f"/{API_VERSION}/containers/create"
        if name:
            uri += "?" + urlencode({"name": name})
        data = json.loads(self.do_request("POST", uri, _json_bytes(config)))
        return _lookup(data, "Id", "") or ""

    def container_logs(self, container_id: str, options: LogOptions) -> _ResponseStream:
        """Return the raw (multiplexed) log stream of a container."""
        params = {
            "follow": _bool_text(options.follow),
            "stdout": _bool_text(options.stdout),
            "stderr": _bool_text(options.stderr),
            "timestamps": _bool_text(options.timestamps),
        }
        if options.tail > 0:
            params["tail"] = str(options.tail)
        uri = f"/{API_VERSION}/containers/{container_id}/logs?{urlencode(sorted(params.items()))}"
        return self._open("GET", uri, None, {"Content-Type": "application/json"})

    def container_changes(self, container_id: str) -> List[ContainerChanges]:
        data = self._get_json(f"/{API_VERSION}/containers/{container_id}/changes")
        return from_api(List[ContainerChanges], data) or []

    def exec_create(self, config: ExecConfig) -> str:
        """Create an exec instance in ``config.container`` and return its id."""
        uri = f"/{API_VERSION}/containers/{config.container}/exec"
        data = json.loads(self.do_request("POST", uri, _json_bytes(config)))
        return _lookup(data, "Id", "") or ""

    def exec_start(self, exec_id: str, config: ExecConfig) -> None:
        self.do_request("POST", f"/{API_VERSION}/exec/{exec_id}/start", _json_bytes(config))

    def exec_resize(self, exec_id: str, width: int, height: int) -> None:
        query = urlencode([("h", str(height)), ("w", str(width))])
        self.do_request("POST", f"/{API_VERSION}/exec/{exec_id}/resize?{query}")

    def start_container(self, container_id: str, config: Optional[HostConfig] = None) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/start", _json_bytes(config))

    def stop_container(self, container_id: str, timeout: int) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/stop?t={timeout}")

    def restart_container(self, container_id: str, timeout: int) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/restart?t={timeout}")

    def kill_container(self, container_id: str, signal: str) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/kill?signal={signal}")

    def wait(self, container_id: str) -> "Future[WaitResult]":
        """Wait for a container to stop in the background; the future yields a WaitResult."""
        future: "Future[WaitResult]" = Future()
        uri = f"/{API_VERSION}/containers/{container_id}/wait"

        def run() -> None:
            try:
                data = self.do_request("POST", uri)
            except Exception as exc:
                future.set_result(WaitResult(exit_code=-1, error=exc))
                return
            try:
                code = _lookup(json.loads(data), "StatusCode", 0)
                if isinstance(code, bool) or not isinstance(code, int):
                    raise TypeError(f"invalid status code: {code!r}")
            except (ValueError, TypeError) as exc:
                future.set_result(WaitResult(exit_code=0, error=exc))
                return
            future.set_result(WaitResult(exit_code=code))

        threading.Thread(target=run, daemon=True).start()
        return future

    def remove_container(self, container_id: str, force: bool = False, volumes: bool = False) -> None:
        uri = f"/{API_VERSION}/containers/{container_id}?force={_flag(force)}&v={_flag(volumes)}"
        self.do_request("DELETE", uri)

    def pause_container(self, container_id: str) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/pause")

    def unpause_container(self, container_id: str) -> None:
        self.do_request("POST", f"/{API_VERSION}/containers/{container_id}/unpause")

    def rename_container(self, old_name: str, new_name: str) -> None:
        self.do_request("POST", f"/containers/{old_name}/rename?name={new_name}")

    # -- events -------------------------------------------------------

    def monitor_events(
        self,
        options: Optional[MonitorEventsOptions] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> Iterator[EventOrError]:
        """Open the event stream and return an iterator over it.

        The last item carries the error that ended the stream. Setting
        ``stop_event`` ends the iteration without a further item.
        """
        params: Dict[str, str] = {}
        if options is not None:
            if options.since:
                params["since"] = str(options.since)
            if options.until:
                params["until"] = str(options.until)
            if options.filters is not None:
                filter_map: Dict[str, List[str]] = {}
                if options.filters.event:
                    filter_map["event"] = [options.filters.event]
                if options.filters.image:
                    filter_map["image"] = [options.filters.image]
                if options.filters.container:
                    filter_map["container"] = [options.filters.container]
                if filter_map:
                    params["filters"] = json.dumps(filter_map, sort_keys=True, separators=(",", ":"))
        uri = f"/{API_VERSION}/events?{urlencode(sorted(params.items()))}"
        stream = self._open("GET", uri, None, {})
        if stop_event is not None:
            threading.Thread(target=_close_when_set, args=(stop_event, stream), daemon=True).start()
        return self._events(stream, stop_event)

    @staticmethod
    def _events(stream: _ResponseStream, stop_event: Optional[threading.Event]) -> Iterator[EventOrError]:
        try:
            values = _iter_json(stream)
            while True:
                if stop_event is not None and stop_event.is_set():
                    return
                try:
                    event = from_api(Event, next(values))
                except _STREAM_ERRORS as exc:
                    if stop_event is not None and stop_event.is_set():
                        return
                    yield EventOrError(error=exc)
                    return
                yield EventOrError(event=event)
        finally:
            stream.close()

    def start_monitor_events(self, callback: EventCallback, error_queue: Any = None, *args: Any) -> None:
        """Call ``callback(event, error_queue, *args)`` for every event, in a background thread."""
        stop = threading.Event()
        self._event_stop = stop

        def run() -> None:
            try:
                events = self.monitor_events(None, stop)
            except (OSError, http.client.HTTPException) as exc:
                _report(error_queue, exc)
                return
            for item in events:
                if item.error is not None:
                    _report(error_queue, item.error)
                    return
                callback(item.event, error_queue, *args)

        threading.Thread(target=run, daemon=True).start()

    def stop_all_monitor_events(self) -> None:
        if self._event_stop is None:
            raise RuntimeError("event monitoring was not started")
        self._event_stop.set()

    # -- stats --------------------------------------------------------

    def start_monitor_stats(
        self, container_id: str, callback: StatsCallback, error_queue: Any = None, *args: Any
    ) -> None:
        """Call ``callback(id, stats, error_queue, *args)`` for every stats sample."""
        self._monitor_stats.set()
        threading.Thread(
            target=self._get_stats, args=(container_id, callback, error_queue, args), daemon=True
        ).start()

    def _get_stats(self, container_id: str, callback: StatsCallback, error_queue: Any, args: tuple) -> None:
        try:
            stream = self._open("GET", f"/{API_VERSION}/containers/{container_id}/stats", None, {})
        except (OSError, http.client.HTTPException) as exc:
            _report(error_queue, exc)
            return
        with stream:
            values = _iter_json(stream)
            while self._monitor_stats.is_set():
                try:
                    value = next(values)
                    stats = None if value is None else from_api(Stats, value)
                except _STREAM_ERRORS as exc:
                    _report(error_queue, exc)
                    return
                callback(container_id, stats, error_queue, *args)

    def stop_all_monitor_stats(self) -> None:
        self._monitor_stats.clear()