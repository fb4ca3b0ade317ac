"""Full daemon client: images, volumes and networks on top of the container API."""

from __future__ import annotations

import abc
import json
from concurrent.futures import Future
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union
from urllib.parse import quote_plus, urlencode

from .auth import AuthConfig
from .base import API_VERSION, ContainerAPI
from .errors import DockerError, NotFoundError
from .types import (
    BuildImage,
    Container,
    ContainerChanges,
    ContainerConfig,
    ContainerInfo,
    EventOrError,
    ExecConfig,
    HostConfig,
    Image,
    ImageDelete,
    ImageInfo,
    Info,
    LogOptions,
    MonitorEventsOptions,
    NetworkConnect,
    NetworkCreate,
    NetworkCreateResponse,
    NetworkDisconnect,
    NetworkResource,
    Version,
    Volume,
    VolumeCreateRequest,
    VolumesListResponse,
    WaitResult,
    from_api,
    to_api,
)

Readable = Union[bytes, bytearray, BinaryIO]


class Client(abc.ABC):
    """Everything a daemon client offers."""

    @abc.abstractmethod
    def info(self) -> Info:
        """Return daemon-wide information."""

    @abc.abstractmethod
    def list_containers(self, all_containers: bool = False, size: bool = False, filters: str = "") -> List[Container]:
        """List containers."""

    @abc.abstractmethod
    def inspect_container(self, container_id: str) -> ContainerInfo:
        """Return details of one container."""

    @abc.abstractmethod
    def inspect_image(self, image_id: str) -> ImageInfo:
        """Return details of one image."""

    @abc.abstractmethod
    def create_container(self, config: Optional[ContainerConfig], name: str = "") -> str:
        """Create a container and return its id."""

    @abc.abstractmethod
    def container_logs(self, container_id: str, options: LogOptions) -> Any:
        """Return the log stream of a container."""

    @abc.abstractmethod
    def container_changes(self, container_id: str) -> List[ContainerChanges]:
        """Return the filesystem changes of a container."""

    @abc.abstractmethod
    def exec_create(self, config: ExecConfig) -> str:
        """Create an exec instance and return its id."""

    @abc.abstractmethod
    def exec_start(self, exec_id: str, config: ExecConfig) -> None:
        """Start an exec instance."""

    @abc.abstractmethod
    def exec_resize(self, exec_id: str, width: int, height: int) -> None:
        """Resize the terminal of an exec instance."""

    @abc.abstractmethod
    def start_container(self, container_id: str, config: Optional[HostConfig] = None) -> None:
        """Start a container."""

    @abc.abstractmethod
    def stop_container(self, container_id: str, timeout: int) -> None:
        """Stop a container."""

    @abc.abstractmethod
    def restart_container(self, container_id: str, timeout: int) -> None:
        """Restart a container."""

    @abc.abstractmethod
    def kill_container(self, container_id: str, signal: str) -> None:
        """Send a signal to a container."""

    @abc.abstractmethod
    def wait(self, container_id: str) -> "Optional[Future[WaitResult]]":
        """Wait for a container to stop."""

    @abc.abstractmethod
    def monitor_events(self, options: Optional[MonitorEventsOptions] = None, stop_event: Any = None) -> Iterator[EventOrError]:
        """Iterate over daemon events."""

    @abc.abstractmethod
    def start_monitor_events(self, callback: Any, error_queue: Any = None, *args: Any) -> None:
        """Deliver daemon events to a callback in the background."""

    @abc.abstractmethod
    def stop_all_monitor_events(self) -> None:
        """Stop delivering daemon events."""

    @abc.abstractmethod
    def start_monitor_stats(self, container_id: str, callback: Any, error_queue: Any = None, *args: Any) -> None:
        """Deliver container stats to a callback in the background."""

    @abc.abstractmethod
    def stop_all_monitor_stats(self) -> None:
        """Stop delivering container stats."""

    @abc.abstractmethod
    def tag_image(self, name_or_id: str, repo: str, tag: str, force: bool = False) -> None:
        """Tag an image into a repository."""

    @abc.abstractmethod
    def version(self) -> Version:
        """Return the daemon version."""

    @abc.abstractmethod
    def pull_image(self, name: str, auth: Optional[AuthConfig] = None) -> None:
        """Pull an image from a registry."""

    @abc.abstractmethod
    def push_image(self, name: str, tag: str = "", auth: Optional[AuthConfig] = None) -> None:
        """Push an image to a registry."""

    @abc.abstractmethod
    def load_image(self, reader: Readable) -> None:
        """Load an image from a tar archive."""

    @abc.abstractmethod
    def remove_container(self, container_id: str, force: bool = False, volumes: bool = False) -> None:
        """Remove a container."""

    @abc.abstractmethod
    def list_images(self, all_images: bool = False) -> List[Image]:
        """List images."""

    @abc.abstractmethod
    def remove_image(self, name: str, force: bool = False) -> List[ImageDelete]:
        """Remove an image."""

    @abc.abstractmethod
    def pause_container(self, container_id: str) -> None:
        """Pause a container."""

    @abc.abstractmethod
    def unpause_container(self, container_id: str) -> None:
        """Unpause a container."""

    @abc.abstractmethod
    def rename_container(self, old_name: str, new_name: str) -> None:
        """Rename a container."""

    @abc.abstractmethod
    def import_image(self, source: str, repository: str, tag: str, tar: Optional[Readable]) -> Any:
        """Import an image from a URL or a tar archive."""

    @abc.abstractmethod
    def build_image(self, image: BuildImage) -> Any:
        """Build an image and return the build output stream."""

    @abc.abstractmethod
    def list_volumes(self) -> List[Volume]:
        """List volumes."""

    @abc.abstractmethod
    def remove_volume(self, name: str) -> None:
        """Remove a volume."""

    @abc.abstractmethod
    def create_volume(self, request: VolumeCreateRequest) -> Volume:
        """Create a volume."""

    @abc.abstractmethod
    def list_networks(self, filters: str = "") -> List[NetworkResource]:
        """List networks."""

    @abc.abstractmethod
    def inspect_network(self, network_id: str) -> NetworkResource:
        """Return details of one network."""

    @abc.abstractmethod
    def create_network(self, config: NetworkCreate) -> NetworkCreateResponse:
        """Create a network."""

    @abc.abstractmethod
    def connect_network(self, network_id: str, container: str) -> None:
        """Connect a container to a network."""

    @abc.abstractmethod
    def disconnect_network(self, network_id: str, container: str) -> None:
        """Disconnect a container from a network."""

    @abc.abstractmethod
    def remove_network(self, network_id: str) -> None:
        """Remove a network."""


def _json_body(obj: Any) -> bytes:
    return json.dumps(to_api(obj), separators=(",", ":")).encode("utf-8")


def _read_all(reader: Readable) -> bytes:
    if isinstance(reader, (bytes, bytearray)):
        return bytes(reader)
    return reader.read()


def _final_status(data: bytes) -> Dict[str, Any]:
    """Merge every JSON object of a progress stream, as the daemon reports it."""
    text = data.decode("utf-8", "replace")
    decoder = json.JSONDecoder()
    final: Dict[str, Any] = {}
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return final
        try:
            value, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as exc:
            raise DockerError(f"invalid progress stream: {exc}") from exc
        if value is None:
            final = {}
        elif isinstance(value, dict):
            final.update(value)
        else:
            raise DockerError(f"unexpected progress item: {value!r}")


def _raise_on_error(final: Dict[str, Any]) -> None:
    if "error" in final:
        raise DockerError(str(final["error"]))


class DockerClient(ContainerAPI, Client):
    """Client for the daemon's remote API."""

    def _get_json(self, path: str) -> Any:
        return json.loads(self.do_request("GET", path))

    def info(self) -> Info:
        return from_api(Info, self._get_json(f"/{API_VERSION}/info"))

    def version(self) -> Version:
        return from_api(Version, self._get_json(f"/{API_VERSION}/version"))

    def tag_image(self, name_or_id: str, repo: str, tag: str, force: bool = False) -> None:
        params = {"repo": repo, "tag": tag}
        if force:
            params["force"] = "1"
        query = urlencode(sorted(params.items()))
        self.do_request("POST", f"/{API_VERSION}/images/{name_or_id}/tag?{query}")

    def push_image(self, name: str, tag: str = "", auth: Optional[AuthConfig] = None) -> None:
        """Push an image; an error reported in the progress stream is raised."""
        query = urlencode({"tag": tag}) if tag else ""
        uri = f"/{API_VERSION}/images/{quote_plus(name)}/push?{query}"
        headers = {"X-Registry-Auth": auth.encode()} if auth is not None else {}
        with self._open("POST", uri, b"", headers) as stream:
            data = stream.read()
        _raise_on_error(_final_status(data))

    def pull_image(self, name: str, auth: Optional[AuthConfig] = None) -> None:
        """Pull an image; an error reported in the progress stream is raised."""
        uri = f"/{API_VERSION}/images/create?{urlencode({'fromImage': name})}"
        headers = {"X-Registry-Auth": auth.encode()} if auth is not None else {}
        with self._open("POST", uri, b"", headers) as stream:
            status = stream.status
            data = b"" if status == 404 else stream.read()
        if status == 404:
            raise NotFoundError()
        if status >= 400:
            raise DockerError(data.decode("utf-8", "replace"))
        _raise_on_error(_final_status(data))

    def inspect_image(self, image_id: str) -> ImageInfo:
        return from_api(ImageInfo, self._get_json(f"/{API_VERSION}/images/{image_id}/json"))

    def load_image(self, reader: Readable) -> None:
        self.do_request("POST", f"/{API_VERSION}/images/load", _read_all(reader))

    def list_images(self, all_images: bool = False) -> List[Image]:
        data = self._get_json(f"/{API_VERSION}/images/json?all={1 if all_images else 0}")
        return from_api(List[Image], data) or []

    def remove_image(self, name: str, force: bool = False) -> List[ImageDelete]:
        data = self.do_request("DELETE", f"/{API_VERSION}/images/{name}?force={1 if force else 0}")
        return from_api(List[ImageDelete], json.loads(data)) or []

    def import_image(self, source: str, repository: str, tag: str, tar: Optional[Readable]) -> Any:
        """Import an image; with no ``source`` the archive is read from ``tar``."""
        from_src = source or "-"
        params = {"fromSrc": from_src, "repo": repository}
        if tag:
            params["tag"] = tag
        body = tar if from_src == "-" else None
        return self.do_stream_request("POST", "/images/create?" + urlencode(sorted(params.items())), body)

    def build_image(self, image: BuildImage) -> Any:
        """Start a build and return the stream of its output."""
        params: Dict[str, str] = {}
        if image.dockerfile_name:
            params["dockerfile"] = image.dockerfile_name
        if image.repo_name:
            params["t"] = image.repo_name
        if image.remote_url:
            params["remote"] = image.remote_url
        if image.no_cache:
            params["nocache"] = "1"
        if image.pull:
            params["pull"] = "1"
        params["rm"] = "1" if image.remove else "0"
        if image.force_remove:
            params["forcerm"] = "1"
        if image.suppress_output:
            params["q"] = "1"
        params["memory"] = str(image.memory)
        params["memswap"] = str(image.memory_swap)
        params["cpushares"] = str(image.cpu_shares)
        params["cpuperiod"] = str(image.cpu_period)
        params["cpuquota"] = str(image.cpu_quota)
        params["cpusetcpus"] = image.cpu_set_cpus
        params["cpusetmems"] = image.cpu_set_mems
        params["cgroupparent"] = image.cgroup_parent
        if image.build_args is not None:
            params["buildargs"] = json.dumps(image.build_args, sort_keys=True, separators=(",", ":"))
        headers: Dict[str, str] = {}
        if image.config is not None:
            headers["X-Registry-Config"] = image.config.encode()
        if image.context is not None:
            headers["Content-Type"] = "application/tar"
        uri = f"/{API_VERSION}/build?{urlencode(sorted(params.items()))}"
        return self.do_stream_request("POST", uri, image.context, headers)

    def list_volumes(self) -> List[Volume]:
        response = from_api(VolumesListResponse, self._get_json(f"/{API_VERSION}/volumes"))
        return response.volumes or []

    def remove_volume(self, name: str) -> None:
        self.do_request("DELETE", f"/{API_VERSION}/volumes/{name}")

    def create_volume(self, request: VolumeCreateRequest) -> Volume:
        data = self.do_request("POST", f"/{API_VERSION}/volumes/create", _json_body(request))
        return from_api(Volume, json.loads(data))

    def list_networks(self, filters: str = "") -> List[NetworkResource]:
        uri = f"/{API_VERSION}/networks"
        if filters:
            uri += "&filters=" + filters
        return from_api(List[NetworkResource], self._get_json(uri)) or []

    def inspect_network(self, network_id: str) -> NetworkResource:
        return from_api(NetworkResource, self._get_json(f"/{API_VERSION}/networks/{network_id}"))

    def create_network(self, config: NetworkCreate) -> NetworkCreateResponse:
        """Create a network; an undecodable answer yields an empty response."""
        data = self.do_request("POST", f"/{API_VERSION}/networks/create", _json_body(config))
        try:
            return from_api(NetworkCreateResponse, json.loads(data))
        except (ValueError, TypeError):
            return NetworkCreateResponse()

    def connect_network(self, network_id: str, container: str) -> None:
        body = _json_body(NetworkConnect(container=container))
        self.do_request("POST", f"/{API_VERSION}/networks/{network_id}/connect", body)

    def disconnect_network(self, network_id: str, container: str) -> None:
        body = _json_body(NetworkDisconnect(container=container))
        self.do_request("POST", f"/{API_VERSION}/networks/{network_id}/disconnect", body)

    def remove_network(self, network_id: str) -> None:
        self.do_request("DELETE", f"/{API_VERSION}/networks/{network_id}")