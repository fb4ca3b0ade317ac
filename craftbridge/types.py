"""Data structures exchanged with the container daemon, and their JSON mapping."""

import dataclasses
import re
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timedelta, timezone
from typing import (
    Any,
    BinaryIO,
    Dict,
    List,
    Mapping,
    Optional,
    Union,
    get_args,
    get_origin,
)

from .auth import ConfigFile
from .units import human_duration

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def _api(name: str, default: Any = dataclasses.MISSING, *, factory: Any = None, omitempty: bool = False) -> Any:
    """Declare a field carried in JSON under ``name``."""
    metadata = {"api": name, "omitempty": omitempty}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def parse_time(text: str) -> datetime:
    """Parse an RFC 3339 timestamp, keeping at most microsecond precision."""
    match = _TIME_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )


def format_time(moment: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fraction zeros dropped."""
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = int(abs(offset).total_seconds()) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _as_aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


@dataclass
class DeviceMapping:
    path_on_host: str = _api("PathOnHost", "")
    path_in_container: str = _api("PathInContainer", "")
    cgroup_permissions: str = _api("CgroupPermissions", "")


@dataclass
class RestartPolicy:
    name: str = _api("Name", "")
    maximum_retry_count: int = _api("MaximumRetryCount", 0)


@dataclass
class PortBinding:
    host_ip: str = _api("HostIp", "")
    host_port: str = _api("HostPort", "")


@dataclass
class Ulimit:
    name: str = _api("name", "")
    soft: int = _api("soft", 0)
    hard: int = _api("hard", 0)


@dataclass
class LogConfig:
    type: str = _api("type", "")
    config: Optional[Dict[str, str]] = _api("config", None)


@dataclass
class HostConfig:
    binds: Optional[List[str]] = _api("Binds", None)
    container_id_file: str = _api("ContainerIDFile", "")
    lxc_conf: Optional[List[Dict[str, str]]] = _api("LxcConf", None)
    memory: int = _api("Memory", 0)
    memory_reservation: int = _api("MemoryReservation", 0)
    memory_swap: int = _api("MemorySwap", 0)
    kernel_memory: int = _api("KernelMemory", 0)
    cpu_shares: int = _api("CpuShares", 0)
    cpu_period: int = _api("CpuPeriod", 0)
    cpuset_cpus: str = _api("CpusetCpus", "")
    cpuset_mems: str = _api("CpusetMems", "")
    cpu_quota: int = _api("CpuQuota", 0)
    blkio_weight: int = _api("BlkioWeight", 0)
    oom_kill_disable: bool = _api("OomKillDisable", False)
    memory_swappiness: int = _api("MemorySwappiness", 0)
    privileged: bool = _api("Privileged", False)
    port_bindings: Optional[Dict[str, List[PortBinding]]] = _api("PortBindings", None)
    links: Optional[List[str]] = _api("Links", None)
    publish_all_ports: bool = _api("PublishAllPorts", False)
    dns: Optional[List[str]] = _api("Dns", None)
    dns_options: Optional[List[str]] = _api("DNSOptions", None)
    dns_search: Optional[List[str]] = _api("DnsSearch", None)
    extra_hosts: Optional[List[str]] = _api("ExtraHosts", None)
    volumes_from: Optional[List[str]] = _api("VolumesFrom", None)
    devices: Optional[List[DeviceMapping]] = _api("Devices", None)
    network_mode: str = _api("NetworkMode", "")
    ipc_mode: str = _api("IpcMode", "")
    pid_mode: str = _api("PidMode", "")
    uts_mode: str = _api("UTSMode", "")
    cap_add: Optional[List[str]] = _api("CapAdd", None)
    cap_drop: Optional[List[str]] = _api("CapDrop", None)
    group_add: Optional[List[str]] = _api("GroupAdd", None)
    restart_policy: RestartPolicy = _api("RestartPolicy", factory=RestartPolicy)
    security_opt: Optional[List[str]] = _api("SecurityOpt", None)
    readonly_rootfs: bool = _api("ReadonlyRootfs", False)
    ulimits: Optional[List[Ulimit]] = _api("Ulimits", None)
    log_config: LogConfig = _api("LogConfig", factory=LogConfig)
    cgroup_parent: str = _api("CgroupParent", "")
    console_size: List[int] = _api("ConsoleSize", factory=lambda: [0, 0])
    volume_driver: str = _api("VolumeDriver", "")


@dataclass
class ContainerConfig:
    hostname: str = _api("Hostname", "")
    domainname: str = _api("Domainname", "")
    user: str = _api("User", "")
    attach_stdin: bool = _api("AttachStdin", False)
    attach_stdout: bool = _api("AttachStdout", False)
    attach_stderr: bool = _api("AttachStderr", False)
    exposed_ports: Optional[Dict[str, Dict[str, Any]]] = _api("ExposedPorts", None)
    tty: bool = _api("Tty", False)
    open_stdin: bool = _api("OpenStdin", False)
    stdin_once: bool = _api("StdinOnce", False)
    env: Optional[List[str]] = _api("Env", None)
    cmd: Optional[List[str]] = _api("Cmd", None)
    image: str = _api("Image", "")
    volumes: Optional[Dict[str, Dict[str, Any]]] = _api("Volumes", None)
    working_dir: str = _api("WorkingDir", "")
    entrypoint: Optional[List[str]] = _api("Entrypoint", None)
    network_disabled: bool = _api("NetworkDisabled", False)
    mac_address: str = _api("MacAddress", "")
    on_build: Optional[List[str]] = _api("OnBuild", None)
    labels: Optional[Dict[str, str]] = _api("Labels", None)
    stop_signal: str = _api("StopSignal", "")
    volume_driver: str = _api("VolumeDriver", "")
    memory: int = _api("Memory", 0)
    memory_swap: int = _api("MemorySwap", 0)
    cpu_shares: int = _api("CpuShares", 0)
    cpuset: str = _api("Cpuset", "")
    port_specs: Optional[List[str]] = _api("PortSpecs", None)
    host_config: HostConfig = _api("HostConfig", factory=HostConfig)


@dataclass
class ExecConfig:
    attach_stdin: bool = _api("AttachStdin", False)
    attach_stdout: bool = _api("AttachStdout", False)
    attach_stderr: bool = _api("AttachStderr", False)
    tty: bool = _api("Tty", False)
    cmd: Optional[List[str]] = _api("Cmd", None)
    container: str = _api("Container", "")
    detach: bool = _api("Detach", False)


@dataclass
class LogOptions:
    follow: bool = _api("Follow", False)
    stdout: bool = _api("Stdout", False)
    stderr: bool = _api("Stderr", False)
    timestamps: bool = _api("Timestamps", False)
    tail: int = _api("Tail", 0)


@dataclass
class MonitorEventsFilters:
    event: str = _api("Event", "", omitempty=True)
    image: str = _api("Image", "", omitempty=True)
    container: str = _api("Container", "", omitempty=True)


@dataclass
class MonitorEventsOptions:
    since: int = _api("Since", 0)
    until: int = _api("Until", 0)
    filters: Optional[MonitorEventsFilters] = _api("Filters", None, omitempty=True)


@dataclass
class State:
    running: bool = _api("Running", False)
    paused: bool = _api("Paused", False)
    restarting: bool = _api("Restarting", False)
    oom_killed: bool = _api("OOMKilled", False)
    dead: bool = _api("Dead", False)
    pid: int = _api("Pid", 0)
    exit_code: int = _api("ExitCode", 0)
    error: str = _api("Error", "")
    started_at: datetime = _api("StartedAt", ZERO_TIME)
    finished_at: datetime = _api("FinishedAt", ZERO_TIME)
    ghost: bool = _api("Ghost", False)

    def describe(self, now: Optional[datetime] = None) -> str:
        """Return a human-readable description such as "Up 3 minutes"."""
        current = _as_aware(now) if now is not None else datetime.now(timezone.utc)
        if self.running:
            up_for = human_duration(current - _as_aware(self.started_at))
            if self.paused:
                return f"Up {up_for} (Paused)"
            if self.restarting:
                ago = human_duration(current - _as_aware(self.finished_at))
                return f"Restarting ({self.exit_code}) {ago} ago"
            return f"Up {up_for}"
        if self.dead:
            return "Dead"
        if _as_aware(self.finished_at) == ZERO_TIME:
            return ""
        ago = human_duration(current - _as_aware(self.finished_at))
        return f"Exited ({self.exit_code}) {ago} ago"

    def state_string(self) -> str:
        """Return a single word describing the state."""
        if self.running:
            if self.paused:
                return "paused"
            if self.restarting:
                return "restarting"
            return "running"
        if self.dead:
            return "dead"
        return "exited"


@dataclass
class ImageInfo:
    architecture: str = _api("Architecture", "")
    author: str = _api("Author", "")
    comment: str = _api("Comment", "")
    config: Optional[ContainerConfig] = _api("Config", None)
    container: str = _api("Container", "")
    container_config: Optional[ContainerConfig] = _api("ContainerConfig", None)
    created: datetime = _api("Created", ZERO_TIME)
    docker_version: str = _api("DockerVersion", "")
    id: str = _api("Id", "")
    os: str = _api("Os", "")
    parent: str = _api("Parent", "")
    size: int = _api("Size", 0)
    virtual_size: int = _api("VirtualSize", 0)


@dataclass
class NetworkSettings:
    ip_address: str = _api("IpAddress", "")
    ip_prefix_len: int = _api("IpPrefixLen", 0)
    gateway: str = _api("Gateway", "")
    bridge: str = _api("Bridge", "")
    ports: Optional[Dict[str, List[PortBinding]]] = _api("Ports", None)


@dataclass
class ContainerInfo:
    id: str = _api("Id", "")
    created: str = _api("Created", "")
    path: str = _api("Path", "")
    name: str = _api("Name", "")
    args: Optional[List[str]] = _api("Args", None)
    exec_ids: Optional[List[str]] = _api("ExecIDs", None)
    config: Optional[ContainerConfig] = _api("Config", None)
    state: Optional[State] = _api("State", None)
    image: str = _api("Image", "")
    network_settings: NetworkSettings = _api("NetworkSettings", factory=NetworkSettings)
    sys_init_path: str = _api("SysInitPath", "")
    resolv_conf_path: str = _api("ResolvConfPath", "")
    volumes: Optional[Dict[str, str]] = _api("Volumes", None)
    host_config: Optional[HostConfig] = _api("HostConfig", None)


@dataclass
class ContainerChanges:
    path: str = _api("Path", "")
    kind: int = _api("Kind", 0)


@dataclass
class Port:
    ip: str = _api("IP", "")
    private_port: int = _api("PrivatePort", 0)
    public_port: int = _api("PublicPort", 0)
    type: str = _api("Type", "")


@dataclass
class Container:
    id: str = _api("Id", "")
    names: Optional[List[str]] = _api("Names", None)
    image: str = _api("Image", "")
    command: str = _api("Command", "")
    created: int = _api("Created", 0)
    status: str = _api("Status", "")
    ports: Optional[List[Port]] = _api("Ports", None)
    size_rw: int = _api("SizeRw", 0)
    size_root_fs: int = _api("SizeRootFs", 0)
    labels: Optional[Dict[str, str]] = _api("Labels", None)


@dataclass
class Event:
    id: str = _api("Id", "")
    status: str = _api("Status", "")
    from_: str = _api("From", "")
    time: int = _api("Time", 0)


@dataclass
class Version:
    api_version: str = _api("ApiVersion", "")
    arch: str = _api("Arch", "")
    git_commit: str = _api("GitCommit", "")
    go_version: str = _api("GoVersion", "")
    kernel_version: str = _api("KernelVersion", "")
    os: str = _api("Os", "")
    version: str = _api("Version", "")


@dataclass
class RespContainersCreate:
    id: str = _api("Id", "")
    warnings: Optional[List[str]] = _api("Warnings", None)


@dataclass
class Image:
    created: int = _api("Created", 0)
    id: str = _api("Id", "")
    labels: Optional[Dict[str, str]] = _api("Labels", None)
    parent_id: str = _api("ParentId", "")
    repo_digests: Optional[List[str]] = _api("RepoDigests", None)
    repo_tags: Optional[List[str]] = _api("RepoTags", None)
    size: int = _api("Size", 0)
    virtual_size: int = _api("VirtualSize", 0)


@dataclass
class Info:
    """Daemon information; some flags are numbers or booleans depending on the daemon."""

    id: str = _api("ID", "")
    containers: int = _api("Containers", 0)
    driver: str = _api("Driver", "")
    driver_status: Optional[List[List[str]]] = _api("DriverStatus", None)
    execution_driver: str = _api("ExecutionDriver", "")
    images: int = _api("Images", 0)
    kernel_version: str = _api("KernelVersion", "")
    operating_system: str = _api("OperatingSystem", "")
    ncpu: int = _api("NCPU", 0)
    mem_total: int = _api("MemTotal", 0)
    name: str = _api("Name", "")
    labels: Optional[List[str]] = _api("Labels", None)
    debug: Any = _api("Debug", None)
    nfd: int = _api("NFd", 0)
    ngoroutines: int = _api("NGoroutines", 0)
    system_time: str = _api("SystemTime", "")
    nevents_listener: int = _api("NEventsListener", 0)
    init_path: str = _api("InitPath", "")
    init_sha1: str = _api("InitSha1", "")
    index_server_address: str = _api("IndexServerAddress", "")
    memory_limit: Any = _api("MemoryLimit", None)
    swap_limit: Any = _api("SwapLimit", None)
    ipv4_forwarding: Any = _api("IPv4Forwarding", None)
    bridge_nf_iptables: bool = _api("BridgeNfIptables", False)
    bridge_nf_ip6tables: bool = _api("BridgeNfIp6tables", False)
    docker_root_dir: str = _api("DockerRootDir", "")
    http_proxy: str = _api("HttpProxy", "")
    https_proxy: str = _api("HttpsProxy", "")
    no_proxy: str = _api("NoProxy", "")


@dataclass
class ImageDelete:
    deleted: str = _api("Deleted", "")
    untagged: str = _api("Untagged", "")


@dataclass
class EventOrError:
    """An event from the event stream, or the error that ended it."""

    event: Event = field(default_factory=Event)
    error: Optional[BaseException] = None


@dataclass
class WaitResult:
    exit_code: int = 0
    error: Optional[BaseException] = None


@dataclass
class ThrottlingData:
    periods: int = _api("periods", 0)
    throttled_periods: int = _api("throttled_periods", 0)
    throttled_time: int = _api("throttled_time", 0)


@dataclass
class CpuUsage:
    total_usage: int = _api("total_usage", 0)
    percpu_usage: Optional[List[int]] = _api("percpu_usage", None)
    usage_in_kernelmode: int = _api("usage_in_kernelmode", 0)
    usage_in_usermode: int = _api("usage_in_usermode", 0)


@dataclass
class CpuStats:
    cpu_usage: CpuUsage = _api("cpu_usage", factory=CpuUsage)
    system_usage: int = _api("system_cpu_usage", 0)
    throttling_data: ThrottlingData = _api("throttling_data", factory=ThrottlingData, omitempty=True)


@dataclass
class NetworkStats:
    rx_bytes: int = _api("rx_bytes", 0)
    rx_packets: int = _api("rx_packets", 0)
    rx_errors: int = _api("rx_errors", 0)
    rx_dropped: int = _api("rx_dropped", 0)
    tx_bytes: int = _api("tx_bytes", 0)
    tx_packets: int = _api("tx_packets", 0)
    tx_errors: int = _api("tx_errors", 0)
    tx_dropped: int = _api("tx_dropped", 0)


@dataclass
class MemoryStats:
    usage: int = _api("usage", 0)
    max_usage: int = _api("max_usage", 0)
    stats: Optional[Dict[str, int]] = _api("stats", None)
    failcnt: int = _api("failcnt", 0)
    limit: int = _api("limit", 0)


@dataclass
class BlkioStatEntry:
    major: int = _api("major", 0)
    minor: int = _api("minor", 0)
    op: str = _api("op", "")
    value: int = _api("value", 0)


@dataclass
class BlkioStats:
    io_service_bytes_recursive: Optional[List[BlkioStatEntry]] = _api("io_service_bytes_recursive", None)
    io_serviced_recursive: Optional[List[BlkioStatEntry]] = _api("io_serviced_recursive", None)
    io_queue_recursive: Optional[List[BlkioStatEntry]] = _api("io_queue_recursive", None)
    io_service_time_recursive: Optional[List[BlkioStatEntry]] = _api("io_service_time_recursive", None)
    io_wait_time_recursive: Optional[List[BlkioStatEntry]] = _api("io_wait_time_recursive", None)
    io_merged_recursive: Optional[List[BlkioStatEntry]] = _api("io_merged_recursive", None)
    io_time_recursive: Optional[List[BlkioStatEntry]] = _api("io_time_recursive", None)
    sectors_recursive: Optional[List[BlkioStatEntry]] = _api("sectors_recursive", None)


@dataclass
class Stats:
    read: datetime = _api("read", ZERO_TIME)
    network_stats: NetworkStats = _api("network", factory=NetworkStats, omitempty=True)
    cpu_stats: CpuStats = _api("cpu_stats", factory=CpuStats, omitempty=True)
    memory_stats: MemoryStats = _api("memory_stats", factory=MemoryStats, omitempty=True)
    blkio_stats: BlkioStats = _api("blkio_stats", factory=BlkioStats, omitempty=True)


@dataclass
class BuildImage:
    """Parameters of an image build; the build context is streamed, not serialised."""

    config: Optional[ConfigFile] = None
    dockerfile_name: str = _api("DockerfileName", "")
    context: Optional[BinaryIO] = None
    remote_url: str = _api("RemoteURL", "")
    repo_name: str = _api("RepoName", "")
    suppress_output: bool = _api("SuppressOutput", False)
    no_cache: bool = _api("NoCache", False)
    remove: bool = _api("Remove", False)
    force_remove: bool = _api("ForceRemove", False)
    pull: bool = _api("Pull", False)
    memory: int = _api("Memory", 0)
    memory_swap: int = _api("MemorySwap", 0)
    cpu_shares: int = _api("CpuShares", 0)
    cpu_period: int = _api("CpuPeriod", 0)
    cpu_quota: int = _api("CpuQuota", 0)
    cpu_set_cpus: str = _api("CpuSetCpus", "")
    cpu_set_mems: str = _api("CpuSetMems", "")
    cgroup_parent: str = _api("CgroupParent", "")
    build_args: Optional[Dict[str, str]] = _api("BuildArgs", None)


@dataclass
class Volume:
    name: str = _api("Name", "")
    driver: str = _api("Driver", "")
    mountpoint: str = _api("Mountpoint", "")


@dataclass
class VolumesListResponse:
    volumes: Optional[List[Volume]] = _api("Volumes", None)


@dataclass
class VolumeCreateRequest:
    name: str = _api("Name", "")
    driver: str = _api("Driver", "")
    driver_opts: Optional[Dict[str, str]] = _api("DriverOpts", None)


@dataclass
class IPAMConfig:
    subnet: str = _api("Subnet", "", omitempty=True)
    ip_range: str = _api("IPRange", "", omitempty=True)
    gateway: str = _api("Gateway", "", omitempty=True)
    aux_address: Optional[Dict[str, str]] = _api("AuxiliaryAddresses", None, omitempty=True)


@dataclass
class IPAM:
    driver: str = _api("Driver", "")
    config: Optional[List[IPAMConfig]] = _api("Config", None)


@dataclass
class EndpointResource:
    endpoint_id: str = _api("EndpointID", "")
    mac_address: str = _api("MacAddress", "")
    ipv4_address: str = _api("IPv4Address", "")
    ipv6_address: str = _api("IPv6Address", "")


@dataclass
class NetworkResource:
    name: str = _api("Name", "")
    id: str = _api("Id", "")
    scope: str = _api("Scope", "")
    driver: str = _api("Driver", "")
    ipam: IPAM = _api("IPAM", factory=IPAM)
    containers: Optional[Dict[str, EndpointResource]] = _api("Containers", None)


@dataclass
class NetworkCreate:
    name: str = _api("Name", "")
    check_duplicate: bool = _api("CheckDuplicate", False)
    driver: str = _api("Driver", "")
    ipam: IPAM = _api("IPAM", factory=IPAM)


@dataclass
class NetworkCreateResponse:
    id: str = _api("Id", "")
    warning: str = _api("Warning", "")


@dataclass
class NetworkConnect:
    container: str = _api("Container", "")


@dataclass
class NetworkDisconnect:
    container: str = _api("Container", "")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str, list, tuple, dict)):
        return not value
    return False


def to_api(obj: Any) -> Any:
    """Convert a value into plain JSON-ready data using the daemon's field names."""
    if is_dataclass(obj) and not isinstance(obj, type):
        to_dict = getattr(obj, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        result: Dict[str, Any] = {}
        for spec in fields(obj):
            name = spec.metadata.get("api")
            if name is None:
                continue
            value = getattr(obj, spec.name)
            if spec.metadata.get("omitempty") and _is_empty(value):
                continue
            result[name] = to_api(value)
        return result
    if isinstance(obj, datetime):
        return format_time(obj)
    if isinstance(obj, Mapping):
        return {str(key): to_api(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_api(value) for value in obj]
    return obj


def _decode_dataclass(cls: type, data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise TypeError(f"cannot decode {type(data).__name__} into {cls.__name__}")
    lowered: Dict[str, Any] = {}
    for key, value in data.items():
        lowered.setdefault(str(key).lower(), value)
    kwargs: Dict[str, Any] = {}
    for spec in fields(cls):
        name = spec.metadata.get("api")
        if name is None:
            continue
        if name in data:
            value = data[name]
        elif name.lower() in lowered:
            value = lowered[name.lower()]
        else:
            continue
        if value is None:
            continue
        kwargs[spec.name] = _decode(spec.type, value)
    return cls(**kwargs)


def _decode(tp: Any, value: Any) -> Any:
    if tp is Any:
        return value
    origin = get_origin(tp)
    if origin is Union:
        if value is None:
            return None
        members = [arg for arg in get_args(tp) if arg is not type(None)]
        return _decode(members[0], value)
    if value is None:
        return None
    if origin is list:
        if not isinstance(value, list):
            raise TypeError(f"expected a JSON array, got {type(value).__name__}")
        (item_type,) = get_args(tp) or (Any,)
        return [_decode(item_type, item) for item in value]
    if origin is dict:
        if not isinstance(value, Mapping):
            raise TypeError(f"expected a JSON object, got {type(value).__name__}")
        _, value_type = get_args(tp) or (str, Any)
        return {str(key): _decode(value_type, item) for key, item in value.items()}
    if isinstance(tp, type) and is_dataclass(tp):
        return _decode_dataclass(tp, value)
    if tp is datetime:
        if not isinstance(value, str):
            raise TypeError(f"expected a timestamp string, got {type(value).__name__}")
        return parse_time(value)
    if tp is bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected a boolean, got {type(value).__name__}")
        return value
    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an integer, got {value!r}")
        return value
    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected a number, got {value!r}")
        return float(value)
    if tp is str:
        if not isinstance(value, str):
            raise TypeError(f"expected a string, got {type(value).__name__}")
        return value
    return value


def from_api(cls: Any, data: Any) -> Any:
    """Build ``cls`` (a dataclass or a typing form such as ``List[Container]``) from JSON data.

    Keys match field names case-insensitively; unknown keys are ignored.
    """
    if isinstance(cls, type) and is_dataclass(cls):
        return _decode_dataclass(cls, data)
    return _decode(cls, data)