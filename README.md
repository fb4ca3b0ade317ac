# craftbridge

craftbridge is a small client for the Docker daemon's remote API, with
helpers for human-readable sizes and durations and a setup command that
installs the docker client binary matching the version of the local daemon.

## Installation

```
pip install .
```

Python 3.10 or later is required. There are no third-party dependencies.

## Installing the matching docker binary

```
craftbridge-setup
```

connects to the daemon at `unix:///var/run/docker.sock`, asks for its
version and, if `/bin/docker-<version>` does not exist yet, downloads the
static Linux x86_64 client for that version from
`craftbridge.installer.download_url(version)` and makes it executable for its
owner only. Progress is logged; on failure the error is logged and the
command exits with status 1.

The same steps are available from Python:

```python
from craftbridge.installer import docker_binary_path, ensure_docker_binary

docker_binary_path("1.9.1")                    # PosixPath('/bin/docker-1.9.1')
ensure_docker_binary("1.9.1", bin_dir="/tmp")  # downloads unless already present
```

`ensure_docker_binary` takes an `opener` argument (by default
`urllib.request.urlopen`) that is called with the URL and must return a
readable response usable as a context manager.

## Using the client library

```python
from craftbridge.client import DockerClient

docker = DockerClient("unix:///var/run/docker.sock", None, 30.0)
print(docker.version().version)
for container in docker.list_containers(True, False, ""):
    print(container.id, container.names)
```

The daemon address may be `unix://<socket path>`, `tcp://host:port`,
`http://...` or `https://...`; `tcp` and an empty scheme become `https` when
an `ssl.SSLContext` is given and `http` otherwise. The timeout bounds only the
opening of a connection, so streams can stay open indefinitely.

`DockerClient` implements the abstract `craftbridge.client.Client` interface:

- containers: `list_containers`, `inspect_container`, `create_container`,
  `start_container`, `stop_container`, `restart_container`, `kill_container`,
  `pause_container`, `unpause_container`, `rename_container`,
  `remove_container`, `container_logs`, `container_changes`, `wait`;
- exec: `exec_create`, `exec_start`, `exec_resize`;
- images: `list_images`, `inspect_image`, `pull_image`, `push_image`,
  `tag_image`, `load_image`, `import_image`, `build_image`, `remove_image`;
- volumes: `list_volumes`, `create_volume`, `remove_volume`;
- networks: `list_networks`, `inspect_network`, `create_network`,
  `connect_network`, `disconnect_network`, `remove_network`;
- daemon: `info`, `version`.

`wait` returns a `concurrent.futures.Future` that resolves to a `WaitResult`
(exit code `-1` and the error if the request failed).

Results are dataclasses from `craftbridge.types` (`Container`,
`ContainerInfo`, `Image`, `Info`, `Stats`, ...). `to_api` turns such objects
into JSON-ready data with the daemon's field names, and `from_api` builds them
back from decoded JSON, matching keys case-insensitively.

### Events and statistics

`monitor_events(options, stop_event)` returns an iterator of `EventOrError`
items; the last item carries the error that ended the stream, and setting the
`threading.Event` passed as `stop_event` ends the iteration.
`start_monitor_events(callback, error_queue, *args)` runs the same loop in a
background thread and calls `callback(event, error_queue, *args)` for each
event; `stop_all_monitor_events()` stops it.

`start_monitor_stats(container_id, callback, error_queue, *args)` calls
`callback(container_id, stats, error_queue, *args)` for every statistics
sample in a background thread until `stop_all_monitor_stats()` is called.
Errors are put on `error_queue` when one is given.

### Errors

Errors are raised as exceptions from `craftbridge.errors`, all derived from
`DockerError`: `NotFoundError` and `ImageNotFoundError` for 404 responses,
`APIError` (with `status_code`, `status` and `message`) for other error
statuses. Errors reported inside the progress stream of a pull or push are
raised as `DockerError`.

### Registry credentials

`craftbridge.auth.AuthConfig` and `ConfigFile` hold registry credentials;
their `encode()` method produces the base64 value sent in the
`X-Registry-Auth` and `X-Registry-Config` headers.

## Size and duration helpers

```python
from datetime import timedelta
from craftbridge.units import bytes_size, human_duration, human_size, ram_in_bytes

human_size(1000)                    # '1 kB'
bytes_size(1024 * 1024)             # '1 MiB'
ram_in_bytes("32Mb")                # 33554432
human_duration(timedelta(hours=3))  # '3 hours'
```

`from_human_size` and `ram_in_bytes` raise `ValueError` for strings they
cannot parse.

## What this package does not do

The package has no long-running bridge process: it does not forward daemon
events or container statistics to a game server, and it offers no HTTP
endpoint for listing containers or running commands on request. Those parts
have to be built on top of the client library.

## Tests

```
pip install ".[test]"
pytest
```