import base64
import io
import json
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, List
from urllib.parse import parse_qs, urlsplit

import pytest

from craftbridge.auth import AuthConfig, ConfigFile
from craftbridge.client import Client, DockerClient
from craftbridge.errors import DockerError, ImageNotFoundError, NotFoundError
from craftbridge.types import BuildImage, NetworkCreate, VolumeCreateRequest

BASE = "/v1.15"

INFO_BODY = """{
 "Containers": 2,
 "Debug": 1,
 "Driver": "aufs",
 "DriverStatus": [["Root Dir", "/mnt/sda1/var/lib/docker/aufs"], ["Dirs", "0"]],
 "ExecutionDriver": "native-0.2",
 "IPv4Forwarding": 1,
 "Images": 1,
 "IndexServerAddress": "https://index.docker.io/v1/",
 "InitPath": "/usr/local/bin/docker",
 "InitSha1": "",
 "KernelVersion": "3.16.4-tinycore64",
 "MemoryLimit": 1,
 "NEventsListener": 0,
 "NFd": 10,
 "NGoroutines": 11,
 "OperatingSystem": "Boot2Docker 1.3.1 (TCL 5.4)",
 "SwapLimit": 1}"""

HAPROXY_PULL = "".join(
    json.dumps(item) + "\n"
    for item in [
        {"status": "Pulling repository mydockerregistry/haproxy"},
        {"status": "Pulling image (latest)", "progressDetail": {}, "id": "abc"},
        {"status": "Download complete", "progressDetail": {}, "id": "abc"},
        {"status": "Status: Downloaded newer image for mydockerregistry/haproxy:latest"},
    ]
)


@dataclass
class Recorded:
    method: str
    path: str
    query: str
    headers: Any
    body: bytes

    @property
    def params(self):
        return parse_qs(self.query, keep_blank_values=True)


def _stream(items):
    return "".join(json.dumps(item) + "\n" for item in items)


def _route(method, path, query, body):
    params = parse_qs(query)
    if method == "GET" and path == BASE + "/info":
        return 200, INFO_BODY
    if method == "GET" and path == BASE + "/version":
        return 200, '{"Version":"1.9.1","ApiVersion":"1.21","Os":"linux"}'
    if method == "POST" and path == BASE + "/images/create":
        name = params["fromImage"][0]
        responses = [{"status": f"Pulling repository mydockerregistry/{name}"}]
        if name == "busybox":
            responses.append({"status": "Status: Image is up to date for mydockerregistry/busybox"})
        elif name == "haproxy":
            return 200, HAPROXY_PULL
        elif name == "ghost":
            return 404, ""
        elif name == "broken":
            return 500, "registry unavailable"
        else:
            message = f"Error: image {name} not found"
            responses.append({"errorDetail": {"message": message}, "error": message})
        return 200, _stream(responses)
    if method == "POST" and path.startswith(BASE + "/images/") and path.endswith("/push"):
        if "bad" in path:
            return 200, _stream([{"status": "Pushing"}, {"error": "denied"}])
        return 200, _stream([{"status": "Pushing"}, {"status": "done"}])
    if method == "POST" and path.startswith(BASE + "/images/") and path.endswith("/tag"):
        return 201, ""
    if method == "GET" and path == BASE + "/images/json":
        return 200, json.dumps([{"Id": "abc", "RepoTags": ["busybox:latest"], "Size": 42}])
    if method == "GET" and path == BASE + "/images/busybox/json":
        return 200, '{"Id":"abc","Os":"linux","Size":10,"Created":"2015-01-01T00:00:00Z"}'
    if method == "GET" and path == BASE + "/images/missing/json":
        return 404, "No such image: missing"
    if method == "DELETE" and path == BASE + "/images/foo":
        return 200, json.dumps([{"Untagged": "foo:latest"}, {"Deleted": "abc"}])
    if method == "POST" and path == BASE + "/images/load":
        return 200, ""
    if method == "POST" and path == "/images/create":
        return 200, '{"status":"ok"}'
    if method == "POST" and path == BASE + "/build":
        return 200, '{"stream":"built"}'
    if method == "GET" and path == BASE + "/volumes":
        return 200, json.dumps({"Volumes": [{"Name": "v1", "Driver": "local", "Mountpoint": "/data/v1"}]})
    if method == "POST" and path == BASE + "/volumes/create":
        request = json.loads(body)
        return 201, json.dumps({"Name": request["Name"], "Driver": request["Driver"], "Mountpoint": "/data/x"})
    if method == "DELETE" and path == BASE + "/volumes/v1":
        return 204, ""
    if method == "GET" and path == BASE + "/networks":
        return 200, json.dumps([{"Name": "bridge", "Id": "b1", "Driver": "bridge"}])
    if method == "GET" and path == BASE + "/networks/net1":
        return 200, json.dumps(
            {
                "Name": "net1",
                "Id": "n1",
                "Scope": "local",
                "Driver": "bridge",
                "IPAM": {"Driver": "default", "Config": [{"Subnet": "172.18.0.0/16"}]},
                "Containers": {"c1": {"EndpointID": "e1", "IPv4Address": "172.18.0.2/16"}},
            }
        )
    if method == "POST" and path == BASE + "/networks/create":
        return 201, '{"Id":"n2","Warning":"careful"}'
    if method == "POST" and path in (BASE + "/networks/n1/connect", BASE + "/networks/n1/disconnect"):
        return 200, ""
    if method == "DELETE" and path == BASE + "/networks/n1":
        return 204, ""
    return 404, ""


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.0"

    def log_message(self, format, *args):
        return

    def _read_body(self):
        if self.headers.get("Transfer-Encoding", "").lower() == "chunked":
            chunks = []
            while True:
                size = int(self.rfile.readline().strip().split(b";")[0], 16)
                if size == 0:
                    self.rfile.readline()
                    break
                chunks.append(self.rfile.read(size))
                self.rfile.readline()
            return b"".join(chunks)
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length)

    def _dispatch(self):
        parts = urlsplit(self.path)
        body = self._read_body()
        self.server.requests.append(Recorded(self.command, parts.path, parts.query, self.headers, body))
        status, payload = _route(self.command, parts.path, parts.query, body)
        data = payload.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _dispatch
    do_POST = _dispatch
    do_DELETE = _dispatch


@pytest.fixture
def server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.requests: List[Recorded] = []
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


@pytest.fixture
def client(server):
    return DockerClient(f"http://127.0.0.1:{server.server_address[1]}")


def test_docker_client_implements_interface(client):
    assert isinstance(client, Client)
    assert client.version().api_version == "1.21"


def test_client_interface_is_abstract():
    with pytest.raises(TypeError):
        Client()


def test_info(client):
    info = client.info()
    assert info.images == 1
    assert info.containers == 2
    assert info.debug == 1
    assert info.driver_status[0] == ["Root Dir", "/mnt/sda1/var/lib/docker/aufs"]


def test_version(client):
    version = client.version()
    assert version.version == "1.9.1"
    assert version.api_version == "1.21"


def test_pull_image(client, server):
    client.pull_image("busybox")
    client.pull_image("haproxy")
    with pytest.raises(DockerError, match="Error: image wrongimg not found"):
        client.pull_image("wrongimg")
    assert server.requests[0].params["fromImage"] == ["busybox"]


def test_pull_image_sends_auth_header(client, server):
    password = "password"
    result = client.pull_image("busybox", AuthConfig(username="user", password=password, email="user@example.com"))
    assert result is None
    header = server.requests[-1].headers["X-Registry-Auth"]
    decoded = json.loads(base64.urlsafe_b64decode(header))
    assert decoded == {"username": "user", "password": "password", "email": "user@example.com"}


def test_pull_image_not_found(client):
    with pytest.raises(NotFoundError):
        client.pull_image("ghost")


def test_pull_image_server_error(client):
    with pytest.raises(DockerError, match="registry unavailable"):
        client.pull_image("broken")


def test_push_image(client, server):
    client.push_image("user/app", "v1")
    request = server.requests[-1]
    assert request.path == BASE + "/images/user%2Fapp/push"
    assert request.query == "tag=v1"
    with pytest.raises(DockerError, match="denied"):
        client.push_image("bad")


def test_tag_image(client, server):
    result = client.tag_image("busybox", "mine", "v2", True)
    assert result is None
    request = server.requests[-1]
    assert request.path == BASE + "/images/busybox/tag"
    assert request.query == "force=1&repo=mine&tag=v2"


def test_list_images(client, server):
    images = client.list_images(True)
    assert [image.id for image in images] == ["abc"]
    assert images[0].repo_tags == ["busybox:latest"]
    assert server.requests[-1].query == "all=1"


def test_inspect_image(client):
    info = client.inspect_image("busybox")
    assert info.id == "abc"
    assert info.created.year == 2015


def test_inspect_missing_image(client):
    with pytest.raises(ImageNotFoundError):
        client.inspect_image("missing")


def test_remove_image(client, server):
    deleted = client.remove_image("foo", True)
    assert [(item.untagged, item.deleted) for item in deleted] == [("foo:latest", ""), ("", "abc")]
    assert server.requests[-1].query == "force=1"


def test_load_image(client, server):
    result = client.load_image(io.BytesIO(b"archive-bytes"))
    assert result is None
    assert server.requests[-1].body == b"archive-bytes"


def test_import_image_from_archive(client, server):
    with client.import_image("", "myrepo", "v1", io.BytesIO(b"tar-data")) as stream:
        assert stream.read() == b'{"status":"ok"}'
    request = server.requests[-1]
    assert request.path == "/images/create"
    assert request.params == {"fromSrc": ["-"], "repo": ["myrepo"], "tag": ["v1"]}
    assert request.body == b"tar-data"


def test_import_image_from_url(client, server):
    with client.import_image("http://example.com/x.tar", "myrepo", "", b"ignored") as stream:
        body = stream.read()
    assert body == b'{"status":"ok"}'
    request = server.requests[-1]
    assert request.params == {"fromSrc": ["http://example.com/x.tar"], "repo": ["myrepo"]}
    assert request.body == b""


def test_build_image(client, server):
    password = "password"
    image = BuildImage(
        repo_name="demo",
        remove=True,
        context=io.BytesIO(b"tarbytes"),
        build_args={"b": "2", "a": "1"},
        config=ConfigFile(configs={"reg": AuthConfig(username="user", password=password)}),
    )
    with client.build_image(image) as stream:
        assert json.loads(stream.read()) == {"stream": "built"}
    request = server.requests[-1]
    params = request.params
    assert params["t"] == ["demo"]
    assert params["rm"] == ["1"]
    assert params["memory"] == ["0"]
    assert params["cpusetcpus"] == [""]
    assert params["buildargs"] == ['{"a":"1","b":"2"}']
    assert "nocache" not in params
    assert request.headers["Content-Type"] == "application/tar"
    config = json.loads(base64.urlsafe_b64decode(request.headers["X-Registry-Config"]))
    assert config["configs"]["reg"]["username"] == "user"
    assert request.body == b"tarbytes"


def test_volumes(client, server):
    volumes = client.list_volumes()
    assert [(v.name, v.mountpoint) for v in volumes] == [("v1", "/data/v1")]
    created = client.create_volume(VolumeCreateRequest(name="data", driver="local"))
    assert (created.name, created.driver) == ("data", "local")
    client.remove_volume("v1")
    assert server.requests[-1].method == "DELETE"
    with pytest.raises(NotFoundError):
        client.remove_volume("nope")


def test_list_networks(client):
    networks = client.list_networks()
    assert [(n.name, n.id) for n in networks] == [("bridge", "b1")]


def test_inspect_network(client):
    network = client.inspect_network("net1")
    assert network.id == "n1"
    assert network.ipam.config[0].subnet == "172.18.0.0/16"
    assert network.containers["c1"].ipv4_address == "172.18.0.2/16"


def test_create_network(client, server):
    response = client.create_network(NetworkCreate(name="net2", driver="bridge"))
    assert (response.id, response.warning) == ("n2", "careful")
    sent = json.loads(server.requests[-1].body)
    assert sent["Name"] == "net2"
    assert sent["Driver"] == "bridge"


def test_connect_and_disconnect_network(client, server):
    assert client.connect_network("n1", "c1") is None
    assert json.loads(server.requests[-1].body) == {"Container": "c1"}
    assert client.disconnect_network("n1", "c1") is None
    assert server.requests[-1].path == BASE + "/networks/n1/disconnect"


def test_remove_network(client, server):
    client.remove_network("n1")
    assert (server.requests[-1].method, server.requests[-1].path) == ("DELETE", BASE + "/networks/n1")
    with pytest.raises(NotFoundError):
        client.remove_network("n9")