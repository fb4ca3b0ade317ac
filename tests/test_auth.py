import base64

from craftbridge.auth import AuthConfig, ConfigFile


def _decode(value):
    return base64.urlsafe_b64decode(value.encode("ascii"))


def test_auth_encode_full():
    password = "password"
    config = AuthConfig(username="foo", password=password, email="bar@example.com")
    assert _decode(config.encode()) == (
        b'{"username":"foo","password":"password","email":"bar@example.com"}\n'
    )


def test_auth_encode_matches_known_layout():
    password = "password"
    config = AuthConfig(username="foo", password=password, email="bar@example.com")
    encoded = config.encode()
    assert encoded.startswith("eyJ1c2VybmFtZSI6ImZvbyIsInBhc3N3b3JkIjoicGFzc3dvcmQiLCJlbWFpbCI6")
    assert "+" not in encoded and "/" not in encoded


def test_auth_encode_omits_empty_fields():
    assert _decode(AuthConfig(username="foo").encode()) == b'{"username":"foo"}\n'


def test_auth_encode_escapes_html_characters():
    decoded = _decode(AuthConfig(username="a<b>&c").encode())
    assert decoded == b'{"username":"a\\u003cb\\u003e\\u0026c"}\n'


def test_config_file_sorts_registries():
    config = ConfigFile(
        configs={"b.example.com": AuthConfig(username="b"), "a.example.com": AuthConfig(username="a")},
        root_path="/ignored",
    )
    assert _decode(config.encode()) == (
        b'{"configs":{"a.example.com":{"username":"a"},"b.example.com":{"username":"b"}}}\n'
    )


def test_config_file_empty():
    assert _decode(ConfigFile().encode()) == b"{}\n"