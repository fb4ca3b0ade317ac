"""Registry credentials and their header encodings."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _encode_json_line(obj: Any) -> bytes:
    """Compact JSON with HTML-safe escaping, terminated by a newline."""
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return (text + "\n").encode("utf-8")


def _header_value(obj: Any) -> str:
    return base64.urlsafe_b64encode(_encode_json_line(obj)).decode("ascii")


@dataclass
class AuthConfig:
    """Credentials for authenticating with a registry."""

    username: str = ""
    password: str = ""
    email: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Return the JSON fields, leaving out the empty ones."""
        items = (("username", self.username), ("password", self.password), ("email", self.email))
        return {key: value for key, value in items if value}

    def encode(self) -> str:
        """Encode the credentials for the X-Registry-Auth header."""
        return _header_value(self.to_dict())


@dataclass
class ConfigFile:
    """Credentials for several registries, as sent with a build request."""

    configs: Dict[str, AuthConfig] = field(default_factory=dict)
    root_path: str = field(default="", repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON fields; an empty set of configs is left out."""
        if not self.configs:
            return {}
        return {"configs": {key: self.configs[key].to_dict() for key in sorted(self.configs)}}

    def encode(self) -> str:
        """Encode the configuration for the X-Registry-Config header."""
        return _header_value(self.to_dict())