"""
Gateway configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import Field, field_validator

from fcgigate.common.core.config import BaseAppConfig

DEFAULT_STATIC_EXTENSIONS = [
    ".js",
    ".css",
    ".png",
    ".jpeg",
    ".jpg",
    ".gif",
    ".ico",
    ".swf",
    ".flv",
    ".pdf",
    ".zip",
]


@dataclass(frozen=True)
class UpstreamAddress:
    """
    Address of the FastCGI upstream: either a TCP endpoint or a domain socket.
    """

    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None

    @property
    def is_unix(self) -> bool:
        return self.path is not None

    def __str__(self) -> str:
        if self.is_unix:
            return f"unix:{self.path}"
        return f"{self.host}:{self.port}"


def parse_upstream_address(value: str) -> UpstreamAddress:
    """
    Parse an upstream address.

    Accepted forms: "host:port", "tcp://host:port", "unix:/path/to.sock",
    "unix:///path/to.sock" and a bare absolute socket path.
    """
    value = value.strip()
    if value.startswith("unix:"):
        path = value[len("unix:") :]
        if path.startswith("//"):
            path = path[2:]
        if not path:
            raise ValueError(f"Missing socket path in upstream address: {value!r}")
        return UpstreamAddress(path=path)
    if value.startswith("/"):
        return UpstreamAddress(path=value)

    if value.startswith("tcp://"):
        value = value[len("tcp://") :]
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid upstream address (expected host:port): {value!r}")
    # [::1]:9000
    host = host.strip("[]") or "127.0.0.1"
    return UpstreamAddress(host=host, port=int(port))


def port_of_bind_addr(bind_addr: str) -> str:
    """Extract the port part of a listen address such as "0.0.0.0:8080" or ":80"."""
    _, sep, port = bind_addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid bind address: {bind_addr!r}")
    return port


class GatewayConfig(BaseAppConfig):
    """
    Configuration management for the Gateway service.
    """

    # Server settings
    UVICORN_WORKERS: int = Field(default=1, description="Number of worker processes")
    UVICORN_BIND_ADDR: str = Field(default="0.0.0.0:8080", description="Listen address")
    SERVER_PORT: Optional[str] = Field(
        default=None, description="Public port reported to scripts (defaults to the bind port)"
    )

    # Document root settings
    WEB_ROOT: str = Field(default="/app/public", description="Web root location")
    INDEX_FILE: str = Field(default="index.php", description="Index file")
    STATIC_EXTENSIONS: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STATIC_EXTENSIONS),
        description="Extensions served directly from disk",
    )
    SCRIPT_EXTENSIONS: List[str] = Field(
        default_factory=lambda: [".php"], description="Extensions executed through FastCGI"
    )

    # Request limits
    MAX_BODY_SIZE: int = Field(default=8 << 20, description="Max request body size (bytes)")

    # FastCGI upstream
    FASTCGI_UPSTREAM: str = Field(
        default="127.0.0.1:9000", description="FastCGI address (host:port or unix:/path)"
    )
    UPSTREAM_TIMEOUT: float = Field(
        default=30.0, description="Deadline for one FastCGI exchange (seconds, 0 disables)"
    )

    @field_validator("FASTCGI_UPSTREAM")
    @classmethod
    def _validate_upstream(cls, value: str) -> str:
        parse_upstream_address(value)
        return value

    @field_validator("UVICORN_BIND_ADDR")
    @classmethod
    def _validate_bind_addr(cls, value: str) -> str:
        port_of_bind_addr(value)
        return value

    @field_validator("STATIC_EXTENSIONS", "SCRIPT_EXTENSIONS")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @property
    def upstream_address(self) -> UpstreamAddress:
        return parse_upstream_address(self.FASTCGI_UPSTREAM)

    @property
    def public_port(self) -> str:
        return self.SERVER_PORT or port_of_bind_addr(self.UVICORN_BIND_ADDR)

    @property
    def bind_host(self) -> str:
        host = self.UVICORN_BIND_ADDR.rpartition(":")[0].strip("[]")
        return host or "0.0.0.0"

    @property
    def bind_port(self) -> int:
        return int(port_of_bind_addr(self.UVICORN_BIND_ADDR))

    @property
    def upstream_timeout(self) -> Optional[float]:
        return self.UPSTREAM_TIMEOUT if self.UPSTREAM_TIMEOUT > 0 else None
