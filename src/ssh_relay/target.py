"""Parsing of user@host:port connection strings."""

import re
from typing import Optional

from pydantic import BaseModel, ValidationError, field_validator

from .errors import ConnectionStringError

DEFAULT_PORT = 22

FORMAT_HINT = "Please use 'username@hostname:port'."

VALID_PORT = re.compile(r"^[0-9]+$")


class ConnectionTarget(BaseModel):
    """Where to connect and as whom."""

    username: str
    hostname: str
    port: int = DEFAULT_PORT

    @field_validator("username", "hostname")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        if any(c.isspace() for c in v):
            raise ValueError(f"'{v}' must not contain whitespace")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"port {v} is out of range (1-65535)")
        return v

    @property
    def address(self) -> str:
        """host:port, with IPv6 literals bracketed."""
        if ":" in self.hostname:
            return f"[{self.hostname}]:{self.port}"
        return f"{self.hostname}:{self.port}"

    def __str__(self) -> str:
        return f"{self.username}@{self.address}"


def _split_host_port(host_with_port: str) -> tuple[str, Optional[str]]:
    """Separate the hostname from an optional port.

    Accepts ``host``, ``host:port``, ``[v6addr]`` and ``[v6addr]:port``.
    """
    if host_with_port.startswith("["):
        end = host_with_port.find("]")
        if end == -1:
            raise ConnectionStringError(
                f"Unterminated '[' in host '{host_with_port}'. {FORMAT_HINT}"
            )
        host = host_with_port[1:end]
        rest = host_with_port[end + 1:]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise ConnectionStringError(
                f"Unexpected '{rest}' after ']'. {FORMAT_HINT}"
            )
        return host, rest[1:]

    host_parts = host_with_port.split(":")
    if len(host_parts) > 2:
        raise ConnectionStringError(
            f"Too many ':' in host '{host_with_port}'. {FORMAT_HINT}"
        )
    if len(host_parts) == 2:
        return host_parts[0], host_parts[1]
    return host_parts[0], None


def parse_connection_string(
    conn_str: str, default_port: int = DEFAULT_PORT
) -> ConnectionTarget:
    """Parse ``username@hostname[:port]`` into a ConnectionTarget.

    The port falls back to ``default_port`` when omitted.

    Raises:
        ConnectionStringError: if the string is malformed or any part
            fails validation.
    """
    parts = conn_str.split("@")
    if len(parts) != 2:
        raise ConnectionStringError(
            f"Invalid connection string format. {FORMAT_HINT}"
        )

    user, host_with_port = parts
    host, port_str = _split_host_port(host_with_port)

    if port_str is None:
        port = default_port
    elif VALID_PORT.match(port_str):
        port = int(port_str)
    else:
        raise ConnectionStringError(
            f"Invalid port '{port_str}': must be a number. {FORMAT_HINT}"
        )

    try:
        return ConnectionTarget(username=user, hostname=host, port=port)
    except ValidationError as e:
        details = "; ".join(
            f"{err['loc'][0]}: {err['msg']}" for err in e.errors()
        )
        raise ConnectionStringError(
            f"Invalid connection string '{conn_str}' ({details}). {FORMAT_HINT}"
        ) from e
