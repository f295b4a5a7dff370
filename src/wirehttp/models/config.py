"""Pydantic configuration model for wirehttp."""

import re
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field

from .. import __version__

DEFAULT_USER_AGENT = f"wirehttp/{__version__}"


# Binary multiples; "k", "kb" and "kib" all mean 1024 bytes
_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([a-z]*)$")


def parse_byte_size(value: Any) -> int:
    """
    Turn a size limit such as ``65536``, ``"64kb"`` or ``"10 MiB"`` into bytes.

    Raises:
        ValueError: For negative numbers, unknown units or anything that is not
            an int or a string
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Invalid byte size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Byte size must not be negative: {value}")
        return value

    match = _SIZE_RE.match(value.strip().lower())
    if not match or match.group(2) not in _SIZE_UNITS:
        raise ValueError(f"Invalid byte size {value!r}; use bytes or a size like '64kb' or '10mb'")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit])


ByteSize = Annotated[int, BeforeValidator(parse_byte_size)]


class ClientConfig(BaseModel):
    """
    Configuration for HttpClient.

    Example:
        config = ClientConfig(connect_timeout=5, max_body_bytes="10mb")
        client = HttpClient(config)

    YAML format:
        connect_timeout: 5
        read_timeout: 15
        user_agent: my-tool/1.0
        max_body_bytes: 10mb
    """

    connect_timeout: float = Field(10.0, gt=0, description="Timeout for DNS, TCP connect and TLS handshake (seconds)")
    read_timeout: float = Field(30.0, gt=0, description="Timeout for each read from the connection (seconds)")
    write_timeout: float = Field(30.0, gt=0, description="Timeout for sending the request (seconds)")
    user_agent: Optional[str] = Field(
        DEFAULT_USER_AGENT,
        description="User-Agent header value (None = no User-Agent header)",
    )
    verify_tls: bool = Field(True, description="Verify server certificates against the platform trust store")
    max_header_bytes: int = Field(
        64 * 1024,
        ge=1024,
        description="Maximum size of the status line plus response headers",
    )
    max_body_bytes: Optional[ByteSize] = Field(
        None,
        description="Maximum response body size (e.g., '10mb'; None = unlimited)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ClientConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "ClientConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
