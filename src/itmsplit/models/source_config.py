from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator

# Default port of the trace server's client interface
DEFAULT_SERVER_PORT = 3443

# Read size; the decoder expects chunks no larger than this
TRANSFER_SIZE = 4096


class NetworkSourceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["network"] = "network"

    host: str = "localhost"
    port: int = Field(default=DEFAULT_SERVER_PORT, ge=1, le=65535)
    retry_interval_seconds: PositiveFloat = 1.0

    transfer_size: PositiveInt = TRANSFER_SIZE

    @field_validator("host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("host must not be empty")
        if "\x00" in value:
            raise ValueError("host must not contain a NUL character")
        return value

    @property
    def label(self) -> str:
        return f"{self.host}:{self.port}"


class FileSourceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"

    path: str
    # Stop at end of file instead of reopening it
    terminate_on_exhaustion: bool = False

    transfer_size: PositiveInt = TRANSFER_SIZE

    @field_validator("path")
    @classmethod
    def _validate_path(cls, value: str) -> str:
        if not value:
            raise ValueError("path must not be empty")
        return value

    @property
    def label(self) -> str:
        return self.path


SourceConfig = Annotated[
    Union[NetworkSourceConfig, FileSourceConfig],
    Field(discriminator="kind"),
]


def parse_server(value: str) -> NetworkSourceConfig:
    """Build a network source from ``host[:port]``."""
    host, sep, port = value.rpartition(":")
    if not sep:
        return NetworkSourceConfig(host=value)
    if not port.isdigit():
        raise ValueError(f"Invalid port in server address {value!r}")
    return NetworkSourceConfig(host=host or "localhost", port=int(port))
