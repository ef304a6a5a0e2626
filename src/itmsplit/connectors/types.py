from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceKind(str, Enum):
    NETWORK = "network"
    FILE = "file"


@dataclass
class Source:
    """An open trace source: a connected socket or a raw (unbuffered) file."""

    kind: SourceKind
    handle: Any
    label: str
    closed: bool = field(default=False, init=False)

    def fileno(self) -> int:
        return self.handle.fileno()

    def read(self, max_len: int) -> bytes:
        if self.kind is SourceKind.NETWORK:
            return self.handle.recv(max_len)
        # Raw files return None when a non-blocking descriptor has nothing yet
        return self.handle.read(max_len) or b""

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.handle.close()
