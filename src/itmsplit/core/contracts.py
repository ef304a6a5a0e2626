from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReadOutcome(str, Enum):
    TICK = "tick"                    # Wait elapsed (or was cancelled) with nothing to read
    DATA = "data"                    # One chunk of bytes was read
    END_OF_STREAM = "end_of_stream"  # Peer closed, file exhausted, or read failed
    WAIT_ERROR = "wait_error"        # Descriptor-level failure while waiting


@dataclass(frozen=True)
class ReadResult:
    """Tagged outcome of one wait-then-read cycle against a source.

    Only DATA results carry bytes; WAIT_ERROR and END_OF_STREAM may carry the
    OS error that caused them.
    """
    outcome: ReadOutcome
    data: bytes = b""
    error: Optional[BaseException] = None

    @classmethod
    def tick(cls) -> "ReadResult":
        return cls(ReadOutcome.TICK)

    @classmethod
    def chunk(cls, data: bytes) -> "ReadResult":
        return cls(ReadOutcome.DATA, data=data)

    @classmethod
    def end_of_stream(cls, error: Optional[BaseException] = None) -> "ReadResult":
        return cls(ReadOutcome.END_OF_STREAM, error=error)

    @classmethod
    def wait_error(cls, error: BaseException) -> "ReadResult":
        return cls(ReadOutcome.WAIT_ERROR, error=error)

    def __repr__(self) -> str:
        """Custom repr that truncates large chunks to keep debug logs readable."""
        parts = [f"ReadResult(outcome='{self.outcome.value}'"]
        if self.outcome is ReadOutcome.DATA:
            if len(self.data) <= 16:
                parts.append(f", data={self.data!r}")
            else:
                parts.append(f", data={self.data[:16]!r}... ({len(self.data)} bytes)")
        if self.error is not None:
            parts.append(f", error={self.error!r}")
        parts.append(")")
        return "".join(parts)
