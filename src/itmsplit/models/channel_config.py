from __future__ import annotations

import codecs
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from itmsplit.core.exceptions import ChannelConfigError
from itmsplit.core.logger import get_logger

# Number of ITM stimulus channels
NUM_CHANNELS = 32

DELIMITER = ","

log = get_logger(__name__)


def unescape(value: str) -> str:
    """Expand backslash escapes (``\\n``, ``\\t``, ``\\x41``...) in a format string."""
    return codecs.decode(value.encode("latin-1", "backslashreplace"), "unicode_escape")


def escape(value: str) -> str:
    """Inverse of :func:`unescape`, for display."""
    return value.encode("unicode_escape").decode("ascii")


class ChannelConfig(BaseModel):
    """One ``index,name[,format]`` channel option.

    ``format`` of None means raw passthrough.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, lt=NUM_CHANNELS)
    name: str
    format: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("channel name must not be empty")
        return value

    @classmethod
    def parse(cls, spec: str) -> "ChannelConfig":
        index_part, sep, rest = spec.partition(DELIMITER)
        try:
            index = int(index_part.strip())
        except ValueError as exc:
            raise ChannelConfigError(
                reason="Channel index is not a number",
                details={"spec": spec},
            ) from exc

        if index < 0 or index >= NUM_CHANNELS:
            raise ChannelConfigError(
                reason="Channel index out of range",
                details={"spec": spec, "max": NUM_CHANNELS - 1},
            )

        if not sep or not rest:
            raise ChannelConfigError(reason=f"No filename for channel {index}", details={"spec": spec})

        name, sep, fmt = rest.partition(DELIMITER)
        if not name:
            raise ChannelConfigError(reason=f"No filename for channel {index}", details={"spec": spec})

        if not sep:
            log.warning(f"No output format for channel {index}, output raw!")
            return cls(index=index, name=name)

        return cls(index=index, name=name, format=unescape(fmt))

    def describe(self) -> str:
        shown = escape(self.format) if self.format is not None else "RAW"
        return f"{self.index:02d} [{shown}] [{self.name}]"


def parse_channels(specs: List[str]) -> List[ChannelConfig]:
    return [ChannelConfig.parse(spec) for spec in specs]
