from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from itmsplit.models.channel_config import NUM_CHANNELS, ChannelConfig


class DecoderSettings(BaseModel):
    """Options handed to the decoder factory.

    The acquisition loop never reads these; they describe how the external
    ITM/TPIU decoder should split and publish channels.
    """
    model_config = ConfigDict(frozen=True)

    channel_path: str = ""                      # Base directory for channel fifos/files
    channels: List[ChannelConfig] = Field(default_factory=list)

    force_itm_sync: bool = True
    use_tpiu: bool = False
    tpiu_channel: int = Field(default=1, ge=0, lt=128)

    permafile: bool = False                     # Permanent files rather than fifos

    filewriter: bool = False
    filewriter_path: Optional[str] = None

    @model_validator(mode="after")
    def _validate_filewriter(self) -> "DecoderSettings":
        if self.filewriter and not self.filewriter_path:
            raise ValueError("filewriter_path is required when filewriter is enabled")
        return self

    def channel(self, index: int) -> Optional[ChannelConfig]:
        """Last configuration given for ``index``, as repeated -c options override earlier ones."""
        if index < 0 or index >= NUM_CHANNELS:
            return None
        found = None
        for ch in self.channels:
            if ch.index == index:
                found = ch
        return found
