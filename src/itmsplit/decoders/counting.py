from __future__ import annotations

from itmsplit.core.logger import get_logger
from itmsplit.models.decoder_settings import DecoderSettings

log = get_logger(__name__)


class ByteCountingDecoder:
    """Default decoder: counts what it is fed and reports on shutdown.

    Useful for checking a trace source is delivering before plugging in a
    real ITM/TPIU decoder with ``--decoder``.
    """

    def __init__(self, settings: DecoderSettings):
        self.settings = settings
        self.byte_count = 0
        self.is_shutdown = False

    def pump(self, byte: int) -> None:
        self.byte_count += 1

    def shutdown(self) -> None:
        if self.is_shutdown:
            return
        self.is_shutdown = True
        log.info(f"Decoder received {self.byte_count} bytes")
