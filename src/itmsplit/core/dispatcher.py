from __future__ import annotations

import logging

from itmsplit.core.logger import get_logger
from itmsplit.decoders.base import TraceDecoder

log = get_logger(__name__)

DUMP_WIDTH = 16


def hexdump(chunk: bytes, width: int = DUMP_WIDTH) -> str:
    return "\n".join(chunk[i:i + width].hex(" ").upper() for i in range(0, len(chunk), width))


def dispatch(decoder: TraceDecoder, chunk: bytes) -> int:
    """Pump every byte of ``chunk`` into the decoder, in order.

    Returns the number of bytes delivered.
    """
    if log.isEnabledFor(logging.DEBUG):
        log.debug(f"RXED Packet of {len(chunk)} bytes\n{hexdump(chunk)}")

    pump = decoder.pump
    for byte in chunk:
        pump(byte)
    return len(chunk)
