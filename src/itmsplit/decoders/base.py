from __future__ import annotations

from typing import Callable, Protocol

from itmsplit.models.decoder_settings import DecoderSettings


class TraceDecoder(Protocol):
    """The decoder capability the acquisition loop drives."""

    def pump(self, byte: int) -> None:
        """Accept one byte of trace stream input."""
        ...

    def shutdown(self) -> None:
        """Release channels and stop any background work. Called once."""
        ...


DecoderFactory = Callable[[DecoderSettings], TraceDecoder]
