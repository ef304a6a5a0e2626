"""Decoder capability consumed by the acquisition loop."""

from itmsplit.decoders.base import DecoderFactory, TraceDecoder

__all__ = ["DecoderFactory", "TraceDecoder"]
