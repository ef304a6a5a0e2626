from __future__ import annotations

import importlib
import sys
from typing import Iterable

from itmsplit.core.exceptions import DecoderLoadError
from itmsplit.decoders.base import DecoderFactory, TraceDecoder
from itmsplit.models.decoder_settings import DecoderSettings


BUILTIN_PLUGIN_MODULES: tuple[str, ...] = (
    "itmsplit.connectors.network",
    "itmsplit.connectors.file",
)


_LOADED = False


def load_builtin_plugins(*, reload: bool = False, modules: Iterable[str] = BUILTIN_PLUGIN_MODULES) -> None:
    """Import built-in acquirer modules so their decorators register them.

    In production, call with reload=False (default) so imports are cheap.
    In tests, call with reload=True to clear the registry and re-run decorators.
    """

    global _LOADED

    if _LOADED and not reload:
        return

    if reload:
        from itmsplit.connectors.registry import AcquirerRegistry

        AcquirerRegistry.clear()

    for module_name in modules:
        if reload:
            sys.modules.pop(module_name, None)
        importlib.import_module(module_name)

    _LOADED = True


def load_decoder_factory(reference: str) -> DecoderFactory:
    """Resolve a ``module:attribute`` reference to a decoder factory."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise DecoderLoadError(f"Decoder reference must look like 'module:attribute', got {reference!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise DecoderLoadError(f"Cannot import decoder module {module_name!r}", details={"error": str(exc)}) from exc

    factory = module
    for part in attr.split("."):
        try:
            factory = getattr(factory, part)
        except AttributeError as exc:
            raise DecoderLoadError(f"Decoder {reference!r} not found") from exc

    if not callable(factory):
        raise DecoderLoadError(f"Decoder {reference!r} is not callable")
    return factory


def build_decoder(reference: str, settings: DecoderSettings) -> TraceDecoder:
    factory = load_decoder_factory(reference)
    decoder = factory(settings)
    for method in ("pump", "shutdown"):
        if not callable(getattr(decoder, method, None)):
            raise DecoderLoadError(f"Decoder from {reference!r} has no {method}() method")
    return decoder
