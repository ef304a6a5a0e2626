import logging
import sys
import contextvars
from typing import Optional

# Context variable carrying the label of the currently open source
_SOURCE: contextvars.ContextVar[str] = contextvars.ContextVar("source", default="-")

# Verbosity 0(errors)..3(debug), as accepted by -v
VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.DEBUG,
}


class _SourceFilter(logging.Filter):
    """Logging filter that injects the active source label from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.source = _SOURCE.get()
        return True


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | src=%(source)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def level_for_verbosity(verbosity: int) -> int:
    """Map a 0..3 verbosity to a logging level, clamping out-of-range values."""
    return VERBOSITY_LEVELS[max(0, min(3, verbosity))]


def configure_root_logger(level: int = logging.WARNING) -> None:
    """
    Configure the root handler and the itmsplit logger.

    The root handler passes everything; only the ``itmsplit`` namespace is
    set to the requested level so library chatter stays at WARNING.

    Safe to call multiple times; it will not duplicate handlers (idempotent).
    """
    root = logging.getLogger()

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and any(isinstance(f, _SourceFilter) for f in h.filters):
            logging.getLogger("itmsplit").setLevel(level)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(_SourceFilter())
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("itmsplit").setLevel(level)


def get_logger(name: str = "itmsplit") -> logging.Logger:
    """Get a module logger; level comes from the ``itmsplit`` parent."""
    return logging.getLogger(name)


def push_source(label: Optional[str]) -> Optional[contextvars.Token]:
    """Set the active source label in context and return a token for later reset."""
    if not label:
        return None
    return _SOURCE.set(label)


def reset_source(token: Optional[contextvars.Token]) -> None:
    """Reset the source label using the provided token (if any)."""
    if token is None:
        return
    _SOURCE.reset(token)


def current_source() -> str:
    return _SOURCE.get()
