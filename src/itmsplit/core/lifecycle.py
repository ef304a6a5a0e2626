from __future__ import annotations

import signal
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from itmsplit.core.logger import get_logger
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.decoders.base import TraceDecoder

log = get_logger(__name__)

# Time given to the decoder's downstream work after shutdown is requested
GRACE_PERIOD_SECONDS = 0.0002

TERMINATION_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class LifecycleController:
    """
    Signal handling and the one-shot cleanup around the acquisition loop.

    Use as a context manager:

        >>> with LifecycleController(shutdown, decoder) as lifecycle:
        ...     reason = orchestrator.run()

    Termination signals only raise the shutdown flag; the loop notices it at
    its next checkpoint and returns normally, and the signal is logged during
    cleanup. SIGPIPE is ignored so fifo
    readers can come and go. Leaving the block, by any path, runs
    :meth:`cleanup` exactly once and restores the previous handlers.
    """

    def __init__(
        self,
        shutdown: ShutdownFlag,
        decoder: TraceDecoder,
        *,
        grace_period: float = GRACE_PERIOD_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        signals: Tuple[signal.Signals, ...] = TERMINATION_SIGNALS,
    ):
        self.shutdown = shutdown
        self.decoder = decoder
        self.grace_period = grace_period
        self.sleep = sleep
        self.signals = signals

        self.received_signal: Optional[int] = None
        self._previous: Dict[int, Any] = {}
        self._cleanup_lock = threading.Lock()
        self._cleaned = False

    @property
    def signalled(self) -> bool:
        return self.received_signal is not None

    def install(self) -> None:
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._on_signal)

        # Don't die when any fifo reader or writer evaporates
        if hasattr(signal, "SIGPIPE"):
            self._previous[signal.SIGPIPE] = signal.signal(signal.SIGPIPE, signal.SIG_IGN)

    def restore(self) -> None:
        while self._previous:
            sig, handler = self._previous.popitem()
            signal.signal(sig, handler)

    def _on_signal(self, signum: int, frame: object) -> None:
        # Runs between bytecodes of the main thread: no locks, no logging
        if self.received_signal is None:
            self.received_signal = signum
        self.shutdown.set(reason=signal.Signals(signum).name)

    def cleanup(self) -> bool:
        """Flag shutdown, stop the decoder and allow a short grace period.

        Returns False when cleanup already ran (or is running).
        """
        if not self._cleanup_lock.acquire(blocking=False):
            return False
        try:
            if self._cleaned:
                return False
            self._cleaned = True
            if self.received_signal is not None:
                log.info(f"Received {signal.Signals(self.received_signal).name}, shutting down")
            self.shutdown.set(reason="exit")
            self.decoder.shutdown()
            self.sleep(self.grace_period)
            return True
        finally:
            self._cleanup_lock.release()

    def __enter__(self) -> "LifecycleController":
        self.install()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # type: ignore
        try:
            self.cleanup()
        finally:
            self.restore()
        return False
