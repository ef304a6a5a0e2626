from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from itmsplit.bootstrap import load_builtin_plugins
from itmsplit.connectors.registry import AcquirerRegistry
from itmsplit.connectors.types import Source, SourceKind
from itmsplit.core.cadence import CadenceClock
from itmsplit.core.contracts import ReadOutcome
from itmsplit.core.dispatcher import dispatch
from itmsplit.core.exceptions import AcquisitionAborted
from itmsplit.core.logger import get_logger, push_source, reset_source
from itmsplit.core.reader import SourceReader
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.decoders.base import TraceDecoder
from itmsplit.models.source_config import SourceConfig

log = get_logger(__name__)


class LoopState(str, Enum):
    ACQUIRING = "acquiring"
    INNER_LOOP = "inner_loop"
    RECONNECT = "reconnect"
    TERMINATE = "terminate"


class TerminalReason(str, Enum):
    SHUTDOWN_REQUESTED = "shutdown_requested"
    SOURCE_EXHAUSTED = "source_exhausted"


@dataclass
class SessionStats:
    """Counters for one open source, plus running totals across sessions."""
    sessions: int = 0
    chunks: int = 0
    bytes: int = 0
    ticks: int = 0

    def reset_session(self) -> None:
        self.chunks = self.bytes = self.ticks = 0


class TraceOrchestrator:
    """
    Acquire a source, pump it into the decoder, and decide what happens when it ends.

    The outer loop opens the configured source; the inner loop waits on the
    cadence clock, reads, and dispatches until end-of-stream or a wait error.
    A file source with ``terminate_on_exhaustion`` ends the run when it is
    exhausted; every other source is reopened. The shutdown flag is checked
    at the top of both loops.

    Example:
        >>> shutdown = ShutdownFlag()
        >>> orchestrator = TraceOrchestrator(FileSourceConfig(path="trace.bin"), decoder, shutdown=shutdown)
        >>> orchestrator.run()
        <TerminalReason.SHUTDOWN_REQUESTED: 'shutdown_requested'>
    """

    def __init__(
        self,
        source: SourceConfig,
        decoder: TraceDecoder,
        *,
        shutdown: ShutdownFlag,
        acquirer: Optional[Any] = None,
        reader: Optional[SourceReader] = None,
        clock: Optional[CadenceClock] = None,
    ):
        self.config = source
        self.decoder = decoder
        self.shutdown = shutdown
        self.acquirer = acquirer or self._build_acquirer()
        self.reader = reader or SourceReader(shutdown)
        self.clock = clock or CadenceClock()
        self.state = LoopState.ACQUIRING
        self.stats = SessionStats()
        self.total_bytes = 0

    def _build_acquirer(self) -> Any:
        load_builtin_plugins()
        acquirer_cls = AcquirerRegistry.get(self.config.kind)
        return acquirer_cls(self.config, shutdown=self.shutdown)

    def _transition(self, state: LoopState) -> None:
        if state is not self.state:
            log.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> TerminalReason:
        while not self.shutdown.is_set():
            self._transition(LoopState.ACQUIRING)
            try:
                source = self.acquirer.acquire()
            except AcquisitionAborted as exc:
                log.info(f"Acquisition aborted: {exc}")
                break

            self.clock.mark()
            self.stats.sessions += 1
            self.stats.reset_session()
            token = push_source(source.label)
            try:
                self._transition(LoopState.INNER_LOOP)
                self._pump(source)
            finally:
                source.close()
                log.info(
                    f"Source closed after {self.stats.bytes} bytes in {self.stats.chunks} chunks "
                    f"({self.stats.ticks} ticks)"
                )
                reset_source(token)

            if self.shutdown.is_set():
                break
            if source.kind is SourceKind.FILE and getattr(self.config, "terminate_on_exhaustion", False):
                self._transition(LoopState.TERMINATE)
                return TerminalReason.SOURCE_EXHAUSTED

            self._transition(LoopState.RECONNECT)

        self._transition(LoopState.TERMINATE)
        return TerminalReason.SHUTDOWN_REQUESTED

    def _pump(self, source: Source) -> None:
        max_len = self.config.transfer_size
        while not self.shutdown.is_set():
            result = self.reader.read(source, max_len, self.clock.remaining_us())

            if result.outcome is ReadOutcome.DATA:
                delivered = dispatch(self.decoder, result.data)
                self.stats.chunks += 1
                self.stats.bytes += delivered
                self.total_bytes += delivered
            elif result.outcome is ReadOutcome.TICK:
                self.stats.ticks += 1
            elif result.outcome is ReadOutcome.END_OF_STREAM:
                if result.error is not None:
                    log.info(f"Read failed, treating as end of stream: {result.error}")
                else:
                    log.info("End of stream")
                return
            else:
                log.warning(f"Wait on source failed: {result.error}")
                return
