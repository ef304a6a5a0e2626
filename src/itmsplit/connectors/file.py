from __future__ import annotations

import os

from itmsplit.connectors.registry import register_acquirer
from itmsplit.connectors.types import Source, SourceKind
from itmsplit.core.exceptions import AcquisitionAborted, SourceOpenError
from itmsplit.core.logger import get_logger
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.models.source_config import FileSourceConfig

log = get_logger(__name__)


@register_acquirer(kind="file")
class FileAcquirer:
    """Opens a capture file (or fifo/device node) read-only. Failure is fatal.

    The open itself never blocks: a fifo with no writer yet is opened at
    once and the reader's select waits for the writer instead.
    """

    def __init__(self, config: FileSourceConfig, *, shutdown: ShutdownFlag):
        self.config = config
        self.shutdown = shutdown
        self.opens = 0

    def acquire(self) -> Source:
        if self.shutdown.is_set():
            raise AcquisitionAborted("Shutdown requested before file was opened")

        try:
            handle = self._open()
        except OSError as exc:
            raise SourceOpenError(
                reason=f"Can't open file {self.config.path}",
                details={"error": exc.strerror or str(exc)},
            ) from exc

        self.opens += 1
        log.debug(f"Opened {self.config.path} (open #{self.opens})")
        return Source(kind=SourceKind.FILE, handle=handle, label=self.config.label)

    def _open(self):
        fd = os.open(self.config.path, os.O_RDONLY | os.O_NONBLOCK)
        try:
            os.set_blocking(fd, True)
            # Refuses directories
            return open(fd, "rb", buffering=0)
        except OSError:
            os.close(fd)
            raise
