from __future__ import annotations

import select
from typing import List, Optional

from itmsplit.connectors.types import Source
from itmsplit.core.contracts import ReadResult
from itmsplit.core.shutdown import ShutdownFlag


class SourceReader:
    """One timeout-bounded wait-then-read cycle against the active source.

    The wait also watches the shutdown flag's wake-up descriptor, so a
    shutdown request ends a pending wait early with a TICK. With a
    non-positive timeout there is no timed wait: the read happens as soon
    as the source is readable.
    """

    def __init__(self, shutdown: Optional[ShutdownFlag] = None):
        self.shutdown = shutdown

    def read(self, source: Source, max_len: int, timeout_us: int) -> ReadResult:
        timeout = timeout_us / 1_000_000 if timeout_us > 0 else None

        watch: List[int] = []
        try:
            watch.append(source.fileno())
            if self.shutdown is not None:
                watch.append(self.shutdown.fileno())
            if timeout is None and len(watch) == 1:
                ready = watch
            else:
                ready, _, _ = select.select(watch, [], [], timeout)
        except (OSError, ValueError) as exc:
            return ReadResult.wait_error(exc)

        if watch[0] not in ready:
            return ReadResult.tick()

        try:
            data = source.read(max_len)
        except OSError as exc:
            return ReadResult.end_of_stream(exc)

        if not data:
            return ReadResult.end_of_stream()
        return ReadResult.chunk(data)
