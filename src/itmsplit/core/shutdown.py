from __future__ import annotations

import os
import select
from typing import Optional


class ShutdownFlag:
    """Process-wide shutdown request, set once and never cleared.

    Safe to set from a signal handler: :meth:`set` takes no lock, it only
    assigns a boolean and writes one byte to a pipe. The read end of that
    pipe becomes readable once the flag is set, so a ``select`` on a source
    can include :meth:`fileno` and wake up on shutdown.
    """

    def __init__(self) -> None:
        self._set = False
        self._reason: Optional[str] = None
        self._rfd, self._wfd = os.pipe()
        os.set_blocking(self._rfd, False)
        os.set_blocking(self._wfd, False)

    def is_set(self) -> bool:
        return self._set

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def set(self, reason: str = "requested") -> bool:
        """Raise the flag. Returns False when it was already raised."""
        if self._set:
            return False
        self._reason = reason
        self._set = True
        try:
            os.write(self._wfd, b"\x00")
        except BlockingIOError:
            # One byte is enough to wake any waiter; a full pipe already does.
            pass
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to ``timeout`` seconds, returning early (True) once set.

        The wake byte is never drained, so every later wait returns at once.
        """
        if self._set:
            return True
        select.select([self._rfd], [], [], timeout)
        return self._set

    def fileno(self) -> int:
        return self._rfd

    def close(self) -> None:
        if self._rfd < 0:
            return
        os.close(self._rfd)
        os.close(self._wfd)
        self._rfd = self._wfd = -1

    def __repr__(self) -> str:
        return f"ShutdownFlag(set={self.is_set()}, reason={self._reason!r})"
