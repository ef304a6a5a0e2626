from __future__ import annotations

import socket
from typing import Callable, Optional

from itmsplit.connectors.registry import register_acquirer
from itmsplit.connectors.types import Source, SourceKind
from itmsplit.core.exceptions import AcquisitionAborted, HostResolutionError, SocketCreateError
from itmsplit.core.logger import get_logger
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.models.source_config import NetworkSourceConfig

log = get_logger(__name__)


@register_acquirer(kind="network")
class NetworkAcquirer:
    """Connects to the trace server, retrying forever until shutdown.

    Resolution and connect failures (including a connect that times out
    after ``retry_interval_seconds``) are transient: the socket is closed and
    the attempt repeated after ``retry_interval_seconds``. Failing to create
    or configure a socket at all is fatal, as is a host name that can never
    resolve.
    """

    def __init__(
        self,
        config: NetworkSourceConfig,
        *,
        shutdown: ShutdownFlag,
        socket_factory: Optional[Callable[..., socket.socket]] = None,
        resolver: Optional[Callable[[str], str]] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self.config = config
        self.shutdown = shutdown
        self.socket_factory = socket_factory or socket.socket
        self.resolver = resolver or socket.gethostbyname
        # Returns True when woken by shutdown
        self.wait = wait or shutdown.wait
        self.retries = 0

    def acquire(self) -> Source:
        while True:
            if self.shutdown.is_set():
                raise AcquisitionAborted("Shutdown requested before connection was made")

            sock = self._create_socket()

            try:
                address = self.resolver(self.config.host)
            except ValueError as exc:
                # UnicodeError (not IDNA-encodable) or an embedded NUL: can never resolve
                sock.close()
                raise HostResolutionError(
                    reason="Cannot find host",
                    details={"host": self.config.host, "error": str(exc)},
                ) from exc
            except OSError as exc:
                sock.close()
                log.warning(f"Cannot find host {self.config.host}: {exc}")
                self._backoff()
                continue

            # A connect attempt lasts at most one retry interval
            sock.settimeout(self.config.retry_interval_seconds)
            try:
                sock.connect((address, self.config.port))
            except OSError as exc:
                # socket.timeout is an OSError too
                sock.close()
                log.warning(f"Could not connect to {self.config.label}: {exc}")
                self._backoff()
                continue
            sock.settimeout(None)

            log.info(f"Connected to {self.config.label} ({address})")
            return Source(kind=SourceKind.NETWORK, handle=sock, label=self.config.label)

    def _create_socket(self) -> socket.socket:
        try:
            sock = self.socket_factory(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:
            raise SocketCreateError(reason="Error creating socket", details={"error": str(exc)}) from exc

        try:
            if hasattr(socket, "SO_REUSEPORT"):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            sock.close()
            raise SocketCreateError(reason="setsockopt(SO_REUSEADDR) failed", details={"error": str(exc)}) from exc

        return sock

    def _backoff(self) -> None:
        if self.shutdown.is_set():
            return
        self.retries += 1
        log.info(f"Retrying {self.config.label} in {self.config.retry_interval_seconds:g}s (retry {self.retries})")
        self.wait(self.config.retry_interval_seconds)
