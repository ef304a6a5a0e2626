import socket

import pytest

from itmsplit.connectors.network import NetworkAcquirer
from itmsplit.connectors.types import SourceKind
from itmsplit.core.exceptions import AcquisitionAborted, HostResolutionError, SocketCreateError
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.models.source_config import NetworkSourceConfig


class FakeSocket:
    def __init__(self, error=None):
        self.error = error
        self.options = {}
        self.connected_to = None
        self.timeouts = []
        self.closed = False

    def setsockopt(self, level, option, value):
        self.options[option] = value

    def settimeout(self, value):
        self.timeouts.append(value)

    def connect(self, address):
        if self.error is not None:
            raise self.error
        self.connected_to = address

    def close(self):
        self.closed = True


class FakeSocketFactory:
    """Hands out sockets whose first ``failures`` connects raise ``error``."""

    def __init__(self, failures: int, error=None):
        self.failures = failures
        self.error = error or ConnectionRefusedError(111, "Connection refused")
        self.created = []

    def __call__(self, family, kind):
        assert (family, kind) == (socket.AF_INET, socket.SOCK_STREAM)
        sock = FakeSocket(self.error if len(self.created) < self.failures else None)
        self.created.append(sock)
        return sock


@pytest.fixture
def shutdown():
    flag = ShutdownFlag()
    yield flag
    flag.close()


def make_acquirer(shutdown, factory, waits, resolver=lambda host: "127.0.0.1"):
    def wait(seconds):
        waits.append(seconds)
        return shutdown.is_set()

    return NetworkAcquirer(
        NetworkSourceConfig(host="tracehost", port=2332, retry_interval_seconds=1.0),
        shutdown=shutdown,
        socket_factory=factory,
        resolver=resolver,
        wait=wait,
    )


def test_connects_first_time_without_retry(shutdown):
    factory = FakeSocketFactory(failures=0)
    waits = []

    source = make_acquirer(shutdown, factory, waits).acquire()

    assert source.kind is SourceKind.NETWORK
    assert source.label == "tracehost:2332"
    assert source.handle.connected_to == ("127.0.0.1", 2332)
    assert source.handle.options[socket.SO_REUSEADDR] == 1
    assert source.handle.timeouts == [1.0, None]
    assert waits == []


def test_retries_exactly_once_per_failed_connect(shutdown, caplog):
    factory = FakeSocketFactory(failures=3)
    waits = []
    acquirer = make_acquirer(shutdown, factory, waits)

    with caplog.at_level("WARNING", logger="itmsplit"):
        source = acquirer.acquire()

    assert acquirer.retries == 3
    assert waits == [1.0, 1.0, 1.0]
    assert [s.closed for s in factory.created] == [True, True, True, False]
    assert source.handle is factory.created[-1]
    assert caplog.text.count("Could not connect") == 3


def test_resolution_failure_is_retried(shutdown):
    factory = FakeSocketFactory(failures=0)
    waits = []
    lookups = []

    def resolver(host):
        lookups.append(host)
        if len(lookups) < 3:
            raise socket.gaierror(-2, "Name or service not known")
        return "10.1.1.1"

    acquirer = make_acquirer(shutdown, factory, waits, resolver=resolver)
    source = acquirer.acquire()

    assert lookups == ["tracehost", "tracehost", "tracehost"]
    assert acquirer.retries == 2
    assert factory.created[0].closed and factory.created[1].closed
    assert source.handle.connected_to == ("10.1.1.1", 2332)


def test_no_attempt_once_shutdown_is_set(shutdown):
    factory = FakeSocketFactory(failures=0)
    waits = []
    shutdown.set()

    acquirer = make_acquirer(shutdown, factory, waits)
    with pytest.raises(AcquisitionAborted):
        acquirer.acquire()

    assert factory.created == []
    assert acquirer.retries == 0


def test_shutdown_during_retry_wait_aborts(shutdown):
    factory = FakeSocketFactory(failures=100)
    waits = []

    def wait(seconds):
        waits.append(seconds)
        shutdown.set()
        return True

    acquirer = NetworkAcquirer(
        NetworkSourceConfig(),
        shutdown=shutdown,
        socket_factory=factory,
        resolver=lambda host: "127.0.0.1",
        wait=wait,
    )
    with pytest.raises(AcquisitionAborted):
        acquirer.acquire()

    assert len(factory.created) == 1
    assert acquirer.retries == 1
    assert waits == [1.0]


def test_socket_creation_failure_is_fatal(shutdown):
    def factory(family, kind):
        raise OSError(24, "Too many open files")

    acquirer = NetworkAcquirer(NetworkSourceConfig(), shutdown=shutdown, socket_factory=factory)
    with pytest.raises(SocketCreateError, match="Error creating socket"):
        acquirer.acquire()


def test_unencodable_host_is_fatal(shutdown):
    factory = FakeSocketFactory(failures=0)

    def resolver(host):
        raise UnicodeError("label too long")

    acquirer = make_acquirer(shutdown, factory, [], resolver=resolver)
    with pytest.raises(HostResolutionError, match="Cannot find host"):
        acquirer.acquire()

    assert factory.created[0].closed


def test_connect_timeout_is_retried(shutdown, caplog):
    factory = FakeSocketFactory(failures=2, error=socket.timeout("timed out"))
    waits = []
    acquirer = make_acquirer(shutdown, factory, waits)

    with caplog.at_level("WARNING", logger="itmsplit"):
        source = acquirer.acquire()

    assert acquirer.retries == 2
    assert waits == [1.0, 1.0]
    assert [s.timeouts for s in factory.created] == [[1.0], [1.0], [1.0, None]]
    assert [s.closed for s in factory.created] == [True, True, False]
    assert source.handle is factory.created[-1]
    assert caplog.text.count("timed out") == 2


def test_connect_attempt_is_bounded_by_retry_interval(shutdown):
    factory = FakeSocketFactory(failures=0)

    acquirer = NetworkAcquirer(
        NetworkSourceConfig(host="tracehost", retry_interval_seconds=0.25),
        shutdown=shutdown,
        socket_factory=factory,
        resolver=lambda host: "127.0.0.1",
    )
    acquirer.acquire()

    assert factory.created[0].timeouts == [0.25, None]


def test_connected_socket_is_left_blocking(shutdown):
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]

    acquirer = NetworkAcquirer(NetworkSourceConfig(host="127.0.0.1", port=port), shutdown=shutdown)
    source = acquirer.acquire()
    try:
        assert source.handle.gettimeout() is None
        peer, _ = listener.accept()
        peer.sendall(b"\x01")
        assert source.read(16) == b"\x01"
        peer.close()
    finally:
        source.close()
        listener.close()


def test_host_with_embedded_nul_is_fatal(shutdown):
    factory = FakeSocketFactory(failures=0)

    def resolver(host):
        raise ValueError("embedded null character")

    acquirer = make_acquirer(shutdown, factory, [], resolver=resolver)
    with pytest.raises(HostResolutionError, match="Cannot find host") as exc:
        acquirer.acquire()

    assert exc.value.details["error"] == "embedded null character"
    assert factory.created[0].closed
