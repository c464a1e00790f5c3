"""End-to-end integration tests: capture calls through to a viewer."""

from __future__ import annotations

import socket
import threading
import time

import pytest

import rdbg
from rdbg import DeliveryTransport, DroppedCounter, Message, TextMessage, TransportConfig, ValueDump
from rdbg.client import ClientConfig, Connected, Disconnected, MessageReceived, connect, watch


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _address(transport: DeliveryTransport) -> tuple[str, int]:
    address = transport.wait_listening(timeout=2.0)
    assert address is not None
    return address


def test_hello_and_value_dump(transport: DeliveryTransport) -> None:
    """Test a text message and a dump arrive in order with their call sites."""
    with connect(*_address(transport), ClientConfig(read_timeout=2.0)) as stream:
        rdbg.msg("hello", transport=transport)
        rdbg.vals(x=1, transport=transport)

        hello = stream.receive()
        dump = stream.receive()

    assert hello.payload == TextMessage(text="hello")
    assert dump.payload == ValueDump(values=(("x", "1"),))
    assert hello.filename == dump.filename == __file__
    assert dump.line == hello.line + 1
    assert hello.timestamp <= dump.timestamp


def test_concurrent_producers(transport: DeliveryTransport, counter: DroppedCounter) -> None:
    """Test messages from several threads all arrive, each thread in order."""
    threads_count, per_thread = 4, 15

    def produce() -> None:
        for i in range(per_thread):
            rdbg.msg("%d", i, transport=transport)

    workers = [
        threading.Thread(target=produce, name=f"producer-{n}") for n in range(threads_count)
    ]

    with connect(*_address(transport), ClientConfig(read_timeout=2.0)) as stream:
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        received = [stream.receive() for _ in range(threads_count * per_thread)]

    assert counter.value == 0
    for n in range(threads_count):
        texts = [m.payload.text for m in received if m.thread_identifier == f"producer-{n}"]
        assert texts == [str(i) for i in range(per_thread)]


def test_overflow_keeps_newest(fast_config: TransportConfig, counter: DroppedCounter) -> None:
    """Test a burst with no viewer keeps the newest messages up to capacity."""
    fast_config.queue_capacity = 16
    transport = DeliveryTransport(fast_config, counter)
    transport.start()
    address = _address(transport)

    try:
        start = time.monotonic()
        for i in range(1000):
            rdbg.msg("n %d", i, transport=transport)
        assert time.monotonic() - start < 5.0
        assert counter.value == 1000 - 16

        with connect(*address, ClientConfig(read_timeout=2.0)) as stream:
            texts = [stream.receive().payload.text for _ in range(16)]
    finally:
        transport.shutdown(deadline=0.5)

    assert texts == [f"n {i}" for i in range(984, 1000)]


def test_shutdown_drains_to_viewer(transport: DeliveryTransport) -> None:
    """Test a successful shutdown means the viewer saw every message."""
    with connect(*_address(transport), ClientConfig(read_timeout=2.0)) as stream:
        for i in range(50):
            rdbg.vals(i=i, transport=transport)

        assert transport.shutdown(deadline=5.0) is True
        received = list(stream)

    assert [m.payload.values for m in received] == [(("i", str(i)),) for i in range(50)]


def test_viewer_survives_program_restart(counter: DroppedCounter) -> None:
    """Test watch() follows the program across a restart on the same port."""
    port = _free_port()
    config = dict(
        target_port=port,
        initial_backoff=0.01,
        max_backoff=0.05,
        poll_interval=0.01,
    )
    first = Message.create("run.py", 1, TextMessage(text="first run"))
    second = Message.create("run.py", 1, TextMessage(text="second run"))
    events: list[object] = []
    got_first = threading.Event()

    def view() -> None:
        messages = 0
        for event in watch("127.0.0.1", port, retry_interval=0.01):
            events.append(event)
            if isinstance(event, MessageReceived):
                messages += 1
                got_first.set()
                if messages == 2:
                    return

    viewer = threading.Thread(target=view, daemon=True)
    viewer.start()

    run1 = DeliveryTransport(TransportConfig(**config), counter)
    run1.start()
    run1.enqueue(first)
    assert got_first.wait(timeout=5.0)
    assert run1.shutdown(deadline=1.0) is True

    run2 = DeliveryTransport(TransportConfig(**config), counter)
    run2.start()
    run2.enqueue(second)
    try:
        viewer.join(timeout=5.0)
        assert not viewer.is_alive()
    finally:
        run2.shutdown(deadline=0.5)

    address = ("127.0.0.1", port)
    assert events == [
        Connected(address),
        MessageReceived(first),
        Disconnected(address),
        Connected(address),
        MessageReceived(second),
    ]


@pytest.mark.parametrize("enabled", ["0", "false", "off"])
def test_disabled_program_sends_nothing(monkeypatch: pytest.MonkeyPatch, enabled: str) -> None:
    """Test RDBG_ENABLED turns every capture call into a no-op."""
    monkeypatch.setenv("RDBG_ENABLED", enabled)
    monkeypatch.setattr(rdbg.capture, "_default_transport", None)

    try:
        rdbg.msg("not sent")
        rdbg.vals(x=1)

        assert isinstance(rdbg.get_transport(), rdbg.NullTransport)
        assert rdbg.flush(timeout=0) is True
    finally:
        rdbg.shutdown()
