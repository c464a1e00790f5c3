"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import socket
import threading
from collections.abc import Iterator

import pytest

from rdbg import DeliveryTransport, DroppedCounter, Message, TextMessage, TransportConfig, ValueDump
from rdbg.models import SourceLocation


@pytest.fixture
def text_message() -> Message:
    """Text message with fixed metadata."""
    return Message(
        timestamp=1_700_000_000_123,
        thread_identifier="MainThread",
        source_location=SourceLocation(filename="app.py", line=12),
        payload=TextMessage(text="hello"),
    )


@pytest.fixture
def values_message() -> Message:
    """Value dump with two pairs in a fixed order."""
    return Message(
        timestamp=1_700_000_000_456,
        thread_identifier="worker-1",
        source_location=SourceLocation(filename="src/job.py", line=7),
        payload=ValueDump(values=(("x", "1"), ("name", "'bob'"))),
    )


@pytest.fixture
def counter() -> DroppedCounter:
    """Dropped counter isolated from the process-wide one."""
    return DroppedCounter()


@pytest.fixture
def fast_config() -> TransportConfig:
    """Loopback config on a free port with short timeouts."""
    return TransportConfig(
        target_port=0,
        queue_capacity=64,
        initial_backoff=0.01,
        max_backoff=0.05,
        poll_interval=0.01,
        write_timeout=1.0,
    )


@pytest.fixture
def transport(fast_config: TransportConfig, counter: DroppedCounter) -> Iterator[DeliveryTransport]:
    """Started delivery transport, shut down after the test."""
    transport = DeliveryTransport(fast_config, counter)
    transport.start()
    assert transport.wait_listening(timeout=2.0) is not None
    yield transport
    transport.shutdown(deadline=0.5)


class FakeProducer:
    """Listening socket that plays back raw bytes to one client.

    Used to feed the client decoder hand-crafted (and broken) byte streams.
    """

    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self._server = socket.create_server(("127.0.0.1", 0))
        self.address: tuple[str, int] = self._server.getsockname()[:2]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
            with conn:
                conn.sendall(self.payload)
                conn.shutdown(socket.SHUT_WR)
                # Wait for the client to hang up so nothing is reset early
                while conn.recv(1024):
                    pass
        except OSError:
            pass

    def close(self) -> None:
        self._server.close()
        self._thread.join(timeout=2.0)


@pytest.fixture
def fake_producer() -> Iterator[type[FakeProducer]]:
    """Factory for FakeProducer instances, closed after the test."""
    created: list[FakeProducer] = []

    def factory(payload: bytes) -> FakeProducer:
        producer = FakeProducer(payload)
        created.append(producer)
        return producer

    yield factory  # type: ignore[misc]

    for producer in created:
        producer.close()
