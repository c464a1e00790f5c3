"""Tests for the client decoder: connect(), MessageStream and watch()."""

from __future__ import annotations

import socket
import threading

import pytest

from rdbg import (
    ConnectionClosed,
    DeliveryTransport,
    DroppedCounter,
    Message,
    ProtocolError,
    TransportConfig,
    VersionMismatchError,
    ViewerConnectionError,
    encode_frame,
    frame_message,
)
from rdbg.client import (
    ClientConfig,
    Connected,
    DecodeFailed,
    Disconnected,
    MessageReceived,
    connect,
    watch,
)

PREAMBLE = b"\x01"


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestConnect:
    """Tests for connection setup and the version preamble."""

    def test_refused(self) -> None:
        """Test nothing listening raises ViewerConnectionError."""
        port = _free_port()

        with pytest.raises(ViewerConnectionError, match="Unable to connect"):
            connect("127.0.0.1", port, ClientConfig(connect_timeout=0.5))

    def test_refused_is_a_connection_error(self) -> None:
        """Test callers can catch the builtin ConnectionError."""
        with pytest.raises(ConnectionError):
            connect("127.0.0.1", _free_port(), ClientConfig(connect_timeout=0.5))

    def test_version_mismatch(self, fake_producer) -> None:
        """Test a foreign protocol version is rejected."""
        producer = fake_producer(b"\x02")

        with pytest.raises(VersionMismatchError) as exc_info:
            connect(*producer.address)

        assert exc_info.value.version == 2
        assert exc_info.value.expected == 1

    def test_closed_before_preamble(self, fake_producer) -> None:
        """Test a peer that sends nothing is a connection error."""
        producer = fake_producer(b"")

        with pytest.raises(ViewerConnectionError, match="before the preamble"):
            connect(*producer.address)

    def test_against_real_transport(self, transport: DeliveryTransport) -> None:
        """Test the handshake with the delivery worker."""
        address = transport.wait_listening(timeout=2.0)
        assert address is not None

        with connect(*address) as stream:
            assert stream.address == address
            assert not stream.closed


class TestMessageStream:
    """Tests for frame-by-frame decoding."""

    def test_reads_messages_in_order(
        self, fake_producer, text_message: Message, values_message: Message
    ) -> None:
        """Test iteration yields every message, then stops at clean EOF."""
        producer = fake_producer(
            PREAMBLE + encode_frame(text_message) + encode_frame(values_message)
        )

        with connect(*producer.address) as stream:
            messages = list(stream)
            assert stream.closed

        assert messages == [text_message, values_message]

    def test_clean_close_on_boundary(self, fake_producer) -> None:
        """Test EOF between frames is ConnectionClosed, not an error."""
        producer = fake_producer(PREAMBLE)

        with connect(*producer.address) as stream:
            with pytest.raises(ConnectionClosed):
                stream.receive()
            with pytest.raises(ConnectionClosed):
                stream.receive()

    def test_truncated_body(self, fake_producer, text_message: Message) -> None:
        """Test EOF mid-frame is a protocol error that closes the stream."""
        producer = fake_producer(PREAMBLE + encode_frame(text_message)[:-3])

        with connect(*producer.address) as stream:
            with pytest.raises(ProtocolError, match="Stream closed after"):
                stream.receive()
            assert stream.closed

    def test_truncated_header(self, fake_producer) -> None:
        """Test EOF inside the length prefix is a protocol error."""
        producer = fake_producer(PREAMBLE + b"\x00\x00")

        with connect(*producer.address) as stream:
            with pytest.raises(ProtocolError):
                stream.receive()

    def test_truncation_during_iteration(self, fake_producer, text_message: Message) -> None:
        """Test iteration surfaces protocol errors after the good frames."""
        frame = encode_frame(text_message)
        producer = fake_producer(PREAMBLE + frame + frame[:5])

        received = []
        with connect(*producer.address) as stream:
            with pytest.raises(ProtocolError):
                for message in stream:
                    received.append(message)

        assert received == [text_message]

    def test_oversized_frame(self, fake_producer) -> None:
        """Test a length above max_frame_size is rejected before reading it."""
        producer = fake_producer(PREAMBLE + (1 << 20).to_bytes(4, "big"))

        with connect(*producer.address, ClientConfig(max_frame_size=1024)) as stream:
            with pytest.raises(ProtocolError, match="exceeds maximum frame size"):
                stream.receive()

    def test_malformed_body(self, fake_producer) -> None:
        """Test a complete frame with a bad body is a protocol error."""
        producer = fake_producer(PREAMBLE + frame_message(b"\x07" + b"\x00" * 20))

        with connect(*producer.address) as stream:
            with pytest.raises(ProtocolError, match="Unknown payload kind 7"):
                stream.receive()
            assert stream.closed

    def test_read_timeout_at_boundary(self, transport: DeliveryTransport) -> None:
        """Test an idle connection times out without closing the stream."""
        address = transport.wait_listening(timeout=2.0)
        assert address is not None

        with connect(*address, ClientConfig(read_timeout=0.05)) as stream:
            with pytest.raises(socket.timeout):
                stream.receive()
            assert not stream.closed

    def test_close_is_idempotent(self, fake_producer) -> None:
        """Test closing twice is harmless."""
        producer = fake_producer(PREAMBLE)
        stream = connect(*producer.address)

        stream.close()
        stream.close()

        assert stream.closed

    def test_read_after_close_is_connection_closed(self, fake_producer) -> None:
        """Test the low-level reader refuses a closed stream."""
        producer = fake_producer(PREAMBLE)
        stream = connect(*producer.address)
        stream.close()

        with pytest.raises(ConnectionClosed, match="Stream is closed"):
            stream._read_exact(4, at_boundary=True)


class TestWatch:
    """Tests for the event feed."""

    def test_single_connection(self, fake_producer, text_message: Message) -> None:
        """Test events for one connection with reconnect disabled."""
        producer = fake_producer(PREAMBLE + encode_frame(text_message))

        events = list(watch(*producer.address, reconnect=False))

        assert events == [
            Connected(producer.address),
            MessageReceived(text_message),
            Disconnected(producer.address),
        ]

    def test_decode_failure(self, fake_producer, text_message: Message) -> None:
        """Test a corrupt frame yields DecodeFailed then Disconnected."""
        producer = fake_producer(PREAMBLE + encode_frame(text_message)[:-1])

        events = list(watch(*producer.address, reconnect=False))

        assert isinstance(events[0], Connected)
        assert isinstance(events[1], DecodeFailed)
        assert isinstance(events[2], Disconnected)
        assert events[2].reason is events[1].error
        assert len(events) == 3

    def test_version_mismatch_propagates(self, fake_producer) -> None:
        """Test retrying stops on an incompatible producer."""
        producer = fake_producer(b"\x09")

        with pytest.raises(VersionMismatchError):
            next(watch(*producer.address))

    def test_waits_for_producer(
        self, fast_config: TransportConfig, counter: DroppedCounter, text_message: Message
    ) -> None:
        """Test watch keeps retrying until the program is up."""
        fast_config.target_port = _free_port()
        transport = DeliveryTransport(fast_config, counter)
        transport.enqueue(text_message)
        timer = threading.Timer(0.1, transport.start)
        timer.start()

        try:
            events = watch("127.0.0.1", fast_config.target_port, retry_interval=0.01, reconnect=False)

            assert isinstance(next(events), Connected)
            assert next(events) == MessageReceived(text_message)
            events.close()
        finally:
            timer.join()
            transport.shutdown(deadline=0.5)

    def test_negative_retry_interval(self) -> None:
        """Test the retry interval is validated."""
        with pytest.raises(ValueError, match="retry_interval"):
            next(watch("127.0.0.1", 1, retry_interval=-1))
