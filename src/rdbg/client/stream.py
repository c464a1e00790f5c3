"""Pull-based decoding of messages from an instrumented program.

This module provides connect() and MessageStream, the generic client side of
the wire protocol. Any viewer (a terminal printer, a GUI, a test) can consume
the stream; nothing here knows how messages are rendered.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterator
from types import TracebackType
from typing import Optional

from ..codec.decoder import decode
from ..codec.wire import FRAME_HEADER_SIZE, WIRE_PROTOCOL_VERSION
from ..exceptions import (
    ConnectionClosed,
    ProtocolError,
    VersionMismatchError,
    ViewerConnectionError,
)
from ..framing import read_frame_length
from ..models.message import Message
from .config import ClientConfig

logger = logging.getLogger(__name__)


def connect(host: str, port: int, config: Optional[ClientConfig] = None) -> MessageStream:
    """Connect to an instrumented program and check its protocol version.

    Args:
        host: Hostname or address the program listens on
        port: Port the program listens on
        config: Client configuration. If None, uses default config.

    Returns:
        A MessageStream positioned at the first frame

    Raises:
        ViewerConnectionError: If the address is unreachable, the connection
            is refused, or the peer closes before sending its preamble
        VersionMismatchError: If the peer speaks another protocol version

    Examples:
        ```python
        from rdbg.client import connect

        with connect("127.0.0.1", 13579) as stream:
            for message in stream:
                print(message.payload)
        ```
    """
    config = config if config is not None else ClientConfig()

    try:
        sock = socket.create_connection((host, port), timeout=config.connect_timeout)
    except OSError as e:
        raise ViewerConnectionError(f"Unable to connect to {host}:{port}: {e}") from e

    try:
        preamble = sock.recv(1)
    except OSError as e:
        sock.close()
        raise ViewerConnectionError(
            f"No protocol preamble from {host}:{port}: {e}"
        ) from e

    if not preamble:
        sock.close()
        raise ViewerConnectionError(f"{host}:{port} closed the connection before the preamble")

    if preamble[0] != WIRE_PROTOCOL_VERSION:
        sock.close()
        raise VersionMismatchError(preamble[0], WIRE_PROTOCOL_VERSION)

    sock.settimeout(config.read_timeout)
    logger.debug("Connected to %s:%s", host, port)
    return MessageStream(sock, (host, port), config)


class MessageStream:
    """Lazy, finite, non-restartable sequence of messages from one connection.

    Each ``receive()`` reads exactly one frame: the 4-byte header, then the
    body it announces. Nothing beyond that frame is buffered.

    Iterating yields messages until the peer closes cleanly. Protocol errors
    are raised from both ``receive()`` and iteration and close the stream.

    Attributes:
        address: (host, port) the stream is connected to
        config: Client configuration
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple[str, int],
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._sock: Optional[socket.socket] = sock
        self.address = address
        self.config = config if config is not None else ClientConfig()

    @property
    def closed(self) -> bool:
        return self._sock is None

    def receive(self) -> Message:
        """Read and decode the next message.

        Returns:
            The next message

        Raises:
            ConnectionClosed: The peer closed the stream on a frame boundary,
                or the stream was already closed
            ProtocolError: Truncated or malformed frame (the stream is closed)
            TimeoutError: read_timeout elapsed before a new frame started
        """
        if self._sock is None:
            raise ConnectionClosed("Stream is closed")

        header = self._read_exact(FRAME_HEADER_SIZE, at_boundary=True)
        try:
            length = read_frame_length(header, self.config.max_frame_size)
            body = self._read_exact(length, at_boundary=False)
            return decode(body)
        except ProtocolError:
            self.close()
            raise

    def __iter__(self) -> Iterator[Message]:
        while True:
            try:
                yield self.receive()
            except ConnectionClosed:
                return

    def close(self) -> None:
        """Close the underlying socket. Safe to call more than once."""
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()

    def __enter__(self) -> MessageStream:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def _read_exact(self, count: int, *, at_boundary: bool) -> bytes:
        sock = self._sock
        if sock is None:
            raise ConnectionClosed("Stream is closed")

        buffer = bytearray()

        while len(buffer) < count:
            try:
                chunk = sock.recv(count - len(buffer))
            except socket.timeout:
                if at_boundary and not buffer:
                    raise
                self.close()
                raise ProtocolError(
                    f"Timed out after {len(buffer)} of {count} frame bytes"
                ) from None
            except OSError as e:
                self.close()
                if at_boundary and not buffer:
                    raise ConnectionClosed(f"Connection lost: {e}") from e
                raise ProtocolError(
                    f"Connection lost after {len(buffer)} of {count} frame bytes: {e}"
                ) from e

            if not chunk:
                self.close()
                if at_boundary and not buffer:
                    raise ConnectionClosed("Stream closed on a frame boundary")
                raise ProtocolError(
                    f"Stream closed after {len(buffer)} of {count} frame bytes"
                )
            buffer.extend(chunk)

        return bytes(buffer)
