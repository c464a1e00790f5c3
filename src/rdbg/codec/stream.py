"""Incremental frame decoder for byte streams.

Bytes can arrive in arbitrary chunks; FrameDecoder buffers them until a whole
frame (header plus body) is available and only then produces a Message.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional

from ..exceptions import ConnectionClosed, ProtocolError
from ..framing import read_frame_length
from ..models.message import Message
from .decoder import decode
from .wire import DEFAULT_MAX_FRAME_SIZE, FRAME_HEADER_SIZE


class FrameDecoder:
    """Turns arbitrarily chunked bytes into complete Messages.

    Example:
        >>> decoder = FrameDecoder()
        >>> decoder.feed(data[:3])
        >>> list(decoder)          # nothing complete yet
        []
        >>> decoder.feed(data[3:])
        >>> [m.payload for m in decoder]
        [TextMessage(kind='text', text='hello')]
        >>> decoder.close()        # clean boundary: raises ConnectionClosed
    """

    def __init__(self, max_frame_size: Optional[int] = DEFAULT_MAX_FRAME_SIZE) -> None:
        self._buffer = bytearray()
        self._max_frame_size = max_frame_size
        self._closed = False

    def feed(self, data: bytes) -> None:
        """Append received bytes.

        Raises:
            ProtocolError: If the decoder was already closed
        """
        if self._closed:
            raise ProtocolError("Cannot feed a closed decoder")
        self._buffer.extend(data)

    def next_message(self) -> Optional[Message]:
        """Return the next complete message, or None if more bytes are needed.

        Raises:
            ProtocolError: If a complete frame cannot be decoded, or the
                header announces a frame above max_frame_size
        """
        if len(self._buffer) < FRAME_HEADER_SIZE:
            return None

        length = read_frame_length(bytes(self._buffer[:FRAME_HEADER_SIZE]), self._max_frame_size)
        end = FRAME_HEADER_SIZE + length
        if len(self._buffer) < end:
            return None

        body = bytes(self._buffer[FRAME_HEADER_SIZE:end])
        del self._buffer[:end]
        return decode(body)

    def __iter__(self) -> Iterator[Message]:
        while True:
            message = self.next_message()
            if message is None:
                return
            yield message

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a returned message."""
        return len(self._buffer)

    def close(self) -> None:
        """Signal end of stream.

        Always raises: ConnectionClosed when the stream ended on a frame
        boundary, ProtocolError when a partial frame is left over.

        Raises:
            ConnectionClosed: Clean end of stream
            ProtocolError: Truncated frame
        """
        self._closed = True
        if self._buffer:
            raise ProtocolError(
                f"Stream closed with {len(self._buffer)} bytes of an incomplete frame"
            )
        raise ConnectionClosed("Stream closed on a frame boundary")
