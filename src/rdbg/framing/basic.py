"""Length-prefixed message framing.

Every message on the wire is carried in one frame:
- [Length (4 bytes, big-endian, body size only)] [Body]
"""

from __future__ import annotations

import struct
from typing import Optional

from ..exceptions import ProtocolError

_LENGTH = struct.Struct(">I")

FRAME_HEADER_SIZE = _LENGTH.size

DEFAULT_MAX_FRAME_SIZE = 16 * 1024 * 1024


def frame_message(body: bytes) -> bytes:
    """Prepend the 4-byte big-endian length header to a message body.

    Args:
        body: Encoded message body

    Returns:
        Framed message

    Raises:
        ValueError: If the body is too long for a u32 length

    Example:
        >>> frame_message(b"Hello")
        b'\\x00\\x00\\x00\\x05Hello'
    """
    if len(body) > 0xFFFFFFFF:
        raise ValueError(f"Frame body of {len(body)} bytes exceeds u32 length field")
    return _LENGTH.pack(len(body)) + body


def read_frame_length(header: bytes, max_frame_size: Optional[int] = DEFAULT_MAX_FRAME_SIZE) -> int:
    """Parse a frame length header.

    Args:
        header: Exactly FRAME_HEADER_SIZE bytes
        max_frame_size: Largest body accepted, or None for no limit

    Returns:
        Body length announced by the header

    Raises:
        ProtocolError: If the header has the wrong size or announces a body
            larger than max_frame_size
    """
    if len(header) != FRAME_HEADER_SIZE:
        raise ProtocolError(
            f"Frame header must be {FRAME_HEADER_SIZE} bytes, got {len(header)} bytes"
        )

    length: int = _LENGTH.unpack(header)[0]
    if max_frame_size is not None and length > max_frame_size:
        raise ProtocolError(
            f"Frame length {length} exceeds maximum frame size {max_frame_size}"
        )
    return length


def unframe_message(
    framed: bytes,
    *,
    max_frame_size: Optional[int] = DEFAULT_MAX_FRAME_SIZE,
) -> bytes:
    """Strip the length header from exactly one complete frame.

    Args:
        framed: One framed message
        max_frame_size: Largest body accepted, or None for no limit

    Returns:
        Message body

    Raises:
        ProtocolError: If the frame is truncated or the length does not match

    Example:
        >>> unframe_message(frame_message(b"Hello"))
        b'Hello'
    """
    if len(framed) < FRAME_HEADER_SIZE:
        raise ProtocolError(f"Frame too short for length prefix: {len(framed)} bytes")

    expected = read_frame_length(framed[:FRAME_HEADER_SIZE], max_frame_size)
    body = framed[FRAME_HEADER_SIZE:]

    if len(body) != expected:
        raise ProtocolError(
            f"Length mismatch: prefix says {expected} bytes, but got {len(body)} bytes"
        )

    return body
