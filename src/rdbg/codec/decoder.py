"""Binary decoder for debug messages.

This module provides the decode() function that converts the body of one wire
frame back to a Message.
"""

from __future__ import annotations

from pydantic import ValidationError

from ..exceptions import ProtocolError
from ..models.message import Message, SourceLocation, TextMessage, ValueDump
from .buffer import ByteReader
from .wire import PayloadKind


def decode(body: bytes) -> Message:
    """Decode a frame body (without the length header) to a Message.

    Args:
        body: Exactly the bytes of one encoded message

    Returns:
        Decoded message

    Raises:
        ProtocolError: If the body is truncated, has an unknown payload kind,
            contains invalid UTF-8, or has bytes left over after the payload

    Examples:
        ```python
        from rdbg import decode, encode

        assert decode(encode(msg)) == msg
        ```
    """
    reader = ByteReader(body)

    try:
        tag = reader.read_u8()
        try:
            kind = PayloadKind(tag)
        except ValueError as e:
            raise ProtocolError(f"Unknown payload kind {tag}") from e

        timestamp = reader.read_u64()
        thread_identifier = reader.read_str()
        filename = reader.read_str()
        line = reader.read_u32()

        payload: TextMessage | ValueDump
        if kind is PayloadKind.TEXT:
            payload = TextMessage(text=reader.read_str())
        else:
            payload = ValueDump(values=_decode_values(reader))
    except IndexError as e:
        raise ProtocolError(f"Truncated message: {e}") from e
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Invalid UTF-8 in message: {e}") from e

    if reader.remaining():
        raise ProtocolError(f"{reader.remaining()} unexpected bytes after message payload")

    try:
        return Message(
            timestamp=timestamp,
            thread_identifier=thread_identifier,
            source_location=SourceLocation(filename=filename, line=line),
            payload=payload,
        )
    except ValidationError as e:
        raise ProtocolError(f"Failed to construct Message: {e}") from e


def _decode_values(reader: ByteReader) -> tuple[tuple[str, str], ...]:
    count = reader.read_u32()
    # Each pair needs at least two length prefixes; reject absurd counts
    # before building anything
    if count * 8 > reader.remaining():
        raise ProtocolError(
            f"Value count {count} exceeds remaining {reader.remaining()} bytes"
        )

    values = []
    for _ in range(count):
        expression = reader.read_str()
        value = reader.read_str()
        values.append((expression, value))
    return tuple(values)
