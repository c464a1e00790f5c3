"""Binary encoder for debug messages.

This module provides the encode() function that converts a Message to the
body of one wire frame. Fields are written in a fixed order with big-endian
integers and u32-length-prefixed UTF-8 strings.
"""

from __future__ import annotations

from ..exceptions import EncodeError
from ..framing import frame_message
from ..models.message import Message, TextMessage, ValueDump
from .buffer import ByteWriter
from .wire import PayloadKind


def encode(message: Message) -> bytes:
    """Encode a message to its frame body (without the length header).

    Layout:
        [u8 kind][u64 timestamp][str thread_id][str filename][u32 line][payload]

    Args:
        message: Message to encode

    Returns:
        Encoded message body

    Raises:
        EncodeError: If a field value does not fit its wire width

    Examples:
        ```python
        from rdbg import Message, TextMessage, encode

        msg = Message.create("app.py", 3, TextMessage(text="hello"))
        body = encode(msg)
        assert body[0] == 0  # TextMessage tag
        ```
    """
    writer = ByteWriter()
    payload = message.payload

    try:
        writer.write_u8(_kind_of(payload))
        writer.write_u64(message.timestamp)
        writer.write_str(message.thread_identifier)
        writer.write_str(message.source_location.filename)
        writer.write_u32(message.source_location.line)
        _encode_payload(writer, payload)
    except ValueError as e:
        raise EncodeError(f"Cannot encode message: {e}") from e

    return writer.to_bytes()


def encode_frame(message: Message) -> bytes:
    """Encode a message and prepend the 4-byte length header.

    Raises:
        EncodeError: If the message cannot be encoded
    """
    body = encode(message)
    try:
        return frame_message(body)
    except ValueError as e:
        raise EncodeError(f"Cannot frame message: {e}") from e


def _kind_of(payload: TextMessage | ValueDump) -> PayloadKind:
    if isinstance(payload, TextMessage):
        return PayloadKind.TEXT
    if isinstance(payload, ValueDump):
        return PayloadKind.VALUES
    raise EncodeError(f"Unsupported payload type {type(payload).__name__}")


def _encode_payload(writer: ByteWriter, payload: TextMessage | ValueDump) -> None:
    if isinstance(payload, TextMessage):
        writer.write_str(payload.text)
        return

    # Pair count first, then each pair in call-site order
    writer.write_u32(len(payload.values))
    for expression, value in payload.values:
        writer.write_str(expression)
        writer.write_str(value)
