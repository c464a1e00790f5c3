"""Wire protocol constants shared by the producer and the client decoder."""

from __future__ import annotations

import enum

from ..framing.basic import DEFAULT_MAX_FRAME_SIZE, FRAME_HEADER_SIZE

# Sent as a single byte when a viewer connects, before any frame
WIRE_PROTOCOL_VERSION = 1

__all__ = [
    "DEFAULT_MAX_FRAME_SIZE",
    "FRAME_HEADER_SIZE",
    "WIRE_PROTOCOL_VERSION",
    "PayloadKind",
]


class PayloadKind(enum.IntEnum):
    """Payload-kind tag, the first byte of every encoded message."""

    TEXT = 0
    VALUES = 1
