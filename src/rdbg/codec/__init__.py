"""Binary wire codec for rdbg.

This module provides encoding and decoding of debug messages to and from
length-prefixed binary frames.
"""

from __future__ import annotations

from .decoder import decode
from .encoder import encode, encode_frame
from .stream import FrameDecoder
from .wire import DEFAULT_MAX_FRAME_SIZE, FRAME_HEADER_SIZE, WIRE_PROTOCOL_VERSION, PayloadKind

__all__ = [
    "encode",
    "encode_frame",
    "decode",
    "FrameDecoder",
    "PayloadKind",
    "WIRE_PROTOCOL_VERSION",
    "FRAME_HEADER_SIZE",
    "DEFAULT_MAX_FRAME_SIZE",
]
