"""rdbg: Remote Debug Messages

A Python library for sending ad-hoc debug messages and expression dumps from
a running program to a separate viewer process over TCP, out-of-band from
stdout and stderr.

Key Features:
- Capture calls that never raise and never block on the network
- One background delivery thread with a bounded, drop-oldest queue
- Compact length-prefixed binary wire format
- Pull-based client decoder usable by any viewer
- Zero-cost disabled mode (RDBG_ENABLED=0)

Quick Start:
    >>> import rdbg
    >>> rdbg.msg("Hello %s", "world!")
    >>> rdbg.vals(answer=6 * 7, items=[1, 2, 3])
    >>> rdbg.flush(timeout=1.0)

Then, in another terminal:
    $ rdbg-view
"""

from __future__ import annotations

import logging

__version__ = "0.1.0"

from .capture import configure, flush, format_value, get_transport, msg, port, shutdown, start, vals
from .client import ClientConfig, MessageStream, connect, watch
from .codec import FrameDecoder, decode, encode, encode_frame
from .exceptions import (
    ConnectionClosed,
    EncodeError,
    ProtocolError,
    QueueOverflow,
    RdbgError,
    VersionMismatchError,
    ViewerConnectionError,
)
from .framing import frame_message, unframe_message
from .models import Message, SourceLocation, TextMessage, ValueDump
from .transport import (
    DROPPED,
    ConnectionState,
    DeliveryTransport,
    DroppedCounter,
    NullTransport,
    Transport,
    TransportConfig,
    create_transport,
)

__all__ = [
    # Capture API
    "msg",
    "vals",
    "flush",
    "configure",
    "get_transport",
    "port",
    "start",
    "shutdown",
    "format_value",
    # Models
    "Message",
    "SourceLocation",
    "TextMessage",
    "ValueDump",
    # Codec
    "encode",
    "encode_frame",
    "decode",
    "FrameDecoder",
    "frame_message",
    "unframe_message",
    # Transport
    "Transport",
    "DeliveryTransport",
    "NullTransport",
    "TransportConfig",
    "ConnectionState",
    "DroppedCounter",
    "DROPPED",
    "create_transport",
    # Client
    "ClientConfig",
    "MessageStream",
    "connect",
    "watch",
    # Exceptions
    "RdbgError",
    "EncodeError",
    "ProtocolError",
    "VersionMismatchError",
    "ConnectionClosed",
    "ViewerConnectionError",
    "QueueOverflow",
    # Version
    "__version__",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
