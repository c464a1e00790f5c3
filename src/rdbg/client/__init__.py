"""Client-side decoding of debug messages.

This module turns a TCP connection to an instrumented program into a sequence
of Message values, independent of how a viewer renders them.

- **connect()** / **MessageStream**: one connection, pull-based, ends on
  disconnect
- **watch()**: reconnecting event feed for long-running viewers
"""

from rdbg.client.config import ClientConfig
from rdbg.client.stream import MessageStream, connect
from rdbg.client.watch import (
    Connected,
    DecodeFailed,
    Disconnected,
    MessageReceived,
    WatchEvent,
    watch,
)

__all__ = [
    "ClientConfig",
    "Connected",
    "DecodeFailed",
    "Disconnected",
    "MessageReceived",
    "MessageStream",
    "WatchEvent",
    "connect",
    "watch",
]
