"""Exception hierarchy for rdbg.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from RdbgError for easy catching of any rdbg-specific error.

Producer-side problems (queue overflow, lost viewers, encode failures) never
propagate to the instrumented program; they are counted and handed to the
transport's diagnostics callback instead. Client-side problems propagate to
whoever is pulling messages off the stream.
"""

from __future__ import annotations


class RdbgError(Exception):
    """Base exception for all rdbg errors."""

    pass


class EncodeError(RdbgError):
    """Raised when a message cannot be encoded onto the wire.

    Examples:
        - A string longer than a u32 length prefix can describe
        - A timestamp or line number outside its field width
        - More value pairs than a u32 count can hold
    """

    pass


class ProtocolError(RdbgError):
    """Raised when bytes received from the producer cannot be decoded.

    A protocol error is terminal for the connection it happened on.

    Examples:
        - Stream closed in the middle of a frame
        - Unknown payload-kind tag
        - Invalid UTF-8 in a string field
        - Frame length larger than the configured maximum
        - Bytes left over after the payload
    """

    pass


class VersionMismatchError(ProtocolError):
    """Raised when the producer announces an unsupported wire protocol version."""

    def __init__(self, version: int, expected: int) -> None:
        super().__init__(
            f"Unsupported wire protocol version {version} (only version {expected} is understood)"
        )
        self.version = version
        self.expected = expected


class ConnectionClosed(RdbgError):
    """Raised when the stream ends cleanly on a frame boundary."""

    pass


class ViewerConnectionError(RdbgError, ConnectionError):
    """Raised when a viewer cannot reach the instrumented program.

    Examples:
        - Connection refused (nothing listening on the port)
        - Host unreachable or connect timeout
        - Peer closed before sending the protocol preamble
    """

    pass


class QueueOverflow(RdbgError):
    """Reported when the outbound queue evicts its oldest message.

    This is never raised to the code calling ``enqueue``. Instances are passed
    to the transport's diagnostics callback so the eviction can be observed.
    """

    def __init__(self, capacity: int, dropped_total: int) -> None:
        super().__init__(
            f"Outbound queue full (capacity {capacity}); oldest message dropped "
            f"({dropped_total} dropped so far)"
        )
        self.capacity = capacity
        self.dropped_total = dropped_total
