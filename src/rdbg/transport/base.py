"""Abstract interface for debug message transports.

Design Pattern: Strategy Pattern / Null Object
- Transport: Abstract interface used by every capture call
- DeliveryTransport: Real implementation with a background delivery worker
- NullTransport: Disabled configuration, every operation is a no-op

Call sites never need to know whether debugging is enabled; they always talk
to a Transport.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Optional

from ..models.message import Message


class ConnectionState(enum.Enum):
    """Lifecycle of the producer-side viewer connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Transport(ABC):
    """Abstract interface for delivering messages to a remote viewer.

    Implementations must guarantee that ``enqueue`` never raises and never
    blocks beyond a small constant bound, whatever the state of the network.

    Examples:
        ```python
        from rdbg import Message, TextMessage, TransportConfig, create_transport

        transport = create_transport(TransportConfig(target_port=5000))
        transport.start()
        transport.enqueue(Message.create("app.py", 1, TextMessage(text="hi")))
        transport.shutdown(deadline=2.0)
        ```
    """

    @abstractmethod
    def enqueue(self, message: Message) -> None:
        """Queue a message for delivery.

        Non-blocking. If the queue is full the oldest queued message is
        dropped. No error ever reaches the caller.

        Args:
            message: Message to deliver
        """
        pass

    @abstractmethod
    def start(self, target_host: Optional[str] = None, target_port: Optional[int] = None) -> None:
        """Start the background delivery worker.

        Idempotent: a second call while the worker is running does nothing.

        Args:
            target_host: Overrides the configured listen address
            target_port: Overrides the configured listen port
        """
        pass

    @abstractmethod
    def shutdown(self, deadline: float) -> bool:
        """Drain the queue and stop the worker.

        Blocks the calling thread until everything queued has been written or
        ``deadline`` seconds have passed. Messages still queued after the
        deadline are dropped for good.

        Args:
            deadline: Maximum number of seconds to wait

        Returns:
            True if every queued message was written, False on timeout
        """
        pass

    @abstractmethod
    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every message queued so far has been written.

        Unlike ``shutdown``, the worker keeps running afterwards.

        Args:
            timeout: Maximum number of seconds to wait; None waits forever

        Returns:
            True if the queue was fully written, False on timeout
        """
        pass

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        """Current state of the viewer connection."""
        pass

    @property
    @abstractmethod
    def dropped(self) -> int:
        """Messages dropped so far (capacity, retries, shutdown timeout)."""
        pass
