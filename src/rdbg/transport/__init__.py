"""Producer-side delivery of debug messages.

This module provides the asynchronous pipeline between capture calls and a
remote viewer:

- **Transport**: Abstract contract (enqueue / start / shutdown / flush)
- **DeliveryTransport**: Bounded queue plus one background worker thread that
  listens for a viewer and writes frames to it in FIFO order
- **NullTransport**: Disabled configuration, every call is a no-op
- **TransportConfig**: Listen address, queue capacity, retry and backoff bounds

## Quick Start

```python
from rdbg.transport import TransportConfig, create_transport
from rdbg import Message, TextMessage

transport = create_transport(TransportConfig(target_port=13579))
transport.start()
transport.enqueue(Message.create("job.py", 42, TextMessage(text="step 1 done")))
transport.shutdown(deadline=2.0)
```

## Failure semantics

Nothing in this module raises into the calling program. Overflowing the
queue, losing the viewer, or failing to bind are counted in the dropped
counter, logged on the ``rdbg.transport`` logger and passed to the optional
``diagnostics`` callback.
"""

from rdbg.transport.backoff import ExponentialBackoff
from rdbg.transport.base import ConnectionState, Transport
from rdbg.transport.config import DEFAULT_PORT, LOOPBACK_HOST, TransportConfig
from rdbg.transport.factory import create_transport
from rdbg.transport.null import NullTransport
from rdbg.transport.queue import DROPPED, DroppedCounter, OutboundQueue, PendingMessage
from rdbg.transport.worker import DeliveryTransport

__all__ = [
    "ConnectionState",
    "DEFAULT_PORT",
    "DROPPED",
    "DeliveryTransport",
    "DroppedCounter",
    "ExponentialBackoff",
    "LOOPBACK_HOST",
    "NullTransport",
    "OutboundQueue",
    "PendingMessage",
    "Transport",
    "TransportConfig",
    "create_transport",
]
