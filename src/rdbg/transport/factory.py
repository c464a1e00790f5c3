"""Select the transport implementation for a configuration."""

from __future__ import annotations

from typing import Optional

from .base import Transport
from .config import TransportConfig
from .null import NullTransport
from .queue import DroppedCounter
from .worker import DeliveryTransport


def create_transport(
    config: Optional[TransportConfig] = None,
    counter: Optional[DroppedCounter] = None,
) -> Transport:
    """Create the transport described by config.

    Args:
        config: Transport configuration. If None, uses default config.
        counter: Dropped-message counter for the delivery transport.

    Returns:
        NullTransport when ``config.enabled`` is False, otherwise a
        DeliveryTransport (not yet started)

    Examples:
        ```python
        from rdbg import TransportConfig, create_transport

        transport = create_transport(TransportConfig(enabled=False))
        transport.start()    # no-op
        ```
    """
    config = config if config is not None else TransportConfig()
    if not config.enabled:
        return NullTransport()
    return DeliveryTransport(config, counter)
