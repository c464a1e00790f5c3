"""Configuration for viewers reading from an instrumented program."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..codec.wire import DEFAULT_MAX_FRAME_SIZE


@dataclass
class ClientConfig:
    """Configuration for a client connection.

    Attributes:
        connect_timeout: Seconds allowed for the TCP connect and for the
            protocol preamble to arrive (default 2.0).

        read_timeout: Seconds a single receive may wait for the next frame,
            or None to wait forever (default None). A timeout between frames
            raises TimeoutError and leaves the stream usable.

        max_frame_size: Largest frame body accepted, in bytes (default 16 MiB).
            Larger announced lengths are a protocol error.

    Examples:
        ```python
        from rdbg.client import ClientConfig, connect

        stream = connect("127.0.0.1", 13579, ClientConfig(read_timeout=1.0))
        ```
    """

    connect_timeout: float = 2.0
    read_timeout: Optional[float] = None
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {self.connect_timeout}")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be > 0 or None, got {self.read_timeout}")

        if self.max_frame_size <= 0:
            raise ValueError(f"max_frame_size must be > 0, got {self.max_frame_size}")
