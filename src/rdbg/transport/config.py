"""Configuration for the producer-side transport.

This module provides the configuration dataclass for the delivery worker:
where to listen, how large the outbound queue is, and how reconnects back off.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Optional

LOOPBACK_HOST = "127.0.0.1"
ALL_INTERFACES_HOST = "0.0.0.0"
DEFAULT_PORT = 13579

ENV_PREFIX = "RDBG_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class TransportConfig:
    """Configuration for the debug message transport.

    The instrumented program listens on ``target_host:target_port`` and a
    viewer connects to it. By default only loopback connections are possible.

    Attributes:
        enabled: When False, ``create_transport`` returns a no-op transport
            and capture calls cost nothing beyond the function call.

        target_host: Address to listen on (default loopback only).

        target_port: Port to listen on (default 13579). Port 0 picks a free
            port, readable with ``Transport.wait_listening()``.

        insecure_remote: Listen on all interfaces instead of target_host.
            There is no authentication: anyone who can reach the port can
            read every debug message.

        queue_capacity: Maximum number of pending messages (default 2048).
            When full, the oldest message is dropped.

        max_retries: How many extra send attempts a message gets after a
            write failure before it is dropped (default 3).

        initial_backoff: First delay in seconds after a failed bind (default 0.1).

        max_backoff: Upper bound on the bind retry delay (default 2.0).

        backoff_multiplier: Growth factor between retries (default 2.0).

        poll_interval: How long the worker blocks waiting for a message or a
            viewer before re-checking for shutdown (default 0.05 seconds).

        write_timeout: Seconds a single frame write may block on a viewer
            that stopped reading before the connection is dropped (default 5.0).

        diagnostics: Optional callable receiving every contained error
            (QueueOverflow, OSError, EncodeError). Exceptions it raises are
            logged and ignored.

    Examples:
        ```python
        from rdbg import TransportConfig, create_transport

        config = TransportConfig(target_port=5000, queue_capacity=256)
        transport = create_transport(config)
        transport.start()
        ```
    """

    enabled: bool = True
    target_host: str = LOOPBACK_HOST
    target_port: int = DEFAULT_PORT
    insecure_remote: bool = False

    # Outbound queue
    queue_capacity: int = 2048
    max_retries: int = 3

    # Bind retry backoff, seconds
    initial_backoff: float = 0.1
    max_backoff: float = 2.0
    backoff_multiplier: float = 2.0

    poll_interval: float = 0.05
    write_timeout: float = 5.0

    diagnostics: Optional[Callable[[Exception], None]] = None

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not 0 <= self.target_port <= 65535:
            raise ValueError(f"target_port must be 0-65535, got {self.target_port}")

        if self.queue_capacity <= 0:
            raise ValueError(f"queue_capacity must be > 0, got {self.queue_capacity}")

        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

        if self.initial_backoff <= 0:
            raise ValueError(f"initial_backoff must be > 0, got {self.initial_backoff}")

        if self.max_backoff < self.initial_backoff:
            raise ValueError(
                f"max_backoff must be >= initial_backoff, got {self.max_backoff}"
            )

        if self.backoff_multiplier < 1.0:
            raise ValueError(
                f"backoff_multiplier must be >= 1.0, got {self.backoff_multiplier}"
            )

        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")

        if self.write_timeout <= 0:
            raise ValueError(f"write_timeout must be > 0, got {self.write_timeout}")

    @property
    def bind_host(self) -> str:
        """Address the listener actually binds to."""
        return ALL_INTERFACES_HOST if self.insecure_remote else self.target_host

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: object) -> TransportConfig:
        """Build a configuration from ``RDBG_*`` environment variables.

        Recognized: RDBG_ENABLED, RDBG_HOST, RDBG_PORT, RDBG_INSECURE_REMOTE,
        RDBG_QUEUE_CAPACITY, RDBG_MAX_RETRIES. Keyword overrides win over the
        environment.

        Raises:
            ValueError: If a variable has an unparseable value
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if f"{ENV_PREFIX}ENABLED" in env:
            values["enabled"] = _parse_bool(f"{ENV_PREFIX}ENABLED", env[f"{ENV_PREFIX}ENABLED"])
        if f"{ENV_PREFIX}HOST" in env:
            values["target_host"] = env[f"{ENV_PREFIX}HOST"]
        if f"{ENV_PREFIX}PORT" in env:
            values["target_port"] = _parse_int(f"{ENV_PREFIX}PORT", env[f"{ENV_PREFIX}PORT"])
        if f"{ENV_PREFIX}INSECURE_REMOTE" in env:
            values["insecure_remote"] = _parse_bool(
                f"{ENV_PREFIX}INSECURE_REMOTE", env[f"{ENV_PREFIX}INSECURE_REMOTE"]
            )
        if f"{ENV_PREFIX}QUEUE_CAPACITY" in env:
            values["queue_capacity"] = _parse_int(
                f"{ENV_PREFIX}QUEUE_CAPACITY", env[f"{ENV_PREFIX}QUEUE_CAPACITY"]
            )
        if f"{ENV_PREFIX}MAX_RETRIES" in env:
            values["max_retries"] = _parse_int(
                f"{ENV_PREFIX}MAX_RETRIES", env[f"{ENV_PREFIX}MAX_RETRIES"]
            )

        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
