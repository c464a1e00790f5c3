"""Reconnecting event feed for long-running viewers.

watch() wraps connect() and MessageStream in a loop that survives the
instrumented program restarting: it yields a Connected event, the messages,
a Disconnected event, and then waits for the program to come back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import ConnectionClosed, ProtocolError, VersionMismatchError, ViewerConnectionError
from ..models.message import Message
from .config import ClientConfig
from .stream import connect

logger = logging.getLogger(__name__)

DEFAULT_RETRY_INTERVAL = 0.25  # seconds


@dataclass(frozen=True)
class Connected:
    """Attached to the instrumented program."""

    address: tuple[str, int]


@dataclass(frozen=True)
class Disconnected:
    """Lost the connection to the instrumented program."""

    address: tuple[str, int]
    reason: Optional[Exception] = None


@dataclass(frozen=True)
class MessageReceived:
    """A message arrived."""

    message: Message


@dataclass(frozen=True)
class DecodeFailed:
    """A frame could not be decoded; a Disconnected event follows."""

    error: ProtocolError


WatchEvent = Union[Connected, Disconnected, MessageReceived, DecodeFailed]


def watch(
    host: str,
    port: int,
    config: Optional[ClientConfig] = None,
    *,
    retry_interval: float = DEFAULT_RETRY_INTERVAL,
    reconnect: bool = True,
) -> Iterator[WatchEvent]:
    """Yield connection events and messages, reconnecting as needed.

    Args:
        host: Hostname or address the program listens on
        port: Port the program listens on
        config: Client configuration. If None, uses default config.
        retry_interval: Seconds between connection attempts
        reconnect: If False, stop after the first disconnect

    Yields:
        Connected, MessageReceived, DecodeFailed and Disconnected events

    Raises:
        VersionMismatchError: The program speaks an incompatible protocol;
            retrying cannot help

    Examples:
        ```python
        from rdbg.client import MessageReceived, watch

        for event in watch("127.0.0.1", 13579):
            if isinstance(event, MessageReceived):
                print(event.message.payload)
        ```
    """
    if retry_interval < 0:
        raise ValueError(f"retry_interval must be >= 0, got {retry_interval}")

    address = (host, port)
    while True:
        try:
            stream = connect(host, port, config)
        except VersionMismatchError:
            raise
        except ViewerConnectionError as e:
            logger.debug("Connect attempt failed: %s", e)
            time.sleep(retry_interval)
            continue

        yield Connected(address)

        reason: Optional[Exception] = None
        with stream:
            while True:
                try:
                    message = stream.receive()
                except ConnectionClosed:
                    break
                except ProtocolError as e:
                    reason = e
                    yield DecodeFailed(e)
                    break
                yield MessageReceived(message)

        yield Disconnected(address, reason)

        if not reconnect:
            return
