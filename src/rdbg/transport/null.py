"""No-op transport used when debugging is disabled."""

from __future__ import annotations

from typing import Optional

from ..models.message import Message
from .base import ConnectionState, Transport


class NullTransport(Transport):
    """Transport whose every operation returns immediately and does nothing."""

    def enqueue(self, message: Message) -> None:
        pass

    def start(self, target_host: Optional[str] = None, target_port: Optional[int] = None) -> None:
        pass

    def shutdown(self, deadline: float) -> bool:
        return True

    def flush(self, timeout: Optional[float] = None) -> bool:
        return True

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.DISCONNECTED

    @property
    def dropped(self) -> int:
        return 0
