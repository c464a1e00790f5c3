"""Immutable message model shared by producers and viewers.

A Message is created once at the capture site and never mutated afterwards.
All models are frozen pydantic models, so they can be handed between threads
without locking and compared field-for-field after a decode.
"""

from __future__ import annotations

import threading
import time
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
    )


class SourceLocation(_FrozenModel):
    """File and line a message was captured at."""

    filename: str
    line: int = Field(ge=0, le=U32_MAX)


class TextMessage(_FrozenModel):
    """A pre-formatted line of text."""

    kind: Literal["text"] = "text"
    text: str


class ValueDump(_FrozenModel):
    """Ordered (expression_text, formatted_value) pairs.

    Order is the argument order at the call site and is preserved on the wire.
    """

    kind: Literal["values"] = "values"
    values: tuple[tuple[str, str], ...] = ()


Payload = Annotated[Union[TextMessage, ValueDump], Field(discriminator="kind")]


def current_time_ms() -> int:
    """Wall-clock milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def current_thread_identifier() -> str:
    """Opaque identifier of the calling thread (its name)."""
    return threading.current_thread().name


class Message(_FrozenModel):
    """One debug event: when, where, which thread, and what.

    Attributes:
        timestamp: Milliseconds since epoch when the message was created
        thread_identifier: Thread that created the message
        source_location: File and line of the capture call
        payload: TextMessage or ValueDump

    Example:
        >>> msg = Message.create("app.py", 12, TextMessage(text="hello"))
        >>> msg.payload.text
        'hello'
    """

    timestamp: int = Field(ge=0, le=U64_MAX)
    thread_identifier: str
    source_location: SourceLocation
    payload: Payload

    @classmethod
    def create(cls, filename: str, line: int, payload: TextMessage | ValueDump) -> Message:
        """Build a message stamped with the current time and thread."""
        return cls(
            timestamp=current_time_ms(),
            thread_identifier=current_thread_identifier(),
            source_location=SourceLocation(filename=filename, line=line),
            payload=payload,
        )

    @property
    def filename(self) -> str:
        return self.source_location.filename

    @property
    def line(self) -> int:
        return self.source_location.line
