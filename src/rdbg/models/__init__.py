"""Message models for rdbg."""

from __future__ import annotations

from .message import Message, Payload, SourceLocation, TextMessage, ValueDump

__all__ = [
    "Message",
    "Payload",
    "SourceLocation",
    "TextMessage",
    "ValueDump",
]
