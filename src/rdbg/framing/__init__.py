"""Message framing utilities for rdbg.

This module provides the length-prefix framing used to delimit messages on a
TCP stream.
"""

from __future__ import annotations

from .basic import frame_message, read_frame_length, unframe_message

__all__ = [
    "frame_message",
    "read_frame_length",
    "unframe_message",
]
