"""Human-readable rendering of decoded messages."""

from __future__ import annotations

from ..models.message import Message, TextMessage


def format_log_line(message: Message) -> str:
    """Render a message as one log line.

    Text messages that contain a newline start on the next line so they keep
    their own alignment. Value dumps render each pair as ``|expr->value|``.

    Example:
        >>> format_log_line(msg)
        'T:1700000000000 THR:MainThread app.py:12 hello'
    """
    header = (
        f"T:{message.timestamp} THR:{message.thread_identifier} "
        f"{message.source_location.filename}:{message.source_location.line}"
    )

    payload = message.payload
    if isinstance(payload, TextMessage):
        separator = "\n" if "\n" in payload.text else ""
        return f"{header}{separator} {payload.text}"

    return header + "".join(f" |{expression}->{value}|" for expression, value in payload.values)


def format_dump(message: Message) -> str:
    """Render every field of a message as an indented block."""
    lines = [
        "Message {",
        f"    timestamp: {message.timestamp},",
        f"    thread_identifier: {message.thread_identifier!r},",
        f"    filename: {message.source_location.filename!r},",
        f"    line: {message.source_location.line},",
    ]

    payload = message.payload
    if isinstance(payload, TextMessage):
        lines.append(f"    payload: TextMessage({payload.text!r}),")
    else:
        lines.append("    payload: ValueDump [")
        for expression, value in payload.values:
            indented = value.replace("\n", "\n            ")
            lines.append(f"        ({expression!r}, {indented}),")
        lines.append("    ],")

    lines.append("}")
    return "\n".join(lines)
