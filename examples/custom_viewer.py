#!/usr/bin/env python3
"""Custom viewer example for rdbg.

This example demonstrates:
1. Following an instrumented program with watch()
2. Filtering messages by source file
3. Counting messages per thread

Usage:
    python examples/custom_viewer.py [port] [filename-substring]
"""

from __future__ import annotations

import sys
from collections import Counter

from rdbg.client import Connected, DecodeFailed, Disconnected, MessageReceived, watch
from rdbg.cli.render import format_log_line


def main() -> None:
    """Run the custom viewer example."""
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 13579
    pattern = sys.argv[2] if len(sys.argv) > 2 else ""
    per_thread: Counter[str] = Counter()

    print(f"Watching 127.0.0.1:{port} (filter: {pattern!r})")
    try:
        for event in watch("127.0.0.1", port):
            if isinstance(event, Connected):
                print("-- connected")
            elif isinstance(event, Disconnected):
                print(f"-- disconnected; messages per thread: {dict(per_thread)}")
            elif isinstance(event, DecodeFailed):
                print(f"-- corrupt frame: {event.error}")
            elif isinstance(event, MessageReceived):
                message = event.message
                per_thread[message.thread_identifier] += 1
                if pattern in message.filename:
                    print(format_log_line(message))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
