#!/usr/bin/env python3
"""Basic usage example for rdbg.

This example demonstrates:
1. Sending text messages and value dumps from a program
2. Messages from several threads
3. Flushing and shutting down the transport

Run ``rdbg-view`` in another terminal (before or while this runs) to see the
messages.
"""

from __future__ import annotations

import threading
import time

import rdbg


def worker(job_id: int) -> None:
    """Simulated background job."""
    for step in range(3):
        rdbg.msg("job %d step %d", job_id, step)
        time.sleep(0.2)
    rdbg.vals(job_id=job_id, result={"ok": True, "steps": 3})


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("rdbg Basic Usage Example")
    print("=" * 60)
    print()

    transport = rdbg.start()
    print("1. Transport started; connect with: rdbg-view")
    print()

    print("2. Sending messages from the main thread...")
    rdbg.msg("Hello from the main thread")
    rdbg.vals(("2 + 2", 2 + 2), answer=6 * 7, items=[1, 2, 3])
    rdbg.msg("a message\nspanning two lines")
    print()

    print("3. Sending messages from worker threads...")
    threads = [threading.Thread(target=worker, args=(n,), name=f"job-{n}") for n in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    print()

    print("4. Shutting down...")
    delivered = rdbg.shutdown(deadline=5.0)
    print(f"   All messages delivered: {delivered}")
    print(f"   Dropped so far: {transport.dropped}")
    print()

    print("=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
