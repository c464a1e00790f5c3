"""Background delivery worker for debug messages.

This module provides DeliveryTransport, which owns the outbound queue and one
background thread. The thread listens for a viewer, writes queued messages to
it in FIFO order, and re-listens whenever the viewer goes away.

Design Patterns:
- Queue-based decoupling: producers only touch the queue, never the socket
- Single owner: the worker thread is the only code that reads or writes the
  listener and the viewer connection
- Cooperative shutdown: shutdown() sets a deadline that the worker checks
  between blocking calls of at most poll_interval seconds
"""

from __future__ import annotations

import logging
import select
import socket
import threading
import time
from threading import Thread
from typing import Optional

from ..codec.encoder import encode_frame
from ..codec.wire import WIRE_PROTOCOL_VERSION
from ..exceptions import EncodeError, QueueOverflow
from ..models.message import Message
from .backoff import ExponentialBackoff
from .base import ConnectionState, Transport
from .config import TransportConfig
from .queue import DroppedCounter, OutboundQueue

logger = logging.getLogger(__name__)


class DeliveryTransport(Transport):
    """Transport that delivers messages to one connected viewer at a time.

    The instrumented program is the listening side: the worker binds
    ``config.bind_host:target_port`` and waits for a viewer to connect. Each
    connection starts with a one-byte protocol version, followed by frames.

    Attributes:
        config: Transport configuration
        queue: Outbound queue shared between producers and the worker

    Examples:
        ```python
        from rdbg import DeliveryTransport, Message, TextMessage, TransportConfig

        transport = DeliveryTransport(TransportConfig(target_port=0))
        transport.start()
        host, port = transport.wait_listening(timeout=1.0)

        transport.enqueue(Message.create("app.py", 7, TextMessage(text="ready")))
        transport.shutdown(deadline=2.0)
        ```
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        counter: Optional[DroppedCounter] = None,
    ) -> None:
        """Initialize transport. Nothing runs until start().

        Args:
            config: Transport configuration. If None, uses default config.
            counter: Dropped-message counter. If None, the process-wide
                counter is used.
        """
        self.config = config if config is not None else TransportConfig()
        self.queue = OutboundQueue(self.config.queue_capacity, counter)

        self._lifecycle_lock = threading.Lock()
        self._thread: Optional[Thread] = None
        self._stopping = threading.Event()
        self._deadline = float("inf")
        self._closed = False
        self._drain_complete = False

        self._host = self.config.bind_host
        self._port = self.config.target_port
        self._state = ConnectionState.DISCONNECTED
        self._listening = threading.Event()
        self._address: Optional[tuple[str, int]] = None

    # *** Producer-facing contract ***

    def enqueue(self, message: Message) -> None:
        try:
            if self._closed:
                self.queue.counter.increment()
                return

            if self.queue.put(message):
                self._report(QueueOverflow(self.queue.capacity, self.queue.counter.value))
        except Exception:
            # Instrumentation must never break the host program
            logger.debug("Failed to enqueue debug message", exc_info=True)

    def start(self, target_host: Optional[str] = None, target_port: Optional[int] = None) -> None:
        with self._lifecycle_lock:
            if self._thread is not None and self._thread.is_alive():
                return
            if self._closed:
                logger.debug("start() ignored: transport already shut down")
                return

            if target_host is not None and not self.config.insecure_remote:
                self._host = target_host
            if target_port is not None:
                self._port = target_port

            self._thread = Thread(target=self._run, daemon=True, name="rdbg-delivery")
            self._thread.start()

    def shutdown(self, deadline: float) -> bool:
        end = time.monotonic() + max(deadline, 0.0)

        with self._lifecycle_lock:
            thread = self._thread
            self._deadline = end
            self._stopping.set()
            self.queue.wake()

        if thread is None:
            # Never started: nothing can reach a viewer
            self._closed = True
            return self.queue.drain() == 0

        thread.join(max(end - time.monotonic(), 0.0) + self.config.poll_interval)

        completed = self._drain_complete and not thread.is_alive()
        self._closed = True
        leftover = self.queue.drain()
        if leftover:
            logger.warning("Shutdown deadline reached; dropped %d undelivered messages", leftover)
        return completed and leftover == 0

    def flush(self, timeout: Optional[float] = None) -> bool:
        thread = self._thread
        if thread is None or not thread.is_alive():
            return len(self.queue) == 0 and self.queue.in_flight == 0
        return self.queue.join(timeout)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def dropped(self) -> int:
        return self.queue.counter.value

    @property
    def running(self) -> bool:
        """True while the worker thread is alive."""
        thread = self._thread
        return thread is not None and thread.is_alive()

    def wait_listening(self, timeout: Optional[float] = None) -> Optional[tuple[str, int]]:
        """Wait until the worker is listening for a viewer.

        Args:
            timeout: Seconds to wait; None waits forever

        Returns:
            The bound (host, port), or None if not listening in time
        """
        if not self._listening.wait(timeout):
            return None
        return self._address

    # *** Worker thread ***

    def _run(self) -> None:
        logger.debug("Delivery worker started")
        backoff = ExponentialBackoff(
            self.config.initial_backoff,
            self.config.max_backoff,
            self.config.backoff_multiplier,
        )
        listener: Optional[socket.socket] = None

        try:
            while not self._should_exit():
                if listener is None:
                    listener = self._listen(backoff)
                    continue

                conn = self._accept(listener)
                if conn is None:
                    continue

                try:
                    self._serve(conn)
                finally:
                    self._disconnect(conn)
        except Exception:
            logger.exception("Delivery worker crashed")
        finally:
            if listener is not None:
                listener.close()
            self._listening.clear()
            self._state = ConnectionState.DISCONNECTED
            self._drain_complete = self._queue_idle()
            if self._stopping.is_set():
                # shutdown() may already have drained; count what came back since
                leftover = self.queue.drain()
                if leftover:
                    logger.warning("Dropped %d undelivered messages after shutdown", leftover)
            logger.debug("Delivery worker stopped")

    def _should_exit(self) -> bool:
        if not self._stopping.is_set():
            return False
        return self._queue_idle() or time.monotonic() >= self._deadline

    def _past_deadline(self) -> bool:
        return self._stopping.is_set() and time.monotonic() >= self._deadline

    def _queue_idle(self) -> bool:
        return len(self.queue) == 0 and self.queue.in_flight == 0

    def _listen(self, backoff: ExponentialBackoff) -> Optional[socket.socket]:
        try:
            listener = socket.create_server((self._host, self._port), backlog=1)
        except OSError as e:
            self._report(e)
            if self._stopping.is_set():
                # No more backoff while draining; retry at poll rate until the deadline
                delay = min(self.config.poll_interval, max(self._deadline - time.monotonic(), 0.0))
                time.sleep(delay)
            else:
                delay = backoff.next_delay()
                logger.warning(
                    "Unable to listen on %s:%s (%s); retrying in %.2fs",
                    self._host,
                    self._port,
                    e,
                    delay,
                )
                self._stopping.wait(delay)
            return None

        listener.settimeout(self.config.poll_interval)
        backoff.reset()
        host, port = listener.getsockname()[:2]
        self._address = (host, port)
        self._state = ConnectionState.CONNECTING
        self._listening.set()
        logger.info("Waiting for viewer on %s:%s", host, port)
        return listener

    def _accept(self, listener: socket.socket) -> Optional[socket.socket]:
        try:
            conn, addr = listener.accept()
        except socket.timeout:
            return None
        except OSError as e:
            self._report(e)
            logger.debug("accept() failed: %s", e)
            return None

        try:
            conn.settimeout(self.config.write_timeout)
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            conn.sendall(bytes([WIRE_PROTOCOL_VERSION]))
        except OSError as e:
            self._report(e)
            logger.debug("Viewer %s:%s dropped during handshake: %s", addr[0], addr[1], e)
            conn.close()
            return None

        self._state = ConnectionState.CONNECTED
        logger.info("Viewer connected from %s:%s", addr[0], addr[1])
        return conn

    def _serve(self, conn: socket.socket) -> None:
        """Write queued messages to one viewer until it goes away or we stop."""
        while True:
            if self._stopping.is_set():
                if self._queue_idle() or time.monotonic() >= self._deadline:
                    return

            entry = self.queue.get(timeout=self.config.poll_interval)
            if entry is None:
                if self._peer_closed(conn):
                    logger.info("Viewer disconnected")
                    return
                continue

            try:
                data = encode_frame(entry.message)
            except EncodeError as e:
                self.queue.task_done(dropped=True)
                self._report(e)
                logger.warning("Dropping message that cannot be encoded: %s", e)
                continue

            if self._peer_closed(conn):
                # Nothing was written, so this is not a failed attempt
                self.queue.requeue(entry)
                logger.info("Viewer disconnected")
                return

            try:
                conn.sendall(data)
            except OSError as e:
                self._report(e)
                entry.failed_attempts += 1
                if self._past_deadline():
                    self.queue.task_done(dropped=True)
                    logger.warning("Dropping message whose write outlived the shutdown deadline")
                elif entry.failed_attempts > self.config.max_retries:
                    self.queue.task_done(dropped=True)
                    logger.warning(
                        "Dropping message after %d failed send attempts", entry.failed_attempts
                    )
                else:
                    self.queue.requeue(entry)
                logger.info("Viewer connection lost: %s", e)
                return

            self.queue.task_done()

    def _peer_closed(self, conn: socket.socket) -> bool:
        # Viewers have nothing to say; discard whatever they send and look for EOF
        try:
            while True:
                readable, _, _ = select.select([conn], [], [], 0)
                if not readable:
                    return False
                if conn.recv(4096) == b"":
                    return True
        except OSError:
            return True

    def _disconnect(self, conn: socket.socket) -> None:
        try:
            conn.close()
        finally:
            if self._listening.is_set():
                self._state = ConnectionState.CONNECTING
            else:
                self._state = ConnectionState.DISCONNECTED

    def _report(self, error: Exception) -> None:
        callback = self.config.diagnostics
        if callback is None:
            return
        try:
            callback(error)
        except Exception:
            logger.exception("Diagnostics callback raised")
