"""Call-site capture API.

These functions build a Message from the caller's file and line plus a text
or a set of expression/value pairs, and hand it to a transport. They never
raise and never block on the network.

The process-wide default transport is created on first use from the
``RDBG_*`` environment (see TransportConfig.from_env) and started. Use
configure() to set it up explicitly and shutdown() to tear it down for good.

Example:
    >>> import rdbg
    >>> rdbg.msg("loaded %d rows from %s", 120, "users.csv")
    >>> rdbg.vals(rows=120, ratio=0.25)
    >>> rdbg.vals(("len(cache)", 3))
    >>> rdbg.flush(timeout=1.0)
"""

from __future__ import annotations

import inspect
import logging
import pprint
import threading
from typing import Optional

from .models.message import Message, TextMessage, ValueDump
from .transport.base import Transport
from .transport.config import TransportConfig
from .transport.factory import create_transport
from .transport.null import NullTransport

logger = logging.getLogger(__name__)

_default_lock = threading.Lock()
_default_transport: Optional[Transport] = None


def format_value(value: object) -> str:
    """Produce the display string for a dumped value.

    Uses pretty-printed ``repr`` so strings keep their quotes and nested
    containers wrap readably. Values whose repr raises are shown as
    ``<unformattable: TypeName>``.
    """
    try:
        return pprint.pformat(value)
    except Exception:
        return f"<unformattable: {type(value).__name__}>"


# *** Default transport lifecycle ***


def configure(config: Optional[TransportConfig] = None, *, drain_deadline: float = 1.0) -> Transport:
    """Create and start the default transport from config.

    An existing default transport is shut down first (waiting at most
    drain_deadline seconds) and replaced.

    Args:
        config: Transport configuration. If None, uses default config.
        drain_deadline: Seconds to let a previous default transport drain

    Returns:
        The new default transport
    """
    global _default_transport

    transport = create_transport(config)
    with _default_lock:
        previous, _default_transport = _default_transport, transport

    if previous is not None:
        previous.shutdown(drain_deadline)
    transport.start()
    return transport


def get_transport() -> Transport:
    """Return the default transport, creating and starting it on first use.

    An invalid ``RDBG_*`` environment disables debugging instead of raising.
    """
    global _default_transport

    transport = _default_transport
    if transport is not None:
        return transport

    with _default_lock:
        if _default_transport is None:
            try:
                config = TransportConfig.from_env()
            except ValueError as e:
                logger.warning("Invalid rdbg environment, debugging disabled: %s", e)
                config = TransportConfig(enabled=False)
            _default_transport = create_transport(config)
            _default_transport.start()
        return _default_transport


def port(number: int) -> Transport:
    """Return the default transport, creating it on ``number`` if needed.

    The first call that creates the default transport decides the port;
    later calls return the existing transport whatever number they pass.
    """
    global _default_transport

    with _default_lock:
        if _default_transport is None:
            try:
                config = TransportConfig.from_env(target_port=number)
            except ValueError as e:
                logger.warning("Invalid rdbg configuration, debugging disabled: %s", e)
                config = TransportConfig(enabled=False)
            _default_transport = create_transport(config)
            _default_transport.start()
        return _default_transport


def start() -> Transport:
    """Eagerly create and start the default transport."""
    return get_transport()


def shutdown(deadline: float = 1.0) -> bool:
    """Drain and tear down the default transport.

    The torn-down transport stays the default, so later capture calls are
    counted as dropped instead of starting a new listener. Only configure()
    sets up a fresh one.

    Returns:
        True if every queued message was written before the deadline (or no
        default transport exists)
    """
    global _default_transport

    with _default_lock:
        transport = _default_transport
        if transport is None:
            _default_transport = NullTransport()
            return True

    return transport.shutdown(deadline)


def flush(timeout: Optional[float] = None, *, transport: Optional[Transport] = None) -> bool:
    """Wait until every message queued so far has been written.

    Returns:
        True if the queue was written, False on timeout
    """
    target = transport if transport is not None else _default_transport
    if target is None:
        return True
    return target.flush(timeout)


# *** Capture calls ***


def msg(text: object, *args: object, transport: Optional[Transport] = None) -> None:
    """Send a text message tagged with the caller's file and line.

    Args:
        text: Message, or a %-format string when args are given
        *args: Values for the format string
        transport: Target transport; defaults to the process-wide one
    """
    try:
        target = transport if transport is not None else get_transport()
        if isinstance(target, NullTransport):
            return

        filename, line = _caller_location()
        if args:
            try:
                rendered = str(text) % args
            except (TypeError, ValueError):
                rendered = " ".join([str(text), *(format_value(arg) for arg in args)])
        else:
            rendered = str(text)

        target.enqueue(Message.create(filename, line, TextMessage(text=rendered)))
    except Exception:
        logger.debug("rdbg.msg() failed", exc_info=True)


def vals(*pairs: tuple[str, object], transport: Optional[Transport] = None, **named: object) -> None:
    """Send expression/value pairs tagged with the caller's file and line.

    Positional arguments are ``(expression_text, value)`` tuples; keyword
    arguments use the keyword as the expression text. Positional pairs come
    first, then keywords, each in call order. A value that must be labelled
    ``transport`` has to be passed as a positional pair.

    Args:
        *pairs: (expression_text, value) tuples
        transport: Target transport; defaults to the process-wide one
        **named: expression_text=value
    """
    try:
        target = transport if transport is not None else get_transport()
        if isinstance(target, NullTransport):
            return

        filename, line = _caller_location()
        values = [(str(expression), format_value(value)) for expression, value in pairs]
        values.extend((name, format_value(value)) for name, value in named.items())

        target.enqueue(Message.create(filename, line, ValueDump(values=tuple(values))))
    except Exception:
        logger.debug("rdbg.vals() failed", exc_info=True)


def _caller_location() -> tuple[str, int]:
    """File and line of the code that called msg() or vals()."""
    frame = inspect.currentframe()
    try:
        # _caller_location <- msg/vals <- caller
        caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
        if caller is None:
            return "<unknown>", 0
        return caller.f_code.co_filename, caller.f_lineno
    finally:
        del frame
