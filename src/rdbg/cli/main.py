"""Main CLI entry point for the rdbg viewer."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .. import __version__
from ..client import ClientConfig, Connected, DecodeFailed, Disconnected, MessageReceived, watch
from ..exceptions import VersionMismatchError
from ..transport.config import DEFAULT_PORT, LOOPBACK_HOST
from .render import format_dump, format_log_line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rdbg-view",
        description="rdbg: remote debug message viewer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rdbg-view                        Connect to 127.0.0.1:13579
  rdbg-view 10.0.0.5 -p 5000       Connect to a remote program on port 5000
  rdbg-view --debug-fmt            Show every message as a structured dump
        """,
    )

    parser.add_argument(
        "hostname",
        nargs="?",
        default=LOOPBACK_HOST,
        help=f"Remote hostname of debugged program (default {LOOPBACK_HOST})",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Remote port on debugged program (default {DEFAULT_PORT})",
    )

    parser.add_argument(
        "-d",
        "--debug-fmt",
        action="store_true",
        help="Render messages as structured dumps instead of log lines",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Exit after the first disconnect instead of reconnecting",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log connection attempts and protocol details to stderr",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"rdbg {__version__}",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the rdbg viewer.

    Returns:
        Exit code (0 for success, 2 on protocol version mismatch)
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    render = format_dump if args.debug_fmt else format_log_line
    print(f"*** Trying to connect to {args.hostname}:{args.port}... ***", file=sys.stderr)

    try:
        for event in watch(args.hostname, args.port, ClientConfig(), reconnect=not args.once):
            if isinstance(event, MessageReceived):
                print(render(event.message), flush=True)
            elif isinstance(event, Connected):
                print(f"*** Connected to {event.address[0]}:{event.address[1]} ***", file=sys.stderr)
            elif isinstance(event, Disconnected):
                print(
                    f"*** Disconnected from {event.address[0]}:{event.address[1]} ***",
                    file=sys.stderr,
                )
            elif isinstance(event, DecodeFailed):
                print(f"*** Corrupt message received ({event.error}) ***", file=sys.stderr)
    except VersionMismatchError as e:
        print(f"*** Bad version ({e}) ***", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        pass

    print("*** Exiting... ***", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
