import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional, Sequence

from . import messages as m
from .client import ProtocolError, VectorClient
from .credentials import CredentialStore
from .events import EventLog
from .node import DEFAULT_TIMEOUT, VectorServer

"""
run_server.py - single entry point for VSSP.

What you can do here:
- Server:  load the user database, open the event log, serve forever
- Client:  one-shot login + vector exchange against a running server

Quick examples:
  Server:  python -m vssp.run_server -p 33333 -c ./scale.conf -l ./log/scale.log
  Client:  python -m vssp.run_server --mode client -p 33333 --id alice --secret alicepassword 1,2,3,4 200,200
"""

DEFAULT_PORT = 33333
DEFAULT_USER_DB = "/scale.conf"
DEFAULT_LOG_FILE = "/log/scale.log"


# -------------------------
# Process runners (thin wrappers)
# -------------------------

async def run_server(args: argparse.Namespace) -> int:
    """
    Startup order: event log → user database → bind → serve.

    Only the event log and the bind are fatal; a missing user database is
    recorded as critical and the server runs with nobody able to log in.
    """
    try:
        events = EventLog.open(args.log)
    except OSError as exc:
        print(f"ERROR: Cannot open log file {args.log} or fallback: {exc}", file=sys.stderr)
        return 1

    try:
        events.record("=== Server starting ===")
        try:
            store = CredentialStore.load(args.config)
        except OSError:
            events.record(f"Cannot open user database file: {args.config}", critical=True)
            store = CredentialStore()
        events.record(f"User database loaded, users: {len(store)}")

        server = VectorServer(
            args.host,
            args.port,
            store,
            events,
            timeout=args.timeout,
            max_elements=args.max_elements,
            byte_order=args.byte_order,
            sequential=args.sequential,
        )
        try:
            await server.start()
        except OSError as exc:
            events.record(f"Cannot bind socket to port {args.port}: {exc}", critical=True)
            print(f"Failed to start server: {exc}", file=sys.stderr)
            return 1

        events.record(f"Server started successfully on port {args.port}")
        print(f"User database: {args.config}")
        print(f"Log file: {events.path}")
        await server.run_forever()
        events.record("Server stopped")
        return 0
    finally:
        events.close()


async def run_client(args: argparse.Namespace) -> int:
    """Log in, push the vectors given on the command line, print each result."""
    if not args.ident or args.secret is None:
        raise SystemExit("--id and --secret (or VSSP_SECRET) are required for client mode")

    host = "127.0.0.1" if args.host in ("0.0.0.0", "") else args.host
    client = VectorClient(host, args.port, byte_order=args.byte_order, timeout=args.timeout or None)
    try:
        await client.connect()
        await client.authenticate(args.ident, args.secret)
        print("Authenticated.")
        results = await client.compute(args.vectors)
    except (ProtocolError, OSError) as exc:
        print(f"ERR: {exc}", file=sys.stderr)
        return 1
    finally:
        await client.close()

    for vec, result in zip(args.vectors, results):
        print(f"{list(vec)} -> {result}")
    return 0


# -------------------------
# Argument parsing
# -------------------------

def parse_vector(text: str) -> List[int]:
    """'1,2,-3' → [1, 2, -3]; '' → [] (an empty vector is legal)."""
    if not text.strip():
        return []
    try:
        values = [int(part) for part in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a comma-separated integer list: {text!r}")
    for v in values:
        if not -32768 <= v <= 32767:
            raise argparse.ArgumentTypeError(f"{v} does not fit in int16")
    return values


def parse_port(text: str) -> int:
    try:
        port = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid port number: {text}")
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"Invalid port number: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vssp-server",
        description="VSSP - authenticated vector sum-of-squares server",
    )
    p.add_argument("--mode", choices=["server", "client"], default="server")
    p.add_argument("-p", "--port", type=parse_port,
                   default=int(os.environ.get("VSSP_PORT", DEFAULT_PORT)),
                   help=f"Port number (default: {DEFAULT_PORT})")
    p.add_argument("-c", "--config", default=os.environ.get("VSSP_USER_DB", DEFAULT_USER_DB),
                   help=f"User database file (default: {DEFAULT_USER_DB})")
    p.add_argument("-l", "--log", default=os.environ.get("VSSP_LOG_FILE", DEFAULT_LOG_FILE),
                   help=f"Log file (default: {DEFAULT_LOG_FILE})")
    p.add_argument("--host", default=os.environ.get("VSSP_HOST", "0.0.0.0"))
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                   help="Per read/write deadline in seconds, 0 disables")
    p.add_argument("--max-elements", type=int, default=m.MAX_ELEMENTS,
                   help="Largest accepted vector, 0 disables the cap")
    p.add_argument("--byte-order", choices=sorted(m.BYTE_ORDERS), default=m.DEFAULT_BYTE_ORDER)
    p.add_argument("--sequential", action="store_true", help="Serve one client at a time")
    p.add_argument("--id", dest="ident", help="Client mode: identifier to log in as")
    p.add_argument("--secret", default=os.environ.get("VSSP_SECRET"),
                   help="Client mode: secret (or VSSP_SECRET)")
    p.add_argument("vectors", nargs="*", type=parse_vector,
                   help="Client mode: vectors as comma-separated int16 lists "
                        "(put -- before them if one starts with a minus)")
    p.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return p


# -------------------------
# Main entrypoint
# -------------------------

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dispatch into the chosen mode; keep top-level code very small."""
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()
    if not argv:
        # No options at all: print usage and exit cleanly.
        parser.print_help()
        return 0
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.mode == "client":
        return asyncio.run(run_client(args))
    print(f"Starting server on port {args.port}")
    return asyncio.run(run_server(args))


if __name__ == "__main__":
    sys.exit(main())
