import asyncio
import contextlib
import logging
import signal
from typing import Mapping, Optional, Set, Tuple

from . import messages as m
from .auth import authenticate
from .compute import sum_of_squares
from .events import EventLog
from .framing import read_count, read_vector, write_result

"""
node.py - the VSSP server: listener, per-connection session, vector loop.

Session shape:
    accept → handshake → (rejected: close) → vector loop → close

Each connection runs as its own asyncio task. With `sequential=True` a lock
admits one session at a time (one client fully served before the next).
Errors never leave a session: they are recorded and the socket is
closed; the listener keeps going.
"""

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0  # seconds per read/write; None waits forever


class ConnectionContext:
    """Tiny wrapper to keep reader/writer and what we learned about the peer."""
    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.reader = reader
        self.writer = writer
        peer = writer.get_extra_info("peername")
        self.peer = f"{peer[0]}:{peer[1]}" if peer else "unknown"
        self.login: Optional[str] = None


class VectorServer:
    """
    Authenticating sum-of-squares server.

      - Credentials are a read-only mapping shared by every session.
      - All events go to one EventLog (serialized writes).
      - Counts/elements/results use one configured byte order.
    """
    def __init__(
        self,
        host: str,
        port: int,
        store: Mapping[str, str],
        events: EventLog,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        max_elements: int = m.MAX_ELEMENTS,
        token_limit: int = m.TOKEN_LIMIT,
        byte_order: str = m.DEFAULT_BYTE_ORDER,
        sequential: bool = False,
    ) -> None:
        m.struct_prefix(byte_order)  # fail fast on a bad name
        self.host = host
        self.port = port
        self.store = store
        self.events = events
        self.timeout = timeout or None
        self.max_elements = max_elements
        self.token_limit = token_limit
        self.byte_order = byte_order
        self._turn = asyncio.Lock() if sequential else None
        self._server: Optional[asyncio.AbstractServer] = None
        self._sessions: Set[asyncio.Task] = set()

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) actually bound; handy when port=0 was asked for."""
        if not self._server or not self._server.sockets:
            return self.host, self.port
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def start(self) -> None:
        """
        Bind and start accepting.

        Raises:
            OSError: if the socket can't be bound (caller decides it's fatal).
        """
        self._server = await asyncio.start_server(self.handle_conn, self.host, self.port)
        log.info("VSSP server listening on %s:%d", *self.address)

    async def stop(self) -> None:
        """Stop accepting, cancel live sessions, wait for everything to wind down."""
        server, self._server = self._server, None
        if server:
            server.close()
        # Sessions first: wait_closed() also waits on open connections.
        for task in list(self._sessions):
            task.cancel()
        if self._sessions:
            await asyncio.gather(*self._sessions, return_exceptions=True)
        if server:
            await server.wait_closed()
        log.info("VSSP server stopped.")

    async def run_forever(self) -> None:
        """Serve until SIGINT/SIGTERM. Assumes start() already succeeded."""
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

        print(f"VSSP server running on {self.address[0]}:{self.address[1]}")
        print("Press Ctrl+C to stop.")

        await stop_event.wait()
        await self.stop()

    # ── Session ───────────────────────────────────────────────────────

    async def handle_conn(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """One connection, start to finish: handshake, vectors, close."""
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        ctx = ConnectionContext(reader, writer)
        try:
            async with (self._turn or contextlib.nullcontext()):
                await self._session(ctx)
        finally:
            if task is not None:
                self._sessions.discard(task)

    async def _session(self, ctx: ConnectionContext) -> None:
        self.events.record(f"New client connection established from {ctx.peer}")
        try:
            ctx.login = await authenticate(
                ctx, self.store, self.events,
                token_limit=self.token_limit, timeout=self.timeout,
            )
            if ctx.login is None:
                self.events.record("Authentication failed, closing connection")
                return
            self.events.record("Client authenticated successfully")
            await self.process_vectors(ctx)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.exception("Session error for %s", ctx.peer)
            self.events.record(f"Connection error: {exc}")
        finally:
            ctx.writer.close()
            with contextlib.suppress(ConnectionError):
                await ctx.writer.wait_closed()
            self.events.record("Client connection closed")

    # ── Vector loop ───────────────────────────────────────────────────

    async def process_vectors(self, ctx: ConnectionContext) -> None:
        """
        Read N, then for each vector read L + L elements and answer with one
        int16 before touching the next vector. Any short read or failed write
        ends the loop; a half-received vector gets no reply.
        """
        transport_errors = (asyncio.IncompleteReadError, ConnectionError, asyncio.TimeoutError)

        try:
            count = await read_count(ctx.reader, self.byte_order, self.timeout)
        except transport_errors:
            self.events.record("Failed to read number of vectors")
            return
        log.debug("[%s] %d vector(s) announced", ctx.login, count)

        for i in range(count):
            try:
                length = await read_count(ctx.reader, self.byte_order, self.timeout)
            except transport_errors:
                self.events.record("Failed to read vector size")
                return

            try:
                vector = await read_vector(
                    ctx.reader, length, self.byte_order, self.timeout, self.max_elements,
                )
            except ValueError as exc:
                self.events.record(str(exc))
                return
            except transport_errors:
                self.events.record("Failed to read vector data")
                return

            result = sum_of_squares(vector)
            log.debug("[%s] vector %d: %d element(s) -> %d", ctx.login, i + 1, length, result)

            try:
                await write_result(ctx.writer, result, self.byte_order, self.timeout)
            except (ConnectionError, asyncio.TimeoutError):
                self.events.record(f"Failed to send result for vector {i + 1}")
                return

        log.debug("[%s] all %d vector(s) processed", ctx.login, count)
