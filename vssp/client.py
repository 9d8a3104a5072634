import asyncio
from typing import Iterable, List, Optional, Sequence

from . import crypto
from . import messages as m
from .framing import decode_result, encode_count, encode_vector, read_exactly, read_token

"""
client.py - peer side of VSSP, used by the CLI client mode and the tests.

Typical usage:
    client = VectorClient("127.0.0.1", 33333)
    await client.connect()
    await client.authenticate("alice", "alicepassword")
    print(await client.compute([[1, 2, 3, 4], [200, 200]]))   # [30, 32767]
    await client.close()

Each handshake token goes out in a single write and we wait for the reply
before sending the next one; the server reads tokens with one read each.
"""


class ProtocolError(Exception):
    """The server answered with something the protocol doesn't allow, or hung up."""


class AuthenticationError(ProtocolError):
    """The server sent ERR during the handshake."""


# Ways a dropped or stalled connection shows up on our side.
TRANSPORT_ERRORS = (asyncio.IncompleteReadError, ConnectionError, asyncio.TimeoutError)


class VectorClient:
    def __init__(
        self,
        host: str,
        port: int,
        byte_order: str = m.DEFAULT_BYTE_ORDER,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.byte_order = byte_order
        self.timeout = timeout
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    async def connect(self) -> None:
        self.reader, self.writer = await asyncio.open_connection(self.host, self.port)

    async def _send(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await self.writer.drain()
        except ConnectionError as exc:
            raise ProtocolError(f"Server closed the connection: {exc}") from exc

    async def authenticate(self, identifier: str, secret: str) -> None:
        """
        Run the login handshake.

        Raises:
            AuthenticationError: unknown identifier or wrong secret.
            ProtocolError: anything other than ERR / salt / OK came back.
        """
        await self._send(identifier.encode("utf-8"))

        reply = await read_token(self.reader, m.TOKEN_LIMIT, self.timeout)
        if reply == m.ERR:
            raise AuthenticationError(f"Identification rejected for {identifier!r}")
        salt = reply.decode("ascii", errors="replace")
        if not crypto.is_hex_token(salt, crypto.SALT_HEX_LEN):
            raise ProtocolError(f"Expected a {crypto.SALT_HEX_LEN}-char salt, got {reply!r}")

        await self._send(crypto.digest_token(salt, secret).encode("ascii"))

        reply = await read_token(self.reader, m.TOKEN_LIMIT, self.timeout)
        if reply == m.ERR:
            raise AuthenticationError(f"Wrong secret for {identifier!r}")
        if reply != m.OK:
            raise ProtocolError(f"Expected OK or ERR, got {reply!r}")

    async def compute(self, vectors: Iterable[Sequence[int]]) -> List[int]:
        """
        Send every vector, one at a time, and collect the int16 replies.

        Raises:
            ProtocolError: the server hung up (or went silent) before
                answering every vector, e.g. after refusing an oversized one.
        """
        vectors = list(vectors)
        await self._send(encode_count(len(vectors), self.byte_order))
        results = []
        for vec in vectors:
            await self._send(encode_vector(vec, self.byte_order))
            try:
                data = await read_exactly(self.reader, m.ELEMENT_SIZE, self.timeout)
            except TRANSPORT_ERRORS as exc:
                raise ProtocolError(
                    f"No result for vector {len(results) + 1} of {len(vectors)}: {exc!r}"
                ) from exc
            results.append(decode_result(data, self.byte_order))
        return results

    async def close(self) -> None:
        if self.writer is None:
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            pass
        self.writer = None
