import asyncio
import struct
from functools import lru_cache
from typing import Optional, Tuple

from .messages import (
    COUNT_SIZE,
    DEFAULT_BYTE_ORDER,
    ELEMENT_SIZE,
    MAX_ELEMENTS,
    TOKEN_LIMIT,
    struct_prefix,
)

"""
framing.py - byte-level reads/writes for asyncio streams.

Two disciplines live here:
- Handshake tokens: ONE read of whatever the peer sent, up to a bound. There
  is no length prefix or delimiter; a well-behaved peer sends each token in
  one write and waits for our reply before sending the next.
- Vector phase: fixed-width integers. Every read accumulates until the exact
  byte count has arrived (StreamReader.readexactly does that for us).

Timeouts: every helper takes an optional deadline in seconds (None = wait
forever). Expiry raises asyncio.TimeoutError like any other transport error.
"""


@lru_cache(maxsize=None)
def _count_struct(byte_order: str) -> struct.Struct:
    return struct.Struct(struct_prefix(byte_order) + "I")


@lru_cache(maxsize=None)
def _result_struct(byte_order: str) -> struct.Struct:
    return struct.Struct(struct_prefix(byte_order) + "h")


# -----------------------------
# Handshake tokens
# -----------------------------

async def read_token(
    reader: asyncio.StreamReader,
    limit: int = TOKEN_LIMIT,
    timeout: Optional[float] = None,
) -> bytes:
    """
    Single read of up to `limit` bytes.

    Returns b"" if the peer closed, reset, or stayed silent past the
    deadline; callers treat all three the same way.
    """
    try:
        return await asyncio.wait_for(reader.read(limit), timeout)
    except (ConnectionError, asyncio.TimeoutError):
        return b""


def token_text(raw: bytes) -> str:
    """Decode a received token as a C string: stop at the first NUL."""
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


async def write_token(
    writer: asyncio.StreamWriter,
    data: bytes,
    timeout: Optional[float] = None,
) -> bool:
    """Send a handshake token. Returns False if the transport is gone."""
    try:
        writer.write(data)
        await asyncio.wait_for(writer.drain(), timeout)
        return True
    except (ConnectionError, asyncio.TimeoutError):
        return False


# -----------------------------
# Vector phase
# -----------------------------

async def read_exactly(
    reader: asyncio.StreamReader,
    n: int,
    timeout: Optional[float] = None,
) -> bytes:
    """readexactly() with a deadline. IncompleteReadError if the peer closes early."""
    return await asyncio.wait_for(reader.readexactly(n), timeout)


async def read_count(
    reader: asyncio.StreamReader,
    byte_order: str = DEFAULT_BYTE_ORDER,
    timeout: Optional[float] = None,
) -> int:
    """Read one u32 (vector count or element count)."""
    (value,) = _count_struct(byte_order).unpack(await read_exactly(reader, COUNT_SIZE, timeout))
    return value


async def read_vector(
    reader: asyncio.StreamReader,
    length: int,
    byte_order: str = DEFAULT_BYTE_ORDER,
    timeout: Optional[float] = None,
    max_elements: int = MAX_ELEMENTS,
) -> Tuple[int, ...]:
    """
    Read `length` int16 elements.

    Raises:
        ValueError: if `length` is above `max_elements` (0 disables the cap).
            Checked before reading so nothing gets allocated for it.
    """
    if max_elements and length > max_elements:
        raise ValueError(f"Vector size {length} exceeds limit {max_elements}")
    if length == 0:
        return ()
    payload = await read_exactly(reader, length * ELEMENT_SIZE, timeout)
    return struct.unpack(f"{struct_prefix(byte_order)}{length}h", payload)


def encode_result(value: int, byte_order: str = DEFAULT_BYTE_ORDER) -> bytes:
    """Pack one int16 result (struct.error if it doesn't fit)."""
    return _result_struct(byte_order).pack(value)


def decode_result(data: bytes, byte_order: str = DEFAULT_BYTE_ORDER) -> int:
    """Inverse of encode_result()."""
    (value,) = _result_struct(byte_order).unpack(data)
    return value


def encode_count(value: int, byte_order: str = DEFAULT_BYTE_ORDER) -> bytes:
    """Pack one u32 count (client side of the vector phase)."""
    return _count_struct(byte_order).pack(value)


def encode_vector(values, byte_order: str = DEFAULT_BYTE_ORDER) -> bytes:
    """Element count followed by the int16 elements, ready to send."""
    values = list(values)
    body = struct.pack(f"{struct_prefix(byte_order)}{len(values)}h", *values)
    return encode_count(len(values), byte_order) + body


async def write_result(
    writer: asyncio.StreamWriter,
    value: int,
    byte_order: str = DEFAULT_BYTE_ORDER,
    timeout: Optional[float] = None,
) -> None:
    """Write one 2-byte result and wait for the transport to take it."""
    writer.write(encode_result(value, byte_order))
    await asyncio.wait_for(writer.drain(), timeout)  # backpressure + surfaces dead peers
