"""
messages.py - fixed tokens and sizes of the VSSP wire protocol.

Wire sequence (per connection):
    client → server   identifier bytes            (one read, no delimiter)
    server → client   ERR | 16-byte salt (hex)
    client → server   digest bytes                (one read, 56 hex chars)
    server → client   ERR | OK
    client → server   u32 vector count N
      N times:
    client → server   u32 element count L, then L x int16
    server → client   int16 saturated sum of squares

There is no version field and no end-of-session message; the server simply
closes the connection after the last reply (or after a rejection).
"""

# -----------------------
# Handshake reply tokens
# -----------------------
OK = b"OK"
ERR = b"ERR"

# One read of at most this many bytes per identifier / digest
# (256-byte receive buffer minus the terminator slot).
TOKEN_LIMIT = 255

# -----------------------
# Vector phase sizes
# -----------------------
COUNT_SIZE = 4      # u32 vector count and element count
ELEMENT_SIZE = 2    # int16 elements and results

# Hard cap on elements per vector so a bogus L can't make us allocate
# silly amounts of memory (4 MiB of element data).
MAX_ELEMENTS = 2 * 1024 * 1024

# -----------------------
# Byte order
# -----------------------
# struct prefixes. "native" keeps the host's order with standard sizes,
# i.e. bytes pass through unconverted.
BYTE_ORDERS = {
    "native": "=",
    "little": "<",
    "big": ">",
}
DEFAULT_BYTE_ORDER = "native"


def struct_prefix(byte_order: str) -> str:
    """Map a byte-order name to its struct prefix; ValueError if unknown."""
    try:
        return BYTE_ORDERS[byte_order]
    except KeyError:
        raise ValueError(f"Unknown byte order: {byte_order!r}") from None
