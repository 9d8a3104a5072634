"""
auth.py - login handshake for one connection.

    1) peer sends its identifier           (one read)
    2) unknown → ERR, done; known → 16-char hex salt
    3) peer sends SHA-224(salt || secret)  (one read, any hex case)
    4) match → OK; mismatch → ERR

One attempt per connection: whatever happens, the caller closes the socket
unless we return an identifier.
"""

from typing import Mapping, Optional

from . import crypto
from . import messages as m
from .events import EventLog
from .framing import read_token, token_text, write_token


async def authenticate(
    ctx,
    store: Mapping[str, str],
    events: EventLog,
    token_limit: int = m.TOKEN_LIMIT,
    timeout: Optional[float] = None,
) -> Optional[str]:
    """
    Run the handshake on `ctx` (anything with .reader/.writer).

    Returns the accepted identifier, or None if the peer was rejected or went
    away. Never raises for peer behaviour; every outcome is recorded.
    """
    raw = await read_token(ctx.reader, token_limit, timeout)
    if not raw:
        events.record("No data received from client for login")
        return None
    login = token_text(raw)

    secret = store.get(login)
    if secret is None:
        await write_token(ctx.writer, m.ERR, timeout)
        events.record(f"Identification failed for login: {login}")
        return None

    salt = crypto.new_salt()
    if not await write_token(ctx.writer, salt.encode("ascii"), timeout):
        events.record("Failed to send salt to client")
        return None

    raw = await read_token(ctx.reader, token_limit, timeout)
    if not raw:
        events.record("No hash received from client")
        return None

    if crypto.tokens_match(crypto.digest_token(salt, secret), token_text(raw)):
        await write_token(ctx.writer, m.OK, timeout)
        events.record(f"Authentication successful for login: {login}")
        return login

    await write_token(ctx.writer, m.ERR, timeout)
    events.record(f"Authentication failed for login: {login}")
    return None
