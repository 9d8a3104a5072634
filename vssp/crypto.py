"""
crypto.py - salt + digest helpers for the login handshake.

Why this exists:
- Keep all hashing bits in one place so the handshake code can call
  `new_salt/digest_token/tokens_match` without caring about encodings.
- Everything that goes over the wire is uppercase hex text, never raw bytes.

Notes:
- SHA-224 for the digest (56 hex chars), 64-bit random salt (16 hex chars).
- Digest input is the salt text immediately followed by the secret text.
"""

import hmac
import secrets

from cryptography.hazmat.primitives import hashes

SALT_BYTES = 8                      # 64-bit challenge
SALT_HEX_LEN = SALT_BYTES * 2       # 16 hex chars on the wire
DIGEST_HEX_LEN = hashes.SHA224.digest_size * 2  # 56 hex chars


# -----------------------------
# Hex helpers
# -----------------------------

def to_hex(data: bytes) -> str:
    """Uppercase hex, the only form tokens take on the wire."""
    return data.hex().upper()


def is_hex_token(text: str, length: int) -> bool:
    """True if `text` is exactly `length` uppercase hex chars."""
    return len(text) == length and all(c in "0123456789ABCDEF" for c in text)


# -----------------------------
# Salt + digest
# -----------------------------

def new_salt() -> str:
    """Fresh 64-bit challenge from the OS CSPRNG, rendered as 16 hex chars."""
    return to_hex(secrets.token_bytes(SALT_BYTES))


def sha224_hex(data: bytes) -> str:
    """SHA-224 over raw bytes, uppercase hex."""
    digest = hashes.Hash(hashes.SHA224())
    digest.update(data)
    return to_hex(digest.finalize())


def digest_token(salt: str, secret: str) -> str:
    """
    Expected proof for a login: SHA-224(salt || secret).

    Both sides must feed the exact same text, so the salt is the hex string
    we sent, not the 8 bytes behind it.
    """
    return sha224_hex(salt.encode("ascii") + secret.encode("utf-8"))


def tokens_match(expected: str, received: str) -> bool:
    """
    Compare the computed token against what the peer sent.

    The peer side is upper-cased first (clients may send lowercase hex); the
    computed side already is. Constant-time compare so timing tells nothing.
    """
    return hmac.compare_digest(
        expected.encode("utf-8"),
        received.upper().encode("utf-8"),
    )
