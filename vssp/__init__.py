"""
VSSP (Vector Sum-of-Squares Protocol) - authenticated compute server.

- Login: identifier, 64-bit hex salt challenge, SHA-224(salt || secret) proof.
- Then: the client streams int16 vectors, one int16 saturated sum of squares
  comes back per vector, strictly one reply before the next request.
- Users come from an `identifier:secret` file loaded once at startup.

Run `python -m vssp.run_server -h` for options.
"""
__all__ = ["auth", "client", "compute", "credentials", "crypto", "events", "framing", "messages", "node", "run_server"]
