"""Shared fixtures for the VSSP test suite."""

import asyncio

import pytest

from vssp.credentials import CredentialStore
from vssp.events import EventLog
from vssp.node import VectorServer

USERS = {
    "user": "P@ssW0rd",
    "alice": "alicepassword",
    "bob": "bobsecret",
}


@pytest.fixture
def user_db(tmp_path):
    """Write a small credential file and return its path."""
    path = tmp_path / "scale.conf"
    lines = ["# test users"] + [f"{k}:{v}" for k, v in USERS.items()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def store(user_db):
    return CredentialStore.load(user_db)


@pytest.fixture
def events(tmp_path):
    """EventLog writing to tmp_path/log/scale.log."""
    ev = EventLog(tmp_path / "log" / "scale.log")
    yield ev
    ev.close()


@pytest.fixture
def event_lines(events):
    """Callable returning the event log's current lines."""
    def _read():
        return events.path.read_text(encoding="utf-8").splitlines()
    return _read


@pytest.fixture
def serve(store, events):
    """
    Run `client_fn(host, port)` against a live server on an ephemeral port.

    Returns whatever client_fn returns. Extra kwargs go to VectorServer.
    The server is stopped only after every session has finished.
    """
    def _serve(client_fn, **server_kwargs):
        server_kwargs.setdefault("timeout", 5)

        async def main():
            server = VectorServer("127.0.0.1", 0, store, events, **server_kwargs)
            await server.start()
            try:
                host, port = server.address
                result = await asyncio.wait_for(client_fn(host, port), 10)
                # Let the server finish its side (close + final log line).
                for _ in range(100):
                    if not server._sessions:
                        break
                    await asyncio.sleep(0.01)
                return result
            finally:
                await server.stop()

        return asyncio.run(main())
    return _serve
