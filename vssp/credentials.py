"""
credentials.py - the identifier → secret store the handshake checks against.

File format: one `identifier:secret` record per line, split at the first
colon. A line only counts if it has a colon and both sides are non-empty;
anything else (comments, blank lines, half records) is skipped without a
word. Loaded once at startup, read-only afterwards, so sessions can share it
without locking.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """Return (identifier, secret) for a valid record line, else None."""
    line = line.rstrip("\r\n")
    identifier, sep, secret = line.partition(":")
    if not sep or not identifier or not secret:
        return None
    return identifier, secret


def parse_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Build the raw mapping from record lines (last duplicate wins)."""
    users: Dict[str, str] = {}
    for line in lines:
        record = parse_line(line)
        if record is not None:
            users[record[0]] = record[1]
    return users


class CredentialStore(Mapping[str, str]):
    """Immutable identifier → secret mapping."""

    def __init__(self, users: Optional[Mapping[str, str]] = None) -> None:
        # Private copy behind a read-only view; nothing can mutate it later.
        self._users = MappingProxyType(dict(users or {}))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CredentialStore":
        """
        Read a credential file.

        Raises:
            OSError: if the file can't be opened. Malformed lines never raise.
        """
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return cls(parse_lines(f))

    def __getitem__(self, identifier: str) -> str:
        return self._users[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._users)

    def __len__(self) -> int:
        return len(self._users)

    def __repr__(self) -> str:
        # Never print secrets.
        return f"CredentialStore({len(self)} users)"
