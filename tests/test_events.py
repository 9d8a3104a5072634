"""Tests for vssp.events.EventLog - line format and serialization."""

import re
import threading

import pytest

from vssp.events import EventLog

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \| (CRITICAL|NON-CRITICAL) \| (.*)$")


class TestFormat:
    def test_non_critical_line(self, events, event_lines):
        events.record("Client connection closed")
        match = LINE_RE.match(event_lines()[-1])
        assert match
        assert match.group(1) == "NON-CRITICAL"
        assert match.group(2) == "Client connection closed"

    def test_critical_line(self, events, event_lines):
        events.record("Cannot bind socket to port 1", critical=True)
        match = LINE_RE.match(event_lines()[-1])
        assert match.group(1) == "CRITICAL"

    def test_appends(self, tmp_path):
        path = tmp_path / "a.log"
        path.write_text("old line\n")
        ev = EventLog(path)
        ev.record("new line")
        ev.close()
        lines = path.read_text().splitlines()
        assert lines[0] == "old line"
        assert lines[1].endswith("| new line")

    def test_creates_parent_dirs(self, tmp_path):
        ev = EventLog(tmp_path / "deep" / "er" / "x.log")
        ev.record("hi")
        ev.close()
        assert (tmp_path / "deep" / "er" / "x.log").exists()


class TestOpen:
    def test_fallback_used(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        ev = EventLog.open(blocker / "scale.log", fallback=tmp_path / "fallback.log")
        ev.record("via fallback")
        ev.close()
        assert ev.path == tmp_path / "fallback.log"
        assert "via fallback" in ev.path.read_text()

    def test_no_fallback_raises(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        with pytest.raises(OSError):
            EventLog.open(blocker / "scale.log", fallback=None)


class TestConcurrency:
    def test_threads_never_interleave(self, events, event_lines):
        def writer(n):
            for i in range(50):
                events.record(f"writer {n} event {i} " + "x" * 200)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        lines = event_lines()
        assert len(lines) == 400
        assert all(LINE_RE.match(line) for line in lines)
