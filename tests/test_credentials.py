"""Tests for vssp.credentials - loader quirks and immutability."""

import pytest

from vssp.credentials import CredentialStore, parse_line, parse_lines


class TestParseLine:
    @pytest.mark.parametrize("line, expected", [
        ("user1:pass1", ("user1", "pass1")),
        ("user1:pass1\n", ("user1", "pass1")),
        ("user1:pass1\r\n", ("user1", "pass1")),
        ("user:pa:ss", ("user", "pa:ss")),
        ("user2pass2", None),
        (":pass3", None),
        ("user4:", None),
        ("", None),
        ("# comment", None),
    ])
    def test_cases(self, line, expected):
        assert parse_line(line) == expected


class TestLoad:
    def test_malformed_lines_skipped(self, tmp_path):
        path = tmp_path / "db.conf"
        path.write_text("user1:pass1\nuser2pass2\n:pass3\nuser4:\nuser5:pass5\n")
        store = CredentialStore.load(path)
        assert len(store) == 2
        assert sorted(store) == ["user1", "user5"]
        assert store["user5"] == "pass5"

    def test_valid_file(self, store):
        assert len(store) == 3
        assert store["alice"] == "alicepassword"
        assert store.get("mallory") is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.conf"
        path.write_text("")
        assert len(CredentialStore.load(path)) == 0

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            CredentialStore.load(tmp_path / "non_existent_file.db")

    def test_crlf_file_has_no_trailing_cr(self, tmp_path):
        path = tmp_path / "windows.conf"
        path.write_bytes(b"alice:alicepassword\r\nbob:bobsecret\r\n")
        store = CredentialStore.load(path)
        assert store["alice"] == "alicepassword"
        assert store["bob"] == "bobsecret"

    def test_duplicate_last_wins(self):
        assert parse_lines(["a:1", "a:2"]) == {"a": "2"}


class TestImmutable:
    def test_no_item_assignment(self, store):
        with pytest.raises(TypeError):
            store["eve"] = "x"

    def test_source_dict_changes_do_not_leak(self):
        users = {"a": "1"}
        store = CredentialStore(users)
        users["b"] = "2"
        assert "b" not in store

    def test_repr_hides_secrets(self, store):
        assert "alicepassword" not in repr(store)
