"""Tests for vssp.crypto - salts, SHA-224 tokens, comparison."""

import hashlib

from vssp import crypto


class TestSha224:
    def test_known_empty_digest(self):
        assert crypto.sha224_hex(b"") == "D14A028C2A3A2BC9476102BB288234C415A2B01F828EA62AC5B3E42F"

    def test_matches_hashlib(self):
        data = b"consistent_test_string_123"
        assert crypto.sha224_hex(data) == hashlib.sha224(data).hexdigest().upper()

    def test_shape(self):
        token = crypto.sha224_hex(b"test")
        assert crypto.is_hex_token(token, crypto.DIGEST_HEX_LEN)
        assert crypto.DIGEST_HEX_LEN == 56

    def test_deterministic_and_distinct(self):
        assert crypto.sha224_hex(b"input1") == crypto.sha224_hex(b"input1")
        assert crypto.sha224_hex(b"input1") != crypto.sha224_hex(b"input2")


class TestDigestToken:
    def test_salt_then_secret(self):
        """Token is SHA-224 over the salt text followed by the secret."""
        salt = "0123456789ABCDEF"
        expected = hashlib.sha224(b"0123456789ABCDEFtestpassword").hexdigest().upper()
        assert crypto.digest_token(salt, "testpassword") == expected

    def test_different_salt_different_token(self):
        assert crypto.digest_token("0" * 16, "pw") != crypto.digest_token("1" * 16, "pw")


class TestSalt:
    def test_format(self):
        salt = crypto.new_salt()
        assert crypto.is_hex_token(salt, 16)

    def test_successive_salts_differ(self):
        assert crypto.new_salt() != crypto.new_salt()


class TestTokensMatch:
    def test_exact(self):
        token = crypto.digest_token("ABCDEF0123456789", "secret")
        assert crypto.tokens_match(token, token)

    def test_received_side_is_case_insensitive(self):
        token = crypto.digest_token("ABCDEF0123456789", "secret")
        assert crypto.tokens_match(token, token.lower())

    def test_mismatch(self):
        token = crypto.digest_token("ABCDEF0123456789", "secret")
        assert not crypto.tokens_match(token, crypto.digest_token("ABCDEF0123456789", "other"))
        assert not crypto.tokens_match(token, token[:-1])
        assert not crypto.tokens_match(token, "")

    def test_non_ascii_received_token(self):
        token = crypto.digest_token("ABCDEF0123456789", "secret")
        assert not crypto.tokens_match(token, "ÿ" * 56)
