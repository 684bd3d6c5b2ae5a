"""
Tests for password hashing and bearer tokens. No database needed.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from reviews_api.auth_utils import hash_password, issue_token, verify_password, verify_token
from reviews_api.errors import InvalidToken, MissingToken

USER = {"id": "0b6f3c1e-2a4d-4c8e-9f10-7d2b5a6e8c90", "username": "john_doe", "email": "john@example.com"}


def _encode(claims, secret="test-secret"):
    return jwt.encode(claims, secret, algorithm="HS256")


class TestPasswords:
    def test_hash_is_salted(self):
        first = hash_password("password1")
        second = hash_password("password1")

        assert first != "password1"
        assert first != second

    def test_uses_configured_cost(self):
        assert hash_password("password1").startswith("$2b$05$")

    def test_cost_read_per_call(self, monkeypatch):
        monkeypatch.setenv("BCRYPT_ROUNDS", "4")

        hashed = hash_password("password1")

        assert hashed.startswith("$2b$04$")
        assert verify_password("password1", hashed)

    def test_verify(self):
        hashed = hash_password("password1")

        assert verify_password("password1", hashed)
        assert not verify_password("password2", hashed)


class TestTokens:
    def test_round_trip(self):
        assert verify_token(issue_token(USER)) == USER

    def test_expires_after_one_hour(self):
        claims = jwt.get_unverified_claims(issue_token(USER))

        assert claims["exp"] - claims["iat"] == 3600
        assert claims["sub"] == USER["id"]

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing(self, token):
        with pytest.raises(MissingToken):
            verify_token(token)

    def test_garbage(self):
        with pytest.raises(InvalidToken):
            verify_token("not-a-jwt")

    def test_wrong_signature(self):
        token = _encode({**USER, "exp": datetime.now(timezone.utc) + timedelta(hours=1)}, secret="other-secret")
        with pytest.raises(InvalidToken):
            verify_token(token)

    def test_expired(self):
        token = _encode({**USER, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)})
        with pytest.raises(InvalidToken):
            verify_token(token)

    def test_payload_without_user(self):
        token = _encode({"sub": USER["id"], "exp": datetime.now(timezone.utc) + timedelta(hours=1)})
        with pytest.raises(InvalidToken):
            verify_token(token)
