"""
Tests for password hashing and admin session tokens.
"""
import pytest
from datetime import timedelta
from jose import jwt

from apikey_service.core.security import (
    create_session_token,
    decode_session_token,
    verify_password,
    get_password_hash,
)
from apikey_service.config import settings


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_get_password_hash_returns_hash(self):
        """Password hashing should return a bcrypt hash."""
        password = "test_password_123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt prefix

    def test_password_hash_different_each_time(self):
        """Same password should produce different hashes (due to salt)."""
        password = "same_password"

        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("correct_password")

        assert verify_password("correct_password", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("correct_password")

        assert verify_password("wrong_password", hashed) is False


class TestSessionTokens:
    """Tests for session token creation and validation."""

    def test_token_carries_admin_and_session(self):
        """Decoded token should name the admin and the server-side session."""
        token = create_session_token(7, "session-abc")

        payload = decode_session_token(token)
        assert payload["sub"] == "7"
        assert payload["sid"] == "session-abc"
        assert "exp" in payload

    def test_token_is_jwt(self):
        token = create_session_token(1, "sid")

        # JWT tokens have 3 parts separated by dots
        assert token.count(".") == 2

    def test_expired_token(self):
        """Expired token should not decode."""
        token = create_session_token(1, "sid", expires_delta=timedelta(seconds=-1))

        assert decode_session_token(token) is None

    def test_token_signed_with_other_key(self):
        """Token signed with a foreign secret should be rejected."""
        token = jwt.encode({"sub": "1", "sid": "sid"}, "x" * 40, algorithm=settings.ALGORITHM)

        assert decode_session_token(token) is None

    @pytest.mark.parametrize("token", ["", "invalid", "a.b.c"])
    def test_malformed_token(self, token):
        assert decode_session_token(token) is None


class TestSettings:
    """Tests for configuration validation."""

    def test_short_secret_key_rejected(self):
        from pydantic import ValidationError
        from apikey_service.config import Settings

        with pytest.raises(ValidationError):
            Settings(SECRET_KEY="too-short")
