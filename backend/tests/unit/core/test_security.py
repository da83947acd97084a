"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens
"""
import pytest
from datetime import timedelta
from jose import jwt

from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    decode_token,
)
from app.core.config import settings
from app.core.exceptions import InvalidTokenError


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_different_each_time(self):
        password = "testpassword123"

        # Bcrypt generates different salts
        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_against_non_bcrypt_value(self):
        """A corrupt stored hash fails verification instead of raising"""
        assert verify_password("testpassword123", "not-a-bcrypt-hash") is False
        assert verify_password("testpassword123", "") is False

    def test_hash_long_password_truncated(self):
        # Bcrypt has 72 byte limit
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True


class TestAccessTokens:
    """Test JWT creation and decoding"""

    def test_round_trip_keeps_subject(self):
        token = create_access_token({"sub": "user-123", "role": "student"})

        payload = decode_token(token)

        assert payload["sub"] == "user-123"
        assert payload["role"] == "student"
        assert payload["type"] == "access"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "user-123", "type": "access"}, "another-secret",
                           algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_token_without_subject_rejected(self):
        token = jwt.encode({"type": "access"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token)
        assert exc_info.value.message == "Invalid token payload"

    def test_non_access_token_rejected(self):
        token = jwt.encode({"sub": "user-123", "type": "refresh"}, settings.JWT_SECRET_KEY,
                           algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidTokenError):
            decode_token(token)
