"""
Unit tests for authentication module
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.auth import (
    ALGORITHM,
    SECRET_KEY,
    create_access_token,
    decode_token,
    get_current_user_id,
    verify_token,
)


class TestJWTTokens:
    def test_create_access_token(self):
        """Test access token creation"""
        token = create_access_token("test_user_123")
        assert isinstance(token, str)
        assert decode_token(token) == "test_user_123"

        payload = verify_token(token)
        assert payload["type"] == "access"

    def test_token_expiration(self):
        """Test token expiration"""
        token = create_access_token("test_user_123", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_invalid_token(self):
        """Test invalid token handling"""
        assert decode_token("invalid.token.here") is None

    def test_wrong_token_type(self):
        """Test using wrong token type"""
        token = create_access_token("test_user_123")
        assert verify_token(token, "refresh") is None

    def test_token_without_subject(self):
        token = jwt.encode({"type": "access"}, SECRET_KEY, algorithm=ALGORITHM)
        assert decode_token(token) is None


class TestCurrentUser:
    def test_valid_bearer(self):
        creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials=create_access_token("u-42"))
        assert get_current_user_id(creds) == "u-42"

    def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user_id(None)
        assert exc.value.status_code == 401
        assert exc.value.detail == "Not authenticated"

    def test_bad_token(self):
        creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials="nope")
        with pytest.raises(HTTPException) as exc:
            get_current_user_id(creds)
        assert exc.value.detail == "Invalid or expired token"
