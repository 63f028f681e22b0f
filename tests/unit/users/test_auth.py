"""Tests for password hashing and JWT handling."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from cryptotrend.auth import (
    create_access_token,
    get_current_user_id,
    hash_password,
    verify_password,
    verify_token,
)
from cryptotrend.config import settings
from cryptotrend.exceptions import UnauthorizedError


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestPasswords:
    def test_hash_and_verify(self):
        stored = hash_password("correct horse")

        assert stored.startswith("pbkdf2_sha256$")
        assert verify_password("correct horse", stored) is True
        assert verify_password("wrong horse", stored) is False

    def test_salts_differ(self):
        assert hash_password("secret-pass") != hash_password("secret-pass")

    @pytest.mark.parametrize("stored", ["", "plain-text", "md5$1$salt$abc"])
    def test_malformed_hash_never_verifies(self, stored):
        assert verify_password("anything", stored) is False


class TestTokens:
    @pytest.mark.asyncio
    async def test_round_trip(self):
        token = create_access_token("user-1", "a@example.com")
        payload = await verify_token(bearer(token))

        assert payload["email"] == "a@example.com"
        assert await get_current_user_id(payload) == "user-1"

    @pytest.mark.asyncio
    async def test_expired(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(UTC) - timedelta(minutes=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="expired"):
            await verify_token(bearer(token))

    @pytest.mark.asyncio
    async def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-1"}, "x" * 40, algorithm="HS256")
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            await verify_token(bearer(token))

    @pytest.mark.asyncio
    async def test_missing_subject(self):
        token = jwt.encode({"email": "a@example.com"}, settings.jwt_secret, algorithm="HS256")
        with pytest.raises(UnauthorizedError):
            await verify_token(bearer(token))
