"""Tests for signup and login."""

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from cryptotrend.auth import verify_token
from cryptotrend.exceptions import ConflictError, UnauthorizedError
from cryptotrend.users.repository import UserRepository
from cryptotrend.users.schemas import LoginRequest, SignupRequest
from cryptotrend.users.service import UserService


@pytest.fixture
def service(db, event_store) -> UserService:
    return UserService(event_store, UserRepository(db))


class TestUserService:
    @pytest.mark.asyncio
    async def test_signup(self, service):
        user = await service.signup(SignupRequest(email="Trader@Example.com", password="hodl-forever"))

        assert user.email == "trader@example.com"
        assert user.display_name == "trader"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service):
        await service.signup(SignupRequest(email="trader@example.com", password="hodl-forever"))
        with pytest.raises(ConflictError):
            await service.signup(SignupRequest(email="TRADER@example.com", password="another-one"))

    @pytest.mark.asyncio
    async def test_login_issues_token(self, service):
        user = await service.signup(
            SignupRequest(email="trader@example.com", password="hodl-forever", display_name="T")
        )
        token = await service.login(LoginRequest(email="Trader@example.com", password="hodl-forever"))

        payload = await verify_token(
            HTTPAuthorizationCredentials(scheme="Bearer", credentials=token.access_token)
        )
        assert payload["sub"] == user.id
        assert token.token_type == "bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "password"),
        [("trader@example.com", "wrong-password"), ("nobody@example.com", "hodl-forever")],
    )
    async def test_bad_credentials(self, service, email, password):
        await service.signup(SignupRequest(email="trader@example.com", password="hodl-forever"))
        with pytest.raises(UnauthorizedError):
            await service.login(LoginRequest(email=email, password=password))
