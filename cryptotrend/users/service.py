from uuid import uuid4

import structlog

from cryptotrend.auth import create_access_token, hash_password, verify_password
from cryptotrend.config import settings
from cryptotrend.event_store.models import AggregateType, EventType
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.exceptions import ConflictError, NotFoundError, UnauthorizedError
from cryptotrend.users.repository import UserRepository
from cryptotrend.users.schemas import LoginRequest, SignupRequest, TokenResponse, UserResponse

logger = structlog.get_logger()


class UserService:
    def __init__(self, event_store: EventStoreService, repo: UserRepository) -> None:
        self._event_store = event_store
        self._repo = repo

    async def signup(self, data: SignupRequest) -> UserResponse:
        email = data.email.strip().lower()
        if await self._repo.get_by_email(email):
            raise ConflictError(f"An account for '{email}' already exists")

        user_id = str(uuid4())
        await self._event_store.append_event(
            aggregate_type=AggregateType.user,
            aggregate_id=user_id,
            event_type=EventType.user_registered,
            event_data={
                "email": email,
                "display_name": data.display_name or email.split("@")[0],
                "password_hash": hash_password(data.password),
            },
            user_id=user_id,
            idempotency_key=f"signup:{email}",
        )
        logger.info("user_registered", user_id=user_id)
        return await self.get(user_id)

    async def login(self, data: LoginRequest) -> TokenResponse:
        user = await self._repo.get_by_email(data.email.strip().lower())
        if user is None or not verify_password(data.password, user["password_hash"]):
            raise UnauthorizedError("Invalid credentials")

        token = create_access_token(user["id"], user["email"])
        logger.info("user_logged_in", user_id=user["id"])
        return TokenResponse(access_token=token, expires_in=settings.jwt_expire_minutes * 60)

    async def get(self, user_id: str) -> UserResponse:
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return UserResponse(
            id=user["id"],
            email=user["email"],
            display_name=user["display_name"],
            created_at=user["created_at"],
        )
