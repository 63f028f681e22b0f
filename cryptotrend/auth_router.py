from fastapi import APIRouter

from cryptotrend.dependencies import CurrentUserId, UserServiceDep
from cryptotrend.users.schemas import LoginRequest, SignupRequest, TokenResponse, UserResponse

router = APIRouter()


@router.post("/signup", status_code=201, response_model=UserResponse)
async def signup(data: SignupRequest, service: UserServiceDep) -> UserResponse:
    return await service.signup(data)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: UserServiceDep) -> TokenResponse:
    return await service.login(data)


@router.get("/me", response_model=UserResponse)
async def me(user_id: CurrentUserId, service: UserServiceDep) -> UserResponse:
    return await service.get(user_id)
