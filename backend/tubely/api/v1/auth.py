"""
Authentication endpoints.

Endpoints:
    POST /auth/register  Create a local account (201)
    POST /auth/login     Exchange email and password for a bearer token
    GET  /auth/me        Profile of the authenticated caller
"""

from fastapi import APIRouter, Depends, status

from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.core.database import get_db_client
from tubely.models.user import TokenResponse, UserCreate, UserLogin, UserResponse
from tubely.services.user_service import UserService


router = APIRouter()


def get_user_service(settings: Settings = Depends(get_settings)) -> UserService:
    return UserService(get_db_client().get_users_collection(), settings)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    params: UserCreate, service: UserService = Depends(get_user_service)
) -> UserResponse:
    record = await service.register(params)
    return UserResponse.from_record(record)


@router.post("/login", response_model=TokenResponse, summary="Log in with email and password")
async def login(credentials: UserLogin, service: UserService = Depends(get_user_service)) -> TokenResponse:
    return await service.login(credentials.email, credentials.password)


@router.get("/me", response_model=UserResponse, summary="Current user profile")
async def get_me(
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    record = await service.get(user_id)
    return UserResponse.from_record(record)
