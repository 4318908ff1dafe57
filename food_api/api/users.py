"""
User registration and login.
"""

import logging

from fastapi import APIRouter, Depends

from food_api.api.deps import get_user_service
from food_api.schemas import AuthResponse, ErrorResponse, LoginRequest, RegisterRequest
from food_api.services import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.post(
    "/register",
    response_model=AuthResponse,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Register a new account",
)
async def register(
    payload: RegisterRequest,
    service: UserService = Depends(get_user_service),
) -> AuthResponse:
    _, token = await service.register(payload.name, payload.email, payload.password)
    return AuthResponse(token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Log in and receive an access token",
)
async def login(
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> AuthResponse:
    _, token = await service.login(payload.email, payload.password)
    return AuthResponse(token=token)
