"""
Request dependencies: authentication gate and per-request services.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_api.core.config import Settings, get_settings
from food_api.core.errors import ForbiddenError, InvalidTokenError
from food_api.core.security import extract_token, verify_token
from food_api.database import get_db
from food_api.models import User
from food_api.services import CartService, CatalogService, OrderService, UserService
from food_api.services.payment import BasePaymentService, get_payment_service


async def get_current_user_id(
    token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
) -> str:
    """
    Resolve the caller to exactly one existing user id.

    Raises UnauthenticatedError without a token and InvalidTokenError for a
    bad token or a token whose user no longer exists.
    """
    user_id = verify_token(extract_token(token, authorization), settings)

    exists = await db.scalar(select(User.id).where(User.id == user_id))
    if exists is None:
        raise InvalidTokenError("User no longer exists")
    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise InvalidTokenError("User no longer exists")
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError()
    return user


def get_user_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, settings)


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(db)


def get_catalog_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(db, settings)


def get_order_service(
    db: AsyncSession = Depends(get_db),
    payment_service: BasePaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(db, payment_service, settings)
