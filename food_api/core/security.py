"""
Credential Verifier

Stateless authentication primitives: bcrypt password hashing and signed
JWT access tokens carrying the user id. Nothing here touches the database
or the request; the FastAPI dependency in food_api.api.deps wraps these.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from food_api.core.config import Settings
from food_api.core.errors import UnauthenticatedError, InvalidTokenError

logger = logging.getLogger(__name__)

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_ctx.verify(plain, hashed)


def create_token(
    user_id: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id: Identifier stored in the `id` claim
        settings: Provides secret, algorithm and default lifetime
        expires_delta: Override the configured lifetime

    Returns:
        Encoded JWT string
    """
    issued_at = datetime.now(timezone.utc)
    expires = issued_at + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {"id": user_id, "iat": issued_at, "exp": expires}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str], settings: Settings) -> str:
    """
    Validate a raw token and return the embedded user id.

    Raises:
        UnauthenticatedError: No token supplied
        InvalidTokenError: Bad signature, malformed, expired or no `id` claim
    """
    if token is None or not token.strip():
        raise UnauthenticatedError()

    try:
        payload = jwt.decode(
            token.strip(),
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        logger.debug("Rejected expired token")
        raise InvalidTokenError("Token has expired")
    except JWTError as e:
        logger.debug(f"Rejected invalid token: {e}")
        raise InvalidTokenError()

    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("Token does not identify a user")

    return user_id


def extract_token(token_header: Optional[str], authorization: Optional[str]) -> Optional[str]:
    """
    Pick the raw token from the request headers.

    The storefront sends it in a `token` header; standard clients use
    `Authorization: Bearer <jwt>`. The `token` header wins when both exist.
    """
    if token_header:
        return token_header
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
        # A present but non-bearer Authorization header is a bad credential
        return authorization
    return None
