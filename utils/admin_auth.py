"""
Admin token verification.

Tokens are HS256 JWTs carrying the admin's id (``sub``), e-mail and an
``isAdmin`` flag. Issuing them after a password check belongs to the
credential store; this module only signs tokens (for that store and for
tests) and verifies them before write operations.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError, ExpiredSignatureError

import config
from exceptions import UnauthorizedException, ForbiddenException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminIdentity:
    admin_id: str
    email: str | None
    is_admin: bool


def create_access_token(admin_id: int | str, email: str | None = None, is_admin: bool = True,
                        expires_in: timedelta | None = None) -> str:
    expires_in = expires_in or timedelta(hours=config.JWT_EXPIRE_HOURS)
    payload = {
        "sub": str(admin_id),
        "email": email,
        "isAdmin": is_admin,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> AdminIdentity:
    """
    Decode and validate a token without checking privileges.

    Raises:
        UnauthorizedException: token missing, malformed, badly signed or expired
    """
    if not token:
        raise UnauthorizedException("No token")

    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired admin token")
        raise UnauthorizedException("Token expired")
    except JWTError as e:
        logger.info(f"Rejected invalid admin token: {e}")
        raise UnauthorizedException("Invalid token")

    admin_id = payload.get("sub")
    if admin_id is None:
        raise UnauthorizedException("Invalid token")

    return AdminIdentity(
        admin_id=str(admin_id),
        email=payload.get("email"),
        is_admin=payload.get("isAdmin") is True,
    )


def verify_admin(token: str | None) -> AdminIdentity:
    """
    Verify that a token belongs to an admin.

    Returns:
        AdminIdentity of the caller

    Raises:
        UnauthorizedException: no usable token
        ForbiddenException: valid token without admin privileges
    """
    identity = decode_token(token or "")
    if not identity.is_admin:
        logger.warning(f"Admin operation refused for non-admin identity {identity.admin_id}")
        raise ForbiddenException(identity.admin_id)
    return identity


def extract_bearer_token(authorization_header: str | None) -> str | None:
    """Return the token part of an ``Authorization: Bearer <token>`` header."""
    if not authorization_header:
        return None
    scheme, _, token = authorization_header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
