import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from wpd_portal.core.config import Settings, settings as default_settings
from wpd_portal.core.errors import InvalidToken, TokenExpired

ADMIN_TOKEN = "admin"
VERIFICATION_TOKEN = "email-verification"


def generate_passcode() -> str:
    """Generate a 6-digit numeric passcode (not checked for uniqueness)"""
    return str(100000 + secrets.randbelow(900000))


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    settings: Settings = default_settings,
) -> str:
    """Create a signed JWT carrying `data` plus an expiry claim"""
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, settings: Settings = default_settings) -> dict:
    """
    Decode and validate a JWT.
    Raises TokenExpired past its expiry and InvalidToken for anything else.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e
    except jwt.PyJWTError as e:
        raise InvalidToken("Invalid token") from e


def create_admin_token(admin_id: int, email: str, settings: Settings = default_settings) -> str:
    return create_access_token(
        {"id": admin_id, "email": email, "typ": ADMIN_TOKEN},
        settings=settings,
    )


def create_verification_token(payload: dict, settings: Settings = default_settings,
                              expires_delta: Optional[timedelta] = None) -> str:
    """Sign the registration payload for the email verification link"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.VERIFICATION_TOKEN_EXPIRE_MINUTES)
    return create_access_token(
        {**payload, "typ": VERIFICATION_TOKEN},
        expires_delta=expires_delta,
        settings=settings,
    )


def decode_verification_token(token: str, settings: Settings = default_settings) -> dict:
    payload = decode_token(token, settings=settings)
    if payload.get("typ") != VERIFICATION_TOKEN or not payload.get("email"):
        raise InvalidToken("Invalid token")
    return payload
