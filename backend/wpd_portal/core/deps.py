from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wpd_portal.core.errors import AuthenticationFailed, InvalidToken
from wpd_portal.core.security import ADMIN_TOKEN, decode_token

# Client must send "Authorization: Bearer <token>"; errors are raised below
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminIdentity:
    id: int
    email: str


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AdminIdentity:
    """
    Validates the admin bearer token. If valid, returns the admin identity.
    If missing or invalid, raises 401 Unauthorized.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Authorization token missing or invalid")

    try:
        payload = decode_token(credentials.credentials)
    except InvalidToken:
        raise AuthenticationFailed("Token is invalid or expired")

    if payload.get("typ") != ADMIN_TOKEN or payload.get("id") is None:
        raise AuthenticationFailed("Token is invalid or expired")

    return AdminIdentity(id=int(payload["id"]), email=payload.get("email", ""))
