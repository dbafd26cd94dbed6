"""
Token verification for incoming requests.

Tokens are issued by the authentication service; this API only verifies them
and turns the claims into an opaque identity. A token may arrive either as a
Bearer header or as the ``token`` cookie set by the web frontend.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from innkeeper.core.config import get_settings

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)

STAFF_ROLES = frozenset({"staff", "admin"})


@dataclass(frozen=True)
class Identity:
    subject_id: int
    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token. Used by tests and local tooling only."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_identity(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.PyJWTError:
        raise _unauthorized("Invalid authentication token")

    subject = payload.get("sub")
    if subject is None:
        raise _unauthorized("Token has no subject")
    try:
        subject_id = int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Token subject is not a valid id")

    role = str(payload.get("role", "guest")).lower()
    return Identity(subject_id=subject_id, role=role)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    token = credentials.credentials if credentials else request.cookies.get("token")
    if not token:
        raise _unauthorized("Not authenticated")
    return decode_identity(token)


async def get_current_guest_id(identity: Identity = Depends(get_current_identity)) -> int:
    if identity.role != "guest":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only guests can access this endpoint",
        )
    return identity.subject_id


async def require_staff(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff or admin role required",
        )
    return identity
