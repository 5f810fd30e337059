from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from staffops import storage
from staffops.db import get_db
from staffops.errors import ApiError, ForbiddenError
from staffops.models import UserRole
from staffops.settings import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class CurrentUser:
    user_id: str
    role: UserRole = UserRole.STAFF

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, sub: str, expires_minutes: int | None = None) -> str:
    """Issue a token in the identity provider's format (dev tooling and tests)."""
    settings = get_settings()
    now = _utcnow()
    minutes = settings.access_token_minutes if expires_minutes is None else expires_minutes
    claims = {
        "sub": sub,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require_sub": True, "require_iat": True, "require_exp": True},
        )
    except JWTError as exc:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token is invalid.") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token subject is invalid.")
    return payload


def authenticate_token(token: str | None) -> str:
    if not token:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Missing bearer token.")
    return str(decode_token(token)["sub"])


def resolve_user(db: Session, user_id: str) -> CurrentUser:
    profile = storage.get_staff_profile(db, user_id)
    if profile is None:
        return CurrentUser(user_id=user_id)
    if not profile.is_active:
        raise ForbiddenError("Account is inactive")
    return CurrentUser(user_id=user_id, role=profile.role)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Missing bearer token.")

    user = resolve_user(db, authenticate_token(credentials.credentials))
    request.state.actor = user.role.value
    request.state.actor_id = user.user_id
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
