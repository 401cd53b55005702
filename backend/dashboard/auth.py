from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import Settings
from .deps import get_settings
from .exceptions import InvalidTokenError, MissingTokenError


# ---------- password hashing ----------
@lru_cache()
def _pwd_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(password: str, rounds: int = 10) -> str:
    return _pwd_context(rounds).hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context(10).verify(password, hashed)
    except ValueError:
        # malformed stored hash
        return False


# ---------- token helpers ----------
def create_access_token(
    user_id: int,
    email: str,
    settings: Settings,
    issued_at: Optional[datetime] = None,
) -> str:
    """Sign a token for ``user_id`` that expires ``token_expire_minutes`` after ``issued_at``."""
    issued_at = issued_at or datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=settings.token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "userId": user_id,
        "email": email,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.signing_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Verify signature and expiry; return the embedded identity."""
    try:
        payload = jwt.decode(token, settings.signing_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise InvalidTokenError()
    if "userId" not in payload or "email" not in payload:
        raise InvalidTokenError()
    return {"userId": payload["userId"], "email": payload["email"]}


# ---------- FastAPI dependency to require auth ----------
_bearer = HTTPBearer(auto_error=False)


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Validates the Bearer token and returns ``{"userId", "email"}``."""
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()
    return decode_access_token(credentials.credentials, settings)
