# server/core/security.py

import logging
from typing import Callable
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from pydantic import BaseModel
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from core import config


logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error is off so a missing header gets our own 401 message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class TokenUser(BaseModel):
    """
    Identity carried inside a verified access token.
    """
    id: int
    role: str


# -------------------------------
# Password hashing
# -------------------------------

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# -------------------------------
# Tokens
# -------------------------------

def require_secret() -> str:
    if not config.JWT_SECRET_KEY:
        logger.error("JWT_SECRET_KEY is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error"
        )
    return config.JWT_SECRET_KEY


def create_access_token(user, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jwt.encode(to_encode, require_secret(), algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> TokenUser:
    """
    Verifies the signature and expiry of a token and returns its principal.
    Raises JWTError (or ValueError for malformed claims) on failure.
    """
    payload = jwt.decode(token, require_secret(), algorithms=[config.JWT_ALGORITHM])
    sub = payload.get("sub")
    role = payload.get("role")
    if sub is None or role is None:
        raise JWTError("Token is missing required claims")
    return TokenUser(id=int(sub), role=role)


# -------------------------------
# Request dependencies
# -------------------------------

def get_current_user(token: str | None = Depends(oauth2_scheme)) -> TokenUser:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_token(token)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def role_required(*allowed_roles: str) -> Callable:
    """
    Use as Depends(role_required("admin")).
    Returns the current principal if its role is allowed, otherwise 403.
    """

    def _wrapper(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if user.role not in allowed_roles:
            logger.warning("User %s with role %r denied access", user.id, user.role)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required" if allowed_roles == ("admin",) else "Insufficient role"
            )
        return user

    return _wrapper


require_admin = role_required("admin")
