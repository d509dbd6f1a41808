"""Security helpers: password hashing, verification and JWT handling.

The module provides thin wrappers around :class:`passlib.context.CryptContext`
for Argon2 hashing and :mod:`jwt` for token encoding and decoding. Environment
variables `SECRET_KEY`, `ALGORITHM` and `ACCESS_TOKEN_EXPIRE_MINUTES` are
required and validated at import time to fail fast on misconfiguration.

The caller's identity is resolved from an optional bearer token into an
:class:`AuthenticatedIdentity`, or ``None`` when the request carries no token.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
import jwt

from account_service.validation import normalize_password

load_dotenv()

ENV_SECRET_KEY = "SECRET_KEY"
ENV_ALGORITHM = "ALGORITHM"
ENV_ACCESS_EXPIRE = "ACCESS_TOKEN_EXPIRE_MINUTES"

SECRET_KEY = os.getenv(ENV_SECRET_KEY)
ALGORITHM = os.getenv(ENV_ALGORITHM)
_access_exp = os.getenv(ENV_ACCESS_EXPIRE)

if not SECRET_KEY or not ALGORITHM or not _access_exp:
    raise ValueError(
        "SECRET_KEY, ALGORITHM and ACCESS_TOKEN_EXPIRE_MINUTES must be set in the environment"
    )

try:
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(_access_exp)
except ValueError as exc:
    raise ValueError("ACCESS_TOKEN_EXPIRE_MINUTES must be an integer") from exc

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/user/login", auto_error=False)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The authenticated caller of the present request."""

    user_id: int
    email: Optional[str] = None


def get_password_hash(password: str) -> str:
    """Return a secure hash for ``password``.

    The function normalizes the password (strips whitespace and truncates to
    72 characters) before hashing to ensure consistent results between
    registration and verification.
    """
    normalized = normalize_password(password)
    return pwd_context.hash(normalized)


def verify_password(plain_password: Optional[str], hashed_password: str) -> bool:
    """Verify that ``plain_password`` matches ``hashed_password``.

    The same normalization used during hashing is applied before verification
    to avoid mismatches caused by leading/trailing whitespace.
    """
    if not plain_password:
        return False
    normalized = normalize_password(plain_password)
    return pwd_context.verify(normalized, hashed_password)


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token containing ``data`` and an expiry.

    If ``expires_delta`` is not provided, the module-level
    ``ACCESS_TOKEN_EXPIRE_MINUTES`` value is used.
    """
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_token_for_user(user_id: int, email: str) -> str:
    return create_access_token(data={"sub": str(user_id), "email": email})


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode a JWT access token and return its payload.

    Raises HTTPException with 401 status on invalid or expired tokens.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def identity_from_token(token: str) -> AuthenticatedIdentity:
    """Build the caller's identity from the ``sub`` and ``email`` claims."""
    payload = decode_access_token(token)
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    return AuthenticatedIdentity(user_id=user_id, email=payload.get("email"))


async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[AuthenticatedIdentity]:
    """FastAPI dependency resolving the caller, ``None`` when anonymous."""
    if not token:
        return None
    return identity_from_token(token)
