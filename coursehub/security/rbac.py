"""
coursehub/security/rbac.py
Tokens, password hashing and the request guards

Guards are FastAPI dependencies:
- get_current_identity: bearer token -> Identity (401 if absent, 403 if invalid)
- require_admin: Identity with role admin (403 otherwise)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from coursehub.config import Settings
from coursehub.database import get_settings
from coursehub.errors import ForbiddenError, UnauthorizedError
from coursehub.orm.user import User, UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Caller identity carried by a verified access token"""
    user_id: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.admin

    @property
    def is_student(self) -> bool:
        return self.role is UserRole.student


# ================= PASSWORDS =================

@lru_cache(maxsize=4)
def get_password_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=rounds,
    )


def normalize_password(password: str) -> str:
    """
    bcrypt only supports 72 bytes.
    We safely truncate AFTER UTF-8 encoding to preserve compatibility.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        encoded = encoded[:72]
    return encoded.decode("utf-8", errors="ignore")


def hash_password(password: str, rounds: int = 10) -> str:
    return get_password_context(rounds).hash(normalize_password(password))


def verify_password(plain: str, hashed: str, rounds: int = 10) -> bool:
    return get_password_context(rounds).verify(normalize_password(plain), hashed)


async def hash_password_async(password: str, rounds: int = 10) -> str:
    """Hash off the event loop"""
    return await run_in_threadpool(hash_password, password, rounds)


async def verify_password_async(plain: str, hashed: str, rounds: int = 10) -> bool:
    return await run_in_threadpool(verify_password, plain, hashed, rounds)


# ================= TOKENS =================

def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token carrying user id, email and role"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.token_expire_hours))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Identity:
    """Verify signature and expiry; any failure is a 403."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise ForbiddenError("Authentication token has expired")
    except JWTError:
        raise ForbiddenError("Invalid authentication token")

    if payload.get("type") != "access":
        raise ForbiddenError("Invalid authentication token")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise ForbiddenError("Invalid authentication token")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise ForbiddenError("Invalid authentication token")

    return Identity(user_id=user_id, email=email, role=role)


# ================= GUARDS =================

async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return decode_access_token(credentials.credentials, settings)


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        logger.warning(f"Access denied: user {identity.user_id} with role {identity.role.value} attempted an admin action")
        raise ForbiddenError("Administrator privileges required")
    return identity
