"""
coursehub/routes/auth.py
Login, self-registration and the current-user endpoint
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.config import Settings
from coursehub.database import get_db, get_settings
from coursehub.errors import ConflictError, ErrorCode, InvalidCredentialsError, NotFoundError
from coursehub.orm.base import utcnow
from coursehub.orm.user import User, UserRole
from coursehub.schemas.auth import LoginResult, UserLogin, UserPublic, UserRegister
from coursehub.schemas.common import ok
from coursehub.security.rate_limit import LOGIN_LIMIT, REGISTER_LIMIT, limiter, rate_limit_exempt
from coursehub.security.rbac import (
    Identity,
    create_access_token,
    get_current_identity,
    hash_password_async,
    verify_password_async,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login")
@limiter.limit(LOGIN_LIMIT, exempt_when=rate_limit_exempt)
async def login(
    request: Request,  # Required by slowapi
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Exchange email and password for a bearer token.
    Unknown email and wrong password return the same 401.
    """
    logger.info(f"Login attempt for email: {credentials.email}")

    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    password_valid = False
    if user:
        password_valid = await verify_password_async(
            credentials.password, user.password_hash, settings.bcrypt_rounds
        )

    if not user or not password_valid:
        logger.warning(f"Invalid credentials for email: {credentials.email}")
        raise InvalidCredentialsError()

    token = create_access_token(user, settings)

    user.last_login = utcnow()
    await db.commit()

    logger.info(f"User logged in successfully: {user.email} as {user.role.value}")

    return ok(LoginResult(
        token=token,
        expires_in=settings.token_expire_hours * 3600,
        user=UserPublic(**user.to_public_dict()),
    ))


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT, exempt_when=rate_limit_exempt)
async def register(
    request: Request,  # Required by slowapi
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Register a student account. The role is never taken from the request."""
    email_taken = ConflictError(
        "Email already registered",
        code=ErrorCode.EMAIL_EXISTS,
        details={"field": "email"},
    )

    result = await db.execute(select(User.id).where(User.email == user_data.email))
    if result.first() is not None:
        logger.warning(f"Email already registered: {user_data.email}")
        raise email_taken

    password_hash = await hash_password_async(user_data.password, settings.bcrypt_rounds)

    user = User(
        email=user_data.email,
        password_hash=password_hash,
        name=user_data.name,
        student_id=user_data.student_id,
        role=UserRole.student,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Email registered concurrently: {user_data.email}")
        raise email_taken

    await db.refresh(user)
    logger.info(f"User registered successfully: {user.email}")

    return ok(UserPublic(**user.to_public_dict()), message="Registration successful")


@router.get("/me")
async def me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Public profile of the token holder"""
    user = await db.get(User, identity.user_id)
    if user is None:
        raise NotFoundError("User", identity.user_id)
    return ok(UserPublic(**user.to_public_dict()))
