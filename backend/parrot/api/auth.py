"""
Parrot Platform - Authentication API
====================================

Registration, login and the current-user endpoint.
"""

from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, HTTPException, status
from passlib.hash import bcrypt
from sqlalchemy import select

from parrot.api.deps import CurrentUser, DbSession, create_access_token
from parrot.core.config import settings
from parrot.core.models import User, UserRole
from parrot.core.schemas import TokenResponse, UserCreate, UserLogin, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ==========================================================================
# Helper Functions
# ==========================================================================

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.verify(password, password_hash)


# ==========================================================================
# Registration
# ==========================================================================

@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={
        201: {"description": "User created successfully"},
        409: {"description": "Email already registered"},
        422: {"description": "Validation error"},
    },
)
async def register(
    data: UserCreate,
    db: DbSession,
) -> UserResponse:
    """
    Register a new user account.

    New accounts get the ``user`` role and no home space; an admin assigns
    both later.
    """
    result = await db.execute(
        select(User).where(User.email == data.email.lower())
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        id=uuid4(),
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        name=data.name,
        role=UserRole.USER,
        is_active=True,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return UserResponse.model_validate(user)


# ==========================================================================
# Login
# ==========================================================================

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and get an access token",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(
    data: UserLogin,
    db: DbSession,
) -> TokenResponse:
    """
    Authenticate user and return an access token.

    Unknown email, wrong password and inactive account all return the same
    401 so the response does not reveal which one failed.
    """
    result = await db.execute(
        select(User).where(User.email == data.email.lower())
    )
    user = result.scalar_one_or_none()

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
    )

    if not user:
        raise credentials_exception

    if not verify_password(data.password, user.password_hash):
        raise credentials_exception

    if not user.is_active:
        raise credentials_exception

    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    return TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ==========================================================================
# Current User
# ==========================================================================

@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)
