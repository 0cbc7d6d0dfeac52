"""
Authentication router: local email/password accounts with opaque session tokens.

The token is returned in the body (for ``Authorization: Bearer``) and set
as an httponly cookie for browser clients.
"""

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import select

from notevault.deps import SESSION_COOKIE, CurrentUser, DBSession
from notevault.errors import AuthenticationError, ConflictError, ValidationFailedError
from notevault.models.user import User
from notevault.schemas import ApiResponse, AuthResponse, LoginRequest, RegisterRequest, UserSummary
from notevault.services.password import hash_password, validate_password, verify_password
from notevault.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.session_expire_hours * 3600,
        path="/",
    )


def _check_password(password: str) -> None:
    is_valid, error = validate_password(password, settings.password_min_length)
    if not is_valid:
        raise ValidationFailedError(errors=[{"field": "password", "message": error}])


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, response: Response, db: DBSession):
    """Create an account and start a session."""
    _check_password(body.password)

    result = await db.execute(select(User).where(User.email == body.email))
    if result.scalar_one_or_none():
        raise ConflictError("User already exists with this email")

    user = User(
        email=body.email,
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        hashed_password=hash_password(body.password),
        is_active=True,
    )
    token = user.generate_session_token()
    user.update_last_seen()
    db.add(user)
    await db.commit()

    _set_session_cookie(response, token)
    logger.info(f"New user registered: {user.email}")
    return ApiResponse(
        message="User registered successfully",
        data=AuthResponse(
            user=UserSummary.model_validate(user),
            session_token=token,
            expires_at=user.session_expires_at,
        ),
    )


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(body: LoginRequest, response: Response, db: DBSession):
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if not user or not user.hashed_password or not verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    token = user.generate_session_token()
    user.update_last_seen()
    await db.commit()

    _set_session_cookie(response, token)
    logger.info(f"User logged in: {user.email}")
    return ApiResponse(
        message="Login successful",
        data=AuthResponse(
            user=UserSummary.model_validate(user),
            session_token=token,
            expires_at=user.session_expires_at,
        ),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(user: CurrentUser, response: Response, db: DBSession):
    user.clear_session()
    await db.commit()

    response.delete_cookie(SESSION_COOKIE, path="/")
    logger.info(f"User logged out: {user.email}")
    return ApiResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserSummary])
async def me(user: CurrentUser):
    return ApiResponse(data=UserSummary.model_validate(user))


@router.put("/change-password", response_model=ApiResponse[None])
async def change_password(body: ChangePasswordRequest, user: CurrentUser, response: Response, db: DBSession):
    """Change password and end the current session."""
    if not user.hashed_password or not verify_password(body.current_password, user.hashed_password):
        raise ValidationFailedError("Current password is incorrect")
    _check_password(body.new_password)

    user.hashed_password = hash_password(body.new_password)
    user.clear_session()
    await db.commit()

    response.delete_cookie(SESSION_COOKIE, path="/")
    logger.info(f"Password changed for user: {user.email}")
    return ApiResponse(message="Password changed successfully. Please login again.")
