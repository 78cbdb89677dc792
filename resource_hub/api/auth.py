"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from resource_hub.api.dependencies import get_current_user
from resource_hub.database import get_db
from resource_hub.models.user import User
from resource_hub.schemas.auth import (
    AuthResponse,
    MessageResponse,
    RegisterResponse,
    ResendVerificationRequest,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyEmailRequest,
)
from resource_hub.services.auth import (
    authenticate_user,
    consume_verification_token,
    create_access_token,
    create_user,
    find_conflicting_user,
    get_user_by_email,
    get_verification_token,
    is_token_expired,
    issue_verification_token,
)
from resource_hub.tasks.verification import send_verification_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _dispatch_verification_email(email: str, token: str) -> None:
    """Queue the verification email without failing the request."""
    try:
        send_verification_email.delay(email, token)
    except Exception as e:
        # The user can request another link via resend-verification
        logger.error(f"Failed to queue verification email for {email}: {e}")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user and send a verification email."""
    # Check if user already exists
    existing_user = find_conflicting_user(db, user_data.username, user_data.email)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                "Email already registered"
                if existing_user.email == user_data.email.lower()
                else "Username already taken"
            ),
        )

    user = create_user(db, user_data.username, user_data.email, user_data.password)

    token = issue_verification_token(db, user)
    _dispatch_verification_email(user.email, token.token)

    return RegisterResponse(
        message="Registration successful! Please check your email to verify your account.",
        user_id=user.id,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.is_banned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been banned. Please contact support.",
        )

    if not user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before logging in",
        )

    access_token = create_access_token(user.id, user.email, user.role)

    return AuthResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/verify-email", response_model=AuthResponse)
async def verify_email(
    request: VerifyEmailRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Verify an email address with the token from the verification link."""
    token = get_verification_token(db, request.token)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid verification token",
        )

    if is_token_expired(token):
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="Verification token has expired",
        )

    user = consume_verification_token(db, token)
    access_token = create_access_token(user.id, user.email, user.role)

    return AuthResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    request: ResendVerificationRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Issue a new verification token, invalidating older ones."""
    user = get_user_by_email(db, request.email)

    if not user:
        # Don't reveal if email exists
        return MessageResponse(
            message="If an account exists with this email, a verification link has been sent."
        )

    if user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already verified",
        )

    token = issue_verification_token(db, user)
    _dispatch_verification_email(user.email, token.token)

    return MessageResponse(message="Verification email sent! Please check your inbox.")


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@router.post("/logout")
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard token)."""
    return {"message": "Logged out successfully"}
