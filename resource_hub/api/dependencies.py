"""FastAPI dependencies for authentication, storage and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from resource_hub.config import get_settings
from resource_hub.database import get_db
from resource_hub.models.user import User
from resource_hub.services.access_policy import is_admin
from resource_hub.services.asset_store import AssetStore, get_default_asset_store
from resource_hub.services.auth import decode_access_token
from resource_hub.services.rate_limit import RateLimiter
from resource_hub.services.resource_service import ResourceService

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _credentials_error(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(db: Session, token: str) -> User:
    """Resolve a bearer token to its user, or raise 401."""
    payload = decode_access_token(token)
    if payload is None:
        raise _credentials_error()

    user_id = payload.get("sub")
    if user_id is None:
        raise _credentials_error()

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise _credentials_error("User not found")

    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    user = _user_from_token(db, credentials.credentials)
    if user.is_banned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been banned",
        )
    return user


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_security)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    """Get the current user if a token was sent; banned users browse anonymously."""
    if credentials is None:
        return None
    user = _user_from_token(db, credentials.credentials)
    if user.is_banned:
        return None
    return user


def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require the current user to be an administrator."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_asset_store() -> AssetStore:
    """Get the asset store for the configured storage root."""
    return get_default_asset_store()


def get_rate_limiter(request: Request) -> RateLimiter | None:
    """Get the process-wide upload rate limiter built at startup."""
    return getattr(request.app.state, "upload_rate_limiter", None)


def get_resource_service(
    db: Annotated[Session, Depends(get_db)],
    asset_store: Annotated[AssetStore, Depends(get_asset_store)],
    rate_limiter: Annotated[RateLimiter | None, Depends(get_rate_limiter)],
) -> ResourceService:
    """Get resource service with dependencies."""
    settings = get_settings()
    return ResourceService(
        db,
        asset_store,
        rate_limiter=rate_limiter,
        retention_keep=settings.version_retention,
        duplicate_check=settings.duplicate_title_check,
    )
