"""Authentication service for JWT, password handling and email verification."""

import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.orm import Session

from resource_hub.config import get_settings
from resource_hub.models.enums import UserRole
from resource_hub.models.user import User
from resource_hub.models.verification_token import VerificationToken

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str, role: str = UserRole.USER) -> str:
    """Create a JWT access token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": str(role),
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email (case-insensitive)."""
    return db.query(User).filter(User.email == email.lower()).first()


def find_conflicting_user(db: Session, username: str, email: str) -> User | None:
    """Find a user that already holds this username or email."""
    return (
        db.query(User)
        .filter(or_(User.email == email.lower(), User.username == username.lower()))
        .first()
    )


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
    email_verified: bool = False,
) -> User:
    """Create a new user. Username and email are stored lowercase."""
    hashed_password = get_password_hash(password)
    user = User(
        username=username.lower(),
        email=email.lower(),
        password_hash=hashed_password,
        role=role.value,
        email_verified=email_verified,
        is_banned=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_verification_token(db: Session, user: User) -> VerificationToken:
    """Create a fresh verification token, invalidating the user's older ones."""
    db.query(VerificationToken).filter(VerificationToken.user_id == user.id).delete()

    token = VerificationToken(
        token=secrets.token_hex(32),
        user_id=user.id,
        expires_at=datetime.now(UTC) + timedelta(hours=settings.verification_token_hours),
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    return token


def get_verification_token(db: Session, token: str) -> VerificationToken | None:
    """Look up a verification token."""
    return db.query(VerificationToken).filter(VerificationToken.token == token).first()


def is_token_expired(token: VerificationToken) -> bool:
    """Check if a verification token has passed its expiry."""
    expires_at = token.expires_at
    # SQLite drops tzinfo on the way back
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return datetime.now(UTC) > expires_at


def consume_verification_token(db: Session, token: VerificationToken) -> User:
    """Mark the token's user verified and delete the token."""
    user = token.user
    user.email_verified = True
    db.delete(token)
    db.commit()
    db.refresh(user)
    return user
