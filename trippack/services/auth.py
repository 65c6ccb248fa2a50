"""Account service: password hashing, signup, login and profile changes."""

import logging

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trippack.errors import ValidationError
from trippack.models.user import User

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def normalize_username(username: str | None) -> str:
    """Trim a username and enforce the minimum length."""
    cleaned = (username or "").strip()
    if len(cleaned) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    return cleaned


def get_user_by_username(db: Session, username: str) -> User | None:
    """Get a user by username."""
    return db.query(User).filter(User.username == username.strip()).first()


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Authenticate a user by username and password."""
    user = get_user_by_username(db, username)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_user(db: Session, username: str, password: str) -> User:
    """Create a new user after validating the credentials."""
    username = normalize_username(username)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if get_user_by_username(db, username):
        raise ValidationError("Username already taken")

    user = User(username=username, password_hash=get_password_hash(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Username already taken") from None
    db.refresh(user)
    logger.info(f"Created user {user.id} ({user.username})")
    return user


def rename_user(db: Session, user: User, username: str) -> User:
    """Change a user's display name.

    Names already copied onto tasks and packing records keep their old value.
    """
    username = normalize_username(username)
    if username == user.username:
        return user

    existing = get_user_by_username(db, username)
    if existing and existing.id != user.id:
        raise ValidationError("Username already taken")

    user.username = username
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Username already taken") from None
    db.refresh(user)
    return user
