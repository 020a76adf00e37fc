"""
Accounts: registration, credentials and profile.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from blogify.core.config import settings
from blogify.core.exceptions import (
    AuthenticationError, BadRequestError, ConflictError
)
from blogify.core.security import (
    generate_reset_token, get_password_hash, validate_password_strength,
    validate_username, verify_password
)
from blogify.models import User, UserRole

logger = logging.getLogger(__name__)


def register_user(
    db: Session,
    email: str,
    username: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    username_errors = validate_username(username)
    if username_errors:
        raise BadRequestError("Invalid username", data={"errors": username_errors})

    password_errors = validate_password_strength(password)
    if password_errors:
        raise BadRequestError("Password does not meet requirements", data={"errors": password_errors})

    email = email.lower()
    username = username.lower()
    existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
    if existing:
        raise ConflictError("Email already registered" if existing.email == email else "Username already taken")

    user = User(
        email=email,
        username=username,
        hashed_password=get_password_hash(password),
        first_name=first_name or None,
        last_name=last_name or None,
        role=UserRole.USER,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User registered: {user.username}")
    return user


def authenticate(db: Session, identifier: str, password: str) -> User:
    identifier = identifier.strip().lower()
    user = db.query(User).filter(
        or_(User.email == identifier, User.username == identifier),
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed for: {identifier}")
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    logger.info(f"User logged in: {user.username}")
    return user


def update_profile(db: Session, user: User, changes: Dict[str, Any]) -> User:
    username = changes.get("username")
    if username:
        username = username.lower()
        username_errors = validate_username(username)
        if username_errors:
            raise BadRequestError("Invalid username", data={"errors": username_errors})
        taken = db.query(User).filter(User.username == username, User.id != user.id).first()
        if taken:
            raise ConflictError("Username is already taken")
        user.username = username

    for field in ("first_name", "last_name", "bio", "avatar"):
        if changes.get(field) is not None:
            setattr(user, field, changes[field])

    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    password_errors = validate_password_strength(new_password)
    if password_errors:
        raise BadRequestError("New password does not meet requirements", data={"errors": password_errors})

    if not verify_password(current_password, user.hashed_password):
        raise AuthenticationError("Current password is incorrect")

    user.hashed_password = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")


def request_password_reset(db: Session, email: str) -> Optional[str]:
    """Issue a reset token; returns None when no account matches."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        return None

    user.reset_token = generate_reset_token()
    user.reset_token_expiry = datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()
    logger.info(f"Password reset requested for user {user.id}")
    return user.reset_token


def reset_password(db: Session, token: str, new_password: str) -> None:
    password_errors = validate_password_strength(new_password)
    if password_errors:
        raise BadRequestError("New password does not meet requirements", data={"errors": password_errors})

    user = db.query(User).filter(
        User.reset_token == token,
        User.reset_token_expiry > datetime.utcnow(),
    ).first()
    if not user:
        raise BadRequestError("Invalid or expired reset token")

    user.hashed_password = get_password_hash(new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.commit()
    logger.info(f"Password reset completed for user {user.id}")
