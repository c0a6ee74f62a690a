# Overview: Service-layer operations for accounts and password authentication.

"""
Authentication Service

WHY: Every order and every approval must be attributable to an account.
Passwords are hashed with bcrypt; the cost factor comes from
BCRYPT_LOG_ROUNDS (12 in production).
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import VALID_ROLES
from app.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError if the password is too short."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate then hash a password with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is constant-time. Malformed hashes verify as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str, role: str) -> User:
    """
    Create a new account.

    Raises:
        ValueError: unknown role or email already registered
        PasswordValidationError: password too weak
    """
    if role not in VALID_ROLES:
        raise ValueError(f"Unknown role {role}. Must be one of: {', '.join(VALID_ROLES)}")

    email = email.strip().lower()
    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ValueError("Email already exists")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate an active account by email and password.

    Returns the User on success (and stamps last_login_at), None otherwise.
    """
    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
