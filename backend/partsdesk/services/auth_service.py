# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Uses bcrypt for password hashing. Users are created from the CLI at setup
time; the API only logs them in and out (see routes/auth.py).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper/lower case, digit and special char required
  for new passwords
- Failed logins get one generic message; no hint whether the user exists
"""

import re

import bcrypt
from flask import current_app

from ..models import User
from ..storage import DuplicateRecordError, ShopStore, get_store


class AuthError(Exception):
    """401: bad credentials or no session."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)
        self.message = message


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. A malformed stored hash
    counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


_DUMMY_HASHES: dict[int, str] = {}


def _dummy_hash() -> str:
    """bcrypt hash of a throwaway password at the configured cost."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    if rounds not in _DUMMY_HASHES:
        salt = bcrypt.gensalt(rounds=rounds)
        _DUMMY_HASHES[rounds] = bcrypt.hashpw(b"not-a-real-password", salt).decode("utf-8")
    return _DUMMY_HASHES[rounds]


def create_user(username: str, password: str, store: ShopStore | None = None) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ValueError: blank or duplicate username
        PasswordValidationError: weak password
    """
    store = store or get_store()
    username = (username or "").strip()
    if not username:
        raise ValueError("Username is required")

    password_hash = hash_password(password)
    try:
        return store.create_user(username=username, password_hash=password_hash)
    except DuplicateRecordError:
        raise ValueError(f"Username '{username}' already exists")


def authenticate(username: str, password: str, store: ShopStore | None = None) -> User:
    """
    Return the user for valid credentials.

    Raises AuthError otherwise.
    """
    store = store or get_store()
    user = store.get_user_by_username(username)
    # Unknown usernames still pay for one bcrypt check
    password_hash = user.password_hash if user is not None else _dummy_hash()
    if not verify_password(password, password_hash) or user is None:
        current_app.logger.info("Failed login for %r", username)
        raise AuthError()
    return user


def load_user(user_id, store: ShopStore | None = None) -> User | None:
    if user_id is None:
        return None
    store = store or get_store()
    return store.get_user(user_id)
