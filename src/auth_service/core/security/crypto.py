"""Cryptographic utilities - password hashing, random secrets, hashing and signed state."""

import hmac
import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from hashlib import sha256
from typing import Any

import argon2
from jose import JWTError, jwt

from src.auth_service.core.config import get_settings

# 32 symbols, no "l", "o", "0", "1" to keep tokens readable
SECURE_ALPHABET = "abcdefghijkmnpqrstuvwxyz23456789"
SECURE_STRING_LENGTH = 24


def generate_secure_random_string(length: int = SECURE_STRING_LENGTH) -> str:
    """Generate a random string over SECURE_ALPHABET (5 bits of entropy per char)."""
    return "".join(SECURE_ALPHABET[byte >> 3] for byte in secrets.token_bytes(length))


def generate_token() -> str:
    """Generate an opaque URL-safe token for emails and CSRF."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    """Compare two strings without leaking the position of the first mismatch."""
    return hmac.compare_digest(a.encode(), b.encode())


@lru_cache
def get_password_hasher() -> argon2.PasswordHasher:
    """Create password hasher with settings from config."""
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


def hash_password(password: str) -> str:
    """Hash password using Argon2id."""
    return get_password_hasher().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash. Returns False on any error."""
    try:
        get_password_hasher().verify(hashed, password)
        return True
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


@lru_cache
def get_dummy_password_hash() -> str:
    """Hash used to keep verification time constant when a user does not exist."""
    return hash_password(secrets.token_urlsafe(16))


def create_state_token(claims: dict[str, Any], expires_minutes: int) -> str:
    """Sign short-lived claims (OAuth state) with the application secret."""
    settings = get_settings()
    to_encode = dict(claims)
    to_encode["exp"] = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_state_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a signed state token. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
