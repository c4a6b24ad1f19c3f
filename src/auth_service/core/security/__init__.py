"""Security utilities - crypto, validators and response headers.

Re-exports all security-related functions for convenience.
"""

from src.auth_service.core.security.crypto import (
    SECURE_ALPHABET,
    SECURE_STRING_LENGTH,
    constant_time_equals,
    create_state_token,
    decode_state_token,
    generate_secure_random_string,
    generate_token,
    get_dummy_password_hash,
    hash_password,
    hash_token,
    verify_password,
)
from src.auth_service.core.security.headers import SecurityHeadersMiddleware
from src.auth_service.core.security.validators import (
    normalize_email,
    normalize_host,
    validate_schema_name,
)

__all__ = [
    # Crypto
    "SECURE_ALPHABET",
    "SECURE_STRING_LENGTH",
    "constant_time_equals",
    "create_state_token",
    "decode_state_token",
    "generate_secure_random_string",
    "generate_token",
    "get_dummy_password_hash",
    "hash_password",
    "hash_token",
    "verify_password",
    # Headers
    "SecurityHeadersMiddleware",
    # Validators
    "normalize_email",
    "normalize_host",
    "validate_schema_name",
]
