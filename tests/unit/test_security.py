"""Tests for security-critical functionality."""

import pytest

from src.auth_service.core.security import (
    SECURE_ALPHABET,
    SECURE_STRING_LENGTH,
    constant_time_equals,
    create_state_token,
    decode_state_token,
    generate_secure_random_string,
    generate_token,
    hash_password,
    hash_token,
    normalize_email,
    normalize_host,
    validate_schema_name,
    verify_password,
)

pytestmark = pytest.mark.unit


class TestSchemaNameValidation:
    """Tests for schema name SQL injection prevention."""

    def test_valid_schema_names(self):
        """Valid tenant schema names should pass validation."""
        validate_schema_name("tenant_acme")
        validate_schema_name("tenant_a")
        validate_schema_name("tenant_abc123")
        validate_schema_name("tenant_acme_corp")
        # Max length with tenant_ prefix (63 chars total)
        validate_schema_name("tenant_" + "a" * 56)

    def test_missing_tenant_prefix(self):
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("acme")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant123")  # Missing underscore after tenant

    def test_invalid_format_after_prefix(self):
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_123")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant__acme")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_acme_")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_Acme")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_acme-corp")

    def test_exceeds_max_length(self):
        """Schema names over 63 characters should be rejected."""
        with pytest.raises(ValueError, match="exceeds PostgreSQL limit"):
            validate_schema_name("tenant_" + "a" * 57)

    def test_sql_injection_rejected(self):
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_acme; DROP TABLE users;--")
        with pytest.raises(ValueError, match="Invalid schema name format"):
            validate_schema_name("tenant_acme/*comment*/")

    def test_forbidden_patterns(self):
        with pytest.raises(ValueError, match="forbidden pattern"):
            validate_schema_name("tenant_pg_catalog")
        with pytest.raises(ValueError, match="forbidden pattern"):
            validate_schema_name("tenant_public")


class TestNormalizeHost:
    """Tests for Host header normalization used in tenant resolution."""

    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("alpha.example.com", "alpha.example.com"),
            ("Alpha.Example.COM", "alpha.example.com"),
            ("alpha.example.com:8443", "alpha.example.com"),
            ("alpha.example.com.", "alpha.example.com"),
            (" alpha.example.com ", "alpha.example.com"),
            ("localhost", "localhost"),
        ],
    )
    def test_valid_hosts(self, host: str, expected: str):
        assert normalize_host(host) == expected

    @pytest.mark.parametrize(
        "host",
        [
            None,
            "",
            "[::1]:8000",
            "alpha..example.com",
            "-alpha.example.com",
            "alpha_example.com",
            "alpha.example.com/evil",
            "a" * 64 + ".example.com",
        ],
    )
    def test_invalid_hosts(self, host: str | None):
        assert normalize_host(host) is None

    def test_normalize_email(self):
        assert normalize_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"


class TestSecretsAndHashing:
    def test_secure_random_string_alphabet(self):
        value = generate_secure_random_string()
        assert len(value) == SECURE_STRING_LENGTH
        assert set(value) <= set(SECURE_ALPHABET)

    def test_secure_alphabet_has_32_symbols(self):
        # Each byte maps to one symbol through its top 5 bits
        assert len(set(SECURE_ALPHABET)) == 32

    def test_secure_random_strings_differ(self):
        assert len({generate_secure_random_string() for _ in range(50)}) == 50

    def test_generated_tokens_are_url_safe(self):
        token = generate_token()
        assert len(token) >= 40
        assert all(c.isalnum() or c in "-_" for c in token)

    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_constant_time_equals(self):
        assert constant_time_equals("same", "same")
        assert not constant_time_equals("same", "diff")
        assert not constant_time_equals("short", "longer value")


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("correct-horse-battery")
        assert hashed.startswith("$argon2id$")
        assert verify_password("correct-horse-battery", hashed)
        assert not verify_password("wrong-password", hashed)

    def test_verify_against_garbage_hash_returns_false(self):
        assert not verify_password("anything", "not-a-hash")


class TestStateTokens:
    def test_round_trip(self):
        token = create_state_token({"provider": "google", "nonce": "n1"}, expires_minutes=5)
        claims = decode_state_token(token)
        assert claims is not None
        assert claims["provider"] == "google"
        assert claims["nonce"] == "n1"

    def test_tampered_token_rejected(self):
        token = create_state_token({"provider": "google"}, expires_minutes=5)
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[::-1]}"
        assert decode_state_token(tampered) is None

    def test_expired_token_rejected(self):
        token = create_state_token({"provider": "google"}, expires_minutes=-1)
        assert decode_state_token(token) is None

    def test_garbage_rejected(self):
        assert decode_state_token("not-a-jwt") is None
