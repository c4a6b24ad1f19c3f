"""Security validators for storage identifiers, hosts and user input."""

import re
from typing import Final

MAX_SCHEMA_LENGTH: Final[int] = 63  # PostgreSQL identifier limit
TENANT_SCHEMA_PREFIX: Final[str] = "tenant_"
MAX_TENANT_SLUG_LENGTH: Final[int] = MAX_SCHEMA_LENGTH - len(TENANT_SCHEMA_PREFIX)  # 56
MAX_DOMAIN_LENGTH: Final[int] = 253
TENANT_SLUG_REGEX: Final[str] = r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$"
TENANT_SCHEMA_REGEX: Final[str] = rf"^{TENANT_SCHEMA_PREFIX}[a-z][a-z0-9]*(_[a-z0-9]+)*$"
DOMAIN_LABEL_REGEX: Final[str] = r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$"

_TENANT_SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(TENANT_SLUG_REGEX)
_TENANT_SCHEMA_PATTERN: Final[re.Pattern[str]] = re.compile(TENANT_SCHEMA_REGEX)
_DOMAIN_LABEL_PATTERN: Final[re.Pattern[str]] = re.compile(DOMAIN_LABEL_REGEX)


def validate_tenant_slug_format(slug: str) -> str:
    """Validate tenant slug format (no `tenant_` prefix)."""
    if len(slug) > MAX_TENANT_SLUG_LENGTH or not _TENANT_SLUG_PATTERN.match(slug):
        raise ValueError(
            "Slug must start with a letter and contain only lowercase letters, numbers, "
            "and single underscores as separators"
        )
    return slug


def slug_to_schema_name(slug: str) -> str:
    """Convert a tenant slug to its storage schema name, e.g. 'acme' -> 'tenant_acme'."""
    return f"{TENANT_SCHEMA_PREFIX}{slug}"


def validate_schema_name(schema_name: str) -> None:
    """Validate schema name follows strict tenant naming convention.

    Schema names must:
    - Start with 'tenant_' prefix
    - Contain only lowercase letters, numbers, and single underscores as separators
    - Not exceed 63 characters (PostgreSQL limit)
    - Not contain forbidden patterns

    Raises:
        ValueError: If schema name is invalid

    Examples:
        >>> validate_schema_name("tenant_acme")  # Valid
        >>> validate_schema_name("tenant_acme_corp")  # Valid
        >>> validate_schema_name("acme")  # Invalid - missing prefix
        >>> validate_schema_name("tenant__acme")  # Invalid - consecutive underscores
    """
    if len(schema_name) > MAX_SCHEMA_LENGTH:
        raise ValueError(
            f"Schema name exceeds PostgreSQL limit: {len(schema_name)} > {MAX_SCHEMA_LENGTH}"
        )

    if not _TENANT_SCHEMA_PATTERN.match(schema_name):
        raise ValueError(
            f"Invalid schema name format: {schema_name}. "
            "Must be 'tenant_' followed by lowercase alphanumeric "
            "with single underscores as separators."
        )

    forbidden = ["pg_", "information_schema", "public", "--", ";", "/*", "*/"]
    if any(pattern in schema_name.lower() for pattern in forbidden):
        raise ValueError(f"Schema name contains forbidden pattern: {schema_name}")


def normalize_host(host: str | None) -> str | None:
    """Normalize a Host header value to a bare lowercase domain.

    Strips the port and a trailing dot. Returns None when the value is not a
    syntactically valid DNS name, so it can never reach a lookup.
    """
    if not host:
        return None
    domain = host.strip().lower()
    if domain.startswith("["):
        return None  # IPv6 literals are never tenant domains
    domain = domain.split(":", 1)[0].rstrip(".")
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return None
    if not all(_DOMAIN_LABEL_PATTERN.match(label) for label in domain.split(".")):
        return None
    return domain


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for storage and lookup."""
    return email.strip().lower()
