from datetime import UTC, datetime

# Schema of the shared tenant registry
PUBLIC_SCHEMA = "public"
# Placeholder schema of partition tables, translated per session to tenant_{slug}
TENANT_SCHEMA = "tenant"


def utc_now() -> datetime:
    """Return current UTC time as naive datetime (for PostgreSQL TIMESTAMP).

    Database columns use TIMESTAMP WITHOUT TIME ZONE, so we strip tzinfo.
    All times are stored in UTC by convention.
    """
    return datetime.now(UTC).replace(tzinfo=None)
