"""Test utilities package."""

from tests.utils.database import TENANT_SCHEMAS, create_tables, create_test_engine

__all__ = [
    "TENANT_SCHEMAS",
    "create_tables",
    "create_test_engine",
]
