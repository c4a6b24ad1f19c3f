"""Database utilities - engine and sessions."""

from src.auth_service.core.db.engine import dispose_engine, get_engine, set_engine
from src.auth_service.core.db.session import get_public_session, get_session, get_tenant_session

__all__ = [
    # Engine
    "dispose_engine",
    "get_engine",
    "set_engine",
    # Session
    "get_public_session",
    "get_session",
    "get_tenant_session",
]
