"""Public schema repositories."""

from src.auth_service.repositories.public.tenant import TenantRepository

__all__ = ["TenantRepository"]
