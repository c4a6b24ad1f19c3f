"""Public schema models - the shared tenant registry."""

from src.auth_service.models.public.tenant import Tenant

__all__ = ["Tenant"]
