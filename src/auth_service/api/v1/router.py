from fastapi import APIRouter

from src.auth_service.api.v1 import auth, billing, oauth

# Tenants are told apart by host, so routes carry no version or tenant prefix
api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(oauth.router)
api_router.include_router(billing.router)
