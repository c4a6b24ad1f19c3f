from src.auth_service.schemas.auth import LoginResponse


class OAuthCallbackResponse(LoginResponse):
    """Session issued after a successful provider sign-in."""

    provider: str
