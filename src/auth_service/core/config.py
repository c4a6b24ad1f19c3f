from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Tenant Auth Core"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Security
    log_user_emails: bool = False  # GDPR: keep emails out of logs by default
    csp_production: str = "default-src 'self'; frame-ancestors 'none'"

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100

    # Signing key for OAuth state tokens
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"

    # Password hashing
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1
    password_min_length: int = 8
    password_max_length: int = 128
    password_min_score: int = 0  # zxcvbn score 0-4, 0 disables the entropy check

    # Sessions and lockout
    session_ttl_hours: int = 24
    max_failed_login_attempts: int = 5
    lockout_minutes: int = 15

    # Single-use tokens
    password_reset_expire_minutes: int = 15
    email_verification_expire_hours: int = 24

    # CSRF
    csrf_enabled: bool = True
    csrf_token_ttl_minutes: int = 60
    csrf_cookie_name: str = "csrf_context"
    cookie_secure: bool = True

    # OAuth
    oauth_state_expire_minutes: int = 10
    oauth_http_timeout_seconds: float = 10.0
    oauth_state_cookie_name: str = "oauth_state"

    # Billing (Stripe REST API)
    stripe_api_key: str | None = None
    stripe_webhook_secret: str | None = None
    stripe_api_base: str = "https://api.stripe.com"
    stripe_http_timeout_seconds: float = 10.0
    stripe_webhook_tolerance_seconds: int = 300

    # Email (Resend)
    resend_api_key: str | None = None  # If not set, emails are logged but not sent
    email_from_local_part: str = "noreply"  # Sent as noreply@<tenant domain>
    email_send_timeout_seconds: int = 10
    frontend_scheme: str = "https"  # Links in emails point at the tenant's own domain

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Rate limiting (slowapi); None keeps counters in memory
    rate_limit_storage_uri: str | None = None

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "JWT_SECRET_KEY must be changed from default value. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("password_min_score")
    @classmethod
    def validate_password_min_score(cls, v: int) -> int:
        if not 0 <= v <= 4:
            raise ValueError("PASSWORD_MIN_SCORE must be between 0 and 4")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
