"""OAuth provider endpoints, validated provider settings and the code exchange client."""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from src.auth_service.core.exceptions import UpstreamError
from src.auth_service.core.logging import get_logger
from src.auth_service.models.enums import OAuthProviderName
from src.auth_service.models.tenant import OAuthProviderConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderEndpoints:
    authorize_url: str
    token_url: str
    userinfo_url: str
    default_scopes: tuple[str, ...]
    extra_authorize_params: dict[str, str] = field(default_factory=dict)


PROVIDER_ENDPOINTS: dict[OAuthProviderName, ProviderEndpoints] = {
    OAuthProviderName.GOOGLE: ProviderEndpoints(
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v2/userinfo",
        default_scopes=("openid", "email", "profile"),
    ),
    OAuthProviderName.GITHUB: ProviderEndpoints(
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        default_scopes=("read:user", "user:email"),
        extra_authorize_params={"allow_signup": "false"},
    ),
}

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


class ProviderSettings(BaseModel):
    """One enabled provider of one tenant, validated when the catalog is loaded."""

    model_config = ConfigDict(frozen=True)

    provider: OAuthProviderName
    client_id: str = Field(min_length=1, max_length=255)
    client_secret: SecretStr
    redirect_uri: str
    scopes: tuple[str, ...] = ()

    @field_validator("client_secret")
    @classmethod
    def validate_client_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("client_secret must not be empty")
        return v

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect_uri(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("https", "http") or not parsed.netloc:
            raise ValueError("redirect_uri must be an absolute http(s) URL")
        if parsed.fragment:
            raise ValueError("redirect_uri must not contain a fragment")
        return v

    @model_validator(mode="before")
    @classmethod
    def normalize_scopes(cls, data: Any) -> Any:
        """Accept space or comma separated scopes; fall back to the provider defaults."""
        if not isinstance(data, dict):
            return data
        scopes = data.get("scopes")
        if isinstance(scopes, str):
            scopes = tuple(s for s in scopes.replace(",", " ").split() if s)
        if not scopes:
            try:
                scopes = PROVIDER_ENDPOINTS[OAuthProviderName(data.get("provider"))].default_scopes
            except ValueError:
                scopes = ()  # unknown provider is reported by field validation
        return {**data, "scopes": scopes}

    @classmethod
    def from_record(cls, record: OAuthProviderConfig) -> "ProviderSettings":
        return cls.model_validate(
            {
                "provider": record.provider,
                "client_id": record.client_id,
                "client_secret": record.client_secret,
                "redirect_uri": record.redirect_uri,
                "scopes": record.scopes,
            }
        )

    @property
    def endpoints(self) -> ProviderEndpoints:
        return PROVIDER_ENDPOINTS[self.provider]


def oauth_client(settings: ProviderSettings, **client_kwargs: Any) -> AsyncOAuth2Client:
    """Authlib client for one tenant's provider registration.

    Extra keyword arguments go to the underlying ``httpx.AsyncClient``.
    """
    return AsyncOAuth2Client(
        client_id=settings.client_id,
        client_secret=settings.client_secret.get_secret_value(),
        scope=" ".join(settings.scopes),
        redirect_uri=settings.redirect_uri,
        token_endpoint_auth_method="client_secret_post",
        **client_kwargs,
    )


async def build_authorize_url(settings: ProviderSettings, state: str) -> str:
    """Build the provider consent URL for the tenant-scoped redirect URI."""
    endpoints = settings.endpoints
    async with oauth_client(settings) as client:
        url, _ = client.create_authorization_url(
            endpoints.authorize_url, state=state, **endpoints.extra_authorize_params
        )
    return url  # type: ignore[no-any-return]


@dataclass(frozen=True)
class ExternalIdentity:
    """Account data returned by a provider after a successful code exchange."""

    provider: OAuthProviderName
    provider_user_id: str
    email: str
    email_verified: bool
    first_name: str = ""
    last_name: str = ""


def _split_name(name: str | None) -> tuple[str, str]:
    if not name:
        return "", ""
    first, _, last = name.strip().partition(" ")
    return first, last.strip()


def parse_google_userinfo(userinfo: dict[str, Any]) -> ExternalIdentity | None:
    if not userinfo.get("id") or not userinfo.get("email"):
        return None
    return ExternalIdentity(
        provider=OAuthProviderName.GOOGLE,
        provider_user_id=str(userinfo["id"]),
        email=str(userinfo["email"]),
        email_verified=bool(userinfo.get("verified_email", False)),
        first_name=str(userinfo.get("given_name") or ""),
        last_name=str(userinfo.get("family_name") or ""),
    )


def parse_github_userinfo(
    userinfo: dict[str, Any], emails: list[dict[str, Any]]
) -> ExternalIdentity | None:
    if not userinfo.get("id"):
        return None

    email = next(
        (e.get("email") for e in emails if e.get("primary") and e.get("verified")),
        None,
    )
    email_verified = email is not None
    if email is None:
        email = userinfo.get("email")
    if not email:
        return None

    first_name, last_name = _split_name(userinfo.get("name"))
    return ExternalIdentity(
        provider=OAuthProviderName.GITHUB,
        provider_user_id=str(userinfo["id"]),
        email=str(email),
        email_verified=email_verified,
        first_name=first_name,
        last_name=last_name,
    )


class HttpIdentityProvider:
    """Exchanges authorization codes for external identities.

    Built on authlib's httpx client: one token request, then the userinfo calls
    with the returned bearer token. A single attempt per call, bounded by
    ``timeout``. Every failure surfaces as UpstreamError.
    """

    def __init__(self, timeout: float, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self.transport = transport

    async def exchange_code(self, settings: ProviderSettings, code: str) -> ExternalIdentity:
        provider = settings.provider.value
        endpoints = settings.endpoints
        client_kwargs: dict[str, Any] = {"timeout": self.timeout}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport

        try:
            async with oauth_client(settings, **client_kwargs) as client:
                token = await client.fetch_token(endpoints.token_url, code=code)
                if not token.get("access_token"):
                    raise ValueError("token response carries no access_token")

                userinfo = await _get_json(client, endpoints.userinfo_url)
                if settings.provider is OAuthProviderName.GITHUB:
                    response = await client.get(
                        GITHUB_EMAILS_URL, headers={"Accept": "application/json"}
                    )
                    emails = response.json() if response.status_code == 200 else []
                    identity = parse_github_userinfo(userinfo, emails)
                else:
                    identity = parse_google_userinfo(userinfo)
        except AuthlibBaseError as e:
            # Token endpoint errors, including GitHub's 200 with an "error" field
            logger.error(
                "OAuth token exchange rejected",
                provider=provider,
                error=getattr(e, "error", None) or str(e),
            )
            raise UpstreamError(
                "The sign-in provider rejected the authorization code",
                reason="oauth_exchange_failed",
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "OAuth provider returned an error",
                provider=provider,
                status_code=e.response.status_code,
                error=str(e),
            )
            raise UpstreamError(
                "The sign-in provider returned an error", reason="oauth_exchange_failed"
            ) from e
        except httpx.HTTPError as e:
            logger.error("OAuth provider unreachable", provider=provider, error=str(e))
            raise UpstreamError(
                "The sign-in provider could not be reached", reason="oauth_unavailable"
            ) from e
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.error(
                "OAuth provider sent a malformed response", provider=provider, error=str(e)
            )
            raise UpstreamError(
                "The sign-in provider sent an unexpected response", reason="oauth_exchange_failed"
            ) from e

        if identity is None:
            logger.error("OAuth identity incomplete", provider=provider)
            raise UpstreamError(
                "The sign-in provider did not share an email address",
                reason="oauth_identity_incomplete",
            )

        logger.info("OAuth code exchanged", provider=provider)
        return identity


async def _get_json(client: AsyncOAuth2Client, url: str) -> Any:
    response = await client.get(url, headers={"Accept": "application/json"})
    response.raise_for_status()
    return response.json()
