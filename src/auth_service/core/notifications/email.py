"""Email notifier using the Resend API.

Each send is a single attempt bounded by ``email_send_timeout_seconds``. Callers
get a bool back and decide how to surface a failure; nothing here raises.
"""

import asyncio
import html
from concurrent.futures import ThreadPoolExecutor

import resend

from src.auth_service.core.config import get_settings
from src.auth_service.core.logging import get_logger

logger = get_logger(__name__)

# The Resend SDK is blocking, so sends run on a small pool
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

# Shared email styles
_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_LINK_STYLE = "color: #2563eb; word-break: break-all;"
_MUTED_STYLE = "color: #666; font-size: 14px;"


def configure_email() -> bool:
    """Hand the Resend API key to the SDK once, at startup.

    Returns False when no key is configured and emails are only logged.
    """
    api_key = get_settings().resend_api_key
    if not api_key:
        logger.warning("RESEND_API_KEY not set - emails will be logged, not sent")
        return False
    resend.api_key = api_key
    return True


def build_tenant_url(domain: str, path: str, token: str) -> str:
    """Link into the tenant's own frontend, e.g. https://acme.com/verify-email?token=..."""
    settings = get_settings()
    return f"{settings.frontend_scheme}://{domain}{path}?token={token}"


async def send_email(to: str, domain: str, subject: str, html_body: str, email_type: str) -> bool:
    """Send one email from the tenant's noreply address.

    Returns:
        True if the email was handed to Resend (or logged in dev mode), False on error
    """
    settings = get_settings()

    if not settings.resend_api_key:
        # Dev mode: log instead of sending
        logger.warning(
            "RESEND_API_KEY not set - email not sent",
            email_type=email_type,
            domain=domain,
        )
        return True

    params: resend.Emails.SendParams = {
        "from": f"{settings.email_from_local_part}@{domain}",
        "to": [to],
        "subject": subject,
        "html": html_body,
    }

    future = _email_executor.submit(resend.Emails.send, params)
    try:
        await asyncio.wait_for(
            asyncio.wrap_future(future), timeout=settings.email_send_timeout_seconds
        )
    except TimeoutError:
        future.cancel()
        logger.error(
            "Email send timed out",
            email_type=email_type,
            domain=domain,
            timeout=settings.email_send_timeout_seconds,
        )
        return False
    except Exception as e:
        logger.error("Failed to send email", email_type=email_type, domain=domain, error=str(e))
        return False

    logger.info("Email sent", email_type=email_type, domain=domain)
    return True


async def send_verification_email(to: str, token: str, user_name: str, domain: str) -> bool:
    """Send the signup confirmation with an email verification link."""
    settings = get_settings()
    verification_url = build_tenant_url(domain, "/verify-email", token)
    return await send_email(
        to,
        domain,
        f"Welcome to {domain}!",
        _get_verification_email_html(
            user_name, domain, verification_url, settings.email_verification_expire_hours
        ),
        email_type="verification",
    )


async def send_password_reset_email(to: str, token: str, user_name: str, domain: str) -> bool:
    """Send a password reset link."""
    settings = get_settings()
    reset_url = build_tenant_url(domain, "/reset-password", token)
    return await send_email(
        to,
        domain,
        f"Password Reset Request - {domain}",
        _get_password_reset_email_html(
            user_name, domain, reset_url, settings.password_reset_expire_minutes
        ),
        email_type="password_reset",
    )


def _get_verification_email_html(
    user_name: str, domain: str, verification_url: str, expire_hours: int
) -> str:
    """Generate HTML content for verification email."""
    safe_user_name = html.escape(user_name)
    safe_domain = html.escape(domain)
    safe_url = html.escape(verification_url, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">Welcome to {safe_domain}</h1>
    <p>Hi {safe_user_name},</p>
    <p>Thanks for signing up! Please verify your email address by clicking below:</p>
    <p style="margin: 32px 0;">
        <a href="{safe_url}" style="{_BUTTON_STYLE}">Verify Email</a>
    </p>
    <p style="{_MUTED_STYLE}">
        Or copy and paste this link into your browser:<br>
        <a href="{safe_url}" style="{_LINK_STYLE}">{safe_url}</a>
    </p>
    <p style="{_MUTED_STYLE} margin-top: 32px;">
        This link will expire in {expire_hours} hours. If you didn't create an account,
        you can safely ignore this email.
    </p>
</body>
</html>"""


def _get_password_reset_email_html(
    user_name: str, domain: str, reset_url: str, expire_minutes: int
) -> str:
    """Generate HTML content for password reset email."""
    safe_user_name = html.escape(user_name)
    safe_domain = html.escape(domain)
    safe_url = html.escape(reset_url, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">Reset your password</h1>
    <p>Hi {safe_user_name},</p>
    <p>We received a request to reset your password on {safe_domain}.</p>
    <p style="margin: 32px 0;">
        <a href="{safe_url}" style="{_BUTTON_STYLE}">Choose a new password</a>
    </p>
    <p style="{_MUTED_STYLE}">
        Or copy and paste this link into your browser:<br>
        <a href="{safe_url}" style="{_LINK_STYLE}">{safe_url}</a>
    </p>
    <p style="{_MUTED_STYLE} margin-top: 32px;">
        This link will expire in {expire_minutes} minutes and can only be used once.
        If you didn't request a reset, you can safely ignore this email.
    </p>
</body>
</html>"""
