"""Notification utilities - email."""

from src.auth_service.core.notifications.email import (
    configure_email,
    send_email,
    send_password_reset_email,
    send_verification_email,
)

__all__ = [
    "configure_email",
    "send_email",
    "send_password_reset_email",
    "send_verification_email",
]
