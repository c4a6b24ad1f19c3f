"""Tests for the Resend email notifier."""

from unittest.mock import MagicMock, patch

import pytest
import resend

from src.auth_service.core.notifications import email

pytestmark = pytest.mark.unit


def _settings(api_key: str | None) -> MagicMock:
    mock_settings = MagicMock()
    mock_settings.resend_api_key = api_key
    mock_settings.email_from_local_part = "noreply"
    mock_settings.email_send_timeout_seconds = 5
    return mock_settings


def test_configure_email_sets_api_key(monkeypatch):
    monkeypatch.setattr(resend, "api_key", None)

    with patch.object(email, "get_settings", return_value=_settings("re_startup")):
        assert email.configure_email() is True

    assert resend.api_key == "re_startup"


def test_configure_email_without_key(monkeypatch):
    monkeypatch.setattr(resend, "api_key", None)

    with patch.object(email, "get_settings", return_value=_settings(None)):
        assert email.configure_email() is False

    assert resend.api_key is None


async def test_send_leaves_configured_key_alone(monkeypatch):
    monkeypatch.setattr(resend, "api_key", "re_startup")
    send = MagicMock(return_value={"id": "email-1"})
    monkeypatch.setattr(resend.Emails, "send", send)

    with patch.object(email, "get_settings", return_value=_settings("re_changed")):
        sent = await email.send_email(
            "user@example.com", "alpha.example.com", "Hi", "<p>Hi</p>", "verification"
        )

    assert sent is True
    assert resend.api_key == "re_startup"
    params = send.call_args.args[0]
    assert params["from"] == "noreply@alpha.example.com"
    assert params["to"] == ["user@example.com"]


async def test_send_failure_reported(monkeypatch):
    monkeypatch.setattr(resend.Emails, "send", MagicMock(side_effect=RuntimeError("down")))

    with patch.object(email, "get_settings", return_value=_settings("re_startup")):
        sent = await email.send_email(
            "user@example.com", "alpha.example.com", "Hi", "<p>Hi</p>", "verification"
        )

    assert sent is False
