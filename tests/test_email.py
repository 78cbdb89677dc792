"""Tests for verification email delivery."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from resource_hub.config import Settings
from resource_hub.services.email_service import EmailService
from resource_hub.tasks.verification import send_verification_email


def _settings(**overrides) -> Settings:
    return Settings(site_url="https://hub.example.com/", **overrides)


def test_verification_url():
    service = EmailService(_settings())
    assert service.verification_url("abc") == "https://hub.example.com/verify-email?token=abc"


def test_message_contains_link():
    message = EmailService(_settings()).build_verification_message("a@example.com", "abc")
    assert message["To"] == "a@example.com"

    bodies = [
        part.get_payload(decode=True).decode()
        for part in message.walk()
        if not part.is_multipart()
    ]
    assert len(bodies) == 2
    assert all("verify-email?token=abc" in body for body in bodies)


def test_unconfigured_smtp_only_logs():
    with patch("smtplib.SMTP") as smtp:
        assert EmailService(_settings(smtp_host="")).send_verification_email("a@example.com", "t") is False
    smtp.assert_not_called()


def test_send_over_smtp():
    settings = _settings(smtp_host="smtp.example.com", smtp_username="u", smtp_password="p")
    with patch("smtplib.SMTP") as smtp:
        server = smtp.return_value.__enter__.return_value
        assert EmailService(settings).send_verification_email("a@example.com", "t") is True

    server.starttls.assert_called_once()
    server.login.assert_called_once_with("u", "p")
    server.send_message.assert_called_once()


def test_task_reports_delivery():
    with patch("resource_hub.tasks.verification.EmailService") as service_cls:
        service_cls.return_value.send_verification_email.return_value = True
        result = send_verification_email.apply(args=("a@example.com", "t")).get()
    assert result == {"success": True, "sent": True}


def test_task_retries_on_smtp_error():
    failing = MagicMock()
    failing.send_verification_email.side_effect = smtplib.SMTPException("down")
    with patch("resource_hub.tasks.verification.EmailService", return_value=failing):
        with patch.object(send_verification_email, "retry", side_effect=RuntimeError("retry")):
            with pytest.raises(RuntimeError, match="retry"):
                send_verification_email.apply(args=("a@example.com", "t"), throw=True).get()
