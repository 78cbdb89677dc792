"""Outgoing email for account verification."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from resource_hub.config import Settings, get_settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify Your Email - Resource Hub"


class EmailService:
    """Sends mail over SMTP, or logs it when SMTP is not configured."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        if not self.settings.smtp_host:
            logger.info("SMTP not configured, emails will be logged instead of sent")

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def verification_url(self, token: str) -> str:
        """Build the link the user clicks to verify their email."""
        return f"{self.settings.site_url.rstrip('/')}/verify-email?token={token}"

    def build_verification_message(self, to_email: str, token: str) -> MIMEMultipart:
        """Build the verification email with plain text and HTML parts."""
        url = self.verification_url(token)
        hours = self.settings.verification_token_hours

        msg = MIMEMultipart("alternative")
        msg["Subject"] = VERIFICATION_SUBJECT
        msg["From"] = self.settings.email_from
        msg["To"] = to_email

        text_body = (
            "Thanks for registering. Please verify your email address to start "
            f"uploading resources:\n\n{url}\n\n"
            f"This link expires in {hours} hours. "
            "If you didn't create an account, please ignore this email."
        )
        html_body = (
            "<p>Thanks for registering. Please verify your email address to start "
            "uploading resources.</p>"
            f'<p><a href="{url}">Verify Email Address</a></p>'
            f"<p><strong>This link expires in {hours} hours.</strong></p>"
            "<p>If you didn't create an account, please ignore this email.</p>"
        )
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def send_verification_email(self, to_email: str, token: str) -> bool:
        """Send the verification email. Returns False when only logged."""
        msg = self.build_verification_message(to_email, token)

        if not self.is_configured:
            logger.info(f"Verification link for {to_email}: {self.verification_url(token)}")
            return False

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port) as server:
            if self.settings.smtp_use_tls:
                server.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(msg)

        logger.info(f"Sent verification email to {to_email}")
        return True
