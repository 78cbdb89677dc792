"""Celery tasks for account emails."""

import logging
import smtplib

from resource_hub.celery_app import app as celery_app
from resource_hub.services.email_service import EmailService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_verification_email(self, email: str, token: str) -> dict:
    """Send a verification link to a newly registered (or re-requesting) user.

    Args:
        email: Recipient address
        token: Verification token to embed in the link

    Returns:
        dict with whether the email was actually sent
    """
    try:
        sent = EmailService().send_verification_email(email, token)
        return {"success": True, "sent": sent}
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send verification email to {email}: {e}", exc_info=True)

        # Retry if not exhausted
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=60) from e

        return {"error": str(e)}
