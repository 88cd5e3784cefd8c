"""Email service for sending transactional emails."""

import logging
from abc import ABC, abstractmethod

from shiftcheck.config import settings

logger = logging.getLogger(__name__)


class EmailBackend(ABC):
    """Abstract base class for email backends."""

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        """Send an email.

        Args:
            to: Recipient email address
            subject: Email subject
            html: HTML content
            text: Plain text content (optional, derived from html if not provided)

        Returns:
            True if sent successfully
        """
        pass


class ConsoleEmailBackend(EmailBackend):
    """Email backend that logs to console (for development)."""

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        """Log email to console instead of sending."""
        logger.info(
            f"\n{'='*60}\n"
            f"EMAIL (console backend - not sent)\n"
            f"{'='*60}\n"
            f"To: {to}\n"
            f"Subject: {subject}\n"
            f"{'='*60}\n"
            f"{text or html}\n"
            f"{'='*60}\n"
        )
        return True


def get_email_backend() -> EmailBackend:
    """Get the configured email backend."""
    if settings.email_backend == "console":
        return ConsoleEmailBackend()
    raise ValueError(f"Unknown email backend: {settings.email_backend}")


class EmailService:
    """High-level email service for sending application emails."""

    def __init__(self, backend: EmailBackend | None = None):
        self._backend = backend

    @property
    def backend(self) -> EmailBackend:
        """Lazy-load the backend."""
        if self._backend is None:
            self._backend = get_email_backend()
        return self._backend

    async def send_verification_email(self, to: str, verification_link: str) -> bool:
        """Send an email address verification email.

        Args:
            to: Recipient email address
            verification_link: The full verification callback URL

        Returns:
            True if sent successfully
        """
        subject = "Verify your email for ShiftCheck"
        expiry_hours = settings.verification_token_ttl_hours
        support_email = settings.support_email

        html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; margin-bottom: 30px;">
        <h1 style="color: #1a1a1a; margin: 0;">ShiftCheck</h1>
    </div>

    <div style="background: #f9fafb; border-radius: 8px; padding: 30px; margin-bottom: 30px;">
        <h2 style="margin-top: 0; color: #1a1a1a;">Confirm your email address</h2>
        <p>Click the button below to verify {to}. This link will expire in {expiry_hours} hours.</p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{verification_link}"
               style="background: #16a34a; color: white; padding: 12px 30px; border-radius: 6px; text-decoration: none; font-weight: 500; display: inline-block;">
                Verify email
            </a>
        </div>

        <p style="color: #666; font-size: 14px;">
            If you didn't sign up for ShiftCheck, you can safely ignore this email.
            Questions? Contact <a href="mailto:{support_email}">{support_email}</a>.
        </p>
    </div>

    <div style="text-align: center; color: #666; font-size: 12px;">
        <p>
            If the button doesn't work, copy and paste this link into your browser:<br>
            <a href="{verification_link}" style="color: #16a34a; word-break: break-all;">{verification_link}</a>
        </p>
    </div>
</body>
</html>
"""

        text = f"""
Confirm your email address
==========================

Click the link below to verify {to}.
This link will expire in {expiry_hours} hours.

{verification_link}

If you didn't sign up for ShiftCheck, you can safely ignore this email.
Questions? Contact {support_email}.
"""

        return await self.backend.send(to=to, subject=subject, html=html, text=text)


# Global email service instance
email_service = EmailService()
