"""
Email service using SendGrid.

Delivers activation and password reset tokens. Falls back to console logging
if SendGrid is not configured; console mode never logs the message body,
since it carries the token.
"""

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from authcore.auth.tokens import Token
from authcore.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .button {{ display: inline-block; padding: 12px 24px; background-color: #3b82f6; color: white; text-decoration: none; border-radius: 6px; font-weight: 500; }}
        .footer {{ margin-top: 30px; font-size: 12px; color: #666; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>{heading}</h1>
        <p>{intro}</p>
        <p style="margin: 30px 0;">
            <a href="{url}" class="button">{action}</a>
        </p>
        <p>Or use this code: <strong>{token}</strong></p>
        <p class="footer">
            This link expires at {expiry} UTC.<br>
            If you didn't request this, you can safely ignore this email.
        </p>
    </div>
</body>
</html>
"""


class EmailService:
    """Email service with SendGrid integration."""

    def __init__(self):
        self.api_key = settings.sendgrid_api_key
        self.from_email = settings.sendgrid_from_email
        self.from_name = settings.sendgrid_from_name
        self.frontend_url = settings.frontend_url
        self.client = None

        if self.api_key:
            self.client = SendGridAPIClient(self.api_key)

    def _send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.client:
            logger.info(
                f"[EMAIL - Console Mode] To: {to_email} Subject: {subject} (body withheld)"
            )
            return True

        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content),
            )

            response = self.client.send(message)

            if 200 <= response.status_code < 300:
                logger.info(f"Email sent successfully to {to_email}")
                return True
            logger.error(f"Failed to send email: {response.status_code}")
            return False

        except Exception as e:
            logger.error(f"Error sending email: {type(e).__name__}")
            return False

    def send_activation_email(
        self,
        to_email: str,
        token: Token,
        username: Optional[str] = None,
    ) -> bool:
        """
        Send the account activation token to a newly registered user.

        Returns:
            True if sent successfully
        """
        url = f"{self.frontend_url}/activate?token={token.plaintext}"
        greeting = f"Hi {username}, thanks" if username else "Thanks"
        html_content = _LAYOUT.format(
            heading=f"Welcome to {settings.app_name}",
            intro=f"{greeting} for signing up. Activate your account to get started.",
            url=url,
            action="Activate Account",
            token=token.plaintext,
            expiry=token.expiry.strftime("%Y-%m-%d %H:%M"),
        )
        return self._send_email(to_email, f"Activate your {settings.app_name} account", html_content)

    def send_password_reset_email(self, to_email: str, token: Token) -> bool:
        """
        Send a password reset token.

        Returns:
            True if sent successfully
        """
        url = f"{self.frontend_url}/reset-password?token={token.plaintext}"
        html_content = _LAYOUT.format(
            heading="Reset Your Password",
            intro=f"We received a request to reset the password for your {settings.app_name} account.",
            url=url,
            action="Reset Password",
            token=token.plaintext,
            expiry=token.expiry.strftime("%Y-%m-%d %H:%M"),
        )
        return self._send_email(to_email, f"Reset your {settings.app_name} password", html_content)


# Singleton instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get the email service singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
