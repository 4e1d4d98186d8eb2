"""Transactional email via SendGrid. Sending is fire-and-forget: failures are logged, never raised."""

import logging
from typing import TYPE_CHECKING

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

PRODUCT_NAME = "Compliance Mait"


def _is_email_configured(settings: "Settings") -> bool:
    if settings.SENDGRID_API_KEY is None or not settings.MAIL_FROM_EMAIL:
        return False
    return bool(settings.SENDGRID_API_KEY.get_secret_value().strip())


def build_password_reset_message(to: str, reset_token: str, settings: "Settings") -> Mail:
    reset_url = f"{settings.CLIENT_URL}/reset-password?token={reset_token}"
    minutes = settings.RESET_TOKEN_EXPIRE_MINUTES
    text = (
        "Hi,\n\n"
        f"We received a request to reset your {PRODUCT_NAME} password.\n\n"
        f"Open this link to choose a new password: {reset_url}\n\n"
        f"The link expires in {minutes} minutes. If you did not request a reset, ignore this email.\n\n"
        f"The {PRODUCT_NAME} Team"
    )
    html = (
        "<p>Hi,</p>"
        f"<p>We received a request to reset your {PRODUCT_NAME} password.</p>"
        f'<p><a href="{reset_url}">Reset your password</a></p>'
        f"<p>The link expires in {minutes} minutes. If you did not request a reset, ignore this email.</p>"
        f"<p>The {PRODUCT_NAME} Team</p>"
    )
    return Mail(
        from_email=settings.MAIL_FROM_EMAIL,
        to_emails=to,
        subject=f"Reset your {PRODUCT_NAME} password",
        plain_text_content=text,
        html_content=html,
    )


def send_password_reset_email(to: str, reset_token: str, settings: "Settings") -> bool:
    """
    Send the reset link to `to`. Returns True when SendGrid accepted the message.
    Meant to run as a background task after the response is sent.
    """
    if not _is_email_configured(settings):
        logger.warning("SendGrid not configured; password reset email not sent")
        return False
    message = build_password_reset_message(to, reset_token, settings)
    try:
        client = SendGridAPIClient(settings.SENDGRID_API_KEY.get_secret_value())
        response = client.send(message)
    except Exception:
        logger.exception("Failed to send password reset email")
        return False
    if response.status_code >= 400:
        logger.error(
            "SendGrid rejected password reset email",
            extra={"status_code": response.status_code},
        )
        return False
    logger.info("Password reset email sent", extra={"status_code": response.status_code})
    return True
