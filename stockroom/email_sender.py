"""
Email Sender Module

Notification channel for the low stock alert: plain-text mail over SMTP with
STARTTLS. This is a pure infrastructure module - alert content is composed
in stockroom.notifications.

Each recipient gets their own message and SMTP session, so one refused
mailbox does not stop the rest. The Message-ID of every delivered message is
logged as the delivery reference.

Environment Variables Required:
    - SMTP_SERVER: SMTP server address (e.g., 'smtp.gmail.com')
    - SMTP_USER: SMTP username, also used as the From address
    - SMTP_PASSWORD: SMTP password or app-specific password
    - SMTP_PORT: SMTP port (optional, defaults to 587)
"""

import os
import smtplib
import time
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from typing import List, Optional, Tuple

from stockroom.config import DEFAULT_SMTP_PORT, EMAIL_DELAY_SECONDS, EMAIL_TIMEOUT_SECONDS
from stockroom.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SmtpSettings:
    server: str
    port: int
    user: str
    password: str


def _smtp_settings() -> Tuple[Optional[SmtpSettings], Optional[str]]:
    """Read SMTP settings from the environment. Returns (settings, error_msg)."""
    values = {name: os.getenv(name) for name in ('SMTP_SERVER', 'SMTP_USER', 'SMTP_PASSWORD')}
    for name, value in values.items():
        if not value:
            return None, f"{name} environment variable is not set"

    raw_port = os.getenv('SMTP_PORT', str(DEFAULT_SMTP_PORT))
    try:
        port = int(raw_port)
    except ValueError:
        return None, f"SMTP_PORT must be a number, got '{raw_port}'"

    return SmtpSettings(
        server=values['SMTP_SERVER'],
        port=port,
        user=values['SMTP_USER'],
        password=values['SMTP_PASSWORD'],
    ), None


def _build_message(sender: str, recipient: str, subject: str, text_body: str) -> MIMEText:
    message = MIMEText(text_body, 'plain', 'utf-8')
    message['From'] = sender
    message['To'] = recipient
    message['Subject'] = subject
    message['Date'] = formatdate(localtime=True)
    message['Message-ID'] = make_msgid()
    return message


def _deliver(settings: SmtpSettings, message: MIMEText) -> None:
    with smtplib.SMTP(settings.server, settings.port, timeout=EMAIL_TIMEOUT_SECONDS) as server:
        server.starttls()
        server.login(settings.user, settings.password)
        server.send_message(message)


def send_email(
    to_emails: List[str],
    subject: str,
    text_body: str,
) -> Tuple[bool, Optional[str]]:
    """
    Send a plain-text email to each recipient.

    Args:
        to_emails: List of recipient email addresses
        subject: Email subject line
        text_body: Plain-text body

    Returns:
        Tuple of (success: bool, error_msg: Optional[str])
        - success: True if at least one email was sent successfully, False otherwise
        - error_msg: Error message if sending failed, None if successful
    """
    try:
        logger.info(f"Preparing to send '{subject}' to {len(to_emails)} recipient(s)")

        if not to_emails:
            error_msg = "Email recipient list is empty"
            logger.warning(error_msg)
            return False, error_msg

        # Addresses are reported by position only
        for position, address in enumerate(to_emails, start=1):
            if not address or '@' not in address:
                error_msg = f"Invalid email address at position {position}"
                logger.error(error_msg)
                return False, error_msg

        settings, error_msg = _smtp_settings()
        if settings is None:
            logger.error(error_msg)
            return False, error_msg

        logger.info(f"SMTP Configuration: {settings.server}:{settings.port}")

        delivered = 0
        total = len(to_emails)
        for position, recipient in enumerate(to_emails, start=1):
            message = _build_message(settings.user, recipient, subject, text_body)
            try:
                _deliver(settings, message)
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Delivery {position}/{total} failed: {str(e)}", exc_info=True)
            else:
                delivered += 1
                logger.info(f"Delivery {position}/{total} accepted (Message-ID {message['Message-ID']})")

            # Pause between recipients to stay under provider rate limits
            if position < total:
                time.sleep(EMAIL_DELAY_SECONDS)

        if delivered == 0:
            error_msg = f"Failed to send email to all {total} recipient(s)"
            logger.error(error_msg)
            return False, error_msg

        if delivered < total:
            logger.warning(f"Email sending partially successful: {delivered} sent, {total - delivered} failed")
        return True, None

    except Exception as e:
        error_msg = f"Unexpected error in send_email: {str(e)}"
        logger.error(error_msg, exc_info=True)
        return False, error_msg
