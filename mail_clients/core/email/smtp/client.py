"""SMTP client for sending a single plain-text message"""

import smtplib
from datetime import datetime
from typing import Iterable, Optional

from mail_clients.security.credentials import CredentialProvider
from mail_clients.utils.config import USERNAME, ConnectionProfile
from mail_clients.utils.errors import MailClientError, SMTPError
from mail_clients.utils.logging import get_logger, log_call

from ..models import OutboundMessage
from ..protocols import ServerSettings
from .connection import smtp_connection

logger = get_logger(__name__)


def build_outbound_message(
    profile: ConnectionProfile,
    recipient: str,
    subject: str,
    body: str,
    sent_at: Optional[datetime] = None,
) -> OutboundMessage:
    """Build a message from the profile's user to a single recipient.

    Args:
        profile: Connection profile; ``username`` becomes the sender
        recipient: Recipient email address, used as entered
        subject: Subject line
        body: Plain-text body
        sent_at: Sent date, defaults to now

    Returns:
        OutboundMessage ready for send_message
    """
    message = OutboundMessage(
        sender=profile.get_property(USERNAME) or "",
        recipient=recipient.strip(),
        subject=subject,
        body=body,
    )
    if sent_at is not None:
        message.sent_at = sent_at
    return message


def format_outbound_message(
    sender: str, recipients: Iterable[str], subject: str, sent_date: datetime
) -> str:
    """Format message headers for display before sending."""
    lines = ["", "From : ", sender, "", "To : "]
    lines.extend(recipients)
    lines.extend(["Subject : ", subject])
    lines.append(f"Sent Date : {sent_date.isoformat(sep=' ', timespec='seconds')}")
    return "\n".join(lines)


@log_call
def send_message(
    settings: ServerSettings,
    message: OutboundMessage,
    credentials: CredentialProvider,
    timeout: float = 30.0,
) -> bool:
    """Send one message via SMTP. No retries.

    Returns:
        True once the server has accepted the message

    Raises:
        InvalidCredentialsError: If the server rejects the login
        MissingCredentialsError: If no password is available
        SMTPError: If connecting or sending fails
    """
    logger.info(
        "Sending email",
        extra={"context": {"server": settings.address, "subject": message.subject[:50]}},
    )

    try:
        with smtp_connection(settings, credentials, timeout=timeout) as server:
            server.send_message(message.to_mime(), to_addrs=message.recipients)

    except MailClientError:
        raise

    except (smtplib.SMTPException, OSError, UnicodeError) as e:
        raise SMTPError(
            f"Failed to send email: {e}", details={"server": settings.address}
        ) from e

    logger.info("Email sent successfully", extra={"context": {"server": settings.address}})
    return True
