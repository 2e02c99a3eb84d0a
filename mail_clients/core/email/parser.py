"""Parse RFC822 messages into read-only views."""

import email
from email import policy
from email.message import EmailMessage

from mail_clients.utils.logging import get_logger

from .models import InboundMessage

logger = get_logger(__name__)

NO_SENDER = "NULL"


class EmailParser:
    """Parse MIME email messages into InboundMessage views"""

    @staticmethod
    def parse_from_bytes(raw_email: bytes, number: int) -> InboundMessage:
        """Parse raw email bytes into an InboundMessage"""
        message = email.message_from_bytes(raw_email, policy=policy.default)
        return EmailParser.parse_from_message(message, number)

    @staticmethod
    def parse_from_message(message: EmailMessage, number: int) -> InboundMessage:
        """Project subject, first sender and plain-text body out of a message"""
        return InboundMessage(
            number=number,
            subject=str(message.get("Subject", "") or ""),
            sender=EmailParser._first_sender(message),
            text=EmailParser._plain_text(message),
        )

    @staticmethod
    def _first_sender(message: EmailMessage) -> str:
        header = message.get("From")
        if header is None:
            return NO_SENDER

        addresses = getattr(header, "addresses", ())
        if addresses:
            return str(addresses[0])

        return str(header).strip() or NO_SENDER

    @staticmethod
    def _plain_text(message: EmailMessage) -> str:
        part = message.get_body(preferencelist=("plain",))
        if part is None:
            return ""

        try:
            return part.get_content()

        except (LookupError, UnicodeDecodeError) as e:
            # Unknown charset - fall back to a lossy decode
            logger.debug(f"Falling back to raw payload decode: {e}")
            payload = part.get_payload(decode=True) or b""
            return payload.decode("utf-8", errors="replace")
