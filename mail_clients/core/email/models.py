"""Mail domain models"""

from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from email.utils import format_datetime


@dataclass(frozen=True)
class InboundMessage:
    """Read-only view of a message fetched from a remote folder."""

    number: int
    subject: str
    sender: str
    text: str


@dataclass
class OutboundMessage:
    """A single plain-text message to one recipient."""

    sender: str
    recipient: str
    subject: str
    body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now().astimezone())

    def to_mime(self) -> EmailMessage:
        """Render as a MIME message ready for SMTP."""
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg["Subject"] = self.subject
        msg["Date"] = format_datetime(self._aware_sent_at())
        msg.set_content(self.body)
        return msg

    def _aware_sent_at(self) -> datetime:
        if self.sent_at.tzinfo is None:
            return self.sent_at.astimezone()
        return self.sent_at

    @property
    def recipients(self) -> list[str]:
        return [self.recipient]
