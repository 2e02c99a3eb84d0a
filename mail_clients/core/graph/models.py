"""Microsoft Graph resource models.

Only the fields this project reads or writes are declared; anything else the
service returns is kept as extra data.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GraphModel(BaseModel):
    """Base model mapping snake_case fields to Graph's camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    def to_graph(self) -> Dict[str, Any]:
        """Serialise to a Graph request body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AttendeeType(str, Enum):
    """Attendee participation type."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    RESOURCE = "resource"


class BodyType(str, Enum):
    """Body content type."""

    TEXT = "text"
    HTML = "html"


class DateTimeTimeZone(GraphModel):
    """A wall-clock timestamp tagged with a named time zone."""

    date_time: str
    time_zone: Optional[str] = None


class EmailAddress(GraphModel):
    address: Optional[str] = None
    name: Optional[str] = None


class Recipient(GraphModel):
    email_address: Optional[EmailAddress] = None

    def __str__(self) -> str:
        if self.email_address is None:
            return ""
        name, address = self.email_address.name, self.email_address.address
        if name and address:
            return f"{name} <{address}>"
        return name or address or ""


class Attendee(Recipient):
    type: AttendeeType = AttendeeType.REQUIRED


class ItemBody(GraphModel):
    content_type: BodyType = BodyType.TEXT
    content: str = ""


class Event(GraphModel):
    """Calendar event."""

    id: Optional[str] = None
    subject: Optional[str] = None
    organizer: Optional[Recipient] = None
    start: Optional[DateTimeTimeZone] = None
    end: Optional[DateTimeTimeZone] = None
    attendees: Optional[List[Attendee]] = None
    body: Optional[ItemBody] = None


class Message(GraphModel):
    """Mail message projection (sender and subject by default)."""

    id: Optional[str] = None
    subject: Optional[str] = None
    sender: Optional[Recipient] = None


class MailboxSettings(GraphModel):
    time_zone: Optional[str] = None
    date_format: Optional[str] = None
    time_format: Optional[str] = None


class User(GraphModel):
    """The signed-in user."""

    id: Optional[str] = None
    display_name: Optional[str] = None
    mail: Optional[str] = None
    user_principal_name: Optional[str] = None
    mailbox_settings: Optional[MailboxSettings] = None
