"""Mail and calendar operations on the signed-in user's mailbox.

Each operation takes the caller's access token and uses the client memoised
for that token. Faults from Graph propagate as GraphAPIError; nothing is
retried and no partial result is returned.
"""

from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from mail_clients.utils.errors import GraphAPIError
from mail_clients.utils.logging import get_logger, log_call

from .client import GRAPH_BASE_URL, GraphClient
from .models import (
    Attendee,
    AttendeeType,
    BodyType,
    DateTimeTimeZone,
    EmailAddress,
    Event,
    ItemBody,
    Message,
    User,
)

logger = get_logger(__name__)

MESSAGE_FIELDS = "sender,subject"
EVENT_FIELDS = "subject,organizer,start,end"
USER_FIELDS = "displayName,mailboxSettings"
CALENDAR_PAGE_SIZE = 25

_clients: Dict[Tuple[str, str], GraphClient] = {}


def get_graph_client(
    access_token: str, base_url: str = GRAPH_BASE_URL, timeout: float = 30.0
) -> GraphClient:
    """Return the client for ``access_token``, creating it on first use.

    Clients are keyed by token and base URL, so a new token always gets a
    client carrying that token.
    """
    key = (access_token, base_url.rstrip("/"))
    client = _clients.get(key)
    if client is None or client.is_closed:
        client = GraphClient(access_token, base_url=base_url, timeout=timeout)
        _clients[key] = client
    return client


def reset_graph_clients() -> None:
    """Close and forget every memoised client."""
    while _clients:
        _, client = _clients.popitem()
        client.close()


def _resolve(access_token: str, client: Optional[GraphClient]) -> GraphClient:
    return client if client is not None else get_graph_client(access_token)


def prefer_time_zone(time_zone: str) -> Dict[str, str]:
    """Header asking Graph to express event times in ``time_zone``."""
    return {"Prefer": f'outlook.timezone="{time_zone}"'}


def build_event(
    time_zone: str,
    subject: str,
    start: datetime,
    end: datetime,
    attendees: Optional[Iterable[str]] = None,
    body: Optional[str] = None,
) -> Event:
    """Build the event resource posted by create_event.

    ``start`` and ``end`` are wall-clock times in ``time_zone``; any tzinfo
    on them is ignored.
    """
    event = Event(
        subject=subject,
        start=DateTimeTimeZone(date_time=_wall_clock(start), time_zone=time_zone),
        end=DateTimeTimeZone(date_time=_wall_clock(end), time_zone=time_zone),
    )

    if attendees:
        # dict.fromkeys keeps first-seen order while dropping duplicates
        event.attendees = [
            Attendee(
                email_address=EmailAddress(address=address),
                type=AttendeeType.REQUIRED,
            )
            for address in dict.fromkeys(attendees)
        ]

    if body is not None:
        event.body = ItemBody(content_type=BodyType.TEXT, content=body)

    return event


@log_call
def create_event(
    access_token: str,
    time_zone: str,
    subject: str,
    start: datetime,
    end: datetime,
    attendees: Optional[Iterable[str]] = None,
    body: Optional[str] = None,
    client: Optional[GraphClient] = None,
) -> None:
    """Create an event on the user's default calendar.

    Raises:
        GraphAPIError: If Graph rejects the request
    """
    event = build_event(time_zone, subject, start, end, attendees, body)
    _resolve(access_token, client).post("/me/events", json=event.to_graph())
    logger.info(f"Created event '{subject}'")


def iter_all_messages(
    access_token: str, client: Optional[GraphClient] = None
) -> Iterator[Message]:
    """Lazily yield every message in the mailbox (sender and subject only)."""
    items = _resolve(access_token, client).iter_items(
        "/me/messages", params={"$select": MESSAGE_FIELDS}
    )
    for item in items:
        yield Message.model_validate(item)


@log_call
def list_all_messages(
    access_token: str, client: Optional[GraphClient] = None
) -> List[Message]:
    """Return every message across all pages, in page order."""
    messages = list(iter_all_messages(access_token, client))
    logger.info(f"Fetched {len(messages)} message(s)")
    return messages


def iter_calendar_view(
    access_token: str,
    start: datetime,
    end: datetime,
    time_zone: str,
    client: Optional[GraphClient] = None,
) -> Iterator[Event]:
    """Lazily yield events overlapping ``[start, end)``, ordered by start.

    Event times are expressed in ``time_zone``. Naive bounds are taken as
    local time.
    """
    start, end = _aware(start), _aware(end)
    if end < start:
        raise ValueError("Calendar view end must not be before start")

    headers = prefer_time_zone(time_zone)
    params = {
        "startDateTime": start.isoformat(),
        "endDateTime": end.isoformat(),
        "$orderby": "start/dateTime",
        "$select": EVENT_FIELDS,
        "$top": CALENDAR_PAGE_SIZE,
    }

    items = _resolve(access_token, client).iter_items(
        "/me/calendarView", params=params, headers=headers
    )
    for item in items:
        yield Event.model_validate(item)


@log_call
def get_calendar_view(
    access_token: str,
    start: datetime,
    end: datetime,
    time_zone: str,
    client: Optional[GraphClient] = None,
) -> List[Event]:
    """Return every event in the window across all pages."""
    events = list(iter_calendar_view(access_token, start, end, time_zone, client))
    logger.info(f"Fetched {len(events)} event(s) between {start} and {end}")
    return events


@log_call
def get_current_user(
    access_token: str, client: Optional[GraphClient] = None
) -> User:
    """Return the signed-in user's display name and mailbox settings."""
    payload = _resolve(access_token, client).get(
        "/me", params={"$select": USER_FIELDS}
    )
    if not payload:
        raise GraphAPIError("Empty response for the current user")
    return User.model_validate(payload)


def _wall_clock(value: datetime) -> str:
    return value.replace(tzinfo=None).isoformat()


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()
