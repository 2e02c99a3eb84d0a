"""Microsoft Graph mail and calendar access.

Public API:
    create_event(token, time_zone, subject, start, end, attendees, body)
    list_all_messages(token) / iter_all_messages(token)
    get_calendar_view(token, start, end, time_zone) / iter_calendar_view(...)
    get_current_user(token)
    get_graph_client(token) -> GraphClient memoised per token
"""

from .client import GraphClient, GRAPH_BASE_URL
from .facade import (
    create_event,
    get_calendar_view,
    get_current_user,
    get_graph_client,
    iter_all_messages,
    iter_calendar_view,
    list_all_messages,
    reset_graph_clients,
)
from .models import Event, Message, User

__all__ = [
    "GraphClient",
    "GRAPH_BASE_URL",
    "create_event",
    "get_calendar_view",
    "get_current_user",
    "get_graph_client",
    "iter_all_messages",
    "iter_calendar_view",
    "list_all_messages",
    "reset_graph_clients",
    "Event",
    "Message",
    "User",
]
