"""Rich tables for Graph messages, calendar events and the current user."""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mail_clients.core.graph.models import DateTimeTimeZone, Event, Message, User
from mail_clients.utils.console import get_console


class MessageTable:
    """Sender and subject of Graph messages."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def display(self, messages: List[Message], title: str = "Messages") -> None:
        if not messages:
            self.console.print("[yellow]No messages to display[/yellow]")
            return

        table = Table(title=title)
        table.add_column("#", style="cyan", justify="right", no_wrap=True)
        table.add_column("From", style="magenta", min_width=20)
        table.add_column("Subject", style="green", min_width=20)

        for index, message in enumerate(messages, start=1):
            table.add_row(
                str(index),
                escape(str(message.sender or "")),
                escape(message.subject or "(no subject)"),
            )

        self.console.print(table)


class EventTable:
    """Calendar view events, in the order Graph returned them."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def display(self, events: List[Event], title: str = "Calendar") -> None:
        if not events:
            self.console.print("[yellow]No events to display[/yellow]")
            return

        table = Table(title=title)
        table.add_column("Subject", style="green", min_width=20)
        table.add_column("Organizer", style="magenta")
        table.add_column("Start", style="yellow")
        table.add_column("End", style="yellow")

        for event in events:
            table.add_row(
                escape(event.subject or "(no subject)"),
                escape(str(event.organizer or "")),
                _format_time(event.start),
                _format_time(event.end),
            )

        self.console.print(table)


def display_user(user: User, console: Optional[Console] = None) -> None:
    console = console or get_console()
    settings = user.mailbox_settings

    console.print(f"[bold]User:[/] {escape(user.display_name or 'Unknown')}")
    if settings is not None and settings.time_zone:
        console.print(f"[bold]Time zone:[/] {escape(settings.time_zone)}")


def _format_time(value: Optional[DateTimeTimeZone]) -> str:
    if value is None:
        return ""
    # Graph returns fractional seconds, e.g. 2024-01-01T09:00:00.0000000
    text = value.date_time.split(".")[0].replace("T", " ")
    return f"{text} ({value.time_zone})" if value.time_zone else text
