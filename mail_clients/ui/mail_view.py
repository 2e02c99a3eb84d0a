"""Plain console rendering for folder listings and outbound messages."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from mail_clients.core.email.models import InboundMessage, OutboundMessage
from mail_clients.core.email.smtp import format_outbound_message
from mail_clients.utils.console import get_console

SEPARATOR = "---------------------------------"


def display_folder_summary(total: int, console: Optional[Console] = None) -> None:
    console = console or get_console()
    console.print(f"messages.length---{total}")


def display_inbound_message(message: InboundMessage, console: Optional[Console] = None) -> None:
    """Print number, subject, sender and text of a message"""
    console = console or get_console()
    console.print(SEPARATOR)
    console.print(f"Email Number {message.number}")
    console.print(f"Subject: {escape(message.subject)}")
    console.print(f"From: {escape(message.sender)}")
    console.print(f"Text: {escape(message.text)}")


def display_outbound_message(message: OutboundMessage, console: Optional[Console] = None) -> None:
    console = console or get_console()
    console.print("Sending the mail as details below :")
    console.print(
        escape(
            format_outbound_message(
                message.sender, message.recipients, message.subject, message.sent_at
            )
        )
    )
