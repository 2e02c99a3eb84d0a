"""SMTP sending.

- smtp_connection: connection lifecycle (STARTTLS, login, quit)
- build_outbound_message / send_message: high-level send of one message

Usage
-----
    >>> from mail_clients.core.email.smtp import build_outbound_message, send_message
    >>>
    >>> message = build_outbound_message(profile, "b@example.com", "Hi", "Hello")
    >>> send_message(settings, message, credentials)
"""

from .client import build_outbound_message, format_outbound_message, send_message
from .connection import smtp_connection

__all__ = [
    "build_outbound_message",
    "format_outbound_message",
    "send_message",
    "smtp_connection",
]
