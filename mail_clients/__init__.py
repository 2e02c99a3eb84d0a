"""Proof-of-concept mail clients: console POP3/IMAP/SMTP, Microsoft Graph and a one-shot sender."""

__version__ = "0.1.0"
