"""Mail protocol handling for POP3, IMAP, SMTP, and parsing.

- Receive: open a POP3 or IMAP store and read a bounded number of messages
- SMTP: build and send a single plain-text message
- Parser: turn RFC822 bytes into a read-only message view

All clients are synchronous and open one session per operation.

Usage Examples
----------------

Read a folder:
    >>> from mail_clients.core.email.receive import read_folder
    >>>
    >>> messages = read_folder("INBOX", profile, credentials)
    >>> print(messages[0].subject)

Send a message:
    >>> from mail_clients.core.email.smtp import build_outbound_message, send_message
    >>>
    >>> message = build_outbound_message(profile, "b@example.com", "Hi", "Hello")
    >>> send_message(settings, message, credentials)
"""
