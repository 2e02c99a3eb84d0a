"""Send one fixed test message through Office 365 and exit."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from mail_clients.core.email.protocols import MailProtocol, ServerSettings
from mail_clients.core.email.smtp import build_outbound_message, send_message
from mail_clients.security.credentials import StaticCredentialProvider
from mail_clients.ui.mail_view import display_outbound_message
from mail_clients.utils.config import (
    TO,
    USERNAME,
    ConnectionProfile,
    load_profile,
    load_settings,
)
from mail_clients.utils.console import get_console
from mail_clients.utils.errors import (
    ConfigurationError,
    MailClientError,
    MissingConfigError,
)
from mail_clients.utils.logging import get_logger, init_logging

logger = get_logger(__name__)

SMTP_HOST = "smtp.office365.com"
SMTP_PORT = 587
SUBJECT = "Test"
BODY = "Test mail"


def send_once(
    profile: ConnectionProfile,
    console: Optional[Console] = None,
    timeout: float = 30.0,
) -> bool:
    """Send the test message to the profile's ``to`` address.

    Failures are logged as a single warning with the trace and reported on
    the console, never raised.

    Returns:
        True if the message was sent
    """
    console = console or get_console()
    settings = ServerSettings(
        protocol=MailProtocol.SMTP,
        host=SMTP_HOST,
        port=SMTP_PORT,
        username=profile.get_property(USERNAME),
        starttls=True,
    )

    try:
        recipient = profile.get_property(TO)
        if not recipient:
            raise MissingConfigError(
                f"No '{TO}' address in the sender profile",
                details={"source": str(profile.source)},
            )

        console.print("Loading session and Authenticating")
        credentials = StaticCredentialProvider.from_profile(profile)
        console.print("Authenticated, will try to send an email")

        message = build_outbound_message(profile, recipient, SUBJECT, BODY)
        display_outbound_message(message, console)
        send_message(settings, message, credentials, timeout=timeout)

    except MailClientError as e:
        logger.warning(f"Test mail not sent: {e.message}", exc_info=e)
        console.print(f"Error: {escape(e.message)}")
        return False

    console.print("Email Sent")
    logger.info("Email Sent")
    return True


def main() -> None:
    console = get_console()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(e.message)}[/]")
        return

    init_logging(settings.log_level)

    profile = load_profile(settings.sender_profile_path)
    send_once(profile, console, timeout=settings.network_timeout)


if __name__ == "__main__":
    main()
