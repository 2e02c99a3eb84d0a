"""Interactive console client: read a folder or send a message from a menu."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from mail_clients.core.email.protocols import resolve_protocol_settings
from mail_clients.core.email.receive import (
    DEFAULT_READ_LIMIT,
    DEFAULT_TIMEOUT,
    FolderContents,
    read_folder,
)
from mail_clients.core.email.smtp import build_outbound_message, send_message
from mail_clients.security.credentials import (
    CredentialProvider,
    select_credential_provider,
)
from mail_clients.ui.components import InputPrompt, StatusMessage
from mail_clients.ui.mail_view import (
    display_folder_summary,
    display_inbound_message,
    display_outbound_message,
)
from mail_clients.utils.config import (
    PROTOCOL_SEND,
    ConnectionProfile,
    load_profile,
    load_settings,
)
from mail_clients.utils.console import get_console
from mail_clients.utils.errors import (
    ConfigurationError,
    ErrorHandler,
    InvalidCredentialsError,
    format_error_message,
)
from mail_clients.utils.logging import get_logger, init_logging

logger = get_logger(__name__)

MENU_PROMPT = "1 - Read, 2 - Send Email, Any other number - Exit..."
FOLDER_PROMPT = "Type Folder Name to view details"
READ_OPTION = 1
SEND_OPTION = 2


class ConsoleMailClient:
    """Menu driven mail client bound to one connection profile."""

    def __init__(
        self,
        profile: ConnectionProfile,
        credentials: CredentialProvider,
        prompt: Optional[InputPrompt] = None,
        console: Optional[Console] = None,
        read_limit: int = DEFAULT_READ_LIMIT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.profile = profile
        self.credentials = credentials
        self.console = console or get_console()
        self.prompt = prompt or InputPrompt(self.console)
        self.status = StatusMessage(self.console)
        self.read_limit = read_limit
        self.timeout = timeout

    def check_mails(self, folder_name: Optional[str]) -> Optional[FolderContents]:
        """Print up to ``read_limit`` messages of a folder.

        Failures are reported and logged with their trace; the caller's menu
        keeps running.

        Returns:
            The messages shown, or None if nothing could be read
        """
        try:
            contents = read_folder(
                folder_name,
                self.profile,
                self.credentials,
                limit=self.read_limit,
                timeout=self.timeout,
            )
        except Exception as e:
            ErrorHandler.handle(e, f"Reading folder {folder_name or ''}".strip())
            self._forget_rejected(e)
            self.status.error(format_error_message(e))
            return None

        if contents is None:
            self.status.error("Store is null, can't proceed")
            return None

        display_folder_summary(contents.total, self.console)
        for message in contents:
            display_inbound_message(message, self.console)

        return contents

    def send_email(self) -> bool:
        """Ask for recipient, subject and content, then send once.

        Returns:
            True if the server accepted the message
        """
        settings = resolve_protocol_settings(self.profile, PROTOCOL_SEND)
        if settings is None:
            self.status.error("Session is null, can't proceed")
            return False

        fields = []
        for label in ("to", "subject", "messageContent"):
            value = self.prompt.ask(label)
            if value is None:
                self.status.warning("Sending cancelled")
                return False
            fields.append(value)

        recipient, subject, content = fields
        message = build_outbound_message(self.profile, recipient, subject, content)
        display_outbound_message(message, self.console)

        try:
            send_message(settings, message, self.credentials, timeout=self.timeout)
        except Exception as e:
            ErrorHandler.handle(e, "Sending email")
            self._forget_rejected(e)
            self.console.print(f"Error: {escape(format_error_message(e))}")
            return False

        self.console.print("Email Sent")
        return True

    def _forget_rejected(self, error: Exception) -> None:
        # A rejected password must be asked for again on the next attempt
        if isinstance(error, InvalidCredentialsError):
            self.credentials.forget()

    def menu_loop(self) -> None:
        """Run the menu until the user picks anything but read or send.

        Raises:
            SystemExit: Always with status 0, when the user leaves
        """
        while True:
            option = _to_option(self.prompt.ask(MENU_PROMPT))

            if option == READ_OPTION:
                folder = self.prompt.ask(FOLDER_PROMPT)
                if folder is None:
                    break
                self.check_mails(folder)

            elif option == SEND_OPTION:
                self.send_email()

            else:
                break

        logger.info("Console client exiting")
        raise SystemExit(0)


def _to_option(answer: Optional[str]) -> Optional[int]:
    if answer is None:
        return None
    try:
        return int(answer.strip())
    except ValueError:
        return None


def main() -> None:
    console = get_console()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(e.message)}[/]")
        raise SystemExit(1)

    init_logging(settings.log_level)

    profile = load_profile(settings.profile_path)
    credentials = select_credential_provider(profile)

    client = ConsoleMailClient(
        profile,
        credentials,
        console=console,
        read_limit=settings.read_limit,
        timeout=settings.network_timeout,
    )
    client.menu_loop()


if __name__ == "__main__":
    main()
