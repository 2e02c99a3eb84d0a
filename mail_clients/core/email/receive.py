"""Read a bounded number of messages from a POP3 or IMAP folder."""

import imaplib
import poplib
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import List, Optional

from imapclient import imap_utf7

from mail_clients.security.credentials import CredentialProvider
from mail_clients.utils.config import PROTOCOL_RECEIVE, ConnectionProfile
from mail_clients.utils.errors import (
    FolderNotFoundError,
    IMAPError,
    InvalidCredentialsError,
    POP3Error,
)
from mail_clients.utils.logging import get_logger, log_call

from .models import InboundMessage
from .parser import EmailParser
from .protocols import MailProtocol, ServerSettings, resolve_protocol_settings

logger = get_logger(__name__)

DEFAULT_FOLDER = "INBOX"
DEFAULT_READ_LIMIT = 30
DEFAULT_TIMEOUT = 30.0  # in seconds


@dataclass
class FolderContents(Sequence):
    """Messages read from a folder, plus the folder's total message count."""

    folder: str
    total: int
    messages: List[InboundMessage] = field(default_factory=list)

    def __getitem__(self, index):
        return self.messages[index]

    def __len__(self) -> int:
        return len(self.messages)


class MailStore(ABC):
    """One authenticated session with a receive server."""

    def __init__(self, settings: ServerSettings, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.timeout = timeout
        self.folder: Optional[str] = None
        self.log = get_logger(
            __name__, protocol=settings.protocol.value, server=settings.address
        )

    @abstractmethod
    def connect(self, password: str) -> None:
        """Open the connection and authenticate."""

    @abstractmethod
    def open_folder(self, name: str) -> int:
        """Open ``name`` read-only and return its message count."""

    @abstractmethod
    def fetch_messages(self, limit: int) -> List[InboundMessage]:
        """Return up to ``limit`` messages from the open folder in arrival order."""

    @abstractmethod
    def close_folder(self) -> None:
        """Close the open folder without expunging anything."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""


class IMAPStore(MailStore):
    """IMAP over SSL, backed by imaplib."""

    def __init__(self, settings: ServerSettings, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(settings, timeout)
        self._client: Optional[imaplib.IMAP4] = None
        self._message_ids: List[bytes] = []

    def connect(self, password: str) -> None:
        try:
            self._client = imaplib.IMAP4_SSL(
                self.settings.host, self.settings.port, timeout=self.timeout
            )
        except OSError as e:
            raise IMAPError(
                f"Could not connect to {self.settings.address}: {e}",
                details={"server": self.settings.address},
            ) from e

        try:
            self._client.login(self.settings.username or "", password)
        except imaplib.IMAP4.error as e:
            raise InvalidCredentialsError(
                f"IMAP login rejected for {self.settings.username}",
                details={"server": self.settings.address},
            ) from e

        self.log.info(f"Connected to IMAP server {self.settings.address}")

    def open_folder(self, name: str) -> int:
        try:
            status, data = self._client.select(_encode_mailbox(name), readonly=True)
        except (imaplib.IMAP4.error, OSError, UnicodeError) as e:
            raise IMAPError(f"IMAP error selecting folder {name}: {e}") from e

        if status != "OK":
            raise FolderNotFoundError(
                f"Folder '{name}' not found", details={"response": _first_line(data)}
            )

        self.folder = name

        status, data = self._client.search(None, "ALL")
        if status != "OK":
            raise IMAPError(f"IMAP search failed in {name}", details={"response": _first_line(data)})

        self._message_ids = data[0].split() if data and data[0] else []
        return len(self._message_ids)

    def fetch_messages(self, limit: int) -> List[InboundMessage]:
        messages = []

        for number, message_id in enumerate(self._message_ids[:limit], start=1):
            try:
                status, data = self._client.fetch(message_id, "(RFC822)")
            except (imaplib.IMAP4.error, OSError) as e:
                raise IMAPError(f"IMAP fetch failed for message {number}: {e}") from e

            if status != "OK":
                raise IMAPError(
                    f"IMAP fetch failed for message {number}",
                    details={"response": _first_line(data)},
                )

            raw = next((part[1] for part in data if isinstance(part, tuple)), b"")
            messages.append(EmailParser.parse_from_bytes(raw, number))

        return messages

    def close_folder(self) -> None:
        if self._client is not None and self.folder is not None:
            self._client.close()
            self.folder = None

    def close(self) -> None:
        if self._client is not None:
            self._client.logout()
            self._client = None


class POP3Store(MailStore):
    """POP3 over SSL, backed by poplib. POP3 only has an INBOX."""

    def __init__(self, settings: ServerSettings, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(settings, timeout)
        self._client: Optional[poplib.POP3] = None
        self._count = 0

    def connect(self, password: str) -> None:
        try:
            self._client = poplib.POP3_SSL(
                self.settings.host, self.settings.port, timeout=self.timeout
            )
        except OSError as e:
            raise POP3Error(
                f"Could not connect to {self.settings.address}: {e}",
                details={"server": self.settings.address},
            ) from e

        try:
            self._client.user(self.settings.username or "")
            self._client.pass_(password)
        except poplib.error_proto as e:
            raise InvalidCredentialsError(
                f"POP3 login rejected for {self.settings.username}",
                details={"server": self.settings.address},
            ) from e

        self.log.info(f"Connected to POP3 server {self.settings.address}")

    def open_folder(self, name: str) -> int:
        if name.upper() != DEFAULT_FOLDER:
            raise FolderNotFoundError(f"Folder '{name}' not found - POP3 only provides {DEFAULT_FOLDER}")

        try:
            self._count, _ = self._client.stat()
        except (poplib.error_proto, OSError) as e:
            raise POP3Error(f"POP3 STAT failed: {e}") from e

        self.folder = DEFAULT_FOLDER
        return self._count

    def fetch_messages(self, limit: int) -> List[InboundMessage]:
        messages = []

        for number in range(1, min(self._count, limit) + 1):
            try:
                _, lines, _ = self._client.retr(number)
            except (poplib.error_proto, OSError) as e:
                raise POP3Error(f"POP3 RETR failed for message {number}: {e}") from e

            messages.append(EmailParser.parse_from_bytes(b"\r\n".join(lines), number))

        return messages

    def close_folder(self) -> None:
        # Read-only: nothing is marked for deletion, so there is nothing to flush
        self.folder = None

    def close(self) -> None:
        if self._client is not None:
            self._client.quit()
            self._client = None


STORE_TYPES = {
    MailProtocol.POP3: POP3Store,
    MailProtocol.IMAP: IMAPStore,
}


def create_store(settings: ServerSettings, timeout: float = DEFAULT_TIMEOUT) -> MailStore:
    """Factory function to get the store implementation for a receive protocol."""
    try:
        return STORE_TYPES[settings.protocol](settings, timeout)
    except KeyError:
        raise ValueError(f"{settings.protocol.value} is not a receive protocol") from None


def open_store(
    settings: ServerSettings,
    credentials: CredentialProvider,
    timeout: float = DEFAULT_TIMEOUT,
) -> MailStore:
    """Create a store and authenticate it.

    The password is requested from ``credentials`` only at this point. On a
    failed login the half-open connection is released before re-raising.
    """
    store = create_store(settings, timeout)
    try:
        store.connect(credentials.get_password())
    except BaseException:
        _release(store)
        raise
    return store


def _release(store: MailStore) -> None:
    """Close folder and connection, logging rather than raising on failure."""
    try:
        store.close_folder()
    except Exception as e:
        logger.warning(f"Failed to close folder cleanly: {e}")

    try:
        store.close()
    except Exception as e:
        logger.warning(f"Failed to close {store.settings.protocol.value} connection cleanly: {e}")


@log_call
def read_folder(
    folder_name: Optional[str],
    profile: ConnectionProfile,
    credentials: CredentialProvider,
    limit: int = DEFAULT_READ_LIMIT,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[FolderContents]:
    """Read up to ``limit`` messages from a folder, read-only.

    Args:
        folder_name: Folder to open; blank means INBOX
        profile: Connection profile naming the receive protocol and server
        credentials: Password source, consulted when authenticating
        limit: Maximum number of messages to return
        timeout: Socket timeout in seconds

    Returns:
        FolderContents with at most ``limit`` messages in folder order, or
        None when the profile has no supported receive protocol.

    Raises:
        InvalidCredentialsError: If the server rejects the login
        FolderNotFoundError: If the folder does not exist
        IMAPError, POP3Error: On transport or protocol failures
    """
    settings = resolve_protocol_settings(profile, PROTOCOL_RECEIVE)
    if settings is None:
        return None

    folder = folder_name.strip() if folder_name and folder_name.strip() else DEFAULT_FOLDER

    store = open_store(settings, credentials, timeout)
    try:
        total = store.open_folder(folder)
        store.log.info(f"{total} message(s) in {folder}", extra={"context": {"limit": limit}})

        return FolderContents(folder=folder, total=total, messages=store.fetch_messages(limit))

    finally:
        _release(store)


def _encode_mailbox(name: str) -> str:
    """Folder name as an IMAP astring: modified UTF-7, quoted when needed."""
    return _quote_mailbox(imap_utf7.encode(name).decode("ascii"))


def _quote_mailbox(name: str) -> str:
    if name.startswith('"') or not any(ch in name for ch in ' "()\\'):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _first_line(data) -> str:
    if not data or data[0] is None:
        return ""
    line = data[0]
    return line.decode(errors="replace") if isinstance(line, bytes) else str(line)
