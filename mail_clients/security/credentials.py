"""Credential providers - where the mail password comes from.

Two variants exist: an interactive secure prompt used when a terminal is
attached, and a static value taken from the connection profile. The provider
is only asked for a password at authentication time.
"""

import getpass
import sys
from abc import ABC, abstractmethod
from typing import Callable, Optional, TextIO

from mail_clients.utils.config import PASSWORD, USERNAME, ConnectionProfile
from mail_clients.utils.errors import MissingCredentialsError
from mail_clients.utils.logging import get_logger

logger = get_logger(__name__)


class CredentialProvider(ABC):
    """Abstract base for password sources."""

    def __init__(self, username: Optional[str]):
        self.username = username

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for display.

        Returns:
            str: Provider name.
        """

    @abstractmethod
    def get_password(self) -> str:
        """Return the password for ``username``.

        Raises:
            MissingCredentialsError: If no password can be obtained.
        """

    def forget(self) -> None:
        """Drop any remembered password after the server rejected it."""


class PromptCredentialProvider(CredentialProvider):
    """Reads the password from the terminal without echo.

    The answer is remembered until the server rejects it.
    """

    def __init__(
        self,
        username: Optional[str],
        reader: Callable[[str], str] = getpass.getpass,
    ):
        super().__init__(username)
        self._reader = reader
        self._password: Optional[str] = None

    @property
    def name(self) -> str:
        return "prompt"

    def get_password(self) -> str:
        if not self._password:
            try:
                password = self._reader("[Password : ] ")
            except (KeyboardInterrupt, EOFError) as e:
                raise MissingCredentialsError("Password entry was cancelled.") from e

            if not password:
                raise MissingCredentialsError("No password provided.")

            self._password = password
            logger.debug(f"Password captured from terminal for {self.username}")

        return self._password

    def forget(self) -> None:
        if self._password:
            logger.debug(f"Forgetting rejected password for {self.username}")
        self._password = None


class StaticCredentialProvider(CredentialProvider):
    """Returns a fixed password, typically the profile's ``password`` value."""

    def __init__(self, username: Optional[str], password: Optional[str]):
        super().__init__(username)
        self._password = password

    @property
    def name(self) -> str:
        return "static"

    def get_password(self) -> str:
        if not self._password:
            raise MissingCredentialsError(
                "No password configured.", details={"username": self.username}
            )
        return self._password

    @classmethod
    def from_profile(cls, profile: ConnectionProfile) -> "StaticCredentialProvider":
        return cls(profile.get_property(USERNAME), profile.get_property(PASSWORD))


def select_credential_provider(
    profile: ConnectionProfile, stream: Optional[TextIO] = None
) -> CredentialProvider:
    """Choose the prompt provider when ``stream`` is an interactive terminal.

    Falls back to the profile's plaintext password otherwise.
    """
    stream = stream if stream is not None else sys.stdin
    username = profile.get_property(USERNAME)

    try:
        interactive = stream.isatty()
    except (AttributeError, ValueError):
        interactive = False

    if interactive:
        return PromptCredentialProvider(username)

    logger.warning("Console not found, using the password from the connection profile")
    return StaticCredentialProvider.from_profile(profile)
