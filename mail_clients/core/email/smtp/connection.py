"""SMTP connection management - handles connection setup and cleanup."""

import smtplib
from contextlib import contextmanager
from typing import Iterator

from mail_clients.security.credentials import CredentialProvider
from mail_clients.utils.errors import (
    InvalidCredentialsError,
    MailClientError,
    SMTPError,
)
from mail_clients.utils.logging import get_logger

from ..protocols import ServerSettings

logger = get_logger(__name__)


@contextmanager
def smtp_connection(
    settings: ServerSettings, credentials: CredentialProvider, timeout: float = 30.0
) -> Iterator[smtplib.SMTP]:
    """Context manager for an authenticated SMTP session with automatic cleanup.

    The password is requested from ``credentials`` only once the server has
    accepted the connection and is ready for AUTH. Every failure while
    connecting surfaces as a MailClientError.
    """
    log = get_logger(__name__, server=settings.address)
    server = None
    try:
        if settings.use_ssl:
            server = smtplib.SMTP_SSL(settings.host, settings.port, timeout=timeout)
        else:
            server = smtplib.SMTP(settings.host, settings.port, timeout=timeout)
            if settings.starttls:
                server.starttls()
                server.ehlo()

        log.debug("SMTP session opened")
        server.login(settings.username or "", credentials.get_password())

    except smtplib.SMTPAuthenticationError as e:
        _quit(server)
        raise InvalidCredentialsError(
            f"SMTP login rejected for {settings.username}",
            details={"server": settings.address, "code": e.smtp_code},
        ) from e

    except UnicodeEncodeError as e:
        # smtplib encodes AUTH PLAIN/LOGIN credentials as ASCII
        _quit(server)
        raise InvalidCredentialsError(
            f"SMTP login for {settings.username} failed: the server only accepts ASCII credentials",
            details={"server": settings.address},
        ) from e

    except (smtplib.SMTPException, OSError) as e:
        _quit(server)
        raise SMTPError(
            f"Failed to connect to SMTP server {settings.address}: {e}",
            details={"server": settings.address},
        ) from e

    except MailClientError:
        _quit(server)
        raise

    except Exception as e:
        _quit(server)
        raise SMTPError(
            f"Unexpected error connecting to SMTP server {settings.address}: {e}",
            details={"server": settings.address},
        ) from e

    except BaseException:
        _quit(server)
        raise

    try:
        yield server
    finally:
        _quit(server)


def _quit(server) -> None:
    if server is None:
        return
    try:
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.debug(f"Ignoring error while closing SMTP session: {e}")
