"""Protocol resolution from a connection profile.

The profile names the receive protocol (``PROTOCOL_RECEIVE``) and the send
protocol (``PROTOCOL_SEND``). Anything that does not map to a supported
protocol for that role resolves to ``None`` - callers treat that as
"cannot proceed" rather than an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mail_clients.utils.config import (
    IMAP4_HOST,
    IMAP4_PORT,
    POP3_HOST,
    POP3_PORT,
    PROTOCOL_RECEIVE,
    PROTOCOL_SEND,
    SMTP_HOST,
    SMTP_PORT,
    USERNAME,
    ConnectionProfile,
)
from mail_clients.utils.logging import get_logger

logger = get_logger(__name__)


class MailProtocol(Enum):
    """Supported mail protocols."""

    POP3 = "pop3"
    IMAP = "imap"
    SMTP = "smtp"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["MailProtocol"]:
        """Parse a protocol name, accepting the secure variants (pop3s, imaps)."""
        if not value or not value.strip():
            return None

        name = value.strip().lower()
        aliases = {
            "pop3": cls.POP3,
            "pop3s": cls.POP3,
            "imap": cls.IMAP,
            "imaps": cls.IMAP,
            "imap4": cls.IMAP,
            "smtp": cls.SMTP,
        }
        return aliases.get(name)


class MailPorts:
    """Well-known ports used when the profile leaves one out."""

    POP3_SSL = 995
    IMAP_SSL = 993
    SMTP_SUBMISSION = 587


ROLE_PROTOCOLS = {
    PROTOCOL_RECEIVE: (MailProtocol.POP3, MailProtocol.IMAP),
    PROTOCOL_SEND: (MailProtocol.SMTP,),
}


@dataclass(frozen=True)
class ServerSettings:
    """Everything needed to open a session with one mail server."""

    protocol: MailProtocol
    host: str
    port: int
    username: Optional[str]
    use_ssl: bool = False
    starttls: bool = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def _parse_port(raw: Optional[str], default: int) -> Optional[int]:
    if raw is None or not raw.strip():
        return default
    try:
        port = int(raw.strip())
    except ValueError:
        return None
    return port if 0 < port < 65536 else None


def resolve_protocol_settings(
    profile: ConnectionProfile, role: str
) -> Optional[ServerSettings]:
    """Build server settings for ``role`` (PROTOCOL_RECEIVE or PROTOCOL_SEND).

    Returns:
        ServerSettings, or None when the protocol is absent, unknown, not valid
        for the role, or the server address is incomplete.
    """
    if role not in ROLE_PROTOCOLS:
        raise ValueError(f"Unknown protocol role: {role}")

    raw_protocol = profile.get_property(role)
    protocol = MailProtocol.from_string(raw_protocol)

    if protocol not in ROLE_PROTOCOLS[role]:
        logger.warning(f"Unsupported protocol '{raw_protocol}' for {role}")
        return None

    if protocol is MailProtocol.POP3:
        host_key, port_key, default_port = POP3_HOST, POP3_PORT, MailPorts.POP3_SSL
    elif protocol is MailProtocol.IMAP:
        host_key, port_key, default_port = IMAP4_HOST, IMAP4_PORT, MailPorts.IMAP_SSL
    else:
        host_key, port_key, default_port = SMTP_HOST, SMTP_PORT, MailPorts.SMTP_SUBMISSION

    host = profile.get_property(host_key)
    port = _parse_port(profile.get_property(port_key), default_port)

    if not host or port is None:
        logger.warning(
            f"Incomplete server address for {protocol.value}",
            extra={"context": {"host_key": host_key, "port_key": port_key}},
        )
        return None

    return ServerSettings(
        protocol=protocol,
        host=host,
        port=port,
        username=profile.get_property(USERNAME),
        use_ssl=protocol is not MailProtocol.SMTP,
        starttls=protocol is MailProtocol.SMTP,
    )
