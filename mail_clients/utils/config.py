"""Connection profiles and application settings.

A connection profile is a flat properties file describing how to reach and
authenticate against a mail server. Keys may be separated from values by
``=``, ``:`` or whitespace, and lines starting with ``#`` or ``!`` are
comments. Line continuations and escapes are not supported.

Application settings (log level, profile locations, Graph endpoint, timeouts)
come from the environment, with an optional ``.env`` file in the working
directory.
"""

import io
import os
import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Union

from dotenv import dotenv_values, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .console import get_console
from .errors import InvalidConfigError
from .logging import get_logger
from .paths import DOTENV_PATH

logger = get_logger(__name__)

# key, optional separator, value
_PROPERTY_LINE = re.compile(r"^\s*([^=:\s]+)\s*[=:]?\s*(.*)$")


## Profile keys

USERNAME = "username"
PASSWORD = "password"
PROTOCOL_RECEIVE = "PROTOCOL_RECEIVE"
PROTOCOL_SEND = "PROTOCOL_SEND"
POP3_HOST = "POP3_HOST"
POP3_PORT = "POP3_PORT"
IMAP4_HOST = "IMAP4_HOST"
IMAP4_PORT = "IMAP4_PORT"
SMTP_HOST = "SMTP_HOST"
SMTP_PORT = "SMTP_PORT"
TO = "to"

PROFILE_KEYS = (
    USERNAME,
    PASSWORD,
    PROTOCOL_RECEIVE,
    PROTOCOL_SEND,
    POP3_HOST,
    POP3_PORT,
    IMAP4_HOST,
    IMAP4_PORT,
    SMTP_HOST,
    SMTP_PORT,
    TO,
)


class ConnectionProfile(Mapping[str, str]):
    """Read-only key-value profile used to address a mail server."""

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None, source: Optional[Path] = None):
        cleaned = {
            str(key).strip(): value.strip()
            for key, value in (values or {}).items()
            if value is not None
        }
        self._values = MappingProxyType(cleaned)
        self.source = source

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConnectionProfile(source={self.source!s}, keys={sorted(self._values)})"

    def get_property(self, name: str) -> Optional[str]:
        """Look up a property, returning None when it is absent."""
        value = self._values.get(name)
        logger.debug(f"{name} - {value}")
        return value

    @property
    def is_empty(self) -> bool:
        return not self._values


def load_profile(path: Union[str, Path]) -> ConnectionProfile:
    """Load a connection profile from a properties file.

    Failures are reported on the console and in the log rather than raised:
    a missing, unreadable or malformed file yields an empty profile so later
    lookups simply return None.
    """
    profile_path = Path(path).expanduser()

    try:
        if not profile_path.is_file():
            raise FileNotFoundError(f"No such file: {profile_path}")

        with open(profile_path, "r", encoding="utf-8") as stream:
            text = _normalise_properties(stream.read())
        values = dotenv_values(stream=io.StringIO(text), interpolate=False)

    except (OSError, UnicodeDecodeError, ValueError) as e:
        message = (
            f"Unable to read {profile_path.name} configuration. Make sure you have "
            f"a properly formatted {profile_path.name} file."
        )
        get_console().print(f"[red]{message}[/]")
        logger.error(message, extra={"context": {"path": str(profile_path), "error": str(e)}})
        return ConnectionProfile(source=profile_path)

    profile = ConnectionProfile(values, source=profile_path)
    unknown = sorted(set(profile) - set(PROFILE_KEYS))
    logger.info(
        f"Connection profile loaded from {profile_path}",
        extra={"context": {"keys": len(profile), "unrecognised": unknown}},
    )
    return profile


def _normalise_properties(text: str) -> str:
    """Rewrite properties lines into the ``key=value`` form dotenv reads."""
    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            lines.append(stripped)
        elif stripped.startswith("!"):
            lines.append("#" + stripped[1:])
        else:
            match = _PROPERTY_LINE.match(stripped)
            lines.append(f"{match[1]}={match[2]}" if match else stripped)
    return "\n".join(lines) + "\n"


## Application settings


class Settings(BaseModel):
    """Pydantic model for application settings."""

    profile_path: str = "oAuth-O365.properties"
    sender_profile_path: str = "oAuth.properties"
    log_level: str = "INFO"
    read_limit: int = Field(default=30, gt=0)
    network_timeout: float = Field(default=30.0, gt=0)  # in seconds
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_access_token: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{value}'")
        return level


ENVIRONMENT_KEYS = {
    "profile_path": "MAIL_CLIENTS_PROFILE",
    "sender_profile_path": "MAIL_CLIENTS_SENDER_PROFILE",
    "log_level": "MAIL_CLIENTS_LOG_LEVEL",
    "read_limit": "MAIL_CLIENTS_READ_LIMIT",
    "network_timeout": "MAIL_CLIENTS_NETWORK_TIMEOUT",
    "graph_base_url": "MAIL_CLIENTS_GRAPH_BASE_URL",
    "graph_access_token": "GRAPH_ACCESS_TOKEN",
}


def load_settings(dotenv_path: Optional[Path] = None) -> Settings:
    """Load application settings from environment variables and an optional .env file."""
    load_dotenv(dotenv_path or DOTENV_PATH, override=False)

    data = {
        field: os.environ[env_key]
        for field, env_key in ENVIRONMENT_KEYS.items()
        if os.environ.get(env_key)
    }

    try:
        return Settings(**data)
    except ValidationError as e:
        raise InvalidConfigError(
            f"Application settings are invalid: {e.error_count()} error(s)",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
