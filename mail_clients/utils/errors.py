"""Centralized error handling module."""

from enum import Enum
from typing import Any, Dict, Optional

from mail_clients.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    MAILBOX = "mailbox"
    UNKNOWN = "unknown"


## Custom Exceptions


class MailClientError(Exception):
    """Base exception for all mail client errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise MailClientError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Network Errors


class NetworkError(MailClientError):
    """Base exception for network-related errors."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class IMAPError(NetworkError):
    """Exception for IMAP protocol errors."""

    user_message = "Failed to read from the IMAP server"


class POP3Error(NetworkError):
    """Exception for POP3 protocol errors."""

    user_message = "Failed to read from the POP3 server"


class SMTPError(NetworkError):
    """Exception for SMTP protocol errors."""

    user_message = "Failed to send email"


class GraphAPIError(NetworkError):
    """Exception for faults reported by the Microsoft Graph API."""

    user_message = "The Microsoft Graph request failed"

    def __init__(
        self,
        message: str | None = None,
        details: Dict[str, Any] | None = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


## Authentication Errors


class AuthenticationError(MailClientError):
    """Base exception for authentication-related errors."""

    category = ErrorCategory.AUTHENTICATION
    user_message = "An authentication error occurred"


class InvalidCredentialsError(AuthenticationError):
    """Exception for invalid login credentials."""

    user_message = "Invalid username or password"


class MissingCredentialsError(AuthenticationError):
    """Exception for missing login credentials."""

    user_message = "Mail credentials not configured"


## Mailbox Errors


class FolderNotFoundError(MailClientError):
    """Exception when a folder does not exist on the server."""

    category = ErrorCategory.MAILBOX
    user_message = "Folder not found"


## Configuration Errors


class ConfigurationError(MailClientError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        logger = _get_logger()
        if isinstance(error, MailClientError):
            logger.error(f"{context}: {error.message}", extra={"context": error.details})
            if log_traceback:
                logger.error("Traceback", exc_info=error)
            return error.to_dict()
        else:
            logger.error(f"{context}: {str(error)}")
            if log_traceback:
                logger.error("Traceback", exc_info=error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Context Manager for Error Handling


class error_context:
    """Context manager for error handling."""

    def __init__(
        self,
        context: str = "",
        user_message: Optional[str] = None,
        reraise: bool = True,
    ):
        """Initialise error context manager."""

        self.context = context
        self.user_message = user_message
        self.reraise = reraise
        self.error = None

    def __enter__(self):
        """Enter the context."""
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        """Exit the context and handle exceptions."""
        if exc_type is None or not issubclass(exc_type, Exception):
            return False

        self.error = ErrorHandler.handle(exc_value, self.context)

        return not self.reraise


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, MailClientError):
        return error.message
    else:
        return str(error) or "An unexpected error occurred - check logs for details."
