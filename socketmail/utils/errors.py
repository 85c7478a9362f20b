"""Centralized error handling module."""

from enum import Enum
from typing import Any, Dict, Optional

from socketmail.utils.logging import get_logger

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
    PROTOCOL = "protocol"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Custom Exceptions


class SocketMailError(Exception):
    """Base exception for all socketmail errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise SocketMailError with optional message and details."""
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


class NetworkError(SocketMailError):
    """Base exception for network-related errors."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class SMTPError(NetworkError):
    """Base exception for SMTP session errors."""

    user_message = "Failed to send email"


class SMTPConnectionError(SMTPError, ConnectionError):
    """Exception when the secured socket cannot be established or is lost."""

    user_message = "Failed to connect to the SMTP server"


class SMTPProtocolError(SMTPError):
    """Exception for a rejecting (4xx/5xx) server reply in strict mode."""

    category = ErrorCategory.PROTOCOL
    user_message = "The SMTP server rejected a command"

    def __init__(
        self,
        message: str | None = None,
        details: Dict[str, Any] | None = None,
        reply=None,
        command: Optional[str] = None,
    ):
        self.reply = reply
        self.command = command
        super().__init__(message, details)


class SessionStateError(SMTPError):
    """Exception for session operations called out of order."""

    category = ErrorCategory.PROTOCOL
    user_message = "SMTP session operation called out of order"


class NetworkTimeoutError(NetworkError, TimeoutError):
    """Exception for connect or read deadlines being exceeded."""

    user_message = "The connection timed out"


## Validation Errors


class ValidationError(SocketMailError):
    """Base exception for validation-related errors."""

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


class CompositionError(ValidationError):
    """Exception when a message payload cannot be composed."""

    user_message = "The message could not be composed"


class InvalidEmailAddressError(ValidationError):
    """Exception for invalid email addresses."""

    user_message = "Invalid email address"


class MissingRequiredFieldError(ValidationError):
    """Exception for missing required fields."""

    user_message = "A required field is missing"


## File System Errors


class FileSystemError(SocketMailError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Configuration Errors


class ConfigurationError(SocketMailError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, SocketMailError):
            _get_logger().error(f"{context}: {error.message}", extra=error.details)
            if log_traceback:
                _get_logger().exception(error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            if log_traceback:
                _get_logger().exception(error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, SocketMailError):
        return error.message
    else:
        return "An unexpected error occurred - check logs for details."
