"""SMTP constants and configuration values."""

from enum import Enum


class SMTPResponse:
    """Standard SMTP response codes."""

    # 2xx Success
    SERVICE_READY = 220  # Service ready (greeting)
    CLOSING = 221  # Service closing transmission channel
    AUTH_SUCCESSFUL = 235  # Authentication successful
    OK = 250  # Requested mail action okay, completed

    # 3xx Intermediate
    AUTH_CONTINUE = 334  # Server challenge during AUTH
    START_MAIL = 354  # Start mail input; end with <CRLF>.<CRLF>

    # 4xx Transient Failure
    SERVICE_NOT_AVAILABLE = 421  # Service not available, closing channel
    MAILBOX_BUSY = 450  # Mailbox unavailable (e.g., busy)
    LOCAL_ERROR = 451  # Local error in processing
    INSUFFICIENT_STORAGE = 452  # Insufficient system storage

    # 5xx Permanent Failure
    SYNTAX_ERROR = 500  # Syntax error, command unrecognized
    BAD_SEQUENCE = 503  # Bad sequence of commands
    AUTH_FAILED = 535  # Authentication credentials invalid
    MAILBOX_UNAVAILABLE = 550  # Mailbox unavailable
    TRANSACTION_FAILED = 554  # Transaction failed


class SMTPCommand:
    """Command verbs issued by the session."""

    EHLO = "EHLO"
    AUTH_LOGIN = "AUTH LOGIN"
    MAIL_FROM = "MAIL FROM:"
    RCPT_TO = "RCPT TO:"
    DATA = "DATA"
    QUIT = "QUIT"


class ReplyMode(str, Enum):
    """How the session reacts to rejecting (4xx/5xx) replies."""

    LENIENT = "lenient"  # log and carry on
    STRICT = "strict"  # raise SMTPProtocolError


class SMTPPorts:
    """Standard SMTP port numbers."""

    SUBMISSION_SSL = 465  # Implicit TLS

    DEFAULT_HOST = "smtp.gmail.com"
    DEFAULT_PORT = SUBMISSION_SSL
