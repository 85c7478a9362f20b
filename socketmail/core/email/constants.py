"""Shared constants for composing and transmitting mail.

Centralised configuration for:
- Line terminators and end-of-data markers
- Message defaults (subject, charset, transfer encoding)
- Timeout settings

Customisation:
---------------
Timeouts can be overridden per session by passing ``connect_timeout`` and
``read_timeout`` to SMTPSession or MailSender, or through the
``smtp.connect_timeout`` and ``smtp.read_timeout`` configuration keys.
"""

CRLF = "\r\n"

# <CRLF>.<CRLF> terminates the DATA block
END_OF_DATA = f"{CRLF}.{CRLF}"


class MessageDefaults:
    """Defaults applied when a configuration leaves a field unset."""

    SUBJECT = "No subject"
    CHARSET = "UTF-8"
    TRANSFER_ENCODING = "7bit"
    DATE_FORMAT = "%m/%d/%Y %H:%M"


class Timeouts:
    """Timeout settings for SMTP operations (in seconds)."""

    SMTP_CONNECT = 30.0
    SMTP_READ = 30.0


class ReadLimits:
    """Limits applied while reading server replies."""

    RECV_CHUNK = 4096
    MAX_LINE_LENGTH = 8192
