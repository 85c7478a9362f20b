"""SMTP protocol implementation.

Low-level SMTP components:
- SMTPConnection: owns the implicit-TLS socket, writes lines, reads replies
- SMTPSession: drives EHLO, AUTH LOGIN, MAIL FROM, RCPT TO, DATA and QUIT

Most callers should use MailSender instead. Direct usage:

    >>> from socketmail.core.email.smtp import SMTPSession
    >>>
    >>> with SMTPSession(verbose=True, listener=print) as session:
    ...     session.connect("smtp.gmail.com", 465, "my-host")
    ...     session.authenticate("user@gmail.com", "app-password")
    ...     session.set_from("user@gmail.com")
    ...     session.add_recipients(["friend@example.com"])
    ...     session.send_data(payload)
"""

from .connection import SMTPConnection, SMTPReply
from .constants import ReplyMode
from .protocol import Direction, SessionState, SMTPSession, TranscriptEvent

__all__ = [
    "Direction",
    "ReplyMode",
    "SessionState",
    "SMTPConnection",
    "SMTPReply",
    "SMTPSession",
    "TranscriptEvent",
]
