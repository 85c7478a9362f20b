"""socketmail - send email by speaking SMTP directly over an implicit-TLS socket.

    >>> from socketmail import MailBuilder, MailSender
    >>>
    >>> config = (
    ...     MailBuilder()
    ...     .set_from("Jane Doe", "jane@gmail.com")
    ...     .set_to("bob@example.com")
    ...     .set_subject("Hi")
    ...     .set_text("Hello")
    ...     .set_credentials("jane@gmail.com", "app-password")
    ...     .build()
    ... )
    >>> MailSender().send(config)
"""

from .core.composer import MessageComposer
from .core.email.smtp import (
    Direction,
    ReplyMode,
    SMTPReply,
    SMTPSession,
    TranscriptEvent,
)
from .core.mailer import MailSender
from .core.models.mail import MailBuilder, MailConfiguration
from .core.templates import load_template, render

__all__ = [
    "Direction",
    "MailBuilder",
    "MailConfiguration",
    "MailSender",
    "MessageComposer",
    "ReplyMode",
    "SMTPReply",
    "SMTPSession",
    "TranscriptEvent",
    "load_template",
    "render",
]

__version__ = "0.1.0"
