"""Email transport: SMTP session driver and shared protocol constants."""

from .smtp import SMTPSession

__all__ = ["SMTPSession"]
