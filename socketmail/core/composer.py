"""Message composer - turns a MailConfiguration into the SMTP DATA payload.

The payload is a plain list of header and body lines joined with CRLF:

    From: Jane Doe <jane@example.com>
    Reply-To: <jane@example.com>
    Subject: Hello
    Date: 10/18/2026 09:30
    To: <bob@example.com>, <carol@example.com>
    CC: <dave@example.com>
    Content-Type: text/plain; charset="UTF-8"
    Content-Transfer-Encoding: 7bit

    Plain body

When HTML is present the content lines become a multipart/alternative
structure holding the plain text part and then the HTML part.
"""

import time
import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from socketmail.core.email.constants import CRLF, MessageDefaults
from socketmail.core.models.mail import MailConfiguration
from socketmail.utils.errors import CompositionError


def format_address_list(addresses: Iterable[str]) -> str:
    """Wrap each address in angle brackets and join with commas."""
    return ", ".join(f"<{address}>" for address in addresses)


def generate_boundary(*contents: Optional[str]) -> str:
    """Return a timestamp + random boundary not occurring in any of ``contents``."""
    while True:
        boundary = f"{time.time_ns():x}{uuid.uuid4().hex}"
        if not any(content and boundary in content for content in contents):
            return boundary


class MessageComposer:
    """Builds headers and single-part or multipart bodies."""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        boundary_factory: Callable[..., str] = generate_boundary,
    ):
        """Initialise the composer.

        Args:
            clock: Returns the local time used for the Date header
            boundary_factory: Called with the text and HTML bodies, returns a boundary
        """
        self._clock = clock
        self._boundary_factory = boundary_factory

    def compose_headers(
        self, config: MailConfiguration, now: Optional[datetime] = None
    ) -> List[str]:
        """From, Reply-To, Subject, Date, To and (if any) CC, in that order.

        ``now`` overrides the clock for the Date header.
        """
        self._check_header_values(config)

        if config.sender_name:
            from_header = f"From: {config.sender_name} <{config.sender_address}>"
        else:
            from_header = f"From: <{config.sender_address}>"

        headers = [
            from_header,
            f"Reply-To: <{config.reply_to_address}>",
            f"Subject: {config.subject}",
            f"Date: {(now or self._clock()).strftime(MessageDefaults.DATE_FORMAT)}",
            f"To: {format_address_list(config.to)}",
        ]

        if config.cc:
            headers.append(f"CC: {format_address_list(config.cc)}")

        return headers

    def compose_body(self, config: MailConfiguration) -> str:
        """Content headers plus content, plain text or multipart/alternative.

        Raises:
            CompositionError: If neither text nor HTML content is set
        """
        if not config.is_multipart:
            if not config.text:
                raise CompositionError("Message has no text or HTML body")
            return CRLF.join(self._plain_part(config))

        boundary = self._boundary_factory(config.text, config.html)

        lines = [
            "MIME-Version: 1.0",
            f'Content-Type: multipart/alternative; boundary="{boundary}"',
            "",
            f"--{boundary}",
            *self._plain_part(config),
            f"--{boundary}",
            f'Content-Type: text/html; charset="{config.charset}"',
            f"Content-Transfer-Encoding: {config.transfer_encoding}",
            "",
            config.html,
            f"--{boundary}--",
        ]

        return CRLF.join(lines)

    def compose(self, config: MailConfiguration, now: Optional[datetime] = None) -> str:
        """The complete payload: headers followed by the body, CRLF-joined."""
        return CRLF.join([*self.compose_headers(config, now), self.compose_body(config)])

    def _plain_part(self, config: MailConfiguration) -> List[str]:
        return [
            f'Content-Type: text/plain; charset="{config.charset}"',
            f"Content-Transfer-Encoding: {config.transfer_encoding}",
            "",
            config.text,
        ]

    @staticmethod
    def _check_header_values(config: MailConfiguration) -> None:
        values = {
            "from": config.sender_address,
            "from name": config.sender_name or "",
            "reply-to": config.reply_to_address,
            "subject": config.subject,
            "charset": config.charset,
            "transfer encoding": config.transfer_encoding,
        }
        values.update({f"to[{i}]": address for i, address in enumerate(config.to)})
        values.update({f"cc[{i}]": address for i, address in enumerate(config.cc)})

        for name, value in values.items():
            if "\r" in value or "\n" in value:
                raise CompositionError(
                    f"Header value for {name} contains a line break",
                    details={"field": name},
                )
