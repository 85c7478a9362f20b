"""Mail domain models"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from socketmail.core.email.constants import MessageDefaults
from socketmail.core.email.smtp.constants import SMTPPorts
from socketmail.core.templates import load_template
from socketmail.utils.errors import InvalidConfigError

# Either "user@example.com" or ("Display Name", "user@example.com")
Sender = Union[str, Tuple[str, str]]


class MailConfiguration(BaseModel):
    """Immutable description of one email and the server it goes through."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: Sender = Field(default="", alias="from")
    to: Tuple[str, ...] = ()
    cc: Tuple[str, ...] = ()
    reply_to: Optional[str] = None
    subject: str = MessageDefaults.SUBJECT
    charset: str = MessageDefaults.CHARSET
    transfer_encoding: str = MessageDefaults.TRANSFER_ENCODING
    text: str = ""
    html: Optional[str] = None
    host: str = SMTPPorts.DEFAULT_HOST
    port: int = SMTPPorts.DEFAULT_PORT
    username: str = ""
    password: str = Field(default="", repr=False)
    verbose_logging: bool = True

    @property
    def sender_address(self) -> str:
        if isinstance(self.from_, tuple):
            return self.from_[1]
        return self.from_

    @property
    def sender_name(self) -> Optional[str]:
        if isinstance(self.from_, tuple):
            return self.from_[0]
        return None

    @property
    def reply_to_address(self) -> str:
        return self.reply_to or self.sender_address

    @property
    def is_multipart(self) -> bool:
        return bool(self.html)


class MailBuilder:
    """Collects mail settings step by step and builds a MailConfiguration.

    Every setter returns the builder so calls can be chained:

        >>> config = (
        ...     MailBuilder()
        ...     .set_from("Jane Doe", "jane@example.com")
        ...     .set_to("bob@example.com", "carol@example.com")
        ...     .set_subject("Hello")
        ...     .set_text("Plain body")
        ...     .build()
        ... )
    """

    def __init__(self, **defaults: Any):
        """Start from keyword defaults (field names of MailConfiguration)."""
        self._fields: Dict[str, Any] = dict(defaults)

    def set_from(self, name_or_address: str, address: Optional[str] = None) -> "MailBuilder":
        """Set the sender's address, or display name and address."""
        self._fields["from_"] = (name_or_address, address) if address else name_or_address
        return self

    def set_reply_to(self, address: str) -> "MailBuilder":
        self._fields["reply_to"] = address
        return self

    def set_to(self, *recipients) -> "MailBuilder":
        """Set recipients, given as separate arguments or as one list."""
        self._fields["to"] = _flatten(recipients)
        return self

    def set_cc(self, *recipients) -> "MailBuilder":
        self._fields["cc"] = _flatten(recipients)
        return self

    def set_subject(self, subject: str) -> "MailBuilder":
        self._fields["subject"] = subject
        return self

    def set_text(self, text: str) -> "MailBuilder":
        self._fields["text"] = text
        return self

    def set_html(self, html: str) -> "MailBuilder":
        self._fields["html"] = html
        return self

    def load_template(
        self, path: Union[str, Path], variables: Optional[Mapping[str, Any]] = None
    ) -> "MailBuilder":
        """Render an HTML template file and use it as the HTML body."""
        return self.set_html(load_template(path, variables))

    def set_server(self, host: str, port: int) -> "MailBuilder":
        self._fields["host"] = host
        self._fields["port"] = port
        return self

    def set_credentials(self, username: str, password: str) -> "MailBuilder":
        self._fields["username"] = username
        self._fields["password"] = password
        return self

    def set_verbose(self, verbose: bool) -> "MailBuilder":
        self._fields["verbose_logging"] = verbose
        return self

    def build(self) -> MailConfiguration:
        """Validate the collected settings and freeze them.

        Raises:
            InvalidConfigError: If a field has the wrong type
        """
        try:
            return MailConfiguration(**self._fields)
        except PydanticValidationError as e:
            raise InvalidConfigError(f"Invalid mail configuration: {e}") from e


def _flatten(recipients: tuple) -> Tuple[str, ...]:
    if len(recipients) == 1 and isinstance(recipients[0], (list, tuple)):
        return tuple(recipients[0])
    return tuple(recipients)
