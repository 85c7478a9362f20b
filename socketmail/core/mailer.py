"""Mail sender - composes a message and drives one SMTP session to deliver it."""

import socket
import time
from typing import List, Optional

from socketmail.core.composer import MessageComposer
from socketmail.core.email.smtp.connection import SMTPReply, open_secure_socket
from socketmail.core.email.smtp.constants import ReplyMode
from socketmail.core.email.smtp.protocol import SMTPSession, TranscriptListener
from socketmail.core.models.mail import MailConfiguration
from socketmail.core.validation.email import EmailValidator
from socketmail.utils.config_manager import ConfigManager
from socketmail.utils.logging import get_logger, log_call, log_event

logger = get_logger(__name__)


class MailSender:
    """Sends MailConfiguration values over a fresh SMTP session each time."""

    def __init__(
        self,
        client_identifier: Optional[str] = None,
        reply_mode: ReplyMode = ReplyMode.LENIENT,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        listener: Optional[TranscriptListener] = None,
        composer: Optional[MessageComposer] = None,
        socket_factory=open_secure_socket,
    ):
        """Initialise the sender.

        Args:
            client_identifier: Name announced with EHLO, defaults to this host's name
            reply_mode: LENIENT or STRICT handling of rejecting replies
            connect_timeout: Deadline for establishing the secured socket
            read_timeout: Deadline for each socket read and write
            listener: Receives transcript events for verbose configurations
            composer: MessageComposer used to build payloads
            socket_factory: Callable opening the secured socket
        """
        self.client_identifier = client_identifier or socket.gethostname()
        self.reply_mode = ReplyMode(reply_mode)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.listener = listener
        self.composer = composer or MessageComposer()
        self._socket_factory = socket_factory

    @classmethod
    def from_config(
        cls, config_manager: ConfigManager, listener: Optional[TranscriptListener] = None
    ) -> "MailSender":
        """Build a sender from the ``smtp`` section of the application config."""
        smtp = config_manager.config.smtp
        return cls(
            client_identifier=smtp.client_identifier,
            reply_mode=ReplyMode(smtp.reply_mode),
            connect_timeout=smtp.connect_timeout,
            read_timeout=smtp.read_timeout,
            listener=listener,
        )

    def create_session(self, config: MailConfiguration) -> SMTPSession:
        return SMTPSession(
            verbose=config.verbose_logging,
            listener=self.listener,
            reply_mode=self.reply_mode,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            socket_factory=self._socket_factory,
        )

    @log_call
    def send(self, config: MailConfiguration) -> List[SMTPReply]:
        """Validate, compose and transmit one message.

        Returns:
            Every reply the server sent, greeting included

        Raises:
            ValidationError: If the configuration cannot be sent or composed
            SMTPConnectionError: If the server cannot be reached
            NetworkTimeoutError: If connecting or reading exceeds its deadline
            SMTPProtocolError: On a rejecting reply in strict mode
        """
        EmailValidator.validate_for_send(config)
        payload = self.composer.compose(config)

        logger.info(
            "Sending email",
            extra={"host": config.host, "port": config.port, "recipients": len(config.to)},
        )
        start_time = time.time()

        with self.create_session(config) as session:
            session.connect(config.host, config.port, self.client_identifier)
            session.authenticate(config.username, config.password)
            session.set_from(config.sender_address)
            session.add_recipients(config.to)
            session.send_data(payload)

        duration = time.time() - start_time
        rejected = [reply.code for reply in session.replies if reply.is_error]

        log_event(
            "mail_sent",
            "Email handed to SMTP server",
            host=config.host,
            recipients=len(config.to),
            rejected_codes=rejected,
            duration_seconds=round(duration, 2),
        )

        return session.replies
