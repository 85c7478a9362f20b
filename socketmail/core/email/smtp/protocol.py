"""SMTP session driver.

SMTPSession walks one SMTP transaction over an SMTPConnection:

    DISCONNECTED -> CONNECTED -> HANDSHAKED -> AUTHENTICATED -> SENDER_SET
    -> RECIPIENTS_SET -> DATA_SENT -> CLOSED

Every command is a full round-trip: the line is written, then the server's
reply is drained up to its final line before anything else is sent. Replies
are always read, whether or not verbose transcripts are enabled, so the
command/reply sequence cannot drift.

In ``ReplyMode.LENIENT`` (the default) rejecting replies are logged and the
transaction carries on, matching a fire-and-forget sender. ``ReplyMode.STRICT``
raises SMTPProtocolError on the first 4xx/5xx reply. Whatever happens, the
socket is closed once ``send_data`` finishes or any step fails.
"""

import base64
import re
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

from socketmail.core.email.constants import END_OF_DATA
from socketmail.utils.errors import (
    MissingRequiredFieldError,
    SessionStateError,
    SMTPProtocolError,
)
from socketmail.utils.logging import get_logger, log_event

from .connection import SMTPConnection, SMTPReply, open_secure_socket
from .constants import ReplyMode, SMTPCommand

logger = get_logger(__name__)

_LEADING_DOT = re.compile(r"^\.", re.MULTILINE)


class SessionState(Enum):
    """Lifecycle of a single SMTP transaction."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    HANDSHAKED = "handshaked"
    AUTHENTICATED = "authenticated"
    SENDER_SET = "sender_set"
    RECIPIENTS_SET = "recipients_set"
    DATA_SENT = "data_sent"
    CLOSED = "closed"


class Direction(str, Enum):
    """Which side of the conversation a transcript line came from."""

    SENT = "sent"
    RECEIVED = "received"


@dataclass(frozen=True)
class TranscriptEvent:
    """One protocol line surfaced to the caller in verbose mode."""

    direction: Direction
    line: str
    sensitive: bool = False


TranscriptListener = Callable[[TranscriptEvent], None]


def encode_credential(value: str) -> str:
    """Base64-encode one AUTH LOGIN credential line."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def stuff_dots(payload: str) -> str:
    """Double any leading dot so body lines cannot end the DATA block early."""
    return _LEADING_DOT.sub("..", payload)


class SMTPSession:
    """Drives one SMTP transaction over an exclusively owned socket."""

    def __init__(
        self,
        verbose: bool = False,
        listener: Optional[TranscriptListener] = None,
        reply_mode: ReplyMode = ReplyMode.LENIENT,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        socket_factory=open_secure_socket,
    ):
        """Initialise a disconnected session.

        Args:
            verbose: Emit every sent and received line as a TranscriptEvent
            listener: Callable receiving transcript events when verbose
            reply_mode: LENIENT logs rejections, STRICT raises on them
            connect_timeout: Deadline for establishing the secured socket
            read_timeout: Deadline for each socket read and write
            socket_factory: Callable opening the secured socket (host, port, timeout)
        """
        self.verbose = verbose
        self.listener = listener
        self.reply_mode = ReplyMode(reply_mode)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._socket_factory = socket_factory
        self._connection: Optional[SMTPConnection] = None
        self._state = SessionState.DISCONNECTED
        self.replies: List[SMTPReply] = []

    @property
    def state(self) -> SessionState:
        return self._state

    ## Operations

    def connect(self, host: str, port: int, client_identifier: str = "localhost") -> None:
        """Open the secured socket, read the greeting and send EHLO.

        Raises:
            SMTPConnectionError: If the socket cannot be established
            NetworkTimeoutError: If connecting or reading exceeds its deadline
        """
        self._require_state("connect", SessionState.DISCONNECTED)

        self._connection = SMTPConnection(
            host,
            port,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            socket_factory=self._socket_factory,
        )

        with self._closing_on_error():
            self._connection.open()
            self._state = SessionState.CONNECTED

            self._receive("greeting")
            self._command(f"{SMTPCommand.EHLO} {client_identifier}", SMTPCommand.EHLO)

        self._state = SessionState.HANDSHAKED

    def authenticate(self, username: str, password: str) -> None:
        """Log in with AUTH LOGIN, one reply read per line."""
        self._require_state("authenticate", SessionState.HANDSHAKED)

        with self._closing_on_error():
            self._command(SMTPCommand.AUTH_LOGIN, SMTPCommand.AUTH_LOGIN)
            self._command(encode_credential(username), "AUTH username", sensitive=True)
            self._command(encode_credential(password), "AUTH password", sensitive=True)

        self._state = SessionState.AUTHENTICATED

    def set_from(self, address: str) -> None:
        """Declare the envelope sender."""
        self._require_state("set_from", SessionState.AUTHENTICATED)

        with self._closing_on_error():
            self._command(f"{SMTPCommand.MAIL_FROM} <{address}>", SMTPCommand.MAIL_FROM)

        self._state = SessionState.SENDER_SET

    def add_recipients(self, addresses: Iterable[str]) -> None:
        """Declare envelope recipients in order, one RCPT TO round-trip each."""
        self._require_state(
            "add_recipients", SessionState.SENDER_SET, SessionState.RECIPIENTS_SET
        )

        with self._closing_on_error():
            recipients = list(addresses)
            if not recipients:
                raise MissingRequiredFieldError("At least one recipient is required")

            for address in recipients:
                self._command(f"{SMTPCommand.RCPT_TO} <{address}>", SMTPCommand.RCPT_TO)

        self._state = SessionState.RECIPIENTS_SET

    def send_data(self, payload: str) -> None:
        """Transmit the message, end the DATA block, QUIT and close the socket."""
        self._require_state("send_data", SessionState.RECIPIENTS_SET)
        connection = self._connection

        try:
            self._command(SMTPCommand.DATA, SMTPCommand.DATA)

            connection.write(stuff_dots(payload))
            self._emit(Direction.SENT, payload)

            connection.write(END_OF_DATA)
            self._emit(Direction.SENT, ".")
            self._receive("end of data")
            self._state = SessionState.DATA_SENT

            self._command(SMTPCommand.QUIT, SMTPCommand.QUIT)

        finally:
            self.close()

    def close(self) -> None:
        """Close the socket if still open. Safe to call more than once."""
        if self._connection is not None:
            self._connection.close()
        self._state = SessionState.CLOSED

    ## Context Manager Support

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    ## Internals

    def _require_state(self, operation: str, *allowed: SessionState) -> None:
        if self._state not in allowed:
            raise SessionStateError(
                f"Cannot {operation} while session is {self._state.value}",
                details={
                    "operation": operation,
                    "state": self._state.value,
                    "expected": [state.value for state in allowed],
                },
            )

    @contextmanager
    def _closing_on_error(self):
        try:
            yield
        except BaseException:
            self.close()
            raise

    def _command(self, line: str, label: str, sensitive: bool = False) -> SMTPReply:
        """Write one command line and drain its reply."""
        self._connection.write_line(line)
        self._emit(Direction.SENT, line, sensitive)
        logger.debug("SMTP command sent", extra={"command": label})

        return self._receive(label)

    def _receive(self, label: str) -> SMTPReply:
        reply = self._connection.read_reply()
        self.replies.append(reply)

        for reply_line in reply.lines:
            self._emit(Direction.RECEIVED, reply_line)

        self._check_reply(reply, label)
        return reply

    def _check_reply(self, reply: SMTPReply, label: str) -> None:
        if not reply.is_error:
            return

        if self.reply_mode is ReplyMode.STRICT:
            raise SMTPProtocolError(
                f"SMTP server rejected {label}: {reply.code} {reply.text}".rstrip(),
                details={"command": label, "code": reply.code},
                reply=reply,
                command=label,
            )

        logger.warning(
            f"SMTP server rejected {label} with {reply.code}, continuing",
            extra={"command": label, "code": reply.code},
        )

    def _emit(self, direction: Direction, line: str, sensitive: bool = False) -> None:
        if not self.verbose:
            return

        event = TranscriptEvent(direction=direction, line=line, sensitive=sensitive)
        log_event(
            "smtp_transcript",
            f"SMTP {direction.value}",
            direction=direction.value,
            line="[REDACTED]" if sensitive else line,
        )

        if self.listener is not None:
            self.listener(event)
