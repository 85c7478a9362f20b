"""SMTP connection management - owns the secured socket, line I/O and reply reading."""

import socket
import ssl
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from socketmail.core.email.constants import CRLF, ReadLimits, Timeouts
from socketmail.utils.errors import (
    NetworkTimeoutError,
    SessionStateError,
    SMTPConnectionError,
)
from socketmail.utils.logging import get_logger


def is_final_reply_line(line: str) -> bool:
    """Return True unless the line carries the ``-`` continuation marker.

    Continuation lines look like ``250-SIZE 35882577``; the last line of a
    reply has a space in that column (``250 OK``) or ends right after the code.
    """
    return line[3:4] != "-"


@dataclass
class SMTPReply:
    """One complete, possibly multi-line, server reply."""

    code: int
    lines: List[str] = field(default_factory=list)

    @classmethod
    def from_lines(cls, lines: List[str]) -> "SMTPReply":
        stripped = [line.rstrip("\r\n") for line in lines]
        head = stripped[0][:3] if stripped else ""
        code = int(head) if head.isdigit() else 0
        return cls(code=code, lines=stripped)

    @property
    def text(self) -> str:
        """Message text of every line with the code and marker removed."""
        return "\n".join(line[4:] for line in self.lines)

    @property
    def is_positive(self) -> bool:
        return 200 <= self.code < 400

    @property
    def is_transient(self) -> bool:
        return 400 <= self.code < 500

    @property
    def is_permanent(self) -> bool:
        return 500 <= self.code < 600

    @property
    def is_error(self) -> bool:
        return not self.is_positive

    def __str__(self) -> str:
        return "\n".join(self.lines)


@dataclass
class SMTPConnectionStats:
    """Tracks traffic over a single connection."""

    lines_sent: int = 0
    replies_read: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    opened_at: Optional[float] = None
    closed_at: Optional[float] = None

    @property
    def duration(self) -> float:
        """Seconds the socket has been (or was) open."""
        if self.opened_at is None:
            return 0.0
        end = self.closed_at if self.closed_at is not None else time.time()
        return end - self.opened_at


def open_secure_socket(host: str, port: int, timeout: float) -> ssl.SSLSocket:
    """Open a TCP connection and complete the TLS handshake before returning.

    Certificate and hostname verification are left to the platform defaults.
    """
    context = ssl.create_default_context()
    raw_socket = socket.create_connection((host, port), timeout=timeout)

    try:
        return context.wrap_socket(raw_socket, server_hostname=host)
    except BaseException:
        raw_socket.close()
        raise


class SMTPConnection:
    """Exclusive owner of one implicit-TLS socket to an SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        socket_factory: Callable[[str, int, float], socket.socket] = open_secure_socket,
    ):
        """Initialise an unopened connection.

        Args:
            host: SMTP server hostname
            port: SMTP server port (implicit TLS)
            connect_timeout: Deadline for TCP connect plus TLS handshake
            read_timeout: Deadline applied to every write and every read
            socket_factory: Callable returning a connected, secured socket
        """
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout or Timeouts.SMTP_CONNECT
        self.read_timeout = read_timeout or Timeouts.SMTP_READ
        self._socket_factory = socket_factory
        self._socket: Optional[socket.socket] = None
        self._buffer = bytearray()
        self._stats = SMTPConnectionStats()
        self._logger = get_logger(__name__, host=host, port=port)

    @property
    def is_open(self) -> bool:
        return self._socket is not None

    def get_stats(self) -> SMTPConnectionStats:
        return self._stats

    def open(self) -> None:
        """Establish the secured socket.

        Raises:
            SessionStateError: If this connection was already opened
            NetworkTimeoutError: If connect or TLS handshake exceeds the deadline
            SMTPConnectionError: If the socket cannot be established
        """
        if self._socket is not None or self._stats.opened_at is not None:
            raise SessionStateError(
                "Connection has already been opened",
                details={"host": self.host, "port": self.port},
            )

        self._logger.info("Connecting to SMTP server")

        try:
            sock = self._socket_factory(self.host, self.port, self.connect_timeout)

        except TimeoutError as e:
            raise NetworkTimeoutError(
                f"Timed out connecting to {self.host}:{self.port}",
                details={"host": self.host, "port": self.port},
            ) from e

        except OSError as e:
            raise SMTPConnectionError(
                f"Failed to connect to {self.host}:{self.port}: {e}",
                details={"host": self.host, "port": self.port},
            ) from e

        sock.settimeout(self.read_timeout)
        self._socket = sock
        self._stats.opened_at = time.time()

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise SMTPConnectionError(
                "Connection is not open", details={"host": self.host}
            )
        return self._socket

    def write(self, data: str) -> None:
        """Write raw text to the socket as UTF-8."""
        sock = self._require_socket()
        encoded = data.encode("utf-8")

        try:
            sock.sendall(encoded)

        except TimeoutError as e:
            raise NetworkTimeoutError(
                "Timed out writing to SMTP server", details={"host": self.host}
            ) from e

        except OSError as e:
            raise SMTPConnectionError(
                f"Failed writing to SMTP server: {e}", details={"host": self.host}
            ) from e

        self._stats.bytes_sent += len(encoded)

    def write_line(self, line: str) -> None:
        """Write one CRLF-terminated line."""
        self.write(line + CRLF)
        self._stats.lines_sent += 1

    def read_line(self) -> str:
        """Read one LF-terminated line, blocking up to the read deadline."""
        sock = self._require_socket()

        while b"\n" not in self._buffer:
            if len(self._buffer) > ReadLimits.MAX_LINE_LENGTH:
                raise SMTPConnectionError(
                    "SMTP reply line exceeds maximum length",
                    details={"host": self.host, "length": len(self._buffer)},
                )

            try:
                chunk = sock.recv(ReadLimits.RECV_CHUNK)

            except TimeoutError as e:
                raise NetworkTimeoutError(
                    "Timed out waiting for SMTP reply", details={"host": self.host}
                ) from e

            except OSError as e:
                raise SMTPConnectionError(
                    f"Failed reading from SMTP server: {e}",
                    details={"host": self.host},
                ) from e

            if not chunk:
                raise SMTPConnectionError(
                    "Connection closed by SMTP server", details={"host": self.host}
                )

            self._buffer.extend(chunk)
            self._stats.bytes_received += len(chunk)

        end = self._buffer.index(b"\n") + 1
        raw_line = bytes(self._buffer[:end])
        del self._buffer[:end]

        return raw_line.decode("utf-8", errors="replace")

    def read_reply(self) -> SMTPReply:
        """Read lines until the final line of one reply has been consumed."""
        lines = []

        while True:
            line = self.read_line()
            lines.append(line)
            if is_final_reply_line(line):
                break

        self._stats.replies_read += 1
        return SMTPReply.from_lines(lines)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._socket is None:
            return

        try:
            self._socket.close()
        except OSError as e:
            self._logger.debug(f"Error closing SMTP socket: {e}")
        finally:
            self._socket = None
            self._buffer.clear()
            self._stats.closed_at = time.time()
            self._logger.debug(
                "SMTP connection closed",
                extra={"duration_seconds": round(self._stats.duration, 3)},
            )
