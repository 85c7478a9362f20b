"""
Tests for the SMTP session driver

Tests cover:
- Exact command sequence on the wire
- AUTH LOGIN credential encoding
- Dot-stuffing and end-of-data marker
- Verbose transcript events
- Lenient and strict reply handling
- Out-of-order operations and socket cleanup
"""
import base64
import socket

import pytest

from socketmail.core.email.smtp.constants import ReplyMode
from socketmail.core.email.smtp.protocol import (
    Direction,
    SessionState,
    SMTPSession,
    TranscriptEvent,
    encode_credential,
    stuff_dots,
)
from socketmail.utils.errors import (
    MissingRequiredFieldError,
    NetworkTimeoutError,
    SessionStateError,
    SMTPConnectionError,
    SMTPProtocolError,
)

from .test_helpers import FakeSocket, SMTPTestHelper, SocketFactoryStub


def make_session(replies, **kwargs):
    fake = FakeSocket(replies)
    session = SMTPSession(socket_factory=SocketFactoryStub(fake), **kwargs)
    return session, fake


def run_transaction(session, recipients=("b@y.com",), payload="Subject: Hi\r\n\r\nHello"):
    session.connect("smtp.example.com", 465, "client.example.com")
    session.authenticate("a@x.com", "s3cret")
    session.set_from("a@x.com")
    session.add_recipients(list(recipients))
    session.send_data(payload)


class TestCommandSequence:
    """Tests for what goes over the wire and in which order"""

    def test_happy_path_writes(self):
        """Test every command is written once, in order"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies(recipients=2))

        run_transaction(session, recipients=("r1@y.com", "r2@y.com"))

        assert fake.writes == [
            b"EHLO client.example.com\r\n",
            b"AUTH LOGIN\r\n",
            base64.b64encode(b"a@x.com") + b"\r\n",
            base64.b64encode(b"s3cret") + b"\r\n",
            b"MAIL FROM: <a@x.com>\r\n",
            b"RCPT TO: <r1@y.com>\r\n",
            b"RCPT TO: <r2@y.com>\r\n",
            b"DATA\r\n",
            b"Subject: Hi\r\n\r\nHello",
            b"\r\n.\r\n",
            b"QUIT\r\n",
        ]

    def test_every_reply_is_read(self):
        """Test the greeting and every command reply are recorded"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies(recipients=2))

        run_transaction(session, recipients=("r1@y.com", "r2@y.com"))

        assert [reply.code for reply in session.replies] == [
            220, 250, 334, 334, 235, 250, 250, 250, 354, 250, 221
        ]
        assert len(session.replies[1].lines) == 3
        assert fake.inbound == bytearray()

    def test_socket_closed_after_quit(self):
        """Test the socket is closed and the session finished after send_data"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies())

        run_transaction(session)

        assert fake.closed
        assert session.state is SessionState.CLOSED

    def test_default_client_identifier(self):
        """Test EHLO uses localhost when no identifier is given"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies())

        session.connect("smtp.example.com", 465)

        assert fake.writes == [b"EHLO localhost\r\n"]
        assert session.state is SessionState.HANDSHAKED
        session.close()

    def test_add_recipients_twice(self):
        """Test recipients can be added in more than one call"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies(recipients=2))
        session.connect("smtp.example.com", 465)
        session.authenticate("a@x.com", "s3cret")
        session.set_from("a@x.com")

        session.add_recipients(["r1@y.com"])
        session.add_recipients(["r2@y.com"])
        session.send_data("Hello")

        rcpt = [w for w in fake.writes if w.startswith(b"RCPT")]
        assert rcpt == [b"RCPT TO: <r1@y.com>\r\n", b"RCPT TO: <r2@y.com>\r\n"]


class TestPayload:
    """Tests for DATA payload handling"""

    def test_stuff_dots(self):
        """Test leading dots are doubled on every line"""
        assert stuff_dots(".start\r\nmiddle\r\n.\r\n..two") == "..start\r\nmiddle\r\n..\r\n...two"
        assert stuff_dots("no dots. here") == "no dots. here"

    def test_payload_is_dot_stuffed_on_the_wire(self):
        """Test a lone dot line in the body cannot end the DATA block"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies())

        run_transaction(session, payload="Hello\r\n.\r\nStill body")

        assert fake.writes[7] == b"Hello\r\n..\r\nStill body"
        assert fake.writes[8] == b"\r\n.\r\n"

    def test_encode_credential(self):
        """Test AUTH LOGIN lines are base64 of the UTF-8 value"""
        assert encode_credential("user") == "dXNlcg=="
        assert encode_credential("pässword") == base64.b64encode("pässword".encode()).decode()


class TestTranscript:
    """Tests for verbose transcript events"""

    def test_verbose_emits_sent_and_received_lines(self):
        """Test each sent line and each received line produces one event"""
        events = []
        session, _ = make_session(
            SMTPTestHelper.happy_path_replies(), verbose=True, listener=events.append
        )

        run_transaction(session)

        sent = [e for e in events if e.direction is Direction.SENT]
        received = [e for e in events if e.direction is Direction.RECEIVED]

        assert [e.line for e in sent][:2] == ["EHLO client.example.com", "AUTH LOGIN"]
        assert sent[-2:] == [
            TranscriptEvent(Direction.SENT, "."),
            TranscriptEvent(Direction.SENT, "QUIT"),
        ]
        # greeting + three EHLO lines + eight single-line replies
        assert len(received) == 12
        assert received[0].line.startswith("220")

    def test_credentials_are_marked_sensitive(self):
        """Test only the two base64 credential lines are sensitive"""
        events = []
        session, _ = make_session(
            SMTPTestHelper.happy_path_replies(), verbose=True, listener=events.append
        )

        run_transaction(session)

        sensitive = [e for e in events if e.sensitive]
        assert [e.line for e in sensitive] == [
            encode_credential("a@x.com"),
            encode_credential("s3cret"),
        ]

    def test_quiet_session_emits_nothing(self):
        """Test no events are produced when verbose is off, yet replies are read"""
        events = []
        session, _ = make_session(
            SMTPTestHelper.happy_path_replies(), verbose=False, listener=events.append
        )

        run_transaction(session)

        assert events == []
        assert len(session.replies) == 10


class TestReplyModes:
    """Tests for lenient and strict handling of rejecting replies"""

    @staticmethod
    def rejecting_replies():
        replies = SMTPTestHelper.happy_path_replies()
        replies[6] = "550 5.1.1 No such user\r\n"
        return replies

    def test_lenient_continues_after_rejection(self):
        """Test a 550 on RCPT is recorded and the transaction completes"""
        session, fake = make_session(self.rejecting_replies())

        run_transaction(session)

        assert 550 in [reply.code for reply in session.replies]
        assert fake.writes[-1] == b"QUIT\r\n"
        assert fake.closed

    def test_strict_raises_and_closes(self):
        """Test strict mode stops at the first rejection and closes the socket"""
        session, fake = make_session(self.rejecting_replies(), reply_mode=ReplyMode.STRICT)
        session.connect("smtp.example.com", 465)
        session.authenticate("a@x.com", "s3cret")
        session.set_from("a@x.com")

        with pytest.raises(SMTPProtocolError) as exc_info:
            session.add_recipients(["nobody@y.com"])

        error = exc_info.value
        assert error.reply.code == 550
        assert error.command == "RCPT TO:"
        assert error.details == {"command": "RCPT TO:", "code": 550}
        assert fake.closed
        assert session.state is SessionState.CLOSED

    def test_strict_accepts_intermediate_replies(self):
        """Test 334 and 354 do not count as rejections"""
        session, fake = make_session(
            SMTPTestHelper.happy_path_replies(), reply_mode="strict"
        )

        run_transaction(session)

        assert fake.closed


class TestStateAndCleanup:
    """Tests for ordering rules and socket cleanup on failure"""

    def test_operation_before_connect(self):
        """Test operations out of order raise SessionStateError"""
        session, _ = make_session([])

        with pytest.raises(SessionStateError) as exc_info:
            session.set_from("a@x.com")

        assert exc_info.value.details["state"] == "disconnected"

    def test_send_data_requires_recipients(self):
        """Test DATA cannot be sent before any recipient"""
        session, _ = make_session(SMTPTestHelper.happy_path_replies())
        session.connect("smtp.example.com", 465)
        session.authenticate("a@x.com", "s3cret")
        session.set_from("a@x.com")

        with pytest.raises(SessionStateError):
            session.send_data("Hello")
        session.close()

    def test_no_reuse_after_close(self):
        """Test a finished session cannot be connected again"""
        session, _ = make_session(SMTPTestHelper.happy_path_replies())
        run_transaction(session)

        with pytest.raises(SessionStateError):
            session.connect("smtp.example.com", 465)

    def test_empty_recipients_closes(self):
        """Test an empty recipient list is refused and the socket closed"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies())
        session.connect("smtp.example.com", 465)
        session.authenticate("a@x.com", "s3cret")
        session.set_from("a@x.com")

        with pytest.raises(MissingRequiredFieldError):
            session.add_recipients([])

        assert fake.closed

    def test_server_disconnect_mid_session_closes(self):
        """Test losing the connection during AUTH closes the socket"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies()[:3])
        session.connect("smtp.example.com", 465)

        with pytest.raises(SMTPConnectionError):
            session.authenticate("a@x.com", "s3cret")

        assert fake.closed
        assert session.state is SessionState.CLOSED

    def test_context_manager_closes(self):
        """Test leaving the with block closes an unfinished session"""
        session, fake = make_session(SMTPTestHelper.happy_path_replies())

        with session:
            session.connect("smtp.example.com", 465)

        assert fake.closed


class TestBuiltinExceptionCompatibility:
    """Tests that session failures can be caught as built-in exceptions"""

    def test_refused_connection_is_connection_error(self):
        """Test a refused socket can be caught with ConnectionError"""
        session = SMTPSession(socket_factory=SocketFactoryStub(error=ConnectionRefusedError("refused")))

        with pytest.raises(ConnectionError) as exc_info:
            session.connect("smtp.example.com", 465)

        assert isinstance(exc_info.value, SMTPConnectionError)
        assert "smtp.example.com:465" in str(exc_info.value)

    def test_greeting_timeout_is_timeout_error(self):
        """Test a read timeout while waiting for the greeting can be caught with TimeoutError"""
        fake = FakeSocket([])
        fake.recv_error = socket.timeout("timed out")
        session = SMTPSession(socket_factory=SocketFactoryStub(fake))

        with pytest.raises(TimeoutError) as exc_info:
            session.connect("smtp.example.com", 465)

        assert isinstance(exc_info.value, NetworkTimeoutError)
        assert fake.closed
        assert session.state is SessionState.CLOSED
