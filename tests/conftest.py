"""
Shared test fixtures and configuration for pytest
"""
import os
import tempfile
from datetime import datetime

# Keep logs and config out of the real home directory; must run before
# socketmail is imported anywhere.
os.environ["SOCKETMAIL_HOME"] = tempfile.mkdtemp(prefix="socketmail-tests-")

import pytest

from socketmail.core.composer import MessageComposer
from socketmail.core.models.mail import MailConfiguration

from .test_helpers import FakeSocket, SMTPTestHelper, SocketFactoryStub


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed local time for the Date header"""
    return lambda: datetime(2026, 10, 18, 9, 5)


@pytest.fixture
def composer(fixed_clock):
    """Composer with a fixed clock and a predictable boundary"""
    return MessageComposer(clock=fixed_clock, boundary_factory=lambda *contents: "BOUNDARY42")


@pytest.fixture
def basic_config():
    """Smallest configuration that can be sent"""
    return MailConfiguration(
        from_="a@x.com",
        to=["b@y.com"],
        subject="Hi",
        text="Hello",
        host="smtp.example.com",
        port=465,
        username="a@x.com",
        password="s3cret",
    )


@pytest.fixture
def fake_socket():
    """FakeSocket scripted for a one-recipient transaction"""
    return FakeSocket(SMTPTestHelper.happy_path_replies(recipients=1))


@pytest.fixture
def socket_factory(fake_socket):
    """Factory stub handing out the fake_socket fixture"""
    return SocketFactoryStub(fake_socket)


@pytest.fixture
def config_path(tmp_path):
    """Path for a throwaway config.json"""
    return tmp_path / "config.json"
