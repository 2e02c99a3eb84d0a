"""
Shared test fixtures and configuration for pytest
"""
import os
import tempfile

# Keep log files out of the user's home directory
os.environ.setdefault("MAIL_CLIENTS_HOME", tempfile.mkdtemp(prefix="mail_clients_tests_"))

import pytest

from mail_clients.core.graph import reset_graph_clients
from mail_clients.utils.config import ENVIRONMENT_KEYS, ConnectionProfile
from mail_clients.utils.console import reset_console

from tests.test_helpers import make_console


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Drop the shared console and memoised Graph clients after each test"""
    yield
    reset_console()
    reset_graph_clients()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings variable from the environment"""
    for env_key in ENVIRONMENT_KEYS.values():
        monkeypatch.setenv(env_key, "")
        monkeypatch.delenv(env_key)
    return monkeypatch


@pytest.fixture
def console():
    """Console writing to an in-memory buffer"""
    return make_console()


@pytest.fixture
def imap_profile():
    """Profile reading over IMAP and sending over SMTP"""
    return ConnectionProfile({
        'username': 'a@example.com',
        'password': 'testpass',
        'PROTOCOL_RECEIVE': 'imap',
        'PROTOCOL_SEND': 'smtp',
        'IMAP4_HOST': 'imap.example.com',
        'IMAP4_PORT': '993',
        'SMTP_HOST': 'smtp.example.com',
        'SMTP_PORT': '587',
    })


@pytest.fixture
def pop3_profile():
    """Profile reading over POP3"""
    return ConnectionProfile({
        'username': 'a@example.com',
        'password': 'testpass',
        'PROTOCOL_RECEIVE': 'pop3',
        'POP3_HOST': 'pop.example.com',
        'POP3_PORT': '995',
    })


@pytest.fixture
def sender_profile():
    """Profile for the fixed test-mail sender"""
    return ConnectionProfile({
        'username': 'a@example.com',
        'password': 'testpass',
        'to': 'b@example.com',
    })


@pytest.fixture
def profile_file(tmp_path):
    """Properties file on disk with comments and blank lines"""
    path = tmp_path / "oAuth-O365.properties"
    path.write_text(
        "# Office 365 connection\n"
        "\n"
        "username=a@example.com\n"
        "password=p=ss#word\n"
        "PROTOCOL_RECEIVE = imaps\n"
        "IMAP4_HOST=outlook.office365.com\n"
        "IMAP4_PORT=993\n"
        "PROTOCOL_SEND=smtp\n"
        "SMTP_HOST=smtp.office365.com\n"
        "SMTP_PORT=587\n",
        encoding="utf-8",
    )
    return path
