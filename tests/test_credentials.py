import io
from unittest.mock import MagicMock

import pytest

from mail_clients.security.credentials import (
    PromptCredentialProvider,
    StaticCredentialProvider,
    select_credential_provider,
)
from mail_clients.utils.config import ConnectionProfile
from mail_clients.utils.errors import MissingCredentialsError


class TestPromptCredentialProvider:
    """Test the terminal password prompt"""

    def test_prompts_once_and_remembers(self):
        """Test the password is asked for once and remembered"""
        reader = MagicMock(return_value='secret')
        provider = PromptCredentialProvider('a@example.com', reader=reader)

        assert provider.get_password() == 'secret'
        assert provider.get_password() == 'secret'
        reader.assert_called_once_with('[Password : ] ')
        assert provider.name == 'prompt'

    def test_not_prompted_until_needed(self):
        """Test creating the provider does not read the terminal"""
        reader = MagicMock(return_value='secret')

        PromptCredentialProvider('a@example.com', reader=reader)

        reader.assert_not_called()

    @pytest.mark.parametrize("side_effect", [EOFError(), KeyboardInterrupt()])
    def test_cancelled_entry(self, side_effect):
        """Test cancelling the prompt raises MissingCredentialsError"""
        provider = PromptCredentialProvider('a@example.com', reader=MagicMock(side_effect=side_effect))

        with pytest.raises(MissingCredentialsError):
            provider.get_password()

    def test_empty_entry(self):
        """Test an empty password is rejected"""
        provider = PromptCredentialProvider('a@example.com', reader=MagicMock(return_value=''))

        with pytest.raises(MissingCredentialsError):
            provider.get_password()

    def test_forget_asks_again(self):
        """Test a forgotten password is read from the terminal on the next use"""
        reader = MagicMock(side_effect=['typo', 'secret'])
        provider = PromptCredentialProvider('a@example.com', reader=reader)

        assert provider.get_password() == 'typo'
        provider.forget()
        assert provider.get_password() == 'secret'
        assert reader.call_count == 2


class TestStaticCredentialProvider:
    """Test the profile password provider"""

    def test_from_profile(self):
        """Test username and password come from the profile"""
        profile = ConnectionProfile({'username': 'a@example.com', 'password': 'testpass'})

        provider = StaticCredentialProvider.from_profile(profile)

        assert provider.username == 'a@example.com'
        assert provider.get_password() == 'testpass'
        assert provider.name == 'static'

    def test_missing_password(self):
        """Test a profile without password fails at authentication time"""
        provider = StaticCredentialProvider.from_profile(ConnectionProfile({'username': 'a@example.com'}))

        with pytest.raises(MissingCredentialsError):
            provider.get_password()


class TestSelectCredentialProvider:
    """Test choosing a provider from the terminal state"""

    def test_interactive_terminal_uses_prompt(self):
        """Test a TTY selects the prompt provider"""
        stream = MagicMock()
        stream.isatty.return_value = True

        provider = select_credential_provider(ConnectionProfile({'username': 'a@example.com'}), stream)

        assert isinstance(provider, PromptCredentialProvider)
        assert provider.username == 'a@example.com'

    def test_no_terminal_falls_back_to_profile(self, caplog):
        """Test piped input uses the profile password and logs a warning"""
        profile = ConnectionProfile({'username': 'a@example.com', 'password': 'testpass'})

        provider = select_credential_provider(profile, io.StringIO())

        assert isinstance(provider, StaticCredentialProvider)
        assert provider.get_password() == 'testpass'
        assert any("Console not found" in record.getMessage() for record in caplog.records)

    def test_stream_without_isatty(self):
        """Test objects without isatty are treated as non-interactive"""
        provider = select_credential_provider(ConnectionProfile({'password': 'x'}), object())

        assert isinstance(provider, StaticCredentialProvider)
