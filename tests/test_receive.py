import logging
import imaplib
import poplib
from unittest.mock import MagicMock, patch

import pytest

from mail_clients.core.email.receive import read_folder
from mail_clients.security.credentials import StaticCredentialProvider
from mail_clients.utils.config import ConnectionProfile
from mail_clients.utils.errors import (
    FolderNotFoundError,
    IMAPError,
    InvalidCredentialsError,
    POP3Error,
)

from .test_helpers import IMAPTestHelper, MessageTestHelper, POP3TestHelper


@pytest.fixture
def credentials():
    return StaticCredentialProvider('a@example.com', 'testpass')


class TestReadFolderIMAP:
    """Test reading folders over IMAP"""

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_reads_at_most_thirty_in_order(self, mock_imap_ssl, imap_profile, credentials):
        """Test a folder with 35 messages yields exactly the first 30"""
        mock_mail = IMAPTestHelper.create_mock_imap(MessageTestHelper.create_raw_emails(35))
        mock_imap_ssl.return_value = mock_mail

        contents = read_folder('INBOX', imap_profile, credentials)

        assert contents.total == 35
        assert len(contents) == 30
        assert [m.number for m in contents] == list(range(1, 31))
        assert [m.subject for m in contents] == [f'Subject {i}' for i in range(1, 31)]
        assert mock_mail.fetch.call_count == 30
        mock_imap_ssl.assert_called_once_with('imap.example.com', 993, timeout=30.0)
        mock_mail.login.assert_called_once_with('a@example.com', 'testpass')

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_folder_opened_read_only_and_closed(self, mock_imap_ssl, imap_profile, credentials):
        """Test the folder is selected read-only and both folder and connection are closed"""
        mock_mail = IMAPTestHelper.create_mock_imap(MessageTestHelper.create_raw_emails(2))
        mock_imap_ssl.return_value = mock_mail

        contents = read_folder('Archive', imap_profile, credentials)

        assert contents.folder == 'Archive'
        mock_mail.select.assert_called_once_with('Archive', readonly=True)
        mock_mail.close.assert_called_once()
        mock_mail.logout.assert_called_once()

    @pytest.mark.parametrize("folder_name", ['', '   ', None])
    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_blank_folder_defaults_to_inbox(self, mock_imap_ssl, folder_name, imap_profile, credentials):
        """Test a blank folder name opens INBOX"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_imap_ssl.return_value = mock_mail

        contents = read_folder(folder_name, imap_profile, credentials)

        assert contents.folder == 'INBOX'
        assert len(contents) == 0
        mock_mail.select.assert_called_once_with('INBOX', readonly=True)

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_folder_with_spaces_is_quoted(self, mock_imap_ssl, imap_profile, credentials):
        """Test folder names containing spaces are quoted for IMAP"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_imap_ssl.return_value = mock_mail

        read_folder('Sent Items', imap_profile, credentials)

        mock_mail.select.assert_called_once_with('"Sent Items"', readonly=True)

    @pytest.mark.parametrize('folder_name,mailbox', [
        ('Entwürfe', 'Entw&APw-rfe'),
        ('Éléments envoyés', '"&AMk-l&AOk-ments envoy&AOk-s"'),
        ('R&D', 'R&-D'),
    ])
    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_non_ascii_folder_is_modified_utf7(self, mock_imap_ssl, folder_name, mailbox, imap_profile, credentials):
        """Test folder names are sent in IMAP modified UTF-7"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_imap_ssl.return_value = mock_mail

        contents = read_folder(folder_name, imap_profile, credentials)

        assert contents.folder == folder_name
        mock_mail.select.assert_called_once_with(mailbox, readonly=True)

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_select_encoding_failure_is_imap_error(self, mock_imap_ssl, imap_profile, credentials):
        """Test a codec failure while selecting surfaces as IMAPError"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_mail.select.side_effect = UnicodeEncodeError('ascii', 'Entwürfe', 4, 5, 'ordinal not in range(128)')
        mock_imap_ssl.return_value = mock_mail

        with pytest.raises(IMAPError):
            read_folder('Entwürfe', imap_profile, credentials)

        mock_mail.logout.assert_called_once()

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_missing_folder(self, mock_imap_ssl, imap_profile, credentials):
        """Test a missing folder raises and still logs out"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_mail.select.return_value = ('NO', [b'[NONEXISTENT] Unknown Mailbox'])
        mock_imap_ssl.return_value = mock_mail

        with pytest.raises(FolderNotFoundError):
            read_folder('Nope', imap_profile, credentials)

        mock_mail.close.assert_not_called()
        mock_mail.logout.assert_called_once()

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_log_records_carry_server(self, mock_imap_ssl, imap_profile, credentials, caplog):
        """Test store log records carry the protocol and server address"""
        mock_imap_ssl.return_value = IMAPTestHelper.create_mock_imap(MessageTestHelper.create_raw_emails(2))
        caplog.set_level(logging.INFO, logger='mail_clients.core.email.receive')

        read_folder('INBOX', imap_profile, credentials, limit=1)

        records = [r for r in caplog.records if r.name == 'mail_clients.core.email.receive']
        assert [r.getMessage() for r in records] == [
            'Connected to IMAP server imap.example.com:993',
            '2 message(s) in INBOX',
        ]
        assert records[0].context == {'protocol': 'imap', 'server': 'imap.example.com:993'}
        assert records[1].context == {'protocol': 'imap', 'server': 'imap.example.com:993', 'limit': 1}

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_failure_mid_read_still_cleans_up(self, mock_imap_ssl, imap_profile, credentials):
        """Test folder and connection are closed after a fetch failure"""
        mock_mail = IMAPTestHelper.create_mock_imap(MessageTestHelper.create_raw_emails(3))
        mock_mail.fetch.side_effect = [
            mock_mail.fetch.side_effect(b'1', '(RFC822)'),
            imaplib.IMAP4.abort('connection lost'),
        ]
        mock_imap_ssl.return_value = mock_mail

        with pytest.raises(IMAPError):
            read_folder('INBOX', imap_profile, credentials)

        mock_mail.close.assert_called_once()
        mock_mail.logout.assert_called_once()

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_close_failure_does_not_mask_result(self, mock_imap_ssl, imap_profile, credentials):
        """Test errors while closing are logged, not raised"""
        mock_mail = IMAPTestHelper.create_mock_imap(MessageTestHelper.create_raw_emails(1))
        mock_mail.logout.side_effect = OSError('socket closed')
        mock_imap_ssl.return_value = mock_mail

        contents = read_folder('INBOX', imap_profile, credentials)

        assert len(contents) == 1

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_rejected_login(self, mock_imap_ssl, imap_profile, credentials):
        """Test a rejected login raises InvalidCredentialsError and logs out"""
        mock_mail = IMAPTestHelper.create_mock_imap()
        mock_mail.login.side_effect = imaplib.IMAP4.error('AUTHENTICATIONFAILED')
        mock_imap_ssl.return_value = mock_mail

        with pytest.raises(InvalidCredentialsError):
            read_folder('INBOX', imap_profile, credentials)

        mock_mail.select.assert_not_called()
        mock_mail.logout.assert_called_once()

    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_connection_refused(self, mock_imap_ssl, imap_profile, credentials):
        """Test connection failures raise IMAPError"""
        mock_imap_ssl.side_effect = ConnectionRefusedError('refused')

        with pytest.raises(IMAPError):
            read_folder('INBOX', imap_profile, credentials)


class TestReadFolderPOP3:
    """Test reading the POP3 inbox"""

    @patch('mail_clients.core.email.receive.poplib.POP3_SSL')
    def test_reads_inbox(self, mock_pop3_ssl, pop3_profile, credentials):
        """Test messages are retrieved in order and the session is closed"""
        mock_pop = POP3TestHelper.create_mock_pop3(MessageTestHelper.create_raw_emails(3))
        mock_pop3_ssl.return_value = mock_pop

        contents = read_folder('inbox', pop3_profile, credentials, limit=2)

        assert contents.total == 3
        assert [m.subject for m in contents] == ['Subject 1', 'Subject 2']
        mock_pop3_ssl.assert_called_once_with('pop.example.com', 995, timeout=30.0)
        mock_pop.user.assert_called_once_with('a@example.com')
        mock_pop.pass_.assert_called_once_with('testpass')
        mock_pop.quit.assert_called_once()

    @patch('mail_clients.core.email.receive.poplib.POP3_SSL')
    def test_only_inbox_exists(self, mock_pop3_ssl, pop3_profile, credentials):
        """Test other folder names are not found over POP3"""
        mock_pop = POP3TestHelper.create_mock_pop3()
        mock_pop3_ssl.return_value = mock_pop

        with pytest.raises(FolderNotFoundError):
            read_folder('Sent', pop3_profile, credentials)

        mock_pop.quit.assert_called_once()

    @patch('mail_clients.core.email.receive.poplib.POP3_SSL')
    def test_rejected_login(self, mock_pop3_ssl, pop3_profile, credentials):
        """Test a rejected password raises InvalidCredentialsError"""
        mock_pop = POP3TestHelper.create_mock_pop3()
        mock_pop.pass_.side_effect = poplib.error_proto(b'-ERR authentication failed')
        mock_pop3_ssl.return_value = mock_pop

        with pytest.raises(InvalidCredentialsError):
            read_folder('INBOX', pop3_profile, credentials)

    @patch('mail_clients.core.email.receive.poplib.POP3_SSL')
    def test_retrieve_failure(self, mock_pop3_ssl, pop3_profile, credentials):
        """Test RETR failures raise POP3Error after cleanup"""
        mock_pop = POP3TestHelper.create_mock_pop3(MessageTestHelper.create_raw_emails(2))
        mock_pop.retr.side_effect = poplib.error_proto(b'-ERR no such message')
        mock_pop3_ssl.return_value = mock_pop

        with pytest.raises(POP3Error):
            read_folder('INBOX', pop3_profile, credentials)

        mock_pop.quit.assert_called_once()


class TestReadFolderUnsupported:
    """Test profiles without a usable receive protocol"""

    @patch('mail_clients.core.email.receive.poplib.POP3_SSL')
    @patch('mail_clients.core.email.receive.imaplib.IMAP4_SSL')
    def test_unsupported_protocol_returns_none(self, mock_imap_ssl, mock_pop3_ssl):
        """Test nothing is contacted and no password is requested"""
        profile = ConnectionProfile({'PROTOCOL_RECEIVE': 'exchange', 'IMAP4_HOST': 'imap.example.com'})
        credentials = MagicMock()

        assert read_folder('INBOX', profile, credentials) is None

        mock_imap_ssl.assert_not_called()
        mock_pop3_ssl.assert_not_called()
        credentials.get_password.assert_not_called()
