from mail_clients.core.email.parser import NO_SENDER, EmailParser

from .test_helpers import MessageTestHelper


class TestEmailParser:
    """Test projecting raw messages into InboundMessage views"""

    def test_plain_message(self):
        """Test subject, sender and body of a simple message"""
        raw = MessageTestHelper.create_raw_email(
            subject='Hello', sender='Alice <alice@example.com>', body='Plain body'
        )

        message = EmailParser.parse_from_bytes(raw, 3)

        assert message.number == 3
        assert message.subject == 'Hello'
        assert message.sender == 'Alice <alice@example.com>'
        assert message.text.strip() == 'Plain body'

    def test_prefers_plain_part(self):
        """Test the text/plain alternative is used over HTML"""
        raw = MessageTestHelper.create_raw_email(body='Plain part', html='<p>HTML part</p>')

        message = EmailParser.parse_from_bytes(raw, 1)

        assert message.text.strip() == 'Plain part'

    def test_html_only_has_empty_text(self):
        """Test a message without text/plain part has empty text"""
        raw = (
            b"From: sender@example.com\r\n"
            b"Subject: Newsletter\r\n"
            b"Content-Type: text/html; charset=utf-8\r\n"
            b"\r\n"
            b"<p>Only HTML</p>\r\n"
        )

        message = EmailParser.parse_from_bytes(raw, 1)

        assert message.text == ''

    def test_missing_sender(self):
        """Test a message without From header reports NULL"""
        raw = b"Subject: Anonymous\r\n\r\nNo sender here\r\n"

        message = EmailParser.parse_from_bytes(raw, 1)

        assert message.sender == NO_SENDER == 'NULL'
        assert message.subject == 'Anonymous'

    def test_first_of_several_senders(self):
        """Test only the first From address is reported"""
        raw = (
            b"From: first@example.com, second@example.com\r\n"
            b"Subject: Shared\r\n"
            b"\r\n"
            b"Body\r\n"
        )

        message = EmailParser.parse_from_bytes(raw, 1)

        assert message.sender == 'first@example.com'

    def test_encoded_subject(self):
        """Test RFC 2047 encoded subjects are decoded"""
        raw = (
            b"From: sender@example.com\r\n"
            b"Subject: =?utf-8?q?Caf=C3=A9_meeting?=\r\n"
            b"\r\n"
            b"Body\r\n"
        )

        message = EmailParser.parse_from_bytes(raw, 1)

        assert message.subject == 'Café meeting'

    def test_unknown_charset_falls_back(self):
        """Test an unknown charset still yields readable text"""
        raw = (
            b"From: sender@example.com\r\n"
            b"Subject: Odd charset\r\n"
            b"Content-Type: text/plain; charset=x-unknown-charset\r\n"
            b"\r\n"
            b"Readable text\r\n"
        )

        message = EmailParser.parse_from_bytes(raw, 1)

        assert 'Readable text' in message.text
