"""Tests for the SMTP notification sender."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from services.errors import NotificationError
from utils import email_utils


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(email_utils, "SMTP_SERVER", "smtp.example.com")
    monkeypatch.setattr(email_utils, "SMTP_PORT", 587)
    monkeypatch.setattr(email_utils, "SMTP_USER", "mailer")
    monkeypatch.setattr(email_utils, "SMTP_PASSWORD", "secret")


class TestBuildVerificationMessage:
    def test_contains_code_in_both_parts(self):
        message = email_utils.build_verification_message("jane@x.com", "123456")
        assert message["To"] == "jane@x.com"
        assert message["Subject"] == "Your verification code"
        parts = [part.get_payload(decode=True).decode() for part in message.get_payload()]
        assert len(parts) == 2
        assert all("123456" in part for part in parts)
        assert all("10 minutes" in part for part in parts)


class TestSendVerificationCodeEmail:
    def test_skips_when_not_configured(self):
        with patch.object(email_utils.smtplib, "SMTP") as smtp:
            email_utils.send_verification_code_email("jane@x.com", "123456")
        smtp.assert_not_called()

    def test_sends_over_starttls(self, smtp_settings):
        server = MagicMock()
        with patch.object(email_utils.smtplib, "SMTP", return_value=server) as smtp:
            email_utils.send_verification_code_email("jane@x.com", "123456")

        smtp.assert_called_once_with("smtp.example.com", 587, timeout=email_utils.SMTP_TIMEOUT)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.sendmail.assert_called_once()
        assert server.sendmail.call_args.args[1] == "jane@x.com"
        server.quit.assert_called_once()

    def test_transport_error_is_wrapped(self, smtp_settings):
        server = MagicMock()
        server.sendmail.side_effect = smtplib.SMTPRecipientsRefused({})
        with patch.object(email_utils.smtplib, "SMTP", return_value=server):
            with pytest.raises(NotificationError):
                email_utils.send_verification_code_email("jane@x.com", "123456")
        server.quit.assert_called_once()

    def test_rejected_login_closes_the_socket(self, smtp_settings):
        server = MagicMock()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with patch.object(email_utils.smtplib, "SMTP", return_value=server):
            with pytest.raises(NotificationError):
                email_utils.send_verification_code_email("jane@x.com", "123456")
        server.close.assert_called_once()
        server.sendmail.assert_not_called()

    def test_connection_error_is_wrapped(self, smtp_settings):
        with patch.object(email_utils.smtplib, "SMTP", side_effect=ConnectionRefusedError()):
            with pytest.raises(NotificationError):
                email_utils.send_verification_code_email("jane@x.com", "123456")


class TestVerifySmtpConnection:
    def test_not_configured(self):
        assert email_utils.verify_smtp_connection() is False

    def test_ready(self, smtp_settings):
        with patch.object(email_utils.smtplib, "SMTP", return_value=MagicMock()):
            assert email_utils.verify_smtp_connection() is True

    def test_never_raises(self, smtp_settings):
        with patch.object(email_utils.smtplib, "SMTP", side_effect=OSError("unreachable")):
            assert email_utils.verify_smtp_connection() is False
