from __future__ import annotations

import logging
import smtplib

import pytest

from stockroom import email_sender
from stockroom.email_sender import send_email


class FakeSMTP:
    sessions = []
    fail_for = set()

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        FakeSMTP.sessions.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, message):
        if message["To"] in FakeSMTP.fail_for:
            raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"mailbox unavailable")})
        self.sent.append(message)


@pytest.fixture(autouse=True)
def smtp(monkeypatch):
    FakeSMTP.sessions = []
    FakeSMTP.fail_for = set()
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_sender.time, "sleep", lambda seconds: None)
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")
    monkeypatch.setenv("SMTP_USER", "alerts@example.com")
    monkeypatch.setenv("SMTP_PASSWORD", "app-password")
    monkeypatch.setenv("SMTP_PORT", "2525")
    return FakeSMTP


def test_sends_one_message_per_recipient(smtp):
    success, error = send_email(["a@example.com", "b@example.com"], "Low Stock Alert", "body text")

    assert (success, error) == (True, None)
    assert len(smtp.sessions) == 2
    session = smtp.sessions[0]
    assert (session.host, session.port) == ("smtp.example.com", 2525)
    assert session.timeout == email_sender.EMAIL_TIMEOUT_SECONDS
    assert session.started_tls
    assert session.logged_in == ("alerts@example.com", "app-password")
    message = session.sent[0]
    assert message["Subject"] == "Low Stock Alert"
    assert message["To"] == "a@example.com"
    assert message.get_payload(decode=True).decode("utf-8") == "body text"


def test_partial_failure_still_succeeds(smtp):
    smtp.fail_for = {"b@example.com"}

    success, error = send_email(["a@example.com", "b@example.com"], "s", "b")

    assert success
    assert error is None


def test_all_recipients_failing_is_reported(smtp):
    smtp.fail_for = {"a@example.com"}

    success, error = send_email(["a@example.com"], "s", "b")

    assert not success
    assert "all 1 recipient" in error


def test_empty_recipient_list(smtp):
    success, error = send_email([], "s", "b")

    assert not success
    assert error == "Email recipient list is empty"
    assert smtp.sessions == []


def test_invalid_address_is_rejected(smtp):
    success, error = send_email(["not-an-address"], "s", "b")

    assert not success
    assert error == "Invalid email address at position 1"


def test_missing_smtp_settings(smtp, monkeypatch):
    monkeypatch.delenv("SMTP_PASSWORD")

    success, error = send_email(["a@example.com"], "s", "b")

    assert not success
    assert "SMTP_PASSWORD" in error
    assert smtp.sessions == []


def test_refused_recipient_is_not_logged(smtp, caplog):
    caplog.set_level(logging.DEBUG)
    smtp.fail_for = {"secret.buyer@company.com"}

    success, _ = send_email(["secret.buyer@company.com"], "s", "b")

    assert not success
    assert "SMTPRecipientsRefused" in caplog.text
    assert "Traceback" in caplog.text
    assert "secret.buyer@company.com" not in caplog.text
    assert "<redacted>" in caplog.text
