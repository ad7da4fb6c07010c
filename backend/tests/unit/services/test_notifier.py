"""Tests for the account email builder."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from erdstudio.services.accounts.notifier import Email, Notifier

CONFIG = {"PUBLIC_URL": "https://erd.example.com/", "MAIL_FROM": "ERD <noreply@example.com>"}


@pytest.fixture()
def user():
    return SimpleNamespace(name="Ada", email="ada@example.com")


def test_confirmation_instructions(user):
    email = Notifier(CONFIG).confirmation_instructions(user, "abc")

    assert email.to == "ada@example.com"
    assert email.sender == "ERD <noreply@example.com>"
    assert email.subject == "Confirmation instructions"
    assert "Hi Ada," in email.body
    assert "https://erd.example.com/users/confirm/abc" in email.body


def test_reset_password_instructions(user):
    email = Notifier(CONFIG).reset_password_instructions(user, "xyz")

    assert "https://erd.example.com/users/reset_password/xyz" in email.body


def test_update_email_goes_to_new_address(user):
    email = Notifier(CONFIG).update_email_instructions(user, "new@example.com", "tok")

    assert email.to == "new@example.com"
    assert "https://erd.example.com/users/settings/confirm_email/tok" in email.body


def test_default_sender():
    email = Notifier({"PUBLIC_URL": ""})._email("a@b.c", "Hi", "body")

    assert email.sender == "ERD Studio <contact@erdstudio.local>"


def test_without_smtp_host_email_is_logged(user, caplog):
    caplog.set_level(logging.INFO, logger="erdstudio.services.accounts.notifier")

    email = Notifier(CONFIG).confirmation_instructions(user, "abc")

    assert isinstance(email, Email)
    assert "Email not sent" in caplog.text


def test_smtp_delivery(monkeypatch, user):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout):
            sent.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            sent.append(("starttls",))

        def login(self, username, password):
            sent.append(("login", username, password))

        def sendmail(self, sender, recipients, message):
            sent.append(("sendmail", sender, recipients, "Subject: Confirmation" in message))

    monkeypatch.setattr("erdstudio.services.accounts.notifier.smtplib.SMTP", FakeSMTP)
    config = {**CONFIG, "SMTP_HOST": "smtp.example.com", "SMTP_USER": "mailer", "SMTP_PASSWORD": "pw"}

    Notifier(config).confirmation_instructions(user, "abc")

    assert sent == [
        ("connect", "smtp.example.com", 587),
        ("starttls",),
        ("login", "mailer", "pw"),
        ("sendmail", "ERD <noreply@example.com>", ["ada@example.com"], True),
    ]


def test_as_mime_headers():
    msg = Email(sender="a@b.c", to="d@e.f", subject="Hello", body="Body").as_mime()

    assert msg["From"] == "a@b.c"
    assert msg["To"] == "d@e.f"
    assert msg["Subject"] == "Hello"


def test_smtp_failure_is_logged_not_raised(monkeypatch, user, caplog):
    def refuse(host, port, timeout):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr("erdstudio.services.accounts.notifier.smtplib.SMTP", refuse)
    caplog.set_level(logging.ERROR, logger="erdstudio.services.accounts.notifier")

    notifier = Notifier({**CONFIG, "SMTP_HOST": "127.0.0.1", "SMTP_PORT": 1})

    email = notifier.confirmation_instructions(user, "abc")

    assert email.to == "ada@example.com"
    assert "Email delivery failed: Confirmation instructions" in caplog.text
