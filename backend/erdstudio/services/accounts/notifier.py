"""Account emails: confirmation, password reset and email change instructions."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Mapping
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Any

from flask import current_app

from erdstudio.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Email:
    """Plain-text email ready to be delivered."""

    sender: str
    to: str
    subject: str
    body: str

    def as_mime(self) -> MIMEText:
        msg = MIMEText(self.body, "plain", "utf-8")
        msg["From"] = self.sender
        msg["To"] = self.to
        msg["Subject"] = self.subject
        return msg


class Notifier:
    """
    Build and deliver account emails.

    Delivery goes through SMTP when ``SMTP_HOST`` is configured; otherwise the
    email is only logged (local development). SMTP failures are logged and
    never raised to the caller.

    :param config: Mapping with ``PUBLIC_URL``, ``MAIL_FROM`` and the
        ``SMTP_*`` keys. Defaults to the current Flask app config.
    """

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config = config if config is not None else current_app.config

    # ------------------------------ Delivery ---------------------------------

    def deliver(self, email: Email) -> Email:
        host = self.config.get("SMTP_HOST")
        if not host:
            logger.info(
                "Email not sent (no SMTP_HOST): %s\n%s",
                email.subject,
                email.body,
                extra={"email": email.to},
            )
            return email

        port = int(self.config.get("SMTP_PORT") or 587)
        user = self.config.get("SMTP_USER")
        password = self.config.get("SMTP_PASSWORD")
        try:
            with smtplib.SMTP(host, port, timeout=30) as server:
                if port != 25:
                    server.starttls()
                if user:
                    server.login(user, password or "")
                server.sendmail(email.sender, [email.to], email.as_mime().as_string())
        except (smtplib.SMTPException, OSError):
            # callers commit before delivering
            logger.exception("Email delivery failed: %s", email.subject, extra={"email": email.to})
            return email
        logger.info("Email sent: %s", email.subject, extra={"email": email.to})
        return email

    # ------------------------------ Builders ---------------------------------

    def _url(self, path: str) -> str:
        base = str(self.config.get("PUBLIC_URL") or "").rstrip("/")
        return f"{base}{path}"

    def _email(self, to: str, subject: str, body: str) -> Email:
        sender = str(self.config.get("MAIL_FROM") or "ERD Studio <contact@erdstudio.local>")
        return Email(sender=sender, to=to, subject=subject, body=body)

    def confirmation_instructions(self, user: User, token: str) -> Email:
        url = self._url(f"/users/confirm/{token}")
        body = (
            f"Hi {user.name},\n\n"
            f"You can confirm your account by visiting the URL below:\n\n{url}\n\n"
            "If you didn't create an account with us, please ignore this.\n"
        )
        return self.deliver(self._email(user.email, "Confirmation instructions", body))

    def reset_password_instructions(self, user: User, token: str) -> Email:
        url = self._url(f"/users/reset_password/{token}")
        body = (
            f"Hi {user.name},\n\n"
            f"You can reset your password by visiting the URL below:\n\n{url}\n\n"
            "If you didn't request this change, please ignore this.\n"
        )
        return self.deliver(self._email(user.email, "Reset password instructions", body))

    def update_email_instructions(self, user: User, new_email: str, token: str) -> Email:
        url = self._url(f"/users/settings/confirm_email/{token}")
        body = (
            f"Hi {user.name},\n\n"
            f"You can change your email by visiting the URL below:\n\n{url}\n\n"
            "If you didn't request this change, please ignore this.\n"
        )
        return self.deliver(self._email(new_email, "Update email instructions", body))

