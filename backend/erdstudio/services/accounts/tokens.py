"""Single-use email tokens.

The clear token only travels in the email link; the database keeps its
SHA-256 digest. A token is bound to a *context*:

- ``confirm``: confirm the account email, valid 7 days.
- ``reset_password``: reset a forgotten password, valid 1 day.
- ``change:<current email>``: switch to a new email, valid 7 days.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from datetime import datetime, timedelta

from erdstudio.models.user import User
from erdstudio.models.user_token import UserToken
from erdstudio.repositories.user_token import UserTokenRepository

RAND_SIZE = 32

CONFIRM = "confirm"
RESET_PASSWORD = "reset_password"
CHANGE_PREFIX = "change:"

CONFIRM_VALIDITY = timedelta(days=7)
RESET_PASSWORD_VALIDITY = timedelta(days=1)
CHANGE_EMAIL_VALIDITY = timedelta(days=7)


def change_email_context(current_email: str) -> str:
    return f"{CHANGE_PREFIX}{current_email}"


def validity_for(context: str) -> timedelta:
    """Return how long a token of ``context`` stays usable.

    :raises ValueError: For unknown contexts.
    """
    if context == CONFIRM:
        return CONFIRM_VALIDITY
    if context == RESET_PASSWORD:
        return RESET_PASSWORD_VALIDITY
    if context.startswith(CHANGE_PREFIX):
        return CHANGE_EMAIL_VALIDITY
    raise ValueError(f"Unknown token context: {context!r}")


def hash_token(raw: bytes) -> bytes:
    return hashlib.sha256(raw).digest()


def encode_token(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_token(token: str) -> bytes | None:
    """Decode a URL-safe base64 token (padding optional); ``None`` when malformed."""
    if not token or not isinstance(token, str):
        return None
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError):
        return None
    return raw if len(raw) == RAND_SIZE else None


def build_email_token(
    tokens: UserTokenRepository,
    user: User,
    context: str,
    *,
    now: datetime,
    sent_to: str | None = None,
) -> tuple[str, UserToken]:
    """Create and stage a token for ``user`` in ``context``.

    :param sent_to: Delivery address; defaults to the user's current email.
    :returns: ``(encoded clear token, persisted row)``.
    """
    raw = secrets.token_bytes(RAND_SIZE)
    row = tokens.create(
        user_id=user.id,
        token_hash=hash_token(raw),
        context=context,
        sent_to=sent_to or user.email,
        issued_at=now,
    )
    return encode_token(raw), row


def verify_email_token(
    tokens: UserTokenRepository,
    token: str,
    context: str,
    *,
    now: datetime,
) -> UserToken | None:
    """Return the live token row matching ``token`` in ``context``.

    For ``confirm`` and ``reset_password`` the token must still target the
    user's current email, so changing email invalidates them. Deleted users
    never match.
    """
    raw = decode_token(token)
    if raw is None:
        return None
    row = tokens.find_valid(
        token_hash=hash_token(raw),
        context=context,
        issued_after=now - validity_for(context),
    )
    if row is None or row.user is None or row.user.deleted_at is not None:
        return None
    if context in (CONFIRM, RESET_PASSWORD) and row.sent_to != row.user.email:
        return None
    return row
