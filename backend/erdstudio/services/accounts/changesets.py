"""
Account changesets
==================

Validation of submitted account attributes before they reach the ``users``
table. Each function casts raw attributes through a marshmallow schema, then
adds the checks that need the database (email uniqueness, slug generation) or
the current user (email did not change, current password).

The result is a :class:`Changeset`: the accepted ``changes`` plus per-field
``errors``. Services call :meth:`Changeset.ensure_valid` which raises
:class:`~erdstudio.services._shared.errors.ChangesetError` (HTTP 422).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate
from werkzeug.security import generate_password_hash

from erdstudio.models.user import EMAIL_MAX_LENGTH, User, valid_password
from erdstudio.services._shared.errors import ChangesetError
from erdstudio.services._shared.slugs import unique_slug

EMAIL_FORMAT = r"^[^\s]+@[^\s]+$"
PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 72

BLANK = "can't be blank"


class UserLookup(Protocol):
    """What changesets need from the user repository."""

    def exists_by_email(self, email: str, *, exclude_id: int | None = None) -> bool: ...
    def slug_exists(self, slug: str) -> bool: ...


class Changeset:
    """Accepted changes and validation errors for one account operation."""

    def __init__(
        self,
        changes: Mapping[str, Any] | None = None,
        errors: Mapping[str, list[str]] | None = None,
    ) -> None:
        self.changes: dict[str, Any] = dict(changes or {})
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in (errors or {}).items()}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, message: str) -> Changeset:
        self.errors.setdefault(field, []).append(message)
        return self

    def put_change(self, field: str, value: Any) -> Changeset:
        self.changes[field] = value
        return self

    def delete_change(self, field: str) -> Changeset:
        self.changes.pop(field, None)
        return self

    def ensure_valid(self) -> dict[str, Any]:
        """Return the changes, or raise :class:`ChangesetError` with every error."""
        if self.errors:
            raise ChangesetError(self.errors)
        return self.changes

    def apply(self, user: User) -> User:
        """Assign the changes on ``user`` (triggers model validators)."""
        for field, value in self.ensure_valid().items():
            setattr(user, field, value)
        return user

    def __repr__(self) -> str:
        # Never show clear passwords
        shown = {k: ("**redacted**" if "password" in k else v) for k, v in self.changes.items()}
        return f"<Changeset valid={self.valid} changes={shown} errors={self.errors}>"


# ------------------------------- Schemas -------------------------------------


def _required(**kwargs: Any) -> fields.String:
    return fields.String(
        required=True,
        allow_none=False,
        error_messages={"required": BLANK, "null": BLANK},
        **kwargs,
    )


def _optional(**kwargs: Any) -> fields.String:
    return fields.String(required=False, allow_none=True, **kwargs)


class _CastSchema(Schema):
    """Base cast: unknown keys dropped, strings trimmed, blanks become ``None``."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def _blank_to_none(self, data: Any, **kwargs: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip() if "password" not in key else value
                if value == "":
                    value = None
            cleaned[key] = value
        return cleaned


_email_validators = [
    validate.Regexp(EMAIL_FORMAT, error="must have the @ sign and no spaces"),
    validate.Length(
        max=EMAIL_MAX_LENGTH, error=f"should be at most {EMAIL_MAX_LENGTH} character(s)"
    ),
]

_password_validators = [
    validate.Length(
        min=PASSWORD_MIN_LENGTH,
        error=f"should be at least {PASSWORD_MIN_LENGTH} character(s)",
    ),
    validate.Length(
        max=PASSWORD_MAX_LENGTH,
        error=f"should be at most {PASSWORD_MAX_LENGTH} character(s)",
    ),
]


class _ProfileFields(_CastSchema):
    company = _optional()
    location = _optional()
    description = _optional()
    github_username = _optional()
    twitter_username = _optional()


class PasswordCreationSchema(_ProfileFields):
    name = _required()
    email = _required(validate=_email_validators)
    avatar = _required()
    password = _required(validate=_password_validators)


class GithubCreationSchema(_ProfileFields):
    name = _required()
    email = _required()
    avatar = _required()
    provider = _required()
    provider_uid = _optional()


class HerokuCreationSchema(_CastSchema):
    name = _required()
    email = _required()
    avatar = _required()
    provider = _required()


class EmailChangeSchema(_CastSchema):
    email = _required(validate=_email_validators)


class PasswordChangeSchema(_CastSchema):
    password = _required(validate=_password_validators)
    password_confirmation = _optional()


class ProfileUpdateSchema(_ProfileFields):
    name = fields.String(allow_none=False, error_messages={"null": BLANK})
    avatar = fields.String(allow_none=False, error_messages={"null": BLANK})
    data = fields.Dict(keys=fields.String(), allow_none=True)


def cast(schema: Schema, attrs: Mapping[str, Any]) -> Changeset:
    """Load ``attrs`` with ``schema`` into a :class:`Changeset` (never raises)."""
    try:
        return Changeset(changes=schema.load(dict(attrs)))
    except ValidationError as err:
        valid = err.valid_data if isinstance(err.valid_data, dict) else {}
        messages = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
        errors = {
            field: msgs if isinstance(msgs, list) else [str(msgs)]
            for field, msgs in messages.items()
        }
        return Changeset(changes=valid, errors=errors)


# --------------------------- Shared validations ------------------------------


def _generate_slug(cs: Changeset, source_field: str, users: UserLookup) -> Changeset:
    return cs.put_change("slug", unique_slug(cs.changes.get(source_field), users.slug_exists))


def _validate_email_unique(
    cs: Changeset, users: UserLookup, *, exclude_id: int | None = None
) -> Changeset:
    email = cs.changes.get("email")
    if email and "email" not in cs.errors and users.exists_by_email(email, exclude_id=exclude_id):
        cs.add_error("email", "has already been taken")
    return cs


def _maybe_hash_password(cs: Changeset, *, hash_password: bool) -> Changeset:
    password = cs.changes.get("password")
    if not (hash_password and password and cs.valid):
        return cs
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        return cs.add_error("password", f"should be at most {PASSWORD_MAX_LENGTH} byte(s)")
    cs.put_change("hashed_password", generate_password_hash(password))
    return cs.delete_change("password")


# ------------------------------ Changesets -----------------------------------


def password_creation(
    attrs: Mapping[str, Any],
    now: datetime,
    *,
    users: UserLookup,
    hash_password: bool = True,
) -> Changeset:
    """Registration with email and password.

    Slug generated from ``name``; ``last_signin`` set to ``now``. With
    ``hash_password`` the clear password is replaced by ``hashed_password``.
    """
    cs = cast(PasswordCreationSchema(), attrs)
    _generate_slug(cs, "name", users)
    _validate_email_unique(cs, users)
    _maybe_hash_password(cs, hash_password=hash_password)
    return cs.put_change("last_signin", now)


def github_creation(attrs: Mapping[str, Any], now: datetime, *, users: UserLookup) -> Changeset:
    """Registration through GitHub; slug generated from ``github_username``."""
    cs = cast(GithubCreationSchema(), attrs)
    _generate_slug(cs, "github_username", users)
    return cs.put_change("last_signin", now)


def heroku_creation(attrs: Mapping[str, Any], now: datetime, *, users: UserLookup) -> Changeset:
    cs = cast(HerokuCreationSchema(), attrs)
    _generate_slug(cs, "name", users)
    return cs.put_change("last_signin", now)


def email_change(user: User, attrs: Mapping[str, Any], *, users: UserLookup) -> Changeset:
    """Validate a new login email; unchanged emails are rejected with ``did not change``."""
    cs = cast(EmailChangeSchema(), attrs)
    email = cs.changes.get("email")
    if email is None:
        return cs
    email = email.lower()
    if email == user.email:
        return Changeset(errors={"email": ["did not change"]})
    cs.put_change("email", email)
    return _validate_email_unique(cs, users, exclude_id=user.id)


def password_change(
    user: User, attrs: Mapping[str, Any], *, hash_password: bool = True
) -> Changeset:
    """Validate a new password; ``password_confirmation`` must match when given."""
    cs = cast(PasswordChangeSchema(), attrs)
    cs.changes.pop("password_confirmation", None)
    # a sent confirmation counts even when blank
    if "password_confirmation" in attrs and attrs["password_confirmation"] != attrs.get("password"):
        cs.add_error("password_confirmation", "does not match password")
    return _maybe_hash_password(cs, hash_password=hash_password)


def confirm(user: User, now: datetime) -> Changeset:
    return Changeset(changes={"confirmed_at": now})


def validate_current_password(cs: Changeset, user: User | None, password: str | None) -> Changeset:
    """Add ``current_password: is not valid`` unless ``password`` unlocks ``user``."""
    if not valid_password(user, password):
        cs.add_error("current_password", "is not valid")
    return cs


def profile_update(attrs: Mapping[str, Any]) -> Changeset:
    """Only given keys change; ``name`` and ``avatar`` cannot be blanked."""
    return cast(ProfileUpdateSchema(), attrs)
