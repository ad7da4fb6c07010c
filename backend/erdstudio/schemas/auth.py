"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields

from .user import UserSchema


class _ProfileInputSchema(Schema):
    """Registration fields, all forwarded to the account changesets."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    company = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    github_username = fields.String(allow_none=True)
    twitter_username = fields.String(allow_none=True)


class RegisterSchema(_ProfileInputSchema):
    """Input payload for email/password registration."""

    password = fields.String(allow_none=True)


class ProviderRegisterSchema(_ProfileInputSchema):
    """Input payload for GitHub / Heroku account creation."""

    provider_uid = fields.String(allow_none=True)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.String(required=True)
    password = fields.String(required=True)


class LogoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    all_sessions = fields.Boolean(load_default=False)


class ResetPasswordRequestSchema(Schema):
    email = fields.String(required=True)


class PasswordResetSchema(Schema):
    """New password sent with a reset token."""

    class Meta:
        unknown = EXCLUDE

    password = fields.String(load_default=None, allow_none=True)
    password_confirmation = fields.String(allow_none=True)


class TokenResponseSchema(Schema):
    """Response payload containing an access token and its user."""

    access_token = fields.String(required=True)
    token_type = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    user = fields.Nested(UserSchema, required=True)
