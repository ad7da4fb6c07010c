"""User resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from .common import PaginationQuerySchema


class UserSchema(Schema):
    """Public representation of a user (never the password hash)."""

    id = fields.Integer(required=True)
    slug = fields.String(required=True)
    name = fields.String(required=True)
    email = fields.String(required=True)
    avatar = fields.String(required=True)
    provider = fields.String(allow_none=True)
    company = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    github_username = fields.String(allow_none=True)
    twitter_username = fields.String(allow_none=True)
    is_admin = fields.Boolean(required=True)
    confirmed = fields.Boolean(required=True)
    last_signin = fields.DateTime(allow_none=True)
    data = fields.Dict(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class ProfileUpdateSchema(Schema):
    """Editable profile fields; checks on values happen in the account changesets."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    company = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    github_username = fields.String(allow_none=True)
    twitter_username = fields.String(allow_none=True)
    data = fields.Dict(keys=fields.String(), allow_none=True)


class EmailChangeSchema(Schema):
    """Request an email change, confirmed by the current password."""

    class Meta:
        unknown = EXCLUDE

    current_password = fields.String(load_default=None, allow_none=True)
    email = fields.String(load_default=None, allow_none=True)


class PasswordUpdateSchema(Schema):
    """Change the password of the signed-in user."""

    class Meta:
        unknown = EXCLUDE

    current_password = fields.String(load_default=None, allow_none=True)
    password = fields.String(load_default=None, allow_none=True)
    password_confirmation = fields.String(allow_none=True)


class UserSearchQuerySchema(PaginationQuerySchema):
    """Admin search: ``q`` plus pagination."""

    q = fields.String(load_default=None, validate=validate.Length(max=200))
