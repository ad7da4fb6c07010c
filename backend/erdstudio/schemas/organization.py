"""Organization resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class MemberSchema(Schema):
    user_id = fields.Integer(required=True)
    slug = fields.String(required=True)
    name = fields.String(required=True)
    email = fields.String(required=True)
    avatar = fields.String(required=True)
    role = fields.String(required=True)


class OrganizationSchema(Schema):
    """Public representation of an organization with its members."""

    id = fields.Integer(required=True)
    slug = fields.String(required=True)
    name = fields.String(required=True)
    logo = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    github_username = fields.String(allow_none=True)
    twitter_username = fields.String(allow_none=True)
    is_personal = fields.Boolean(required=True)
    members = fields.List(fields.Nested(MemberSchema))
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class OrganizationCreateSchema(Schema):
    """Payload for creating a shared organization."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=1, max=120))
    logo = fields.String(load_default=None, allow_none=True)
    description = fields.String(load_default=None, allow_none=True)
    location = fields.String(load_default=None, allow_none=True)
    github_username = fields.String(load_default=None, allow_none=True)
    twitter_username = fields.String(load_default=None, allow_none=True)


class OrganizationUpdateSchema(Schema):
    """Partial update; only the keys sent are changed."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(validate=validate.Length(max=120))
    logo = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    github_username = fields.String(allow_none=True)
    twitter_username = fields.String(allow_none=True)


class MemberAddSchema(Schema):
    email = fields.String(required=True)
