"""Project resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from erdstudio.models.project import StorageKind


class ProjectSchema(Schema):
    """Project metadata; ``content`` is the stored JSON text (remote only)."""

    id = fields.UUID(required=True)
    organization_id = fields.Integer(required=True)
    slug = fields.String(required=True)
    name = fields.String(required=True)
    description = fields.String(allow_none=True)
    storage_kind = fields.String(required=True)
    encoding_version = fields.Integer(required=True)
    stats = fields.Dict(keys=fields.String(), values=fields.Integer())
    content = fields.String(allow_none=True)
    archived_at = fields.DateTime(allow_none=True)
    created_by_id = fields.Integer(allow_none=True)
    updated_by_id = fields.Integer(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class ProjectCreateSchema(Schema):
    """Payload for creating a project; ``content`` is a JSON object or its text."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=1, max=120))
    description = fields.String(load_default=None, allow_none=True)
    storage_kind = fields.String(
        load_default=StorageKind.LOCAL.value,
        validate=validate.OneOf([k.value for k in StorageKind]),
    )
    encoding_version = fields.Integer(load_default=None, validate=validate.Range(min=1))
    content = fields.Raw(load_default=None, allow_none=True)


class ProjectUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.String(validate=validate.Length(min=1, max=120))
    slug = fields.String(validate=validate.Length(min=1, max=120))
    description = fields.String(allow_none=True)


class ProjectContentSchema(Schema):
    """Upload of a remote project document."""

    class Meta:
        unknown = EXCLUDE

    content = fields.Raw(required=True)
    encoding_version = fields.Integer(load_default=None, validate=validate.Range(min=1))
