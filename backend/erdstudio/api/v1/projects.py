"""Project endpoints, nested under their organization."""

from __future__ import annotations

from uuid import UUID

from flask import Blueprint, request

from erdstudio.api.deps import (
    current_ctx,
    json_response,
    no_content,
    parse_pagination,
    require_auth,
    timing,
)
from erdstudio.api.etag import if_match, set_response_etag
from erdstudio.schemas import (
    ProjectContentSchema,
    ProjectCreateSchema,
    ProjectSchema,
    ProjectUpdateSchema,
    build_meta,
)
from erdstudio.services.projects import ProjectService

bp = Blueprint("projects", __name__, url_prefix="/organizations")

project_schema = ProjectSchema()
project_list_schema = ProjectSchema(many=True, exclude=("content",))
project_create_schema = ProjectCreateSchema()
project_update_schema = ProjectUpdateSchema()
project_content_schema = ProjectContentSchema()


def _project_response(project, *, status: int = 200):
    response = json_response({"data": project_schema.dump(project)}, status=status)
    return set_response_etag(response, project)


@bp.get("/<int:organization_id>/projects")
@require_auth
@timing
def list_projects(organization_id: int):
    """Return the organization's projects, archived ones excluded."""

    pagination = parse_pagination(default_sort=("-updated_at",))
    items, meta = ProjectService(ctx=current_ctx()).list(organization_id, pagination)
    return json_response({"data": project_list_schema.dump(items), "meta": build_meta(meta)})


@bp.post("/<int:organization_id>/projects")
@require_auth
@timing
def create_project(organization_id: int):
    payload = project_create_schema.load(request.get_json(silent=True) or {})
    project = ProjectService(ctx=current_ctx()).create(organization_id, payload)
    return _project_response(project, status=201)


@bp.get("/<int:organization_id>/projects/<uuid:project_id>")
@require_auth
@timing
def get_project(organization_id: int, project_id: UUID):
    return _project_response(ProjectService(ctx=current_ctx()).get(organization_id, project_id))


@bp.patch("/<int:organization_id>/projects/<uuid:project_id>")
@require_auth
@timing
def update_project(organization_id: int, project_id: UUID):
    """Update project metadata; honours ``If-Match``."""

    payload = project_update_schema.load(request.get_json(silent=True) or {})
    project = ProjectService(ctx=current_ctx()).update(
        organization_id, project_id, payload, if_match=if_match()
    )
    return _project_response(project)


@bp.put("/<int:organization_id>/projects/<uuid:project_id>/content")
@require_auth
@timing
def upload_content(organization_id: int, project_id: UUID):
    """Replace the document of a remote project; honours ``If-Match``."""

    data = project_content_schema.load(request.get_json(silent=True) or {})
    project = ProjectService(ctx=current_ctx()).upload_content(
        organization_id,
        project_id,
        data["content"],
        encoding_version=data["encoding_version"],
        if_match=if_match(),
    )
    return _project_response(project)


@bp.post("/<int:organization_id>/projects/<uuid:project_id>/archive")
@require_auth
@timing
def archive_project(organization_id: int, project_id: UUID):
    return _project_response(ProjectService(ctx=current_ctx()).archive(organization_id, project_id))


@bp.delete("/<int:organization_id>/projects/<uuid:project_id>")
@require_auth
@timing
def delete_project(organization_id: int, project_id: UUID):
    ProjectService(ctx=current_ctx()).delete(organization_id, project_id)
    return no_content()
