"""Organization endpoints, including membership management."""

from __future__ import annotations

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
    MemberAddSchema,
    MemberSchema,
    OrganizationCreateSchema,
    OrganizationSchema,
    OrganizationUpdateSchema,
    build_meta,
)
from erdstudio.services.organizations import OrganizationService

bp = Blueprint("organizations", __name__, url_prefix="/organizations")

organization_schema = OrganizationSchema()
organization_list_schema = OrganizationSchema(many=True)
organization_create_schema = OrganizationCreateSchema()
organization_update_schema = OrganizationUpdateSchema()
member_schema = MemberSchema()
member_add_schema = MemberAddSchema()


def _organization_response(org, *, status: int = 200):
    response = json_response({"data": organization_schema.dump(org)}, status=status)
    return set_response_etag(response, org)


@bp.get("")
@require_auth
@timing
def list_organizations():
    """Return the organizations of the signed-in user."""

    pagination = parse_pagination(default_sort=("name",))
    items, meta = OrganizationService(ctx=current_ctx()).list_for_user(pagination)
    return json_response(
        {"data": organization_list_schema.dump(items), "meta": build_meta(meta)}
    )


@bp.post("")
@require_auth
@timing
def create_organization():
    payload = organization_create_schema.load(request.get_json(silent=True) or {})
    org = OrganizationService(ctx=current_ctx()).create(payload)
    return _organization_response(org, status=201)


@bp.get("/<int:organization_id>")
@require_auth
@timing
def get_organization(organization_id: int):
    return _organization_response(OrganizationService(ctx=current_ctx()).get(organization_id))


@bp.patch("/<int:organization_id>")
@require_auth
@timing
def update_organization(organization_id: int):
    """Update an organization (owners only); honours ``If-Match``."""

    payload = organization_update_schema.load(request.get_json(silent=True) or {})
    org = OrganizationService(ctx=current_ctx()).update(
        organization_id, payload, if_match=if_match()
    )
    return _organization_response(org)


@bp.delete("/<int:organization_id>")
@require_auth
@timing
def delete_organization(organization_id: int):
    OrganizationService(ctx=current_ctx()).delete(organization_id)
    return no_content()


@bp.post("/<int:organization_id>/members")
@require_auth
@timing
def add_member(organization_id: int):
    """Invite a registered user by email."""

    data = member_add_schema.load(request.get_json(silent=True) or {})
    member = OrganizationService(ctx=current_ctx()).add_member(organization_id, data["email"])
    return json_response({"data": member_schema.dump(member)}, status=201)


@bp.delete("/<int:organization_id>/members/<int:user_id>")
@require_auth
@timing
def remove_member(organization_id: int, user_id: int):
    OrganizationService(ctx=current_ctx()).remove_member(organization_id, user_id)
    return no_content()
