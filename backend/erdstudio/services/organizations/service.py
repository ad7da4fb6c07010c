"""
OrganizationService
===================

Organizations own projects and are shared by their members. Every user gets
a *personal* organization at registration; it cannot be deleted, left nor
shared.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from erdstudio.models.organization import MemberRole, Organization, OrganizationMember
from erdstudio.models.user import User
from erdstudio.services._shared.base import BaseService
from erdstudio.services._shared.dto import PageMeta, PaginationIn
from erdstudio.services._shared.errors import (
    AuthorizationError,
    ChangesetError,
    ConflictError,
    NotFoundError,
)
from erdstudio.services._shared.slugs import unique_slug
from erdstudio.services.organizations.dto import MemberOut, OrganizationOut
from erdstudio.uow.sqlalchemy_uow import SQLAlchemyRepositoryContainer

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "logo",
    "description",
    "location",
    "github_username",
    "twitter_username",
)


def create_personal_organization(uow: SQLAlchemyRepositoryContainer, user: User) -> Organization:
    """Create the personal organization of a freshly registered ``user``.

    Name, logo and handles are copied from the user; the slug is the user's
    when free. The user becomes its only owner. Runs inside the caller's
    read-write unit of work.
    """
    org = uow.organizations.add(
        Organization(
            slug=unique_slug(user.slug, uow.organizations.slug_exists),
            name=user.name,
            logo=user.avatar,
            description=user.description,
            location=user.location,
            github_username=user.github_username,
            twitter_username=user.twitter_username,
            is_personal=True,
            created_by_id=user.id,
            updated_by_id=user.id,
        )
    )
    uow.organization_members.add_member(
        org, user.id, role=MemberRole.OWNER, created_by_id=user.id
    )
    return org


class OrganizationService(BaseService):
    """
    Application service for organizations and memberships.

    Every operation acts on behalf of ``ctx.actor_id``. Organizations the
    actor is not a member of are reported as missing.
    """

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _actor(self) -> int:
        if self.ctx.actor_id is None:
            raise AuthorizationError("Authentication required.")
        return int(self.ctx.actor_id)

    def _load(
        self, uow: SQLAlchemyRepositoryContainer, organization_id: int
    ) -> tuple[Organization, OrganizationMember]:
        """Return the live organization and the actor's membership."""
        org = uow.organizations.get(organization_id)
        member = org.member(self._actor()) if org is not None else None
        if org is None or member is None:
            raise NotFoundError("Organization", organization_id)
        return org, member

    @staticmethod
    def _ensure_owner(org: Organization, member: OrganizationMember) -> None:
        if member.role != MemberRole.OWNER:
            raise AuthorizationError(f"Only owners can manage organization {org.slug}.")

    @staticmethod
    def _clean(attrs: Mapping[str, Any], *, require_name: bool) -> dict[str, Any]:
        data = {k: attrs[k] for k in EDITABLE_FIELDS if k in attrs}
        for key, value in list(data.items()):
            if isinstance(value, str):
                data[key] = value.strip() or None
        if (require_name or "name" in data) and not data.get("name"):
            raise ChangesetError.single("name", "can't be blank")
        return data

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def list_for_user(
        self, pagination: PaginationIn | None = None
    ) -> tuple[list[OrganizationOut], PageMeta]:
        """List the organizations the actor belongs to (personal one included)."""
        p = pagination or PaginationIn(sort=("name",))
        page = self.ensure_pagination(page=p.page, limit=p.limit, sort=p.sort)
        with self.ro_uow() as uow:
            result = uow.organizations.list_for_user(self._actor(), page)
            items = [OrganizationOut.from_model(org) for org in result.items]
            return items, PageMeta.build(page=result.page, limit=result.limit, total=result.total)

    def get(self, organization_id: int) -> OrganizationOut:
        with self.ro_uow() as uow:
            org, _ = self._load(uow, organization_id)
            return OrganizationOut.from_model(org)

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create(self, attrs: Mapping[str, Any]) -> OrganizationOut:
        """Create a shared organization owned by the actor."""
        actor_id = self._actor()
        data = self._clean(attrs, require_name=True)
        with self.rw_uow() as uow:
            if uow.users.get(actor_id) is None:
                raise NotFoundError("User", actor_id)
            org = uow.organizations.add(
                Organization(
                    slug=unique_slug(data["name"], uow.organizations.slug_exists),
                    is_personal=False,
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                    **data,
                )
            )
            uow.organization_members.add_member(
                org, actor_id, role=MemberRole.OWNER, created_by_id=actor_id
            )
            logger.info(
                "Organization created",
                extra={"organization_id": org.id, "user_id": actor_id},
            )
            return OrganizationOut.from_model(org)

    def update(
        self,
        organization_id: int,
        attrs: Mapping[str, Any],
        *,
        if_match: str | None = None,
    ) -> OrganizationOut:
        """Update organization details (owners only)."""
        data = self._clean(attrs, require_name=False)
        with self.rw_uow() as uow:
            org, member = self._load(uow, organization_id)
            self._ensure_owner(org, member)
            self.ensure_if_match(if_match, org.compute_etag())
            if data:
                uow.organizations.update(org, updated_by_id=member.user_id, **data)
            return OrganizationOut.from_model(org)

    def delete(self, organization_id: int) -> None:
        """Soft-delete a shared organization (owners only)."""
        with self.rw_uow() as uow:
            org, member = self._load(uow, organization_id)
            self._ensure_owner(org, member)
            if org.is_personal:
                raise ConflictError("Organization", "personal organizations cannot be deleted")
            uow.organizations.delete(org)
            logger.info(
                "Organization deleted",
                extra={"organization_id": org.id, "user_id": member.user_id},
            )

    def add_member(self, organization_id: int, email: str) -> MemberOut:
        """Add the user registered with ``email`` as a member (owners only)."""
        with self.rw_uow() as uow:
            org, member = self._load(uow, organization_id)
            self._ensure_owner(org, member)
            if org.is_personal:
                raise ConflictError("Organization", "personal organizations cannot have members")
            user = uow.users.get_by_email(email or "")
            if user is None:
                raise NotFoundError("User", email)
            if org.member(user.id) is not None:
                raise ConflictError("Organization", f"{user.email} is already a member")
            added = uow.organization_members.add_member(
                org, user.id, role=MemberRole.MEMBER, created_by_id=member.user_id
            )
            logger.info(
                "Organization member added",
                extra={"organization_id": org.id, "user_id": user.id},
            )
            return MemberOut.from_model(added)

    def remove_member(self, organization_id: int, user_id: int) -> None:
        """
        Remove a member.

        Owners may remove anyone; members may only remove themselves. The
        last owner cannot be removed and nobody leaves a personal organization.
        """
        with self.rw_uow() as uow:
            org, member = self._load(uow, organization_id)
            if member.user_id != user_id:
                self._ensure_owner(org, member)
            if org.is_personal:
                raise ConflictError("Organization", "cannot leave a personal organization")
            target = org.member(user_id)
            if target is None:
                raise NotFoundError("OrganizationMember", user_id)
            if (
                target.role == MemberRole.OWNER
                and uow.organization_members.count_owners(org.id) <= 1
            ):
                raise ConflictError("Organization", "cannot remove the last owner")
            uow.organization_members.remove(target)
            logger.info(
                "Organization member removed",
                extra={"organization_id": org.id, "user_id": user_id},
            )
