"""Repositories for organizations and their memberships."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import func, select

from erdstudio.models.organization import MemberRole, Organization, OrganizationMember
from erdstudio.repositories.base import BaseRepository, Page, Pagination


class OrganizationRepository(BaseRepository[Organization]):
    """Persistence-only repository for :class:`Organization`."""

    model = Organization

    def _sortable_fields(self):
        return {
            "id": Organization.id,
            "name": Organization.name,
            "slug": Organization.slug,
            "created_at": Organization.created_at,
        }

    def _updatable_fields(self):
        return {
            "name",
            "logo",
            "description",
            "location",
            "github_username",
            "twitter_username",
            "updated_by_id",
        }

    def slug_exists(self, slug: str) -> bool:
        """Check slug usage, soft-deleted organizations included."""
        stmt = select(Organization.id).where(Organization.slug == slug)
        return bool(self.session.execute(stmt).first())

    def get_personal(self, user_id: int) -> Organization | None:
        """Return the personal organization created for ``user_id``."""
        stmt = self._select().where(
            Organization.is_personal.is_(True),
            Organization.created_by_id == user_id,
        )
        return cast(Organization | None, self.session.execute(stmt).scalars().first())

    def list_for_user(self, user_id: int, pagination: Pagination) -> Page[Organization]:
        """Page through the live organizations ``user_id`` is a member of."""
        stmt = self._select().where(
            Organization.id.in_(
                select(OrganizationMember.organization_id).where(
                    OrganizationMember.user_id == user_id
                )
            )
        )
        return self.paginate_statement(stmt, pagination)


class OrganizationMemberRepository(BaseRepository[OrganizationMember]):
    """Membership rows; keyed by ``(organization_id, user_id)``."""

    model = OrganizationMember

    def _pk_attr(self):
        return None

    def get_membership(self, organization_id: int, user_id: int) -> OrganizationMember | None:
        stmt = select(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
        )
        return cast(OrganizationMember | None, self.session.execute(stmt).scalars().first())

    def list_members(self, organization_id: int) -> list[OrganizationMember]:
        stmt = (
            select(OrganizationMember)
            .where(OrganizationMember.organization_id == organization_id)
            .order_by(OrganizationMember.created_at.asc(), OrganizationMember.user_id.asc())
        )
        return list(self.session.execute(stmt).scalars().unique().all())

    def count_owners(self, organization_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(OrganizationMember)
            .where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.role == MemberRole.OWNER,
            )
        )
        return int(self.session.execute(stmt).scalar_one())

    def add_member(
        self,
        organization: Organization,
        user_id: int,
        *,
        role: MemberRole = MemberRole.MEMBER,
        created_by_id: int | None = None,
    ) -> OrganizationMember:
        """Stage a membership row and flush."""
        member = OrganizationMember(
            organization=organization,
            user_id=user_id,
            role=role,
            created_by_id=created_by_id,
        )
        return self.add(member)

    def remove(self, member: OrganizationMember) -> None:
        """Hard-delete a membership row."""
        organization: Any = member.organization
        if organization is not None and member in organization.members:
            organization.members.remove(member)
        self.session.delete(member)
        self.flush()
