"""Project repository."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select

from erdstudio.models.project import STAT_FIELDS, Project
from erdstudio.repositories.base import BaseRepository, Page, Pagination


class ProjectRepository(BaseRepository[Project]):
    """Persistence-only repository for :class:`Project`.

    Projects are scoped by organization: every public lookup takes the
    ``organization_id`` so a project id from another organization is never
    resolved.
    """

    model = Project

    def _sortable_fields(self):
        return {
            "name": Project.name,
            "slug": Project.slug,
            "created_at": Project.created_at,
            "updated_at": Project.updated_at,
        }

    def _updatable_fields(self):
        return {
            "name",
            "slug",
            "description",
            "content",
            "encoding_version",
            "archived_at",
            "updated_by_id",
            *STAT_FIELDS,
        }

    def get_in_organization(self, organization_id: int, project_id: Any) -> Project | None:
        stmt = select(Project).where(
            Project.organization_id == organization_id, Project.id == project_id
        )
        return cast(Project | None, self.session.execute(stmt).scalars().first())

    def slug_exists(
        self, organization_id: int, slug: str, *, exclude_id: Any | None = None
    ) -> bool:
        stmt = select(Project.id).where(
            Project.organization_id == organization_id, Project.slug == slug
        )
        if exclude_id is not None:
            stmt = stmt.where(Project.id != exclude_id)
        return bool(self.session.execute(stmt).first())

    def list_for_organization(
        self,
        organization_id: int,
        pagination: Pagination,
        *,
        include_archived: bool = False,
    ) -> Page[Project]:
        """Page through the organization's projects, archived ones hidden by default."""
        stmt = select(Project).where(Project.organization_id == organization_id)
        if not include_archived:
            stmt = stmt.where(Project.archived_at.is_(None))
        return self.paginate_statement(stmt, pagination)
