"""
ProjectService
==============

Projects are ERD documents stored inside an organization. Every member of
the organization can read and edit its projects.

``local`` projects keep their document in the browser: only metadata lives
here. ``remote`` projects store the JSON document in ``content`` and their
``nb_*`` counters are recomputed on every upload.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from flask import current_app, has_app_context

from erdstudio.models.organization import Organization
from erdstudio.models.project import Project, StorageKind
from erdstudio.services._shared.base import BaseService, ServiceContext
from erdstudio.services._shared.dto import PageMeta, PaginationIn
from erdstudio.services._shared.errors import (
    AuthorizationError,
    ChangesetError,
    ConflictError,
    ContentTooLargeError,
    NotFoundError,
)
from erdstudio.services._shared.slugs import slugify, unique_slug
from erdstudio.services.projects.dto import ProjectOut
from erdstudio.services.projects.stats import compute_stats
from erdstudio.uow.sqlalchemy_uow import SQLAlchemyRepositoryContainer

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_BYTES = 10 * 1024 * 1024
DEFAULT_ENCODING_VERSION = 2


class ProjectService(BaseService):
    """
    Application service for projects of an organization.

    :param max_content_bytes: Size limit of a stored document. Read from
        ``PROJECT_MAX_CONTENT_BYTES`` when omitted.
    """

    def __init__(
        self, *, ctx: ServiceContext | None = None, max_content_bytes: int | None = None
    ) -> None:
        super().__init__(ctx=ctx)
        if max_content_bytes is None:
            max_content_bytes = (
                int(current_app.config.get("PROJECT_MAX_CONTENT_BYTES", DEFAULT_MAX_CONTENT_BYTES))
                if has_app_context()
                else DEFAULT_MAX_CONTENT_BYTES
            )
        self.max_content_bytes = max_content_bytes

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _actor(self) -> int:
        if self.ctx.actor_id is None:
            raise AuthorizationError("Authentication required.")
        return int(self.ctx.actor_id)

    def _organization(
        self, uow: SQLAlchemyRepositoryContainer, organization_id: int
    ) -> Organization:
        """Return the live organization when the actor is one of its members."""
        org = uow.organizations.get(organization_id)
        if org is None or org.member(self._actor()) is None:
            raise NotFoundError("Organization", organization_id)
        return org

    def _load(
        self, uow: SQLAlchemyRepositoryContainer, organization_id: int, project_id: UUID
    ) -> Project:
        org = self._organization(uow, organization_id)
        project = uow.projects.get_in_organization(org.id, project_id)
        if project is None:
            raise NotFoundError("Project", str(project_id))
        return project

    def _parse_content(self, raw: Any) -> tuple[str, dict[str, Any]]:
        """Return the JSON text to store and its parsed document.

        :raises ContentTooLargeError: Above ``max_content_bytes``.
        :raises ChangesetError: When ``raw`` is not a JSON object.
        """
        if isinstance(raw, Mapping):
            document = dict(raw)
            text = json.dumps(document, separators=(",", ":"))
        elif isinstance(raw, str):
            text = raw
            try:
                document = json.loads(text)
            except ValueError as exc:
                raise ChangesetError.single("content", "is not valid JSON") from exc
        else:
            raise ChangesetError.single("content", "can't be blank")

        size = len(text.encode("utf-8"))
        if size > self.max_content_bytes:
            raise ContentTooLargeError(size, self.max_content_bytes)
        if not isinstance(document, dict):
            raise ChangesetError.single("content", "must be a JSON object")
        return text, document

    @staticmethod
    def _clean_name(value: Any) -> str:
        name = value.strip() if isinstance(value, str) else ""
        if not name:
            raise ChangesetError.single("name", "can't be blank")
        return name

    @staticmethod
    def _storage_kind(value: Any) -> StorageKind:
        try:
            return StorageKind(value or StorageKind.LOCAL.value)
        except ValueError as exc:
            raise ChangesetError.single("storage_kind", "is invalid") from exc

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def list(
        self, organization_id: int, pagination: PaginationIn | None = None
    ) -> tuple[list[ProjectOut], PageMeta]:
        """List the live (not archived) projects of an organization, without content."""
        p = pagination or PaginationIn(sort=("-updated_at",))
        page = self.ensure_pagination(page=p.page, limit=p.limit, sort=p.sort)
        with self.ro_uow() as uow:
            org = self._organization(uow, organization_id)
            result = uow.projects.list_for_organization(org.id, page)
            items = [ProjectOut.from_model(pr, with_content=False) for pr in result.items]
            return items, PageMeta.build(page=result.page, limit=result.limit, total=result.total)

    def get(self, organization_id: int, project_id: UUID) -> ProjectOut:
        with self.ro_uow() as uow:
            return ProjectOut.from_model(self._load(uow, organization_id, project_id))

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create(self, organization_id: int, attrs: Mapping[str, Any]) -> ProjectOut:
        """
        Create a project in the organization.

        Remote projects require ``content``; local ones must not carry any.
        """
        actor_id = self._actor()
        name = self._clean_name(attrs.get("name"))
        kind = self._storage_kind(attrs.get("storage_kind"))
        content = attrs.get("content")
        if kind is StorageKind.REMOTE and content is None:
            raise ChangesetError.single("content", "can't be blank")
        if kind is StorageKind.LOCAL and content is not None:
            raise ChangesetError.single("content", "must be empty for local projects")

        text, stats = None, {}
        if content is not None:
            text, document = self._parse_content(content)
            stats = compute_stats(document)

        with self.rw_uow() as uow:
            org = self._organization(uow, organization_id)
            project = uow.projects.add(
                Project(
                    organization_id=org.id,
                    slug=unique_slug(
                        name,
                        lambda s: uow.projects.slug_exists(org.id, s),
                        default="project",
                    ),
                    name=name,
                    description=attrs.get("description") or None,
                    storage_kind=kind,
                    encoding_version=int(
                        attrs.get("encoding_version") or DEFAULT_ENCODING_VERSION
                    ),
                    content=text,
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                    **stats,
                )
            )
            logger.info(
                "Project created",
                extra={"project_id": str(project.id), "organization_id": org.id},
            )
            return ProjectOut.from_model(project)

    def update(
        self,
        organization_id: int,
        project_id: UUID,
        attrs: Mapping[str, Any],
        *,
        if_match: str | None = None,
    ) -> ProjectOut:
        """Update project metadata (name, slug, description)."""
        actor_id = self._actor()
        with self.rw_uow() as uow:
            project = self._load(uow, organization_id, project_id)
            self.ensure_if_match(if_match, project.compute_etag())

            data: dict[str, Any] = {}
            if "name" in attrs:
                data["name"] = self._clean_name(attrs["name"])
            if "description" in attrs:
                data["description"] = attrs["description"] or None
            if "slug" in attrs:
                slug = slugify(attrs["slug"], default="project")
                if uow.projects.slug_exists(project.organization_id, slug, exclude_id=project.id):
                    raise ChangesetError.single("slug", "has already been taken")
                data["slug"] = slug
            if data:
                uow.projects.update(project, updated_by_id=actor_id, **data)
            return ProjectOut.from_model(project)

    def upload_content(
        self,
        organization_id: int,
        project_id: UUID,
        content: Any,
        *,
        encoding_version: int | None = None,
        if_match: str | None = None,
    ) -> ProjectOut:
        """Replace the document of a remote project and recompute its counters."""
        actor_id = self._actor()
        text, document = self._parse_content(content)
        with self.rw_uow() as uow:
            project = self._load(uow, organization_id, project_id)
            if project.storage_kind is not StorageKind.REMOTE:
                raise ConflictError("Project", "local projects do not store content")
            self.ensure_if_match(if_match, project.compute_etag())
            data: dict[str, Any] = {"content": text, **compute_stats(document)}
            if encoding_version is not None:
                data["encoding_version"] = int(encoding_version)
            uow.projects.update(project, updated_by_id=actor_id, **data)
            logger.info(
                "Project content uploaded",
                extra={"project_id": str(project.id), "organization_id": organization_id},
            )
            return ProjectOut.from_model(project)

    def archive(self, organization_id: int, project_id: UUID) -> ProjectOut:
        """Hide the project from listings; idempotent."""
        actor_id = self._actor()
        with self.rw_uow() as uow:
            project = self._load(uow, organization_id, project_id)
            if project.archived_at is None:
                uow.projects.update(project, archived_at=self.now(), updated_by_id=actor_id)
            return ProjectOut.from_model(project)

    def delete(self, organization_id: int, project_id: UUID) -> None:
        """Delete the project and its document for good."""
        with self.rw_uow() as uow:
            project = self._load(uow, organization_id, project_id)
            uow.projects.delete(project)
            logger.info(
                "Project deleted",
                extra={"project_id": str(project_id), "organization_id": organization_id},
            )
