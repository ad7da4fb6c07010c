"""DTOs for ProjectService."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from erdstudio.models.project import Project


@dataclass(frozen=True, slots=True)
class ProjectOut:
    """
    Project metadata and, when requested, its stored document.

    :param storage_kind: ``local`` or ``remote``.
    :type storage_kind: str
    :param stats: ``nb_*`` counters computed from the document.
    :type stats: dict[str, int]
    :param content: JSON text of a remote document; ``None`` in listings.
    :type content: str | None
    """

    id: UUID
    organization_id: int
    slug: str
    name: str
    description: str | None
    storage_kind: str
    encoding_version: int
    stats: dict[str, int]
    content: str | None
    archived_at: datetime | None
    created_by_id: int | None
    updated_by_id: int | None
    created_at: datetime | None
    updated_at: datetime | None
    etag: str

    @classmethod
    def from_model(cls, project: Project, *, with_content: bool = True) -> ProjectOut:
        return cls(
            id=project.id,
            organization_id=project.organization_id,
            slug=project.slug,
            name=project.name,
            description=project.description,
            storage_kind=project.storage_kind.value,
            encoding_version=project.encoding_version,
            stats=project.stats(),
            content=project.content if with_content else None,
            archived_at=project.archived_at,
            created_by_id=project.created_by_id,
            updated_by_id=project.updated_by_id,
            created_at=project.created_at,
            updated_at=project.updated_at,
            etag=project.compute_etag(),
        )
