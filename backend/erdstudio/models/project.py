"""Project model: a stored ERD document owned by an organization."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from erdstudio.core.extensions import db

from .base import ETagMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .organization import Organization

# Stats columns recomputed whenever the document changes
STAT_FIELDS: tuple[str, ...] = (
    "nb_sources",
    "nb_tables",
    "nb_columns",
    "nb_relations",
    "nb_types",
    "nb_comments",
    "nb_layouts",
    "nb_notes",
    "nb_memos",
)


class StorageKind(str, Enum):
    """Where the project document lives."""

    LOCAL = "local"  # kept in the browser, only metadata is stored here
    REMOTE = "remote"  # full document stored in ``content``


class Project(ReprMixin, TimestampMixin, ETagMixin, db.Model):
    """
    Database-schema exploration project.

    Fields
    ------
    id : UUID
        Public identifier used by the UI.
    organization_id : int
        Owning organization. ``ON DELETE CASCADE``.
    slug : str
        Unique per organization.
    storage_kind : StorageKind
        ``local`` projects never have ``content``.
    encoding_version : int
        Version of the document format produced by the UI.
    content : str | None
        Serialized JSON document for ``remote`` projects.
    nb_* : int
        Counters derived from the document (tables, columns, ...).
    archived_at : datetime | None
        Archived projects are hidden from listings.
    """

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    storage_kind: Mapped[StorageKind] = mapped_column(
        SAEnum(
            StorageKind,
            name="enum_storage_kind",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )
    encoding_version: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    nb_sources: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_tables: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_columns: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_relations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_types: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_layouts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_notes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nb_memos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    organization: Mapped[Organization] = relationship("Organization", back_populates="projects")

    __table_args__ = (
        UniqueConstraint("organization_id", "slug", name="uq_projects_organization_slug"),
        Index("ix_projects_organization_id", "organization_id"),
        CheckConstraint(
            "(storage_kind = 'remote') OR (content IS NULL)",
            name="local_without_content",
        ),
    )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def stats(self) -> dict[str, int]:
        return {name: int(getattr(self, name) or 0) for name in STAT_FIELDS}

    @validates("name")
    def _validate_name(self, key: str, value: str) -> str:
        """Trim and require a project name."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Project name is required.")
        return value.strip()
