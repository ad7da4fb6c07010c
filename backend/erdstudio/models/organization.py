"""Organization and OrganizationMember models."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erdstudio.core.extensions import db

from .base import ETagMixin, PKMixin, ReprMixin, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from .project import Project
    from .user import User


class MemberRole(str, Enum):
    """Role of a user inside an organization."""

    OWNER = "owner"
    MEMBER = "member"


class Organization(PKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, ETagMixin, db.Model):
    """
    Owner of projects, shared by its members.

    Every user gets one *personal* organization at sign-up (same slug, name
    and logo as the user); it cannot be deleted nor left.
    """

    __tablename__ = "organizations"

    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    logo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    github_username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    twitter_username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_personal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    members: Mapped[list[OrganizationMember]] = relationship(
        "OrganizationMember",
        back_populates="organization",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    projects: Mapped[list[Project]] = relationship(
        "Project",
        back_populates="organization",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("slug", name="uq_organizations_slug"),
        Index("ix_organizations_slug", "slug"),
    )

    def member(self, user_id: int) -> OrganizationMember | None:
        """Return the membership of ``user_id`` if any."""
        return next((m for m in self.members if m.user_id == user_id), None)

    def owners(self) -> list[OrganizationMember]:
        return [m for m in self.members if m.role == MemberRole.OWNER]


class OrganizationMember(TimestampMixin, db.Model):
    """Join row between users and organizations carrying the member role."""

    __tablename__ = "organization_members"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[MemberRole] = mapped_column(
        SAEnum(
            MemberRole,
            name="enum_member_role",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=MemberRole.MEMBER,
    )
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    user: Mapped[User] = relationship(
        "User", back_populates="memberships", foreign_keys=[user_id], lazy="joined"
    )
    organization: Mapped[Organization] = relationship("Organization", back_populates="members")

    __table_args__ = (Index("ix_organization_members_organization_id", "organization_id"),)

    def __repr__(self) -> str:
        return f"<OrganizationMember user_id={self.user_id} organization_id={self.organization_id}>"
