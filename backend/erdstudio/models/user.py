"""User account model."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from erdstudio.core.extensions import db

from .base import ETagMixin, PKMixin, ReprMixin, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from .organization import Organization, OrganizationMember

# Columns matched by the admin user search
SEARCH_FIELDS: tuple[str, ...] = (
    "slug",
    "name",
    "email",
    "company",
    "location",
    "description",
    "github_username",
    "twitter_username",
)

EMAIL_MAX_LENGTH = 160


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return generate_password_hash("erdstudio-no-user-placeholder")


def no_user_verify() -> bool:
    """Burn a hash verification so missing accounts cost as much as wrong passwords."""
    check_password_hash(_dummy_hash(), "erdstudio-no-user")
    return False


class User(PKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, ETagMixin, db.Model):
    """
    Account of a person using the diagram studio.

    Users sign up either with a password or through an identity provider
    (``github``, ``heroku``); provider accounts have no password hash.

    Fields
    ------
    slug : str
        Unique, URL-safe handle derived from the name or GitHub username.
    email : str
        Login email. Stored trimmed and lowercased.
    hashed_password : str | None
        Password hash (write-only setter via ``password``). Never serialized.
    token_version : int
        Bumped to invalidate every access token issued before.
    data : dict | None
        Free-form embedded document (onboarding state, attribution).
    confirmed_at : datetime | None
        Set once the email address has been confirmed.
    deleted_at : datetime | None
        Soft-deletion marker (from mixin).
    """

    __tablename__ = "users"

    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(32), nullable=True)
    provider_uid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(120), nullable=True)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    github_username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    twitter_username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    token_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_signin: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(
        MutableDict.as_mutable(JSON), nullable=True
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    memberships: Mapped[list[OrganizationMember]] = relationship(
        "OrganizationMember",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        foreign_keys="OrganizationMember.user_id",
    )
    organizations: Mapped[list[Organization]] = relationship(
        "Organization",
        secondary="organization_members",
        primaryjoin="User.id == organization_members.c.user_id",
        secondaryjoin="Organization.id == organization_members.c.organization_id",
        viewonly=True,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("slug", name="uq_users_slug"),
        Index("ix_users_email", "email"),
        Index("ix_users_slug", "slug"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.hashed_password = generate_password_hash(raw)

    def verify_password(self, raw: str | None) -> bool:
        """
        Verify a password against the stored hash.

        Accounts without a hash (provider sign-ups) and empty candidates still
        pay for one hash check before failing.

        :param raw: Plain text password candidate.
        :type raw: str | None
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.hashed_password or not raw:
            return no_user_verify()
        return bool(check_password_hash(self.hashed_password, raw))

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize email.

        :raises ValueError: If email is missing.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        # Format and length rules live in the account changesets.
        return value.strip().lower()


def valid_password(user: User | None, password: str | None) -> bool:
    """Return ``True`` when ``password`` unlocks ``user``.

    A missing user still costs one hash verification.
    """
    if user is None:
        return no_user_verify()
    return user.verify_password(password)
