"""User repository for persistence and lookup utilities."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select, update

from erdstudio.models.user import SEARCH_FIELDS, User
from erdstudio.repositories.base import BaseRepository, Page, Pagination, ilike_any


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Lookups by email and slug; admin search over :data:`SEARCH_FIELDS`;
    token-version bookkeeping used to revoke access tokens. It NEVER issues
    JWTs nor sends emails.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _sortable_fields(self):
        return {
            "id": User.id,
            "slug": User.slug,
            "name": User.name,
            "email": User.email,
            "created_at": User.created_at,
            "last_signin": User.last_signin,
        }

    def _updatable_fields(self):
        """Profile fields editable by their owner (no email, no password)."""
        return {
            "name",
            "avatar",
            "company",
            "location",
            "description",
            "github_username",
            "twitter_username",
            "data",
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str, *, include_deleted: bool = False) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :param include_deleted: Also match soft-deleted accounts.
        :type include_deleted: bool
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = self._select(include_deleted=include_deleted).where(
            User.email == email.lower().strip()
        )
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str, *, exclude_id: int | None = None) -> bool:
        """Return ``True`` when any account (deleted ones included) uses ``email``.

        Deleted accounts keep their row, so their address stays taken.
        """
        stmt = select(User.id).where(User.email == email.lower().strip())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return bool(self.session.execute(stmt).first())

    def get_by_slug(self, slug: str) -> User | None:
        stmt = self._select().where(User.slug == slug)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def slug_exists(self, slug: str) -> bool:
        return bool(self.session.execute(select(User.id).where(User.slug == slug)).first())

    def search(self, term: str | None, pagination: Pagination) -> Page[User]:
        """Page through live users whose searchable columns contain ``term``.

        An empty term lists every live user.
        """
        columns = [getattr(User, name) for name in SEARCH_FIELDS]
        stmt = ilike_any(self._select(), columns, term)
        return self.paginate_statement(stmt, pagination)

    # ---------------------------- JWT ----------------------------

    def get_token_version(self, user_id: int) -> int:
        """Return current token_version for the given user."""
        stmt = select(User.token_version).where(User.id == user_id)
        return int(self.session.execute(stmt).scalar_one())

    def bump_token_version(self, user: User) -> int:
        """
        Increment ``token_version`` in a single UPDATE and refresh ``user``.

        :returns: New token_version after increment.
        """
        self.session.execute(
            update(User)
            .where(User.id == user.id)
            .values(token_version=User.token_version + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(user, attribute_names=["token_version"])
        return int(user.token_version)
