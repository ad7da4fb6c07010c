"""Repository for hashed email tokens."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import cast

from sqlalchemy import delete, select

from erdstudio.models.user_token import UserToken
from erdstudio.repositories.base import BaseRepository


class UserTokenRepository(BaseRepository[UserToken]):
    """Persistence-only repository for :class:`UserToken`."""

    model = UserToken

    def create(
        self,
        *,
        user_id: int,
        token_hash: bytes,
        context: str,
        sent_to: str,
        issued_at: datetime,
    ) -> UserToken:
        """Stage a token row stamped with the application clock."""
        token = UserToken(
            user_id=user_id,
            token_hash=token_hash,
            context=context,
            sent_to=sent_to,
            created_at=issued_at,
        )
        return self.add(token)

    def find_valid(
        self, *, token_hash: bytes, context: str, issued_after: datetime
    ) -> UserToken | None:
        """Return the token matching ``token_hash`` in ``context`` issued after a cutoff.

        The cutoff comparison runs in SQL so naive and aware timestamps never
        meet in Python.
        """
        stmt = select(UserToken).where(
            UserToken.token_hash == token_hash,
            UserToken.context == context,
            UserToken.created_at > issued_after,
        )
        return cast(UserToken | None, self.session.execute(stmt).scalars().first())

    def delete_for_user(self, user_id: int, contexts: Iterable[str] | None = None) -> int:
        """Delete the user's tokens, optionally restricted to ``contexts``.

        :returns: Number of deleted rows.
        """
        stmt = delete(UserToken).where(UserToken.user_id == user_id)
        if contexts is not None:
            stmt = stmt.where(UserToken.context.in_(list(contexts)))
        result = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return int(result.rowcount or 0)

    def list_for_user(self, user_id: int) -> list[UserToken]:
        stmt = select(UserToken).where(UserToken.user_id == user_id).order_by(UserToken.id.asc())
        return list(self.session.execute(stmt).scalars().unique().all())
