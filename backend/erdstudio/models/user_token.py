"""Single-use email tokens (confirmation, password reset, email change)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, LargeBinary, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erdstudio.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User


class UserToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Hashed token sent to a user by email.

    Only the SHA-256 digest is stored; the clear token travels in the email
    link. ``context`` scopes a token to one workflow (``confirm``,
    ``reset_password`` or ``change:<current email>``) and ``sent_to``
    records the address it was delivered to.
    """

    __tablename__ = "user_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    context: Mapped[str] = mapped_column(String(200), nullable=False)
    sent_to: Mapped[str] = mapped_column(String(160), nullable=False)

    user: Mapped[User] = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("context", "token_hash", name="uq_user_tokens_context_token"),
        Index("ix_user_tokens_user_id", "user_id"),
    )
